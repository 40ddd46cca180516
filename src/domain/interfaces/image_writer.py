"""Image writer interface."""
from abc import ABC, abstractmethod


class ImageWriter(ABC):
    """Abstract interface for persisting packed RGB8 images."""

    @abstractmethod
    def write(self, buffer: bytes, width: int, height: int, path: str) -> None:
        """
        Write one image to `path`.

        Parameters
        ----------
        buffer : bytes
            Row-major packed RGB8 pixels, ``width * height * 3`` bytes.
        width : int
            Image width in pixels.
        height : int
            Image height in pixels.
        path : str
            Destination file path.

        Raises
        ------
        ImageWriteError
            If the image cannot be written.
        """
        pass
