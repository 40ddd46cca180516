"""Pillow implementation of the domain `ImageWriter` interface."""
from PIL import Image

from src.domain.entities.errors import ImageWriteError
from src.domain.interfaces.image_writer import ImageWriter


class PillowImageWriter(ImageWriter):
    """Writes packed RGB8 buffers as PNG files with Pillow."""

    def write(self, buffer: bytes, width: int, height: int, path: str) -> None:
        """
        Write one RGB image as PNG.

        Parameters
        ----------
        buffer : bytes
            Row-major packed RGB8 pixels.
        width : int
            Image width in pixels.
        height : int
            Image height in pixels.
        path : str
            Destination file path.

        Raises
        ------
        ImageWriteError
            If the dimensions do not match the buffer or the file cannot be written.
        """
        if width <= 0 or height <= 0:
            raise ImageWriteError(f"Invalid image dimensions {width}x{height} for {path}")
        if len(buffer) != width * height * 3:
            raise ImageWriteError(
                f"Buffer of {len(buffer)} bytes does not hold a {width}x{height} RGB image"
            )

        try:
            image = Image.frombytes("RGB", (width, height), buffer)
            image.save(path, format="PNG")
        except (OSError, ValueError) as err:
            raise ImageWriteError(f"Failed to write {path}: {err}") from err
