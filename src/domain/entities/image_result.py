"""ImageResult entity - decoded images ready for persistence."""
from dataclasses import dataclass


@dataclass(frozen=True)
class ImageResult:
    """
    Packed RGB8 images sharing one size.

    Attributes
    ----------
    buffers : list[bytes]
        One row-major ``height * width * 3`` byte string per batch element.
    width : int
        Image width in pixels.
    height : int
        Image height in pixels.
    """

    buffers: list[bytes]
    width: int
    height: int

    def __len__(self) -> int:
        return len(self.buffers)
