"""
Resolution buckets.

The diffusion model was trained on a fixed set of aspect ratio buckets
sharing roughly one megapixel. Generation is only supported at those sizes,
so the table below is the single source of truth for output dimensions.
"""
from typing import NamedTuple

from src.domain.entities.errors import InvalidParameterError


class ResolutionBucket(NamedTuple):
    """Supported output size in pixels."""

    width: int
    height: int

    def latent_shape(self, compression_factor: int) -> tuple[int, int]:
        """
        Spatial size of the latent for this bucket.

        Parameters
        ----------
        compression_factor : int
            Downsampling factor between pixel space and latent space.

        Returns
        -------
        tuple[int, int]
            ``(latent_height, latent_width)``.
        """
        return self.height // compression_factor, self.width // compression_factor


class CropOffset(NamedTuple):
    """Top-left crop coordinates fed to the size conditioning."""

    left: int = 0
    top: int = 0


RESOLUTIONS: tuple[ResolutionBucket, ...] = tuple(
    ResolutionBucket(width, height)
    for width, height in (
        (512, 2048), (512, 1984), (512, 1920), (512, 1856),
        (576, 1792), (576, 1728), (576, 1664), (640, 1600),
        (640, 1536), (704, 1472), (704, 1408), (704, 1344),
        (768, 1344), (768, 1280), (832, 1216), (832, 1152),
        (896, 1152), (896, 1088), (960, 1088), (960, 1024),
        (1024, 1024), (1024, 960), (1088, 960), (1088, 896),
        (1152, 896), (1152, 832), (1216, 832), (1280, 768),
        (1344, 768), (1408, 704), (1472, 704), (1536, 640),
        (1600, 640), (1664, 576), (1728, 576), (1792, 576),
        (1856, 512), (1920, 512), (1984, 512), (2048, 512),
    )
)

DEFAULT_RESOLUTION_INDEX = 8


def bucket_at(index: int) -> ResolutionBucket:
    """
    Look up a resolution bucket by its table index.

    Parameters
    ----------
    index : int
        Position in `RESOLUTIONS`. Negative indexes are rejected.

    Returns
    -------
    ResolutionBucket
        The bucket stored at `index`.

    Raises
    ------
    InvalidParameterError
        If `index` is not an int or lies outside the table.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidParameterError(f"Resolution index must be an int, got {index!r}")
    if not 0 <= index < len(RESOLUTIONS):
        raise InvalidParameterError(
            f"Resolution index {index} is out of range [0, {len(RESOLUTIONS) - 1}]"
        )
    return RESOLUTIONS[index]
