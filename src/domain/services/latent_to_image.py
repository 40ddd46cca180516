"""
Latent-to-image stage.

Decodes the final latent and packs the pixels into RGB8 buffers.
"""
import logging

import numpy as np

from src.domain.entities.errors import ShapeMismatchError
from src.domain.entities.image_result import ImageResult
from src.domain.entities.tensor import Tensor
from src.domain.interfaces.latent_decoder import LatentDecoder
from src.domain.services.precision_bridge import as_numpy

logger = logging.getLogger(__name__)


def pack_rgb8(pixels: np.ndarray) -> list[bytes]:
    """
    Pack (batch, 3, height, width) pixels in [0, 1] into RGB8 byte strings.

    Values outside [0, 1] are clipped.
    """
    pixels = np.clip(pixels.astype(np.float32), 0.0, 1.0)
    pixels = np.round(pixels * 255.0).astype(np.uint8)
    # (B, C, H, W) -> (B, H, W, C)
    pixels = np.ascontiguousarray(pixels.transpose(0, 2, 3, 1))
    return [image.tobytes() for image in pixels]


class LatentToImage:
    """
    Wraps the latent decoder.

    Attributes
    ----------
    decoder : LatentDecoder
        Decoder collaborator.
    """

    def __init__(self, decoder: LatentDecoder) -> None:
        self.decoder = decoder

    def latent_to_image(self, latent: Tensor) -> ImageResult:
        """
        Decode a latent into packed RGB8 images.

        Parameters
        ----------
        latent : Tensor
            Latent of shape (batch, channels, height, width), in the
            decoder's backend.

        Returns
        -------
        ImageResult
            One buffer per batch element.

        Raises
        ------
        ShapeMismatchError
            If the decoder output is not (batch, 3, height * f, width * f).
        """
        latent_shape = tuple(int(d) for d in latent.shape)
        if len(latent_shape) != 4:
            raise ShapeMismatchError(
                f"Latent must have shape (batch, channels, height, width), got {latent_shape}"
            )

        logger.info(f"Decoding latent {latent_shape}")
        pixels = as_numpy(self.decoder.decode(latent))

        if pixels.ndim != 4 or pixels.shape[1] != 3:
            raise ShapeMismatchError(
                f"Decoder must return (batch, 3, height, width), got {pixels.shape}"
            )

        factor = self.decoder.upsampling_factor
        batch, _, latent_height, latent_width = latent_shape
        expected = (batch, 3, latent_height * factor, latent_width * factor)
        if pixels.shape != expected:
            raise ShapeMismatchError(
                f"Decoder returned shape {pixels.shape}, expected {expected}"
            )

        _, _, height, width = pixels.shape
        return ImageResult(buffers=pack_rgb8(pixels), width=width, height=height)
