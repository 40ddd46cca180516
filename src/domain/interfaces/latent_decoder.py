"""Latent decoder interface."""
from abc import ABC, abstractmethod

from src.domain.entities.tensor import Tensor


class LatentDecoder(ABC):
    """Abstract interface mapping latents back to pixel space."""

    upsampling_factor: int = 8

    @abstractmethod
    def decode(self, latent: Tensor) -> Tensor:
        """
        Decode a latent to pixels.

        Parameters
        ----------
        latent : Tensor
            Final latent, shape (batch, channels, height, width).

        Returns
        -------
        Tensor
            Pixels in [0, 1], shape
            (batch, 3, height * upsampling_factor, width * upsampling_factor).
        """
        pass
