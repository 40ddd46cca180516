"""Denoising network interface."""
from abc import ABC, abstractmethod

from src.domain.entities.tensor import Tensor


class Denoiser(ABC):
    """Abstract interface for the network predicting noise from a latent."""

    @abstractmethod
    def forward(
        self,
        latent: Tensor,
        timestep: int,
        context: Tensor,
        channel_context: Tensor,
    ) -> Tensor:
        """
        Predict the noise contained in `latent` at `timestep`.

        Parameters
        ----------
        latent : Tensor
            Noisy latent, shape (batch, channels, height, width).
        timestep : int
            Training timestep index of the current noise level.
        context : Tensor
            Text embedding attended to by the network.
        channel_context : Tensor
            Pooled text and size embedding.

        Returns
        -------
        Tensor
            Noise estimate with the same shape as `latent`.
        """
        pass
