"""SDXL VAE decoder adapter."""
import torch

from src.domain.interfaces.latent_decoder import LatentDecoder


class VAELatentDecoder(LatentDecoder):
    """
    Concrete `LatentDecoder` wrapping a diffusers `AutoencoderKL`.

    Latents are divided by the VAE scaling factor before decoding and the
    decoded pixels are mapped from [-1, 1] to [0, 1].

    Parameters
    ----------
    vae : diffusers.AutoencoderKL
        Autoencoder whose decoder half is used.
    """

    def __init__(self, vae):
        self.vae = vae
        self.scaling_factor = float(vae.config.scaling_factor)
        self.upsampling_factor = 2 ** (len(vae.config.block_out_channels) - 1)

    @torch.no_grad()
    def decode(self, latent: torch.Tensor) -> torch.Tensor:
        latent = latent.to(device=self.vae.device, dtype=self.vae.dtype)
        image = self.vae.decode(latent / self.scaling_factor, return_dict=False)[0]
        return ((image + 1.0) / 2.0).clamp(0.0, 1.0)

    def unload(self) -> None:
        """Drop the reference to the underlying module."""
        self.vae = None
