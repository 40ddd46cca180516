"""SDXL UNet adapter."""
import torch

from src.domain.entities.errors import ShapeMismatchError
from src.domain.interfaces.denoiser import Denoiser

# size, crop and target size, two values each
TIME_ID_COUNT = 6


class UNetDenoiser(Denoiser):
    """
    Concrete `Denoiser` wrapping a diffusers `UNet2DConditionModel`.

    The channel context is the pooled text embedding followed by the six
    SDXL time ids; it is split back into the two added conditioning inputs
    the UNet expects.

    Parameters
    ----------
    unet : diffusers.UNet2DConditionModel
        Network loaded with ``addition_embed_type="text_time"``.
    """

    def __init__(self, unet):
        self.unet = unet

    @torch.no_grad()
    def forward(
        self,
        latent: torch.Tensor,
        timestep: int,
        context: torch.Tensor,
        channel_context: torch.Tensor,
    ) -> torch.Tensor:
        if channel_context.ndim != 2 or channel_context.shape[-1] <= TIME_ID_COUNT:
            raise ShapeMismatchError(
                f"channel_context must be (batch, pooled + {TIME_ID_COUNT}), "
                f"got {tuple(channel_context.shape)}"
            )
        text_embeds = channel_context[:, :-TIME_ID_COUNT]
        time_ids = channel_context[:, -TIME_ID_COUNT:]
        timesteps = torch.full(
            (latent.shape[0],),
            timestep,
            device=latent.device,
            dtype=torch.long,
        )
        return self.unet(
            latent,
            timesteps,
            encoder_hidden_states=context,
            added_cond_kwargs={"text_embeds": text_embeds, "time_ids": time_ids},
            return_dict=False,
        )[0]

    def unload(self) -> None:
        """Drop the reference to the underlying module."""
        self.unet = None
