"""
Diffusers Model Loader Implementation.

This module provides the `ModelLoader` implementation for Stable Diffusion
XL checkpoints laid out in the diffusers format (one subfolder per
component), either on the local filesystem or on the Hugging Face Hub.
"""
import gc
import logging
from typing import Any, Callable, Mapping

import torch
from diffusers import AutoencoderKL, UNet2DConditionModel
from transformers import CLIPTextModel, CLIPTextModelWithProjection, CLIPTokenizer

from src.domain.entities.errors import ModelLoadError
from src.domain.interfaces.model_loader import (
    DIFFUSER,
    EMBEDDER,
    LATENT_DECODER,
    ModelLoader,
)
from src.infrastructure.diffusers.decoder import VAELatentDecoder
from src.infrastructure.diffusers.denoiser import UNetDenoiser
from src.infrastructure.diffusers.text_encoder import SDXLTextEncoder
from src.infrastructure.torch.backend import TorchBackend

logger = logging.getLogger(__name__)


class DiffusersModelLoader(ModelLoader):
    """
    Loads the SDXL embedder, diffuser and latent decoder with diffusers.

    Parameters
    ----------
    model_root : str
        Local directory or Hub repository id of a diffusers SDXL checkpoint.
    backends : Mapping[str, TorchBackend]
        Device and precision of each stage, keyed by model name.
    """

    def __init__(self, model_root: str, backends: Mapping[str, TorchBackend]) -> None:
        self.model_root = model_root
        self.backends = dict(backends)
        self._factories: dict[str, Callable[[TorchBackend], Any]] = {
            EMBEDDER: self._load_embedder,
            DIFFUSER: self._load_diffuser,
            LATENT_DECODER: self._load_latent_decoder,
        }

    def load(self, name: str) -> Any:
        """
        Load a named stage model.

        Parameters
        ----------
        name : str
            One of "embedder", "diffuser", "latent_decoder".

        Returns
        -------
        Any
            `SDXLTextEncoder`, `UNetDenoiser` or `VAELatentDecoder`.

        Raises
        ------
        ModelLoadError
            If the name is unknown, has no backend, or loading fails.
        """
        if name not in self._factories:
            raise ModelLoadError(
                f"Unknown model '{name}', expected one of {sorted(self._factories)}"
            )
        if name not in self.backends:
            raise ModelLoadError(f"No backend configured for model '{name}'")

        backend = self.backends[name]
        logger.info(f"Loading {name} from {self.model_root} ({backend.name})...")
        try:
            model = self._factories[name](backend)
        except (OSError, ValueError, KeyError, RuntimeError) as err:
            raise ModelLoadError(
                f"Failed to load {name} from {self.model_root}: {err}"
            ) from err
        logger.info(f"Loaded {name}.")
        return model

    def release(self, model: Any) -> None:
        """
        Drop the model's modules and return their memory to the allocator.

        Parameters
        ----------
        model : Any
            Model returned by `load`.
        """
        unload = getattr(model, "unload", None)
        if unload is not None:
            unload()
        gc.collect()
        if torch.cuda.is_available():
            torch.cuda.empty_cache()
        logger.info(f"Released {type(model).__name__}.")

    def _load_embedder(self, backend: TorchBackend) -> SDXLTextEncoder:
        tokenizer = CLIPTokenizer.from_pretrained(self.model_root, subfolder="tokenizer")
        tokenizer_2 = CLIPTokenizer.from_pretrained(self.model_root, subfolder="tokenizer_2")
        text_encoder = CLIPTextModel.from_pretrained(
            self.model_root, subfolder="text_encoder", torch_dtype=backend.dtype
        ).to(backend.device).eval()
        text_encoder_2 = CLIPTextModelWithProjection.from_pretrained(
            self.model_root, subfolder="text_encoder_2", torch_dtype=backend.dtype
        ).to(backend.device).eval()
        return SDXLTextEncoder(tokenizer, tokenizer_2, text_encoder, text_encoder_2, backend)

    def _load_diffuser(self, backend: TorchBackend) -> UNetDenoiser:
        unet = UNet2DConditionModel.from_pretrained(
            self.model_root, subfolder="unet", torch_dtype=backend.dtype
        ).to(backend.device).eval()
        return UNetDenoiser(unet)

    def _load_latent_decoder(self, backend: TorchBackend) -> VAELatentDecoder:
        vae = AutoencoderKL.from_pretrained(
            self.model_root, subfolder="vae", torch_dtype=backend.dtype
        ).to(backend.device).eval()
        return VAELatentDecoder(vae)
