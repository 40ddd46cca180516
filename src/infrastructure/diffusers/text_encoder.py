"""
SDXL text encoder adapter.

Wraps the two CLIP text encoders of Stable Diffusion XL behind the domain
`TextEncoder` interface. The per-token context is the concatenation of the
penultimate hidden states of both encoders; the pooled embedding is the
projected output of the second encoder. The channel embedding is the
SDXL "time ids" micro-conditioning vector.
"""
import numpy as np
import torch

from src.domain.entities.resolution import CropOffset, ResolutionBucket
from src.domain.interfaces.text_encoder import TextEncoder
from src.infrastructure.torch.backend import TorchBackend


class SDXLTextEncoder(TextEncoder):
    """
    Concrete `TextEncoder` for the SDXL CLIP ViT-L and OpenCLIP ViT-bigG pair.

    Parameters
    ----------
    tokenizer : transformers.CLIPTokenizer
        Tokenizer of the first encoder.
    tokenizer_2 : transformers.CLIPTokenizer
        Tokenizer of the second encoder.
    text_encoder : transformers.CLIPTextModel
        First encoder.
    text_encoder_2 : transformers.CLIPTextModelWithProjection
        Second encoder, provides the pooled projection.
    backend : TorchBackend
        Device and precision the outputs are returned in.
    """

    def __init__(self, tokenizer, tokenizer_2, text_encoder, text_encoder_2, backend: TorchBackend):
        self.tokenizer = tokenizer
        self.tokenizer_2 = tokenizer_2
        self.text_encoder = text_encoder
        self.text_encoder_2 = text_encoder_2
        self.backend = backend

    def tokenize(self, text: str) -> tuple[torch.Tensor, torch.Tensor]:
        return _tokenize(self.tokenizer, text), _tokenize(self.tokenizer_2, text)

    @torch.no_grad()
    def encode(self, tokens: tuple[torch.Tensor, torch.Tensor]) -> tuple[torch.Tensor, torch.Tensor]:
        ids_1, ids_2 = tokens
        device = self.backend.device

        output_1 = self.text_encoder(ids_1.to(device), output_hidden_states=True, return_dict=True)
        output_2 = self.text_encoder_2(ids_2.to(device), output_hidden_states=True, return_dict=True)

        hidden_states = torch.cat(
            [output_1.hidden_states[-2], output_2.hidden_states[-2]],
            dim=-1,
        )
        pooled = output_2.text_embeds
        return self.backend.to_device(hidden_states), self.backend.to_device(pooled)

    def encode_channel(
        self,
        size: ResolutionBucket,
        crop: CropOffset,
        aspect_ratio: ResolutionBucket,
    ) -> torch.Tensor:
        # (original_size, crops_coords_top_left, target_size), each as (height, width)
        time_ids = [
            size.height, size.width,
            crop.top, crop.left,
            aspect_ratio.height, aspect_ratio.width,
        ]
        return self.backend.from_numpy(np.asarray([time_ids], dtype=np.float32))

    def unload(self) -> None:
        """Drop the references to the underlying modules."""
        self.text_encoder = None
        self.text_encoder_2 = None
        self.tokenizer = None
        self.tokenizer_2 = None


def _tokenize(tokenizer, text: str) -> torch.Tensor:
    return tokenizer(
        text,
        padding="max_length",
        max_length=tokenizer.model_max_length,
        truncation=True,
        return_tensors="pt",
    ).input_ids
