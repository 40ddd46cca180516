"""
Text Encoder Interface.

The text encoder turns a prompt into the embeddings the denoising network
attends to, and embeds the size/crop micro-conditioning. Its internals
(tokenizer vocabularies, transformer layers) are not part of the core.
"""
from abc import ABC, abstractmethod
from typing import Any

from src.domain.entities.resolution import CropOffset, ResolutionBucket
from src.domain.entities.tensor import Tensor


class TextEncoder(ABC):
    """Abstract interface for prompt encoders."""

    @abstractmethod
    def tokenize(self, text: str) -> Any:
        """
        Convert free text to the token ids accepted by `encode`.

        Parameters
        ----------
        text : str
            Prompt text. May be empty.

        Returns
        -------
        Any
            Encoder-specific token ids.
        """
        pass

    @abstractmethod
    def encode(self, tokens: Any) -> tuple[Tensor, Tensor]:
        """
        Encode token ids.

        Parameters
        ----------
        tokens : Any
            Output of `tokenize`.

        Returns
        -------
        hidden_states : Tensor
            Per-token embedding, shape (batch, sequence, hidden).
        pooled : Tensor
            Pooled prompt embedding, shape (batch, pooled_hidden).
        """
        pass

    @abstractmethod
    def encode_channel(
        self,
        size: ResolutionBucket,
        crop: CropOffset,
        aspect_ratio: ResolutionBucket,
    ) -> Tensor:
        """
        Embed the size, crop and target aspect ratio conditioning.

        Parameters
        ----------
        size : ResolutionBucket
            Original image size the model should imitate.
        crop : CropOffset
            Crop offset the model should imitate.
        aspect_ratio : ResolutionBucket
            Target output size.

        Returns
        -------
        Tensor
            Channel embedding, shape (batch, k).
        """
        pass
