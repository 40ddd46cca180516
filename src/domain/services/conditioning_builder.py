"""
Conditioning builder.

Wraps the text encoder to produce the conditional and unconditional
context that steers the denoising loop.
"""
import logging

from src.domain.entities.conditioning import Conditioning
from src.domain.entities.errors import ShapeMismatchError
from src.domain.entities.resolution import CropOffset, ResolutionBucket
from src.domain.interfaces.tensor_backend import TensorBackend
from src.domain.interfaces.text_encoder import TextEncoder

logger = logging.getLogger(__name__)


class ConditioningBuilder:
    """
    Builds `Conditioning` from a prompt and the size micro-conditioning.

    Attributes
    ----------
    text_encoder : TextEncoder
        Encoder collaborator.
    backend : TensorBackend
        Backend of the tensors the encoder returns.
    negative_prompt : str
        Prompt encoded for the unconditional branch.
    """

    def __init__(
        self,
        text_encoder: TextEncoder,
        backend: TensorBackend,
        negative_prompt: str = "",
    ) -> None:
        self.text_encoder = text_encoder
        self.backend = backend
        self.negative_prompt = negative_prompt

    def text_to_conditioning(
        self,
        prompt: str,
        size: ResolutionBucket,
        crop: CropOffset,
        aspect_ratio: ResolutionBucket,
    ) -> Conditioning:
        """
        Encode a prompt and its size conditioning.

        Parameters
        ----------
        prompt : str
            Text describing the image.
        size : ResolutionBucket
            Original size conditioning.
        crop : CropOffset
            Crop offset conditioning.
        aspect_ratio : ResolutionBucket
            Target size; also recorded as the conditioning's resolution.

        Returns
        -------
        Conditioning
            Context tensors for both guidance branches.

        Raises
        ------
        ShapeMismatchError
            If the encoder outputs have inconsistent shapes.
        """
        logger.info(f"Encoding prompt: {prompt!r}")
        context, pooled = self.text_encoder.encode(self.text_encoder.tokenize(prompt))
        unconditional_context, unconditional_pooled = self.text_encoder.encode(
            self.text_encoder.tokenize(self.negative_prompt)
        )

        if self.backend.shape(pooled) != self.backend.shape(unconditional_pooled):
            raise ShapeMismatchError(
                f"Pooled embedding shape {self.backend.shape(pooled)} does not match "
                f"unconditional shape {self.backend.shape(unconditional_pooled)}"
            )

        channel_embedding = self.text_encoder.encode_channel(size, crop, aspect_ratio)
        pooled_shape = self.backend.shape(pooled)
        channel_shape = self.backend.shape(channel_embedding)
        if len(pooled_shape) != 2 or len(channel_shape) != 2 or pooled_shape[0] != channel_shape[0]:
            raise ShapeMismatchError(
                f"Cannot join pooled embedding {pooled_shape} "
                f"with channel embedding {channel_shape}"
            )

        return Conditioning(
            context=context,
            unconditional_context=unconditional_context,
            channel_context=self.backend.concat([pooled, channel_embedding], axis=-1),
            unconditional_channel_context=self.backend.concat(
                [unconditional_pooled, channel_embedding], axis=-1
            ),
            resolution=aspect_ratio,
        )
