"""Conditioning entity - the tensors steering one generation request."""
from dataclasses import dataclass

from src.domain.entities.errors import ShapeMismatchError
from src.domain.entities.resolution import ResolutionBucket
from src.domain.entities.tensor import Tensor, shape_of


@dataclass(frozen=True)
class Conditioning:
    """
    Conditional and unconditional context for classifier-free guidance.

    Attributes
    ----------
    context : Tensor
        Prompt embedding, shape (batch, sequence, hidden).
    unconditional_context : Tensor
        Empty/negative prompt embedding, same shape as `context`.
    channel_context : Tensor
        Pooled prompt embedding joined with the size/crop embedding,
        shape (batch, hidden).
    unconditional_channel_context : Tensor
        Same as `channel_context` for the unconditional branch.
    resolution : ResolutionBucket
        Output size this conditioning was built for.
    """

    context: Tensor
    unconditional_context: Tensor
    channel_context: Tensor
    unconditional_channel_context: Tensor
    resolution: ResolutionBucket

    def __post_init__(self):
        context_shape = shape_of(self.context)
        if len(context_shape) != 3:
            raise ShapeMismatchError(
                f"context must have shape (batch, sequence, hidden), got {context_shape}"
            )
        if shape_of(self.unconditional_context) != context_shape:
            raise ShapeMismatchError(
                f"unconditional_context shape {shape_of(self.unconditional_context)} "
                f"does not match context shape {context_shape}"
            )

        channel_shape = shape_of(self.channel_context)
        if len(channel_shape) != 2:
            raise ShapeMismatchError(
                f"channel_context must have shape (batch, hidden), got {channel_shape}"
            )
        if shape_of(self.unconditional_channel_context) != channel_shape:
            raise ShapeMismatchError(
                f"unconditional_channel_context shape "
                f"{shape_of(self.unconditional_channel_context)} does not match "
                f"channel_context shape {channel_shape}"
            )

        if channel_shape[0] != context_shape[0]:
            raise ShapeMismatchError(
                f"Batch size mismatch: context has {context_shape[0]}, "
                f"channel_context has {channel_shape[0]}"
            )

    @property
    def batch_size(self) -> int:
        return shape_of(self.context)[0]
