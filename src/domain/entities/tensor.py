"""Tensor entity - framework-independent abstraction."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class Tensor(Protocol):
    """
    Framework-independent tensor/array abstraction.

    numpy arrays and PyTorch tensors both satisfy it.
    Arithmetic between tensors of one backend, and between a tensor and a
    Python float, is expected to work elementwise.
    """

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Get the tensor's shape.

        Returns:
            shape (tuple[int, ...]): Tuple of integers representing the size of each dimension.
        """
        ...


def shape_of(tensor: Tensor) -> tuple[int, ...]:
    """Return the shape of `tensor` as a plain tuple of ints."""
    return tuple(int(d) for d in tensor.shape)
