"""
PyTorch tensor backend.

Implements the domain `TensorBackend` interface on top of PyTorch for a
single device and dtype.
"""
from typing import Sequence

import numpy as np
import torch

from src.domain.entities.errors import InvalidParameterError
from src.domain.interfaces.tensor_backend import TensorBackend

DTYPE_MAPPING = {
    "float32": torch.float32,
    "float16": torch.float16,
    "bfloat16": torch.bfloat16,
    "float64": torch.float64,
}


def parse_dtype(name: str) -> torch.dtype:
    """
    Map a dtype name from the configuration to a torch dtype.

    Parameters
    ----------
    name : str
        One of "float32", "float16", "bfloat16", "float64".

    Returns
    -------
    torch.dtype
        The matching torch dtype.

    Raises
    ------
    InvalidParameterError
        If `name` is not a supported dtype.
    """
    try:
        return DTYPE_MAPPING[name]
    except KeyError:
        raise InvalidParameterError(
            f"Unsupported dtype '{name}', expected one of {sorted(DTYPE_MAPPING)}"
        ) from None


class TorchBackend(TensorBackend):
    """
    PyTorch implementation of the domain `TensorBackend` interface.

    Parameters
    ----------
    device : str | torch.device
        Device holding the tensors, e.g. "cpu" or "cuda:0".
    dtype : str | torch.dtype
        Floating point precision of the tensors.
    """

    def __init__(
        self,
        device: str | torch.device = "cpu",
        dtype: str | torch.dtype = torch.float32,
    ) -> None:
        self.device = torch.device(device)
        self.dtype = parse_dtype(dtype) if isinstance(dtype, str) else dtype

    @property
    def name(self) -> str:
        return f"torch:{self.device}:{str(self.dtype).removeprefix('torch.')}"

    def randn(self, shape: tuple[int, ...], seed: int | None = None) -> torch.Tensor:
        # Draw on the CPU in full precision so a seed gives the same latent on every device
        if seed is None:
            noise = torch.randn(shape, dtype=torch.float32)
        else:
            generator = torch.Generator(device="cpu").manual_seed(seed)
            noise = torch.randn(shape, generator=generator, dtype=torch.float32)
        return noise.to(device=self.device, dtype=self.dtype)

    def from_numpy(self, array: np.ndarray) -> torch.Tensor:
        tensor = torch.from_numpy(np.ascontiguousarray(array))
        return tensor.to(device=self.device, dtype=self.dtype)

    def to_numpy(self, tensor: torch.Tensor) -> np.ndarray:
        tensor = tensor.detach().cpu()
        if tensor.dtype == torch.bfloat16:
            tensor = tensor.float()
        return tensor.numpy()

    def to_device(self, tensor: torch.Tensor) -> torch.Tensor:
        return tensor.to(device=self.device, dtype=self.dtype)

    def concat(self, tensors: Sequence[torch.Tensor], axis: int = -1) -> torch.Tensor:
        return torch.cat([self.to_device(t) for t in tensors], dim=axis)
