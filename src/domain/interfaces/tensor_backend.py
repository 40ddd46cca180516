"""
Tensor Backend Interface.

This module defines the capability set the core needs from a numeric
execution backend: random normal draws, shape introspection, host/device
transfer and concatenation. Elementwise arithmetic is expressed with the
Python operators the backend's tensors already support, so the sampler
stays independent of any one framework.
"""
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from src.domain.entities.tensor import Tensor


class TensorBackend(ABC):
    """
    Abstract numeric backend bound to one device and one precision.

    Implementations wrap a concrete framework (e.g. PyTorch) and
    produce tensors of a single dtype on a single device.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable identifier, e.g. ``"torch:cuda:float16"``."""
        pass

    @abstractmethod
    def randn(self, shape: tuple[int, ...], seed: int | None = None) -> Tensor:
        """
        Draw independent samples from a standard normal distribution.

        Parameters
        ----------
        shape : tuple[int, ...]
            Shape of the tensor to draw.
        seed : int | None, optional
            Seed for a reproducible draw. If None, the draw is nondeterministic.

        Returns
        -------
        Tensor
            Tensor of the backend's dtype on the backend's device.
        """
        pass

    @abstractmethod
    def from_numpy(self, array: np.ndarray) -> Tensor:
        """
        Copy a host array into the backend, casting to the backend's dtype.

        Parameters
        ----------
        array : np.ndarray
            Source values.

        Returns
        -------
        Tensor
            Tensor with the same shape as `array`.
        """
        pass

    @abstractmethod
    def to_numpy(self, tensor: Tensor) -> np.ndarray:
        """
        Copy a backend tensor to a host numpy array.

        Parameters
        ----------
        tensor : Tensor
            Tensor owned by this backend.

        Returns
        -------
        np.ndarray
            Array with the same shape and values.
        """
        pass

    @abstractmethod
    def to_device(self, tensor: Tensor) -> Tensor:
        """
        Move a tensor of this framework onto the backend's device and dtype.

        Parameters
        ----------
        tensor : Tensor
            Tensor of the same framework, possibly on another device.

        Returns
        -------
        Tensor
            Tensor on the backend's device, in the backend's dtype.
        """
        pass

    @abstractmethod
    def concat(self, tensors: Sequence[Tensor], axis: int = -1) -> Tensor:
        """
        Concatenate tensors along `axis`.

        Parameters
        ----------
        tensors : Sequence[Tensor]
            Tensors sharing every dimension except `axis`.
        axis : int, optional
            Axis to join along. Default is the last axis.

        Returns
        -------
        Tensor
            The joined tensor.
        """
        pass

    def shape(self, tensor: Tensor) -> tuple[int, ...]:
        """Return the shape of `tensor` as a tuple of ints."""
        return tuple(int(d) for d in tensor.shape)
