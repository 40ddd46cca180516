"""
Precision/backend bridge.

Stages of the pipeline run in different numeric representations: the text
encoder and the decoder in full precision, the denoising loop in half
precision. The functions here hand tensors across those boundaries by
copying their values through host memory into the target backend, which
casts them to its own dtype and device. Shape and element order are
preserved; rounding to the target precision is expected.
"""
import logging
from dataclasses import replace
from typing import Optional

import numpy as np

from src.domain.entities.conditioning import Conditioning
from src.domain.entities.tensor import Tensor
from src.domain.interfaces.tensor_backend import TensorBackend

logger = logging.getLogger(__name__)


def as_numpy(tensor: Tensor) -> np.ndarray:
    """
    Copy a tensor of any supported framework to a host numpy array.

    Handles numpy arrays, PyTorch tensors and any eager tensor exposing
    ``.numpy()``, without importing a framework.

    Parameters
    ----------
    tensor : Tensor
        Source tensor.

    Returns
    -------
    np.ndarray
        Array with the same shape and values.
    """
    if isinstance(tensor, np.ndarray):
        array = tensor
    elif hasattr(tensor, "detach") and hasattr(tensor, "cpu"):
        # PyTorch: numpy has no bfloat16, widen it first
        tensor = tensor.detach().cpu()
        if str(tensor.dtype) == "torch.bfloat16":
            tensor = tensor.float()
        array = tensor.numpy()
    elif hasattr(tensor, "numpy"):
        array = tensor.numpy()
    else:
        array = np.asarray(tensor)

    if array.dtype.name == "bfloat16":
        array = array.astype(np.float32)
    return array


def convert(
    tensor: Tensor,
    target_backend: TensorBackend,
    source_backend: Optional[TensorBackend] = None,
) -> Tensor:
    """
    Copy a tensor into another backend or precision.

    Parameters
    ----------
    tensor : Tensor
        Source tensor.
    target_backend : TensorBackend
        Backend receiving the values.
    source_backend : TensorBackend | None, optional
        Backend owning `tensor`. If None, the framework is detected from
        the tensor itself.

    Returns
    -------
    Tensor
        Tensor of `target_backend` with the same shape as `tensor`.
    """
    if source_backend is not None:
        array = source_backend.to_numpy(tensor)
    else:
        array = as_numpy(tensor)
    return target_backend.from_numpy(array)


def convert_conditioning(
    conditioning: Conditioning,
    target_backend: TensorBackend,
    source_backend: Optional[TensorBackend] = None,
) -> Conditioning:
    """
    Copy the four conditioning tensors into another backend.

    Parameters
    ----------
    conditioning : Conditioning
        Source conditioning.
    target_backend : TensorBackend
        Backend receiving the values.
    source_backend : TensorBackend | None, optional
        Backend owning the tensors, detected when None.

    Returns
    -------
    Conditioning
        New conditioning with the same resolution bucket.
    """
    logger.info(f"Converting conditioning to {target_backend.name}")
    return replace(
        conditioning,
        context=convert(conditioning.context, target_backend, source_backend),
        unconditional_context=convert(
            conditioning.unconditional_context, target_backend, source_backend
        ),
        channel_context=convert(conditioning.channel_context, target_backend, source_backend),
        unconditional_channel_context=convert(
            conditioning.unconditional_channel_context, target_backend, source_backend
        ),
    )
