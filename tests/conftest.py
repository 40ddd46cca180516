"""Pytest configuration and shared fixtures."""
import pytest
import torch

from fixtures.dummy_models import DummyModelLoader
from src.domain.entities.conditioning import Conditioning
from src.domain.entities.resolution import ResolutionBucket
from src.domain.interfaces.model_loader import DIFFUSER, EMBEDDER, LATENT_DECODER
from src.infrastructure.torch.backend import TorchBackend


@pytest.fixture
def cpu_backend():
    """
    Provide a full precision CPU backend.

    Returns:
        TorchBackend: Backend producing float32 tensors on the CPU.
    """
    return TorchBackend("cpu", torch.float32)


@pytest.fixture
def half_backend():
    """
    Provide a half precision CPU backend.

    Returns:
        TorchBackend: Backend producing float16 tensors on the CPU.
    """
    return TorchBackend("cpu", torch.float16)


@pytest.fixture
def backends(cpu_backend, half_backend):
    """
    Provide one backend per pipeline stage, mirroring the production precision split.

    Returns:
        dict[str, TorchBackend]: float32 for the embedder and decoder, float16 for the diffuser.
    """
    return {
        EMBEDDER: cpu_backend,
        DIFFUSER: half_backend,
        LATENT_DECODER: cpu_backend,
    }


@pytest.fixture
def dummy_loader(backends):
    """
    Provide a DummyModelLoader serving fast fake sub-models.

    Returns:
        DummyModelLoader: A new loader instance.
    """
    return DummyModelLoader(backends)


@pytest.fixture
def small_conditioning():
    """
    Provide a small conditioning for a 64x128 bucket.

    The conditional pooled values are 1.0 and the unconditional ones 0.0,
    followed by six time ids.

    Returns:
        Conditioning: Batch of one, float32 CPU tensors.
    """
    time_ids = torch.tensor([[128.0, 64.0, 0.0, 0.0, 128.0, 64.0]])
    return Conditioning(
        context=torch.ones(1, 4, 8),
        unconditional_context=torch.zeros(1, 4, 8),
        channel_context=torch.cat([torch.ones(1, 5), time_ids], dim=-1),
        unconditional_channel_context=torch.cat([torch.zeros(1, 5), time_ids], dim=-1),
        resolution=ResolutionBucket(64, 128),
    )
