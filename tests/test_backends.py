"""Tests for the PyTorch tensor backend."""
import numpy as np
import pytest
import torch

from src.domain.entities.errors import InvalidParameterError
from src.infrastructure.torch.backend import TorchBackend, parse_dtype


class TestTorchBackend:
    """Tests for TorchBackend."""

    def test_name_includes_device_and_dtype(self):
        assert TorchBackend("cpu", "float16").name == "torch:cpu:float16"

    def test_string_dtype_is_parsed(self):
        assert TorchBackend("cpu", "bfloat16").dtype == torch.bfloat16

    def test_unknown_dtype_is_rejected(self):
        with pytest.raises(InvalidParameterError):
            parse_dtype("int8")

    def test_randn_shape_dtype_and_device(self, half_backend):
        noise = half_backend.randn((2, 4, 3, 5), seed=0)
        assert tuple(noise.shape) == (2, 4, 3, 5)
        assert noise.dtype == torch.float16
        assert noise.device.type == "cpu"

    def test_seeded_randn_is_reproducible(self, cpu_backend):
        assert torch.equal(cpu_backend.randn((3, 3), seed=7), cpu_backend.randn((3, 3), seed=7))

    def test_seed_gives_same_values_across_precisions(self, cpu_backend, half_backend):
        full = cpu_backend.randn((8,), seed=5)
        half = half_backend.randn((8,), seed=5)
        assert torch.allclose(full, half.float(), atol=1e-2)

    def test_randn_is_roughly_standard_normal(self, cpu_backend):
        noise = cpu_backend.randn((100_000,), seed=0)
        assert abs(noise.mean().item()) < 0.02
        assert abs(noise.std().item() - 1.0) < 0.02

    def test_numpy_round_trip(self, cpu_backend):
        array = np.arange(12, dtype=np.float64).reshape(3, 4)
        tensor = cpu_backend.from_numpy(array)
        assert tensor.dtype == torch.float32
        np.testing.assert_array_equal(cpu_backend.to_numpy(tensor), array.astype(np.float32))

    def test_from_numpy_accepts_non_contiguous_arrays(self, cpu_backend):
        array = np.arange(12, dtype=np.float32).reshape(3, 4).T
        assert tuple(cpu_backend.from_numpy(array).shape) == (4, 3)

    def test_concat_casts_inputs_to_backend_dtype(self, cpu_backend):
        joined = cpu_backend.concat([torch.ones(2, 3, dtype=torch.float16), torch.zeros(2, 2)], axis=-1)
        assert tuple(joined.shape) == (2, 5)
        assert joined.dtype == torch.float32

    def test_shape_is_a_tuple_of_ints(self, cpu_backend):
        assert cpu_backend.shape(torch.zeros(1, 2, 3)) == (1, 2, 3)

