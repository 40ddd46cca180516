"""Tests for the latent-to-image stage."""
from unittest.mock import MagicMock

import numpy as np
import pytest
import torch

from fixtures.dummy_models import DummyLatentDecoder
from src.domain.entities.errors import ShapeMismatchError
from src.domain.interfaces.latent_decoder import LatentDecoder
from src.domain.services.latent_to_image import LatentToImage, pack_rgb8


class TestPackRGB8:
    """Tests for pack_rgb8."""

    def test_buffer_is_row_major_rgb(self):
        pixels = np.zeros((1, 3, 2, 2), dtype=np.float32)
        pixels[0, 0, 0, 1] = 1.0  # red at row 0, column 1
        pixels[0, 2, 1, 0] = 1.0  # blue at row 1, column 0

        (buffer,) = pack_rgb8(pixels)

        assert buffer == bytes([0, 0, 0, 255, 0, 0, 0, 0, 255, 0, 0, 0])

    def test_values_are_clipped_and_rounded(self):
        pixels = np.array([-0.5, 0.5, 2.0], dtype=np.float32).reshape(1, 3, 1, 1)
        assert pack_rgb8(pixels) == [bytes([0, 128, 255])]

    def test_one_buffer_per_batch_element(self):
        buffers = pack_rgb8(np.random.rand(3, 3, 4, 5))
        assert len(buffers) == 3
        assert all(len(b) == 4 * 5 * 3 for b in buffers)


class TestLatentToImage:
    """Tests for LatentToImage.latent_to_image."""

    def test_output_size_is_latent_size_times_factor(self):
        result = LatentToImage(DummyLatentDecoder()).latent_to_image(torch.zeros(2, 4, 3, 5))

        assert (result.width, result.height) == (40, 24)
        assert len(result) == 2
        assert all(len(b) == 40 * 24 * 3 for b in result.buffers)

    def test_zero_latent_decodes_to_mid_grey(self):
        result = LatentToImage(DummyLatentDecoder()).latent_to_image(torch.zeros(1, 4, 1, 1))
        assert set(result.buffers[0]) == {128}

    def test_half_precision_latent_is_accepted(self):
        result = LatentToImage(DummyLatentDecoder()).latent_to_image(torch.zeros(1, 4, 2, 2, dtype=torch.float16))
        assert (result.width, result.height) == (16, 16)

    def test_non_rgb_decoder_output_raises(self):
        with pytest.raises(ShapeMismatchError):
            LatentToImage(DummyLatentDecoder(channels=4)).latent_to_image(torch.zeros(1, 4, 2, 2))

    def test_wrong_spatial_size_raises(self):
        decoder = MagicMock(spec=LatentDecoder)
        decoder.upsampling_factor = 8
        decoder.decode.return_value = torch.zeros(1, 3, 15, 16)
        with pytest.raises(ShapeMismatchError):
            LatentToImage(decoder).latent_to_image(torch.zeros(1, 4, 2, 2))

    def test_latent_must_be_rank_four(self):
        decoder = MagicMock(spec=LatentDecoder)
        with pytest.raises(ShapeMismatchError):
            LatentToImage(decoder).latent_to_image(torch.zeros(4, 2, 2))
        decoder.decode.assert_not_called()
