"""Tests for the diffusers/transformers SDXL adapters, with the networks mocked out."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import torch

from src.domain.entities.errors import ShapeMismatchError
from src.domain.entities.resolution import CropOffset, ResolutionBucket
from src.infrastructure.diffusers.decoder import VAELatentDecoder
from src.infrastructure.diffusers.denoiser import TIME_ID_COUNT, UNetDenoiser
from src.infrastructure.diffusers.text_encoder import SDXLTextEncoder


def make_tokenizer(length=77):
    tokenizer = MagicMock()
    tokenizer.model_max_length = length
    tokenizer.return_value = SimpleNamespace(input_ids=torch.zeros(1, length, dtype=torch.long))
    return tokenizer


def make_clip(hidden_size, pooled_size=None, length=77):
    """A callable standing in for a CLIP text model."""
    hidden_states = [torch.full((1, length, hidden_size), float(i)) for i in range(3)]
    output = SimpleNamespace(hidden_states=hidden_states)
    if pooled_size is not None:
        output.text_embeds = torch.ones(1, pooled_size)
    return MagicMock(return_value=output)


class TestSDXLTextEncoder:
    """Tests for SDXLTextEncoder."""

    def test_tokenize_pads_to_max_length(self, cpu_backend):
        tokenizer, tokenizer_2 = make_tokenizer(), make_tokenizer()
        encoder = SDXLTextEncoder(tokenizer, tokenizer_2, None, None, cpu_backend)

        ids_1, ids_2 = encoder.tokenize("a cat")

        tokenizer.assert_called_once_with(
            "a cat", padding="max_length", max_length=77, truncation=True, return_tensors="pt"
        )
        assert tuple(ids_1.shape) == (1, 77)
        assert tuple(ids_2.shape) == (1, 77)

    def test_encode_joins_penultimate_hidden_states(self, cpu_backend):
        encoder = SDXLTextEncoder(
            make_tokenizer(), make_tokenizer(),
            make_clip(768), make_clip(1280, pooled_size=1280),
            cpu_backend,
        )

        hidden, pooled = encoder.encode(encoder.tokenize("a cat"))

        assert tuple(hidden.shape) == (1, 77, 2048)
        # hidden_states[-2] is the entry filled with 1.0
        assert torch.all(hidden == 1.0)
        assert tuple(pooled.shape) == (1, 1280)
        encoder.text_encoder.assert_called_once()
        assert encoder.text_encoder.call_args.kwargs["output_hidden_states"] is True

    def test_encode_returns_backend_precision(self, half_backend):
        encoder = SDXLTextEncoder(
            make_tokenizer(), make_tokenizer(),
            make_clip(4), make_clip(4, pooled_size=4),
            half_backend,
        )
        hidden, pooled = encoder.encode(encoder.tokenize(""))
        assert hidden.dtype == torch.float16
        assert pooled.dtype == torch.float16

    def test_encode_channel_orders_time_ids_height_first(self, cpu_backend):
        encoder = SDXLTextEncoder(None, None, None, None, cpu_backend)

        time_ids = encoder.encode_channel(
            ResolutionBucket(1024, 768), CropOffset(left=8, top=16), ResolutionBucket(640, 1536)
        )

        assert time_ids.tolist() == [[768.0, 1024.0, 16.0, 8.0, 1536.0, 640.0]]

    def test_unload_drops_modules(self, cpu_backend):
        encoder = SDXLTextEncoder(make_tokenizer(), make_tokenizer(), make_clip(4), make_clip(4, 4), cpu_backend)
        encoder.unload()
        assert encoder.text_encoder is None and encoder.text_encoder_2 is None


class TestUNetDenoiser:
    """Tests for UNetDenoiser."""

    def test_splits_channel_context_into_text_embeds_and_time_ids(self):
        latent = torch.zeros(1, 4, 8, 8)
        unet = MagicMock(return_value=(torch.ones(1, 4, 8, 8),))
        channel_context = torch.cat([torch.full((1, 5), 2.0), torch.arange(6.0).unsqueeze(0)], dim=-1)
        context = torch.zeros(1, 77, 2048)

        estimate = UNetDenoiser(unet).forward(latent, 999, context, channel_context)

        assert torch.equal(estimate, torch.ones(1, 4, 8, 8))
        args, kwargs = unet.call_args
        assert args[0] is latent
        assert args[1].tolist() == [999]
        assert args[1].dtype == torch.long
        assert kwargs["encoder_hidden_states"] is context
        assert torch.equal(kwargs["added_cond_kwargs"]["text_embeds"], torch.full((1, 5), 2.0))
        assert kwargs["added_cond_kwargs"]["time_ids"].tolist() == [[0.0, 1.0, 2.0, 3.0, 4.0, 5.0]]
        assert kwargs["return_dict"] is False

    def test_channel_context_without_pooled_part_raises(self):
        unet = MagicMock()
        with pytest.raises(ShapeMismatchError):
            UNetDenoiser(unet).forward(
                torch.zeros(1, 4, 8, 8), 10, torch.zeros(1, 77, 8), torch.zeros(1, TIME_ID_COUNT)
            )
        unet.assert_not_called()


class TestVAELatentDecoder:
    """Tests for VAELatentDecoder."""

    @pytest.fixture
    def vae(self):
        vae = MagicMock()
        vae.config = SimpleNamespace(scaling_factor=0.5, block_out_channels=[128, 256, 512, 512])
        vae.device = torch.device("cpu")
        vae.dtype = torch.float32
        return vae

    def test_upsampling_factor_follows_block_count(self, vae):
        assert VAELatentDecoder(vae).upsampling_factor == 8

    def test_latent_is_unscaled_and_pixels_mapped_to_unit_range(self, vae):
        vae.decode.return_value = (torch.tensor([-1.0, 0.0, 1.0, 3.0]).reshape(1, 1, 2, 2),)

        pixels = VAELatentDecoder(vae).decode(torch.ones(1, 4, 1, 1, dtype=torch.float16))

        sent = vae.decode.call_args.args[0]
        assert sent.dtype == torch.float32
        assert torch.all(sent == 2.0)
        assert pixels.flatten().tolist() == [0.0, 0.5, 1.0, 1.0]
