# -------------------------------------------------------------------------
# Copyright 2025 Thomas Boulier
#
# This file contains code derived from the implementation in:
# “Generative Deep Learning, 2nd Edition” by David Foster (O’Reilly).
# Original source code (Apache License 2.0) available at:
# https://github.com/davidADSP/Generative_Deep_Learning_2nd_Edition
#
# Modifications:
# - Reverse diffusion loop rewritten against the TensorBackend interface.
# - Added text conditioning with classifier-free guidance.
# - Replaced the signal/noise rate update with a DDIM step over alpha
#   cumulative products.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at:
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# -------------------------------------------------------------------------

from __future__ import annotations

import logging
import math
from typing import Optional

from src.domain.entities.conditioning import Conditioning
from src.domain.entities.errors import InvalidParameterError, ShapeMismatchError
from src.domain.entities.tensor import Tensor
from src.domain.interfaces.denoiser import Denoiser
from src.domain.interfaces.sampling_tracker import SamplingTracker
from src.domain.interfaces.tensor_backend import TensorBackend
from src.domain.services.noise_schedule import (
    NUM_TRAIN_TIMESTEPS,
    cosine_schedule_cumprod,
    model_timesteps,
)

logger = logging.getLogger(__name__)


def classifier_free_guidance(
    conditional_estimate: Tensor,
    unconditional_estimate: Tensor,
    guidance_scale: float,
) -> Tensor:
    """
    Extrapolate from the unconditional towards the conditional estimate.

    A scale of 0 returns the unconditional estimate and a scale of 1 returns
    the conditional estimate, both exactly.
    """
    if guidance_scale == 0:
        return unconditional_estimate
    if guidance_scale == 1:
        return conditional_estimate
    return unconditional_estimate + guidance_scale * (
        conditional_estimate - unconditional_estimate
    )


def ddim_step(
    latent: Tensor,
    noise_estimate: Tensor,
    alpha_t: float,
    alpha_prev: float,
) -> Tensor:
    """
    Deterministic DDIM update from one noise level to the next.

    Parameters
    ----------
    latent : Tensor
        Latent at the current noise level.
    noise_estimate : Tensor
        Guided noise prediction for `latent`.
    alpha_t : float
        Alpha cumulative product of the current level.
    alpha_prev : float
        Alpha cumulative product of the next, less noisy, level.

    Returns
    -------
    Tensor
        Latent at the next noise level.
    """
    pred_original = (latent - noise_estimate * math.sqrt(1.0 - alpha_t)) / math.sqrt(alpha_t)
    return pred_original * math.sqrt(alpha_prev) + noise_estimate * math.sqrt(1.0 - alpha_prev)


class DiffusionSampler:
    """
    Iterative denoiser producing a latent from conditioning.

    The loop walks the schedule from the noisiest entry to the cleanest.
    At each step the network runs on the conditional and unconditional
    branches, the two estimates are combined with classifier-free guidance
    and the latent is moved one level with a DDIM step.

    Attributes
    ----------
    denoiser : Denoiser
        Network predicting noise.
    backend : TensorBackend
        Backend the latent lives in; must match the conditioning tensors.
    latent_channels : int
        Channel count of the latent.
    compression_factor : int
        Pixel-to-latent downsampling factor.
    num_train_timesteps : int
        Timestep range the denoiser was trained on.
    seed : int | None
        Seed for the initial noise draw.
    tracker : SamplingTracker | None
        Optional progress tracker.
    """

    def __init__(
        self,
        denoiser: Denoiser,
        backend: TensorBackend,
        latent_channels: int = 4,
        compression_factor: int = 8,
        num_train_timesteps: int = NUM_TRAIN_TIMESTEPS,
        seed: Optional[int] = None,
        tracker: Optional[SamplingTracker] = None,
    ) -> None:
        self.denoiser = denoiser
        self.backend = backend
        self.latent_channels = latent_channels
        self.compression_factor = compression_factor
        self.num_train_timesteps = num_train_timesteps
        self.seed = seed
        self.tracker = tracker

    def initial_latent(self, conditioning: Conditioning) -> Tensor:
        """
        Draw the starting latent at the maximum noise level.

        Parameters
        ----------
        conditioning : Conditioning
            Provides the batch size and resolution bucket.

        Returns
        -------
        Tensor
            Standard normal tensor of shape
            (batch, latent_channels, height // f, width // f).
        """
        latent_height, latent_width = conditioning.resolution.latent_shape(
            self.compression_factor
        )
        shape = (conditioning.batch_size, self.latent_channels, latent_height, latent_width)
        return self.backend.randn(shape, seed=self.seed)

    def sample_latent(
        self,
        conditioning: Conditioning,
        guidance_scale: float,
        n_steps: int,
    ) -> Tensor:
        """
        Run the full denoising loop.

        Parameters
        ----------
        conditioning : Conditioning
            Conditional and unconditional context, in this sampler's backend.
        guidance_scale : float
            Classifier-free guidance strength, must be positive.
        n_steps : int
            Number of denoising steps, must be at least 1.

        Returns
        -------
        Tensor
            Final latent, shape (batch, latent_channels, height // f, width // f).

        Raises
        ------
        InvalidParameterError
            If `guidance_scale` or `n_steps` is invalid.
        ShapeMismatchError
            If the denoiser returns an estimate whose shape differs from the latent.
        """
        validate_guidance_scale(guidance_scale)
        alphas_cumprod = cosine_schedule_cumprod(n_steps)
        timesteps = model_timesteps(n_steps, self.num_train_timesteps)

        latent = self.initial_latent(conditioning)
        latent_shape = self.backend.shape(latent)
        logger.info(
            f"Sampling latent {latent_shape} with {n_steps} steps "
            f"(guidance scale {guidance_scale}) on {self.backend.name}"
        )

        if self.tracker is not None:
            self.tracker.on_sampling_start(n_steps)

        try:
            for completed, index in enumerate(reversed(range(n_steps)), start=1):
                alpha_t = float(alphas_cumprod[index])
                alpha_prev = float(alphas_cumprod[index - 1]) if index > 0 else 1.0
                timestep = int(timesteps[index])

                conditional = self._predict(
                    latent,
                    timestep,
                    conditioning.context,
                    conditioning.channel_context,
                    latent_shape,
                )
                unconditional = self._predict(
                    latent,
                    timestep,
                    conditioning.unconditional_context,
                    conditioning.unconditional_channel_context,
                    latent_shape,
                )
                guided = classifier_free_guidance(conditional, unconditional, guidance_scale)
                latent = ddim_step(latent, guided, alpha_t, alpha_prev)

                if self.tracker is not None:
                    self.tracker.on_step_end(completed, timestep)
        finally:
            # close the progress display even when a step fails
            if self.tracker is not None:
                self.tracker.on_sampling_end()

        return latent

    def _predict(
        self,
        latent: Tensor,
        timestep: int,
        context: Tensor,
        channel_context: Tensor,
        latent_shape: tuple[int, ...],
    ) -> Tensor:
        estimate = self.denoiser.forward(latent, timestep, context, channel_context)
        estimate_shape = self.backend.shape(estimate)
        if estimate_shape != latent_shape:
            raise ShapeMismatchError(
                f"Denoiser returned shape {estimate_shape} at timestep {timestep}, "
                f"expected {latent_shape}"
            )
        return estimate


def validate_guidance_scale(guidance_scale: float) -> None:
    """Raise `InvalidParameterError` unless `guidance_scale` is a positive finite number."""
    if isinstance(guidance_scale, bool) or not isinstance(guidance_scale, (int, float)):
        raise InvalidParameterError(f"guidance_scale must be a number, got {guidance_scale!r}")
    if not math.isfinite(guidance_scale) or guidance_scale <= 0:
        raise InvalidParameterError(f"guidance_scale must be positive, got {guidance_scale}")
