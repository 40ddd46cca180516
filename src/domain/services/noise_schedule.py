# -------------------------------------------------------------------------
# Copyright 2025 Thomas Boulier
#
# This file contains code derived from the implementation in:
# “Generative Deep Learning, 2nd Edition” by David Foster (O’Reilly).
# Original source code (Apache License 2.0) available at:
# https://github.com/davidADSP/Generative_Deep_Learning_2nd_Edition
#
# Modifications:
# - Rewritten with numpy so the schedule is independent of the tensor backend.
# - Discretized over a step count and expressed as alpha cumulative products.
# - Added the mapping from schedule index to training timestep.
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

import numpy as np

from src.domain.entities.errors import InvalidParameterError

DEFAULT_OFFSET = 0.02
DEFAULT_MAX_SIGNAL_RATE = 0.95
NUM_TRAIN_TIMESTEPS = 1000


def validate_n_steps(n_steps: int) -> None:
    """Raise `InvalidParameterError` unless `n_steps` is an int of at least 1."""
    if isinstance(n_steps, bool) or not isinstance(n_steps, (int, np.integer)):
        raise InvalidParameterError(f"n_steps must be an int, got {n_steps!r}")
    if n_steps < 1:
        raise InvalidParameterError(f"n_steps must be at least 1, got {n_steps}")


def diffusion_times(n_steps: int) -> np.ndarray:
    """
    Normalized diffusion time of every schedule entry.

    Parameters
    ----------
    n_steps : int
        Number of schedule entries.

    Returns
    -------
    np.ndarray
        ``(i + 1) / n_steps`` for ``i`` in ``0..n_steps-1``; 1.0 is pure noise.
    """
    validate_n_steps(n_steps)
    return np.arange(1, n_steps + 1, dtype=np.float64) / n_steps


def cosine_schedule_cumprod(
    n_steps: int,
    offset: float = DEFAULT_OFFSET,
    max_signal_rate: float = DEFAULT_MAX_SIGNAL_RATE,
) -> np.ndarray:
    """
    Compute alpha cumulative products using an offset cosine schedule.

    The diffusion angle moves linearly from ``acos(max_signal_rate)`` to
    ``acos(offset)``; the signal rate is the cosine of that angle and the
    retained signal fraction is its square. Entry ``i`` is the cumulative
    product of the per-step retention ratios up to step ``i``.

    Parameters
    ----------
    n_steps : int
        Number of diffusion steps.
    offset : float, optional
        Minimum signal rate, keeps the noisiest entry away from zero.
        Default is 0.02.
    max_signal_rate : float, optional
        Signal rate at diffusion time zero. Default is 0.95.

    Returns
    -------
    np.ndarray
        ``n_steps`` float64 values in (0, 1], non-increasing.

    Raises
    ------
    InvalidParameterError
        If `n_steps` is not a positive int or the rates are out of range.
    """
    times = diffusion_times(n_steps)
    if not 0.0 < max_signal_rate < 1.0:
        raise InvalidParameterError(
            f"max_signal_rate must lie in (0, 1), got {max_signal_rate}"
        )
    if not 0.0 < offset < max_signal_rate:
        raise InvalidParameterError(
            f"offset must lie in (0, {max_signal_rate}), got {offset}"
        )

    start_angle = np.arccos(max_signal_rate)
    end_angle = np.arccos(offset)
    diffusion_angles = start_angle + times * (end_angle - start_angle)
    alphas_cumprod = np.cos(diffusion_angles) ** 2

    # per-step retention ratios relative to the clean signal
    previous = np.concatenate(([1.0], alphas_cumprod[:-1]))
    alphas = alphas_cumprod / previous
    return np.cumprod(alphas)


def model_timesteps(
    n_steps: int,
    num_train_timesteps: int = NUM_TRAIN_TIMESTEPS,
) -> np.ndarray:
    """
    Training timestep handed to the denoising network for every schedule entry.

    Parameters
    ----------
    n_steps : int
        Number of diffusion steps.
    num_train_timesteps : int, optional
        Number of timesteps the network was trained with. Default is 1000.

    Returns
    -------
    np.ndarray
        ``n_steps`` int64 values in ``[0, num_train_timesteps - 1]``,
        non-decreasing.
    """
    if num_train_timesteps < 1:
        raise InvalidParameterError(
            f"num_train_timesteps must be at least 1, got {num_train_timesteps}"
        )
    times = diffusion_times(n_steps)
    steps = np.round(times * num_train_timesteps).astype(np.int64) - 1
    return np.clip(steps, 0, num_train_timesteps - 1)
