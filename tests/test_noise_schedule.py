"""Tests for the offset cosine noise schedule."""
import numpy as np
import pytest

from src.domain.entities.errors import InvalidParameterError
from src.domain.services.noise_schedule import (
    cosine_schedule_cumprod,
    model_timesteps,
)


@pytest.mark.parametrize("n_steps", [1, 2, 5, 30, 100, 1000])
def test_schedule_has_n_steps_values_in_unit_interval(n_steps):
    """Every entry lies in (0, 1] and there is one per step."""
    schedule = cosine_schedule_cumprod(n_steps)
    assert schedule.shape == (n_steps,)
    assert np.all(schedule > 0.0)
    assert np.all(schedule <= 1.0)


@pytest.mark.parametrize("n_steps", [1, 2, 7, 30, 250])
def test_schedule_is_non_increasing(n_steps):
    schedule = cosine_schedule_cumprod(n_steps)
    assert np.all(np.diff(schedule) <= 0.0)


def test_first_value_below_one_and_last_value_is_offset_squared():
    schedule = cosine_schedule_cumprod(30)
    assert schedule[0] < 0.95 ** 2
    assert schedule[-1] == pytest.approx(0.02 ** 2)


def test_schedule_matches_squared_cosine_of_diffusion_angle():
    n_steps = 10
    times = np.arange(1, n_steps + 1) / n_steps
    start, end = np.arccos(0.95), np.arccos(0.02)
    expected = np.cos(start + times * (end - start)) ** 2
    np.testing.assert_allclose(cosine_schedule_cumprod(n_steps), expected, rtol=1e-10)


def test_schedule_is_deterministic():
    np.testing.assert_array_equal(cosine_schedule_cumprod(17), cosine_schedule_cumprod(17))


def test_custom_offset_moves_the_endpoint():
    schedule = cosine_schedule_cumprod(5, offset=0.1)
    assert schedule[-1] == pytest.approx(0.01)


@pytest.mark.parametrize("n_steps", [0, -3])
def test_non_positive_step_count_is_rejected(n_steps):
    with pytest.raises(InvalidParameterError):
        cosine_schedule_cumprod(n_steps)


def test_non_int_step_count_is_rejected():
    with pytest.raises(InvalidParameterError):
        cosine_schedule_cumprod(2.5)


@pytest.mark.parametrize("offset", [0.0, -0.1, 0.95, 2.0])
def test_offset_out_of_range_is_rejected(offset):
    with pytest.raises(InvalidParameterError):
        cosine_schedule_cumprod(10, offset=offset)


class TestModelTimesteps:
    """Tests for the schedule index to training timestep mapping."""

    def test_one_timestep_per_step_within_training_range(self):
        timesteps = model_timesteps(30)
        assert timesteps.shape == (30,)
        assert timesteps.min() >= 0
        assert timesteps.max() == 999

    def test_timesteps_are_non_decreasing(self):
        assert np.all(np.diff(model_timesteps(50)) >= 0)

    def test_single_step_uses_the_noisiest_timestep(self):
        assert model_timesteps(1).tolist() == [999]

    def test_more_steps_than_training_timesteps_are_clipped(self):
        timesteps = model_timesteps(2000)
        assert timesteps.min() == 0
        assert timesteps.max() == 999
