"""
Sampling Tracker Interface.

This module defines the abstract interface for tracking the progress of
the denoising loop. Implementations can provide console progress bars,
silent operation for tests, or other observability backends.

The lifecycle follows:
1. on_sampling_start() - called once before the first step
2. on_step_end() - called after every denoising step
3. on_sampling_end() - called once after the last step
"""
from abc import ABC, abstractmethod


class SamplingTracker(ABC):
    """Abstract interface for tracking denoising progress."""

    @abstractmethod
    def on_sampling_start(self, total_steps: int) -> None:
        """
        Called when sampling begins.

        Parameters
        ----------
        total_steps : int
            Number of denoising steps that will run.
        """
        pass

    @abstractmethod
    def on_step_end(self, step: int, timestep: int) -> None:
        """
        Called after each denoising step completes.

        Parameters
        ----------
        step : int
            Number of steps completed so far (1-indexed).
        timestep : int
            Model timestep that was just denoised.
        """
        pass

    @abstractmethod
    def on_sampling_end(self) -> None:
        """Called when sampling completes."""
        pass
