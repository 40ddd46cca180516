"""
Observability module for sampling.

This module provides:
- SamplingTracker implementations (ConsoleTracker, SilentTracker)
- Progress bar integration using tqdm
"""
from tqdm import tqdm

from src.domain.interfaces.sampling_tracker import SamplingTracker


class ConsoleTracker(SamplingTracker):
    """
    Sampling tracker with a tqdm progress bar.

    Attributes
    ----------
    desc : str
        Label shown in front of the progress bar.
    """

    def __init__(self, desc: str = "Sampling") -> None:
        """
        Initialize the ConsoleTracker.

        Parameters
        ----------
        desc : str, optional
            Label shown in front of the progress bar. Default is "Sampling".
        """
        self.desc = desc
        self._pbar: tqdm | None = None

    def on_sampling_start(self, total_steps: int) -> None:
        """
        Called when sampling begins. Opens the progress bar.

        Parameters
        ----------
        total_steps : int
            Number of denoising steps that will run.
        """
        self._pbar = tqdm(total=total_steps, desc=self.desc, unit="step", leave=True)

    def on_step_end(self, step: int, timestep: int) -> None:
        """
        Called after each step. Advances the progress bar.

        Parameters
        ----------
        step : int
            Number of steps completed so far.
        timestep : int
            Model timestep that was just denoised.
        """
        if self._pbar is not None:
            self._pbar.set_postfix({"t": timestep})
            self._pbar.update(1)

    def on_sampling_end(self) -> None:
        """Called when sampling completes. Closes the progress bar."""
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


class SilentTracker(SamplingTracker):
    """
    Sampling tracker that produces no output.

    Useful for testing or when running in non-interactive environments
    where progress output is not desired.
    """

    def on_sampling_start(self, total_steps: int) -> None:
        """No-op implementation."""
        pass

    def on_step_end(self, step: int, timestep: int) -> None:
        """No-op implementation."""
        pass

    def on_sampling_end(self) -> None:
        """No-op implementation."""
        pass
