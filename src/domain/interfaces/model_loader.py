"""
Model Loader Interface.

This module defines the abstract interface for loading the pipeline's
sub-models. Each stage acquires its model through `session`, which bounds
the model's lifetime to the stage so that at most one sub-model is resident
at a time.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

EMBEDDER = "embedder"
DIFFUSER = "diffuser"
LATENT_DECODER = "latent_decoder"


class ModelLoader(ABC):
    """
    Abstract interface for model persistence operations.

    Implementations should raise `ModelLoadError` when a named artifact is
    missing or malformed.
    """

    @abstractmethod
    def load(self, name: str) -> Any:
        """
        Load a named model onto its device.

        Parameters
        ----------
        name : str
            One of `EMBEDDER`, `DIFFUSER`, `LATENT_DECODER`.

        Returns
        -------
        Any
            A `TextEncoder`, `Denoiser` or `LatentDecoder`.

        Raises
        ------
        ModelLoadError
            If the model cannot be loaded.
        """
        pass

    @abstractmethod
    def release(self, model: Any) -> None:
        """
        Free the memory held by a model returned from `load`.

        Parameters
        ----------
        model : Any
            Model to release. It must not be used afterwards.
        """
        pass

    @contextmanager
    def session(self, name: str) -> Iterator[Any]:
        """
        Load a model for the duration of a ``with`` block.

        The model is released when the block exits, whether it completed
        or raised.
        """
        model = self.load(name)
        try:
            yield model
        finally:
            self.release(model)
