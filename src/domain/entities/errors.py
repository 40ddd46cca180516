"""
Error hierarchy for the image generation pipeline.

Every error raised by the core derives from `DiffusionError`, so callers at
the orchestration boundary can catch one type and report the failing stage.
The concrete kinds also subclass the matching built-in exception so that
generic handlers (``except ValueError``, ``except OSError``) keep working.
"""


class DiffusionError(Exception):
    """
    Base class for all pipeline errors.

    Attributes
    ----------
    stage : str | None
        Name of the pipeline stage that was running when the error was
        raised. Set by the orchestration layer, ``None`` when the error was
        raised outside of a pipeline run.
    """

    stage: str | None = None


class InvalidParameterError(DiffusionError, ValueError):
    """A caller-supplied parameter is out of its valid range."""


class ShapeMismatchError(DiffusionError, ValueError):
    """Tensor dimensions are inconsistent between stages or collaborator outputs."""


class ModelLoadError(DiffusionError):
    """A model configuration or weight artifact is missing or malformed."""


class ImageWriteError(DiffusionError, OSError):
    """An image could not be written to disk."""


class StageError(DiffusionError):
    """
    A collaborator failed with an exception outside this hierarchy.

    Raised by the orchestration layer with the original exception chained
    as ``__cause__``, e.g. a device running out of memory inside a network.
    """
