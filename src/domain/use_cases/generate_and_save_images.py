"""
Generate and Save Images Use-Case.

This module provides the text-to-image pipeline: it encodes a prompt,
samples a latent with the diffusion model, decodes it and saves the
resulting images to disk.
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from src.domain.entities.errors import DiffusionError, StageError
from src.domain.entities.image_result import ImageResult
from src.domain.entities.resolution import (
    DEFAULT_RESOLUTION_INDEX,
    CropOffset,
    bucket_at,
)
from src.domain.interfaces.image_writer import ImageWriter
from src.domain.interfaces.model_loader import (
    DIFFUSER,
    EMBEDDER,
    LATENT_DECODER,
    ModelLoader,
)
from src.domain.interfaces.sampling_tracker import SamplingTracker
from src.domain.interfaces.tensor_backend import TensorBackend
from src.domain.services.conditioning_builder import ConditioningBuilder
from src.domain.services.diffusion_sampler import DiffusionSampler, validate_guidance_scale
from src.domain.services.latent_to_image import LatentToImage
from src.domain.services.noise_schedule import validate_n_steps
from src.domain.services.precision_bridge import convert, convert_conditioning

logger = logging.getLogger(__name__)


def save_images(result: ImageResult, basepath: str, writer: ImageWriter) -> list[str]:
    """
    Save every image of `result` as ``f"{basepath}{index}.png"``.

    Parameters
    ----------
    result : ImageResult
        Images to save.
    basepath : str
        Path prefix; its parent directory is created if needed.
    writer : ImageWriter
        Persistence collaborator.

    Returns
    -------
    list[str]
        Written file paths, in batch order.
    """
    output_dir = os.path.dirname(basepath)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)
        logger.info(f"Created output directory: {output_dir}")

    paths = []
    for index, buffer in enumerate(result.buffers):
        path = f"{basepath}{index}.png"
        writer.write(buffer, result.width, result.height, path)
        paths.append(path)
    return paths


class GenerateAndSaveImages:
    """
    Use-case for generating images from a prompt and saving them to disk.

    This use-case orchestrates the workflow of:
    1. Validating the request before any model is loaded
    2. Encoding the prompt with the embedder
    3. Converting the conditioning to the sampling precision
    4. Sampling a latent with the diffuser
    5. Converting the latent to the decoding precision
    6. Decoding the latent with the latent decoder
    7. Saving the images as PNG files

    Each model is loaded for its own stage and released before the next one
    is loaded.

    Attributes
    ----------
    model_loader : ModelLoader
        Loads the embedder, diffuser and latent decoder.
    image_writer : ImageWriter
        Persists the decoded images.
    conditioning_backend : TensorBackend
        Backend the embedder produces tensors in.
    sampling_backend : TensorBackend
        Backend the diffuser runs in.
    decoding_backend : TensorBackend
        Backend the latent decoder runs in.
    prompt : str
        Text describing the image.
    output : str
        Base path of the written files.
    guidance_scale : float
        Classifier-free guidance strength.
    n_steps : int
        Number of denoising steps.
    resolution_index : int
        Index into the resolution bucket table.
    crop : CropOffset
        Crop offset conditioning.
    negative_prompt : str
        Prompt for the unconditional branch.
    seed : int | None
        Seed for the initial noise.
    tracker : SamplingTracker | None
        Optional sampling progress tracker.
    """

    def __init__(
        self,
        model_loader: ModelLoader,
        image_writer: ImageWriter,
        conditioning_backend: TensorBackend,
        sampling_backend: TensorBackend,
        decoding_backend: TensorBackend,
        prompt: str,
        output: str,
        guidance_scale: float = 7.5,
        n_steps: int = 30,
        resolution_index: int = DEFAULT_RESOLUTION_INDEX,
        crop: CropOffset = CropOffset(),
        negative_prompt: str = "",
        seed: Optional[int] = None,
        tracker: Optional[SamplingTracker] = None,
    ) -> None:
        self.model_loader = model_loader
        self.image_writer = image_writer
        self.conditioning_backend = conditioning_backend
        self.sampling_backend = sampling_backend
        self.decoding_backend = decoding_backend
        self.prompt = prompt
        self.output = output
        self.guidance_scale = guidance_scale
        self.n_steps = n_steps
        self.resolution_index = resolution_index
        self.crop = crop
        self.negative_prompt = negative_prompt
        self.seed = seed
        self.tracker = tracker

    def run(self) -> list[str]:
        """
        Execute the generation workflow.

        Returns
        -------
        list[str]
            Paths of the written images.

        Raises
        ------
        DiffusionError
            If any stage fails. The error's `stage` attribute names the stage
            and no image is written. Other exceptions raised by a
            collaborator are wrapped in `StageError`.
        """
        with self._stage("validation"):
            resolution = bucket_at(self.resolution_index)
            validate_n_steps(self.n_steps)
            validate_guidance_scale(self.guidance_scale)

        with self._stage("conditioning"):
            with self.model_loader.session(EMBEDDER) as text_encoder:
                builder = ConditioningBuilder(
                    text_encoder,
                    self.conditioning_backend,
                    negative_prompt=self.negative_prompt,
                )
                conditioning = builder.text_to_conditioning(
                    self.prompt, resolution, self.crop, resolution
                )
            conditioning = convert_conditioning(
                conditioning, self.sampling_backend, self.conditioning_backend
            )

        with self._stage("sampling"):
            with self.model_loader.session(DIFFUSER) as denoiser:
                sampler = DiffusionSampler(
                    denoiser,
                    self.sampling_backend,
                    seed=self.seed,
                    tracker=self.tracker,
                )
                latent = sampler.sample_latent(conditioning, self.guidance_scale, self.n_steps)
            latent = convert(latent, self.decoding_backend, self.sampling_backend)

        with self._stage("decoding"):
            with self.model_loader.session(LATENT_DECODER) as decoder:
                images = LatentToImage(decoder).latent_to_image(latent)
        logger.info(f"Decoded {len(images)} images of {images.width}x{images.height}.")

        with self._stage("saving"):
            paths = save_images(images, self.output, self.image_writer)
        for path in paths:
            logger.info(f"Saved {path}")
        return paths

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        logger.info(f"Running {name}...")
        try:
            yield
        except DiffusionError as err:
            if err.stage is None:
                err.stage = name
            logger.error(f"Stage '{err.stage}' failed: {err}")
            raise
        except Exception as err:
            logger.exception(f"Stage '{name}' failed: {type(err).__name__}: {err}")
            wrapped = StageError(f"{type(err).__name__}: {err}")
            wrapped.stage = name
            raise wrapped from err
