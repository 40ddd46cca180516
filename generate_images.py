"""
CLI entry point for generating images from a text prompt.

Usage:
    python generate_images.py -p "A beautiful photo of a seaside bluff." -o outputs/img
    python generate_images.py -c configuration.toml -s 50 -g 5.0 --seed 42
"""
import argparse
import logging
import sys

import torch

from src.domain.entities.errors import DiffusionError, InvalidParameterError
from src.domain.interfaces.model_loader import (
    DIFFUSER,
    EMBEDDER,
    LATENT_DECODER,
    ModelLoader,
)
from src.domain.use_cases.generate_and_save_images import GenerateAndSaveImages
from src.infrastructure.configuration import GenerationConfiguration
from src.infrastructure.diffusers.model_loader import DiffusersModelLoader
from src.infrastructure.image_writer import PillowImageWriter
from src.infrastructure.logging import setup_logging
from src.infrastructure.observability import ConsoleTracker, SilentTracker
from src.infrastructure.torch.backend import TorchBackend

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] | None
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments. Options left unset are None so they do not
        override the configuration file.
    """
    parser = argparse.ArgumentParser(
        description="Generate images from a text prompt with a latent diffusion model."
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config",
        default=None,
        help="Path to a TOML file with a [generation] table (optional)",
    )
    parser.add_argument("-p", "--prompt", default=None, help="Text prompt")
    parser.add_argument(
        "-n",
        "--negative-prompt",
        dest="negative_prompt",
        default=None,
        help="Prompt for the unconditional branch (default: empty)",
    )
    parser.add_argument(
        "-g",
        "--guidance-scale",
        dest="guidance_scale",
        type=float,
        default=None,
        help="Classifier-free guidance scale (default: 7.5)",
    )
    parser.add_argument(
        "-s",
        "--steps",
        dest="n_steps",
        type=int,
        default=None,
        help="Number of diffusion steps (default: 30)",
    )
    parser.add_argument(
        "-r",
        "--resolution-index",
        dest="resolution_index",
        type=int,
        default=None,
        help="Index into the resolution bucket table (default: 8)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Base path of the written images, saved as <output><index>.png (default: img)",
    )
    parser.add_argument(
        "--model-root",
        dest="model_root",
        default=None,
        help="Local directory or Hub id of a diffusers SDXL checkpoint",
    )
    parser.add_argument("--device", default=None, help="Torch device (default: cuda)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the initial noise")
    parser.add_argument(
        "--no-progress",
        dest="show_progress",
        action="store_const",
        const=False,
        default=None,
        help="Disable the sampling progress bar",
    )
    return parser.parse_args(argv)


def load_configuration(args) -> GenerationConfiguration:
    """Build the configuration from the optional file and the command-line overrides."""
    config = (
        GenerationConfiguration.load(args.config)
        if args.config is not None
        else GenerationConfiguration()
    )
    return config.with_overrides(
        prompt=args.prompt,
        negative_prompt=args.negative_prompt,
        guidance_scale=args.guidance_scale,
        n_steps=args.n_steps,
        resolution_index=args.resolution_index,
        output=args.output,
        model_root=args.model_root,
        device=args.device,
        seed=args.seed,
        show_progress=args.show_progress,
    )


def create_backends(config: GenerationConfiguration) -> dict[str, TorchBackend]:
    """
    Create one backend per stage.

    Raises
    ------
    InvalidParameterError
        If a CUDA device is requested but unavailable, or a dtype is unknown.
    """
    if config.device.startswith("cuda") and not torch.cuda.is_available():
        raise InvalidParameterError(f"Device '{config.device}' requested but CUDA is not available")

    return {
        EMBEDDER: TorchBackend(config.device, config.conditioning_dtype),
        DIFFUSER: TorchBackend(config.device, config.sampling_dtype),
        LATENT_DECODER: TorchBackend(config.device, config.decoding_dtype),
    }


def create_model_loader(
    config: GenerationConfiguration,
    backends: dict[str, TorchBackend],
) -> ModelLoader:
    return DiffusersModelLoader(config.model_root, backends)


def main(argv=None) -> int:
    """
    Main entry point for generating images.

    Parameters
    ----------
    argv : list[str] | None
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    int
        Process exit status: 0 on success, 1 on failure.
    """
    setup_logging()
    args = parse_args(argv)

    try:
        config = load_configuration(args)
        backends = create_backends(config)
        use_case = GenerateAndSaveImages(
            model_loader=create_model_loader(config, backends),
            image_writer=PillowImageWriter(),
            conditioning_backend=backends[EMBEDDER],
            sampling_backend=backends[DIFFUSER],
            decoding_backend=backends[LATENT_DECODER],
            prompt=config.prompt,
            output=config.output,
            guidance_scale=config.guidance_scale,
            n_steps=config.n_steps,
            resolution_index=config.resolution_index,
            crop=config.crop,
            negative_prompt=config.negative_prompt,
            seed=config.seed,
            tracker=ConsoleTracker() if config.show_progress else SilentTracker(),
        )
        paths = use_case.run()
    except (DiffusionError, FileNotFoundError) as err:
        stage = getattr(err, "stage", None)
        where = f" during {stage}" if stage else ""
        print(f"Generation failed{where}: {err}", file=sys.stderr)
        return 1

    print(f"Generated {len(paths)} images: {', '.join(paths)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
