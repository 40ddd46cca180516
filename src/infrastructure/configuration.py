import os
import tomllib
from dataclasses import dataclass, replace

from src.domain.entities.resolution import DEFAULT_RESOLUTION_INDEX, CropOffset

DEFAULT_PROMPT = "A beautiful photo of a seaside bluff."
DEFAULT_MODEL_ROOT = "stabilityai/stable-diffusion-xl-base-1.0"


@dataclass
class GenerationConfiguration:
    """Configuration for text-to-image generation."""

    prompt: str = DEFAULT_PROMPT
    negative_prompt: str = ""
    guidance_scale: float = 7.5
    n_steps: int = 30
    resolution_index: int = DEFAULT_RESOLUTION_INDEX
    crop_left: int = 0
    crop_top: int = 0
    output: str = "img"  # Base path, images are written as <output><index>.png
    model_root: str = DEFAULT_MODEL_ROOT
    device: str = "cuda"
    conditioning_dtype: str = "float32"
    sampling_dtype: str = "float16"
    decoding_dtype: str = "float32"  # The SDXL VAE overflows in half precision
    seed: int | None = None
    show_progress: bool = True

    @property
    def crop(self) -> CropOffset:
        return CropOffset(left=self.crop_left, top=self.crop_top)

    def with_overrides(self, **overrides) -> "GenerationConfiguration":
        """
        Return a copy with every override that is not None applied.

        Parameters
        ----------
        **overrides
            Field values, typically parsed command-line flags.

        Returns
        -------
        GenerationConfiguration
            New configuration; `self` is left unchanged.
        """
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def load(cls, config_path: str) -> "GenerationConfiguration":
        """
        Load generation configuration from a TOML file.

        Parameters
        ----------
        config_path : str
            Filesystem path to a TOML file containing a "generation" table.

        Returns
        -------
        GenerationConfiguration
            Instance populated from the "generation" table; fields not present
            use their dataclass defaults.

        Raises
        ------
        FileNotFoundError
            If no file exists at `config_path`.
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        generation_data = data.get("generation", {})
        return cls(**generation_data)
