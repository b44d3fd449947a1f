"""TapVocab utilities."""

from .config import TrainerConfig, load_config, DEFAULT_CONFIG_PATH

__all__ = [
    "TrainerConfig",
    "load_config",
    "DEFAULT_CONFIG_PATH",
]
