"""
Configuration loader for TapVocab.

Loads trainer settings from a YAML file, then applies environment
overrides (a .env file in the project root is read first):
- TAPVOCAB_CONFIG: path of the YAML file
- TAPVOCAB_DATA_DIR: directory holding the TSV data files
- TAPVOCAB_STORAGE_PATH: SQLite file for persistent state
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


# Project root (relative to this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "tapvocab.yaml"

ENV_OVERRIDES = {
    "TAPVOCAB_DATA_DIR": "data_dir",
    "TAPVOCAB_STORAGE_PATH": "storage_path",
}


class TrainerConfig(BaseModel):
    data_dir: Path = PROJECT_ROOT / "data"
    storage_path: Optional[Path] = None          # None -> ~/.tapvocab/storage.db
    auto_advance_ms: int = Field(1500, ge=0)
    reveal_delay_ms: int = Field(1000, ge=0)
    unlock_min_total: int = Field(10, ge=1)
    unlock_min_ratio: float = Field(0.70, ge=0.0, le=1.0)
    unlock_discrete_target: int = Field(20, ge=1)
    coins_per_game: int = Field(10, ge=1)
    shuffle: bool = True
    seed: Optional[int] = None
    confetti_count: int = Field(30, ge=0)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    return data


def load_config(path: Optional[Path] = None, env_file: Optional[Path] = None) -> TrainerConfig:
    """
    Load trainer configuration.

    Args:
        path: YAML file (default: $TAPVOCAB_CONFIG or config/tapvocab.yaml).
            A missing default file is fine; a missing explicit file is not.
        env_file: .env file to read (default: project root .env)

    Returns:
        Validated TrainerConfig

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        pydantic.ValidationError: If a value is out of range
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    explicit = path or os.environ.get("TAPVOCAB_CONFIG")
    if explicit:
        config_path = Path(explicit)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        values = _read_yaml(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        values = _read_yaml(DEFAULT_CONFIG_PATH)
    else:
        values = {}

    for env_name, field in ENV_OVERRIDES.items():
        if os.environ.get(env_name):
            values[field] = os.environ[env_name]

    return TrainerConfig(**values)
