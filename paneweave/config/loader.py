"""Load and save the JSON config file."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from paneweave.config.schema import Config
from paneweave.errors import ConfigError


def get_config_path() -> Path:
    """Return the default config file location."""
    return Path.home() / ".paneweave" / "config.json"


def load_config(path: Path | None = None) -> Config:
    """Load config from disk, falling back to defaults when the file is missing."""
    config_path = path or get_config_path()
    if not config_path.exists():
        return Config()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")
    try:
        config = Config(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
    logger.debug(f"[config] Loaded {config_path}")
    return config


def save_config(config: Config, path: Path | None = None) -> Path:
    """Write config as pretty JSON and return the path written."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump(mode="json")
    config_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return config_path
