from __future__ import annotations

"""Configuration loading and validation for Formula Trivia.

This module loads YAML configuration, applies defaults, and validates the
penalty seconds that get threaded into the level table.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..engine.errors import ConfigurationError
from ..engine.levels import LevelConfig, PenaltySettings, build_level_configs

DEFAULTS_PATH = Path(__file__).with_name("defaults.yml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must hold a mapping")
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(DEFAULTS_PATH)


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.

    Raises:
        ConfigurationError: when the penalties section is not valid.
    """
    # Shallow defaults for missing sections
    cfg.setdefault("questions", {})
    cfg.setdefault("penalties", {})
    cfg.setdefault("storage", {})
    cfg.setdefault("stats", {})
    cfg.setdefault("ui", {})

    questions = cfg["questions"]
    storage = cfg["storage"]
    stats = cfg["stats"]
    ui = cfg["ui"]

    questions.setdefault("path", "./questions.yml")

    storage.setdefault("enabled", True)
    storage.setdefault("data_dir", "./storage/data")

    stats.setdefault("output_path", None)
    stats.setdefault("show_summary", True)

    ui.setdefault("show_timer", True)
    ui.setdefault("explain", False)

    try:
        settings = PenaltySettings.model_validate(cfg["penalties"] or {})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid penalties section: {exc}") from exc
    cfg["penalties"] = settings.model_dump()

    storage["enabled"] = bool(storage.get("enabled"))
    return cfg


def level_configs_from(cfg: Dict[str, Any]) -> tuple[LevelConfig, ...]:
    """Level table for a validated config."""
    return build_level_configs(PenaltySettings.model_validate(cfg.get("penalties") or {}))
