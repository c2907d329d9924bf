"""Utility helpers for configuration, logging and artefact paths.

The helpers here are intentionally lightweight so that the API and the
offline scripts can import them without pulling in the modelling stack.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_CONFIG_PATH = "configs/default.yaml"

# Environment variables that take precedence over the YAML file.
ENV_OVERRIDES = {
    "DATA_PATH": ("paths", "data"),
    "MODEL_PATH": ("paths", "model"),
    "ARTIFACTS_DIR": ("paths", "artifacts_dir"),
}


def project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def resolve_path(path: str | Path, base_dir: Optional[str | Path] = None) -> Path:
    p = Path(path)
    if not p.is_absolute() and base_dir is not None:
        p = Path(base_dir) / p
    return p


def load_config(config_path: str | Path | None = None) -> Dict[str, Any]:
    """Read the YAML config and apply environment overrides.

    ``config_path`` falls back to ``$CONFIG_PATH`` and then to
    ``configs/default.yaml`` under the project root. Relative entries of the
    ``paths`` section are resolved against the project root.
    """
    if config_path is None:
        config_path = os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)
    config_path = resolve_path(config_path, project_root())
    with open(config_path, "r", encoding="utf-8") as fh:
        config = yaml.safe_load(fh) or {}

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config.setdefault(section, {})[key] = value

    paths = config.setdefault("paths", {})
    for key, value in list(paths.items()):
        if value is not None:
            paths[key] = str(resolve_path(value, project_root()))
    return config


def save_json(data: Dict[str, Any], path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)


def get_logger(name: str, level: str | int = "INFO") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_LOG_FORMAT",
    "get_logger",
    "load_config",
    "project_root",
    "resolve_path",
    "save_json",
]
