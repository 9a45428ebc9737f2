'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 17:10:00
 # @ Modified time: 2025-11-05 11:30:00
 # @ Description: Configuration loading, command-line overrides and filesystem helpers.
'''

from __future__ import annotations

import ast
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable

import yaml

LOGGER = logging.getLogger("gai_localization.utils")


def load_yaml_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file from disk."""
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected dict at root of config, got {type(data)!r}")
    return data


def apply_overrides(config: Dict[str, Any], overrides: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of ``config`` with ``section.key=value`` overrides applied.

    Values are parsed as Python literals when possible (``[0.5, 1, 2]``, ``0.7``)
    and kept as strings otherwise.
    """
    merged = copy.deepcopy(config)
    for item in overrides:
        if "=" not in item:
            raise ValueError(f"Override must look like key=value, got {item!r}")
        key, raw_value = item.split("=", 1)
        parts = [part for part in key.strip().split(".") if part]
        if not parts:
            raise ValueError(f"Empty override key in {item!r}")
        try:
            value = ast.literal_eval(raw_value.strip())
        except (ValueError, SyntaxError):
            value = raw_value.strip()
        node = merged
        for part in parts[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise ValueError(f"Cannot override {key!r}: {part!r} is not a section")
            node = child
        node[parts[-1]] = value
        LOGGER.debug("Config override %s=%r", key, value)
    return merged


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_json(path: str | Path, payload: Dict[str, Any]) -> None:
    """Persist a JSON payload with deterministic formatting."""
    target = Path(path)
    ensure_dir(target.parent)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
