from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_LABELS = {"source": "GSTR-2B", "target": "Purchase Register"}
DEFAULT_THRESHOLD = 90


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


def _require_mapping(data: Dict[str, Any], key: str, required: bool = False) -> Dict[str, Any]:
    section = data.get(key)
    if section is None:
        if required:
            raise ConfigError(f"Missing required section: {key}")
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section {key} must be a mapping")
    return section


def load_config(path: str | Path) -> Dict[str, Any]:
    """
    Load YAML config and validate the minimal contract.

    Required:
      - io.source_path
      - io.target_path
      - io.runs_dir

    Optional sections (labels, reconcile, export) are filled with defaults.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found at: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {config_path}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping: {config_path}")

    io_section = _require_mapping(data, "io", required=True)
    for key in ("source_path", "target_path", "runs_dir"):
        value = io_section.get(key)
        if not value or not isinstance(value, (str, Path)):
            raise ConfigError(f"Missing required key: io.{key}")

    labels = _require_mapping(data, "labels")
    data["labels"] = {**DEFAULT_LABELS, **{k: str(v) for k, v in labels.items() if v}}

    recon = _require_mapping(data, "reconcile")
    threshold = recon.get("threshold", DEFAULT_THRESHOLD)
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise ConfigError(f"reconcile.threshold must be an integer, got {threshold!r}")
    mapping = recon.get("mapping") or {}
    if not isinstance(mapping, dict):
        raise ConfigError("reconcile.mapping must be a mapping of source field -> target field")
    key_fields = recon.get("key_fields") or []
    if not isinstance(key_fields, list):
        raise ConfigError("reconcile.key_fields must be a list")
    data["reconcile"] = {
        "threshold": threshold,
        "mapping": {str(k): str(v) for k, v in mapping.items()},
        "key_fields": [str(k) for k in key_fields],
    }

    export = _require_mapping(data, "export")
    for key, value in export.items():
        if not isinstance(value, bool):
            raise ConfigError(f"export.{key} must be true or false, got {value!r}")
    data["export"] = dict(export)

    return data


def resolve_input(cfg: Dict[str, Any], side: str, override: Optional[str] = None) -> Path:
    """Input path for "source" or "target", relative paths taken from the config's io section."""
    if override:
        return Path(override)
    return Path(cfg["io"][f"{side}_path"])
