"""3-layer configuration system for OSCAL Recon.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.oscal-recon/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

CONFIG_DIR = ".oscal-recon"

DEFAULT_CONFIG: dict = {
    "reports": {
        "labels": {
            "baseline": "Baseline",
            "csp1": "CSP 1",
            "csp2": "CSP 2",
        },
    },
    "sanitize": {
        "preserve_empty": ["categorizations", "components", "users"],
    },
    "ssp": {
        "oscal_version": "2.1.0",
        "strict": False,
        "integrity": True,
    },
    "output": {
        "indent": 2,
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .oscal-recon/config.yaml."""
    config_path = project_path / CONFIG_DIR / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        loaded = yaml.safe_load(content)
    except (OSError, yaml.YAMLError):
        return {}
    return loaded if isinstance(loaded, dict) else {}


def get_effective_config(
    project_path: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    project_config = load_project_config(project_path)
    if project_config:
        config = deep_merge(config, project_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_project_path"] = str(project_path)
    return config


def initialize_project(project_path: Path) -> Path:
    """Write a starter .oscal-recon/config.yaml if none exists."""
    config_path = project_path / CONFIG_DIR / "config.yaml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    if not config_path.exists():
        content = yaml.dump(
            DEFAULT_CONFIG,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
            width=120,
        )
        config_path.write_text(
            "# OSCAL Recon project configuration\n\n" + content,
            encoding="utf-8",
        )
    return config_path
