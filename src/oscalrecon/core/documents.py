"""OSCAL document loading and writing (JSON or YAML)."""

from __future__ import annotations

import json
from pathlib import Path

import yaml

YAML_SUFFIXES = {".yaml", ".yml"}


class DocumentLoadError(ValueError):
    """Raised when a file cannot be read as an OSCAL document."""


def load_document(path: Path) -> dict:
    """Load a JSON or YAML document whose root is a mapping."""
    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise DocumentLoadError(f"Cannot read {path}: {e}") from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DocumentLoadError(f"Cannot parse {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise DocumentLoadError(f"{path.name} does not contain an object at its root")
    return data


def dump_document(document: dict, fmt: str = "json", indent: int = 2) -> str:
    """Serialize a document for output."""
    if fmt == "yaml":
        return yaml.safe_dump(document, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=indent, ensure_ascii=False)


def write_document(document: dict, output_path: Path, indent: int = 2) -> Path:
    """Write a document, choosing YAML or JSON from the file suffix."""
    fmt = "yaml" if output_path.suffix.lower() in YAML_SUFFIXES else "json"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_document(document, fmt, indent) + "\n", encoding="utf-8")
    return output_path
