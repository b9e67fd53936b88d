"""OSCAL catalog flattening.

Turns ``{catalog: {groups[], controls[]}}`` into an ordered list of
ControlDefinition records, one per control and sub-control.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError
from rich.console import Console

from ..models.control import ControlDefinition

console = Console(stderr=True)

DESCRIPTION_PART_NAMES = {"statement", "description", "guidance"}


def describe_parts(parts: Any) -> str:
    """Assemble prose from OSCAL parts.

    Uses parts named statement, description or guidance; when none exist,
    falls back to any part that carries prose. Paragraphs are joined with a
    blank line.
    """
    if not isinstance(parts, list) or not parts:
        return ""

    parts = [p for p in parts if isinstance(p, dict)]
    named = [p for p in parts if p.get("name") in DESCRIPTION_PART_NAMES]

    if not named:
        return "\n\n".join(str(p["prose"]) for p in parts if p.get("prose"))

    return "\n\n".join(str(p["prose"]) for p in named if p.get("prose"))


def _definition(
    control: dict,
    group: Optional[dict],
    parent_id: Optional[str],
) -> ControlDefinition:
    return ControlDefinition(
        id=control.get("id", ""),
        title=control.get("title") or "",
        description=describe_parts(control.get("parts")),
        control_class=control.get("class"),
        params=control.get("params") or [],
        props=control.get("props") or [],
        parts=control.get("parts") or [],
        group_id=group.get("id") if group else None,
        group_title=group.get("title") if group else None,
        parent_id=parent_id,
    )


def _walk_controls(
    controls: Any,
    group: Optional[dict],
    parent_id: Optional[str],
    out: list[ControlDefinition],
) -> None:
    if not isinstance(controls, list):
        return
    for control in controls:
        if not isinstance(control, dict):
            continue
        control_id = control.get("id")
        try:
            out.append(_definition(control, group, parent_id))
        except ValidationError as e:
            console.print(
                f"  [yellow]WARN[/yellow] Catalog control {control_id or '?'!s} skipped: "
                f"{e.error_count()} error(s)"
            )
        # Sub-controls are walked even when their parent was rejected
        _walk_controls(
            control.get("controls"),
            group,
            control_id if isinstance(control_id, str) and control_id else None,
            out,
        )


def _walk_groups(groups: Any, out: list[ControlDefinition]) -> None:
    if not isinstance(groups, list):
        return
    for group in groups:
        if not isinstance(group, dict):
            continue
        _walk_controls(group.get("controls"), group, None, out)
        _walk_groups(group.get("groups"), out)


def extract_catalog_controls(catalog_document: dict) -> list[ControlDefinition]:
    """Flatten a catalog document into control definitions.

    Accepts either the full document or the inner ``catalog`` object. Group
    controls come first in document order, then root-level controls.
    """
    catalog = catalog_document.get("catalog", catalog_document) if isinstance(catalog_document, dict) else None
    if not isinstance(catalog, dict):
        return []

    definitions: list[ControlDefinition] = []
    _walk_groups(catalog.get("groups"), definitions)
    _walk_controls(catalog.get("controls"), None, None, definitions)
    return definitions


def catalog_metadata(catalog_document: dict) -> dict:
    """Return the catalog's metadata block, or an empty dict."""
    catalog = catalog_document.get("catalog", catalog_document)
    metadata = catalog.get("metadata") if isinstance(catalog, dict) else None
    return metadata if isinstance(metadata, dict) else {}
