"""Two-way reconciliation of a fresh catalog against an existing SSP."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Union

from pydantic import ValidationError
from rich.console import Console

from ..models.comparison import ComparisonResult, ComparisonStats
from ..models.control import ChangeStatus, ControlDefinition, ControlRecord
from .classifier import classify_control
from .extractor import extract_controls
from .integrity import verify_integrity_hash
from .system_info import extract_system_info

console = Console(stderr=True)


def _definitions(catalog_controls: Iterable[Union[ControlDefinition, dict]]) -> list[ControlDefinition]:
    definitions: list[ControlDefinition] = []
    for index, control in enumerate(catalog_controls):
        if isinstance(control, ControlDefinition):
            definitions.append(control)
            continue
        try:
            definitions.append(ControlDefinition.model_validate(control))
        except ValidationError as e:
            console.print(f"  [yellow]WARN[/yellow] Catalog control #{index} skipped: {e.error_count()} error(s)")
    return definitions


def compare_with_existing_ssp(
    catalog_controls: Iterable[Union[ControlDefinition, dict]],
    existing_document: Any,
) -> ComparisonResult:
    """Merge catalog controls with the assessment data of an existing SSP.

    Every catalog control yields exactly one record, in catalog order.
    Controls that exist only in the SSP are not carried over.
    """
    existing = extract_controls(existing_document)
    by_id: dict[str, ControlRecord] = {record.id: record for record in existing}

    controls = [
        classify_control(definition, by_id.get(definition.id))
        for definition in _definitions(catalog_controls)
    ]

    stats = ComparisonStats(
        total=len(controls),
        new=sum(1 for c in controls if c.change_status == ChangeStatus.NEW),
        changed=sum(1 for c in controls if c.change_status == ChangeStatus.CHANGED),
        unchanged=sum(1 for c in controls if c.change_status == ChangeStatus.UNCHANGED),
        existing_total=len(existing),
    )

    return ComparisonResult(
        controls=controls,
        stats=stats,
        system_info=extract_system_info(existing_document),
        comparison_date=datetime.now().isoformat(),
    )


def extract_ssp(document: Any) -> dict:
    """Read an existing SSP as-is: records, system info and integrity status."""
    controls = extract_controls(document)
    integrity = verify_integrity_hash(document) if isinstance(document, dict) else None
    return {
        "controls": [record.dump(exclude_none=True) for record in controls],
        "systemInfo": extract_system_info(document).dump(),
        "integrityCheck": integrity.dump() if integrity else None,
        "totalControls": len(controls),
    }
