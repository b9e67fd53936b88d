"""Control extraction from SSP-like documents.

Documents arrive in several historical shapes. Each shape is a
(name, detector, extractor) entry in DOCUMENT_SHAPES, tried in order; the
first detector that matches decides how controls are read.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

from pydantic.alias_generators import to_camel
from rich.console import Console

from ..models.control import ASSESSMENT_FIELDS, ControlRecord, ImplementationStatus
from ..utils.sanitize import EMPTY_PLACEHOLDER
from .catalog import describe_parts, extract_catalog_controls

console = Console(stderr=True)

# props[].name -> ControlRecord field
PROP_FIELD_MAP: dict[str, str] = {
    "catalog-control-title": "catalog_title",
    "catalog-control-description": "catalog_description",
    "group-title": "group_title",
    "control-group": "group_title",
    "implementation-status": "status",
    "responsible-party": "responsible_party",
    "control-owner": "control_owner",
    "consumer-guidance": "consumer_guidance",
    "implementation-date": "implementation_date",
    "review-date": "review_date",
    "next-review-date": "next_review_date",
    "control-type": "control_type",
    "evidence": "evidence",
    "testing-procedure": "testing_procedure",
    "testing-frequency": "testing_frequency",
    "last-test-date": "last_test_date",
    "api-url": "api_url",
    "api-credential-id": "api_credential_id",
    "api-response-data": "api_response_data",
    "api-data-history": "api_data_history",
    "risk-rating": "risk_rating",
    "frameworks": "frameworks",
    "compensating-controls": "compensating_controls",
    "exceptions": "exceptions",
}

# Assessment fields read from the requirement itself rather than from props
DIRECT_FIELDS = {"implementation", "remarks"}


def _check_prop_map() -> None:
    """Fail fast if the prop table and ControlRecord drift apart."""
    known = set(ControlRecord.model_fields)
    unknown = set(PROP_FIELD_MAP.values()) - known
    if unknown:
        raise RuntimeError(f"PROP_FIELD_MAP targets unknown fields: {sorted(unknown)}")
    uncovered = set(ASSESSMENT_FIELDS) - set(PROP_FIELD_MAP.values()) - DIRECT_FIELDS
    if uncovered:
        raise RuntimeError(f"Assessment fields without a prop mapping: {sorted(uncovered)}")


_check_prop_map()


def field_prop_names() -> dict[str, str]:
    """Return field -> canonical prop name (first name wins for aliases)."""
    names: dict[str, str] = {}
    for prop_name, field in PROP_FIELD_MAP.items():
        names.setdefault(field, prop_name)
    return names


def _text(value: Any) -> str:
    if value is None or value == EMPTY_PLACEHOLDER:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _parse_response_data(raw: Any, control_id: str) -> Any:
    if raw is None or raw == EMPTY_PLACEHOLDER:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        console.print(
            f"  [yellow]WARN[/yellow] {control_id}: api-response-data is not JSON, keeping raw value"
        )
        return raw


def _parse_history(raw: Any, control_id: str) -> list:
    if raw is None or raw == EMPTY_PLACEHOLDER:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        console.print(
            f"  [yellow]WARN[/yellow] {control_id}: api-data-history is not JSON, using empty history"
        )
        return []
    return parsed if isinstance(parsed, list) else []


def _read_props(props: Any, control_id: str) -> dict[str, Any]:
    """Map known props onto record fields. Later props win."""
    values: dict[str, Any] = {}
    if not isinstance(props, list):
        return values

    for prop in props:
        if not isinstance(prop, dict):
            continue
        field = PROP_FIELD_MAP.get(prop.get("name"))
        if field is None:
            continue
        raw = prop.get("value")
        if field == "api_response_data":
            values[field] = _parse_response_data(raw, control_id)
        elif field == "api_data_history":
            values[field] = _parse_history(raw, control_id)
        else:
            values[field] = _text(raw)
    return values


def describe_requirement(requirement: dict, include_description: bool = True) -> str:
    """Description fallback for a requirement with no catalog description prop.

    Pass ``include_description=False`` when the requirement's ``description``
    already holds the implementation narrative.
    """
    description = requirement.get("description")
    if include_description and isinstance(description, str) and _text(description):
        return description

    statements = requirement.get("statements")
    if isinstance(statements, list) and statements:
        return "\n".join(
            _text(s.get("description")) if isinstance(s, dict) else "" for s in statements
        )

    if requirement.get("control-description"):
        return _text(requirement["control-description"])

    return describe_parts(requirement.get("parts"))


def _first_responsible_role(requirement: dict) -> str:
    roles = requirement.get("responsible-roles")
    if not isinstance(roles, list) or not roles:
        return ""
    first = roles[0]
    if isinstance(first, dict):
        return _text(first.get("role-id"))
    return _text(first)


def _record_from_requirement(requirement: dict) -> Optional[ControlRecord]:
    control_id = _text(requirement.get("control-id") or requirement.get("id")).strip()
    if not control_id:
        console.print("  [yellow]WARN[/yellow] Skipping requirement without a control id")
        return None

    from_props = _read_props(requirement.get("props"), control_id)

    def direct(field: str) -> str:
        return _text(requirement.get(to_camel(field)))

    description = requirement.get("description")
    implementation = direct("implementation")
    # Without an implementation field, description is the implementation narrative
    narrative = not implementation and isinstance(description, str) and bool(_text(description))
    if narrative:
        implementation = _text(description)

    fields: dict[str, Any] = {
        "id": control_id,
        "catalog_title": (
            from_props.get("catalog_title")
            or direct("catalog_title")
            or _text(requirement.get("title"))
        ),
        "catalog_description": (
            from_props.get("catalog_description")
            or direct("catalog_description")
            or describe_requirement(requirement, include_description=not narrative)
        ),
        "group_title": from_props.get("group_title") or direct("group_title"),
        "status": (
            from_props.get("status")
            or direct("status")
            or ImplementationStatus.NOT_ASSESSED.value
        ),
        "implementation": implementation,
        "remarks": _text(requirement.get("remarks")),
        "responsible_party": (
            from_props.get("responsible_party")
            or direct("responsible_party")
            or _first_responsible_role(requirement)
        ),
    }

    for field in ASSESSMENT_FIELDS:
        if field in fields or field in DIRECT_FIELDS:
            continue
        if field == "api_response_data":
            value = from_props.get(field)
            fields[field] = value if value is not None else requirement.get("apiResponseData")
        elif field == "api_data_history":
            history = from_props.get(field)
            if history is None:
                history = requirement.get("apiDataHistory")
            fields[field] = history if isinstance(history, list) else []
        else:
            fields[field] = from_props.get(field) or direct(field)

    return ControlRecord(**fields)


def _extract_requirements(requirements: list) -> list[ControlRecord]:
    records: list[ControlRecord] = []
    seen: set[str] = set()

    for index, requirement in enumerate(requirements):
        if not isinstance(requirement, dict):
            console.print(f"  [yellow]WARN[/yellow] Requirement #{index} is not an object, skipped")
            continue
        try:
            record = _record_from_requirement(requirement)
        except Exception as e:
            console.print(f"  [yellow]WARN[/yellow] Requirement #{index} could not be read: {e}")
            continue
        if record is None:
            continue
        if record.id in seen:
            console.print(f"  [yellow]WARN[/yellow] Duplicate control {record.id}, keeping the first")
            continue
        seen.add(record.id)
        records.append(record)

    return records


def _implemented_requirements(document: dict) -> Any:
    ssp = document.get("system-security-plan")
    if not isinstance(ssp, dict):
        return None
    implementation = ssp.get("control-implementation")
    if not isinstance(implementation, dict):
        return None
    return implementation.get("implemented-requirements")


def _extract_embedded_catalog(document: dict) -> list[ControlRecord]:
    return [
        ControlRecord(
            id=definition.id,
            catalog_title=definition.title,
            catalog_description=definition.description,
            group_title=definition.group_title or "",
            status=ImplementationStatus.NOT_ASSESSED.value,
        )
        for definition in extract_catalog_controls(document["catalog"])
    ]


DOCUMENT_SHAPES: tuple[tuple[str, Callable[[dict], bool], Callable[[dict], list[ControlRecord]]], ...] = (
    (
        "embedded-catalog",
        lambda doc: isinstance(doc.get("catalog"), dict),
        _extract_embedded_catalog,
    ),
    (
        "oscal-ssp",
        lambda doc: isinstance(_implemented_requirements(doc), list),
        lambda doc: _extract_requirements(_implemented_requirements(doc)),
    ),
    (
        "simplified",
        lambda doc: isinstance(doc.get("controls"), list),
        lambda doc: _extract_requirements(doc["controls"]),
    ),
)


def detect_shape(document: Any) -> Optional[str]:
    """Name of the first document shape that matches, or None."""
    if not isinstance(document, dict):
        return None
    for name, detect, _ in DOCUMENT_SHAPES:
        if detect(document):
            return name
    return None


def extract_controls(document: Any) -> list[ControlRecord]:
    """Extract normalized control records from a document of any known shape.

    Never raises for malformed input: unreadable requirements are logged and
    skipped, and an unrecognized document yields an empty list.
    """
    shape = detect_shape(document)
    if shape is None:
        console.print("  [dim]INFO[/dim] No controls found: unrecognized document shape")
        return []

    extractor = next(extract for name, _, extract in DOCUMENT_SHAPES if name == shape)
    try:
        return extractor(document)
    except Exception as e:
        console.print(f"  [red]ERROR[/red] Control extraction failed ({shape}): {e}")
        return []
