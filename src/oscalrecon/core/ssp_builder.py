"""OSCAL SSP generation from reconciled control records.

The document is assembled in full, defaults included, and only then sanitized
as a whole. The integrity hash is computed last, over the sanitized form.
"""

from __future__ import annotations

import copy
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError
from rich.console import Console

from ..models.control import ControlRecord
from ..models.system import SystemInfo
from ..utils.sanitize import is_placeholder, sanitize_props, sanitize_string, sanitize_tree
from .extractor import field_prop_names
from .integrity import add_integrity_hash
from .system_info import ASSESSOR_REMARKS_MARKER

console = Console(stderr=True)

DEFAULT_OSCAL_VERSION = "2.1.0"

# OSCAL schema fields kept in strict mode
METADATA_FIELDS = (
    "title",
    "published",
    "last-modified",
    "version",
    "oscal-version",
    "revisions",
    "document-ids",
    "props",
    "links",
    "roles",
    "locations",
    "parties",
    "responsible-parties",
    "remarks",
)

REQUIREMENT_FIELDS = (
    "uuid",
    "control-id",
    "description",
    "props",
    "links",
    "set-parameters",
    "responsible-roles",
    "statements",
    "by-components",
    "remarks",
)

# Written as dedicated props (or not at all) rather than from field_prop_names()
_BUILT_IN_PROP_FIELDS = {"catalog_title", "catalog_description", "group_title", "status"}


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _text(value: Any, default: str) -> str:
    return sanitize_string(value, use_default=False) or default


def _records(controls: Iterable[Union[ControlRecord, dict]]) -> list[ControlRecord]:
    records: list[ControlRecord] = []
    for index, control in enumerate(controls):
        if isinstance(control, ControlRecord):
            records.append(control)
            continue
        try:
            records.append(ControlRecord.model_validate(control))
        except ValidationError as e:
            console.print(f"  [yellow]WARN[/yellow] Control #{index} skipped: {e.error_count()} error(s)")
    return records


def _prepared_by_role(roles: list) -> list:
    if any(isinstance(role, dict) and role.get("id") == "prepared-by" for role in roles):
        return roles
    return roles + [{
        "id": "prepared-by",
        "title": "Prepared By",
        "description": "The organization that prepared this system security plan",
    }]


def build_metadata(
    catalog_metadata: Any,
    info: SystemInfo,
    title: Optional[str] = None,
    version: Optional[str] = None,
    strict: bool = False,
    oscal_version: str = DEFAULT_OSCAL_VERSION,
) -> dict:
    """SSP metadata: the catalog's metadata plus SSP identity and the assessor."""
    if catalog_metadata is None:
        catalog_metadata = {}
    elif not isinstance(catalog_metadata, dict):
        console.print("  [yellow]WARN[/yellow] Catalog metadata is not an object, using an empty one")
        catalog_metadata = {}

    raw = copy.deepcopy(catalog_metadata)
    if strict:
        raw = {key: raw[key] for key in METADATA_FIELDS if key in raw}

    metadata = sanitize_tree(raw)
    metadata["title"] = _text(title or catalog_metadata.get("title"), "System Security Plan")
    metadata["last-modified"] = datetime.now(timezone.utc).isoformat()
    metadata["version"] = _text(version or catalog_metadata.get("version"), "1.0")
    metadata["oscal-version"] = oscal_version

    roles = metadata.get("roles")
    metadata["roles"] = _prepared_by_role(roles if isinstance(roles, list) else [])

    assessor = sanitize_string(info.assessor_details, use_default=False)
    if assessor:
        party_uuid = _new_uuid()
        metadata.setdefault("parties", []).append({
            "uuid": party_uuid,
            "type": "organization",
            "name": assessor,
            "remarks": f"{ASSESSOR_REMARKS_MARKER} responsible for conducting the security assessment",
        })
        metadata.setdefault("responsible-parties", []).append({
            "role-id": "prepared-by",
            "party-uuids": [party_uuid],
        })

    return metadata


def _csp_labels(info: SystemInfo) -> list[tuple[str, str, str]]:
    labels = []
    for prop_name, short, value in (
        ("csp-iaas", "IaaS", info.csp_iaas),
        ("csp-paas", "PaaS", info.csp_paas),
        ("csp-saas", "SaaS", info.csp_saas),
    ):
        text = sanitize_string(value, use_default=False)
        if text:
            labels.append((prop_name, short, text))
    return labels


def build_system_characteristics(info: SystemInfo, strict: bool = False) -> dict:
    confidentiality = _text(info.confidentiality, "moderate")
    integrity = _text(info.integrity, "moderate")
    availability = _text(info.availability, "moderate")

    characteristics: dict[str, Any] = {
        "system-ids": [{"id": _text(info.system_id, _new_uuid())}],
        "system-name": _text(info.system_name, "System Name"),
        "description": _text(info.description, "System Description"),
        "security-sensitivity-level": _text(info.security_level, "moderate"),
    }

    if not strict:
        props = []
        for prop_name, value in (("organization", info.organization), ("system-owner", info.system_owner)):
            text = sanitize_string(value, use_default=False)
            if text:
                props.append({"name": prop_name, "value": text})
        props.extend({"name": name, "value": text} for name, _, text in _csp_labels(info))
        if props:
            characteristics["props"] = props

    characteristics["system-information"] = {
        "information-types": [{
            "uuid": _new_uuid(),
            "title": "System Information",
            "description": "Information types stored, processed, or transmitted by this system",
            "categorizations": [],
            "confidentiality-impact": {"base": confidentiality},
            "integrity-impact": {"base": integrity},
            "availability-impact": {"base": availability},
        }],
    }
    characteristics["security-impact-level"] = {
        "security-objective-confidentiality": confidentiality,
        "security-objective-integrity": integrity,
        "security-objective-availability": availability,
    }
    characteristics["status"] = {"state": _text(info.status, "under-development")}

    characteristics["authorization-boundary"] = {
        "description": _text(info.authorization_boundary, "System authorization boundary description"),
    }
    return characteristics


def build_system_implementation(info: SystemInfo) -> dict:
    description = _text(info.description, "System implementation description")
    labels = _csp_labels(info)
    if labels:
        providers = ", ".join(f"{short}: {text}" for _, short, text in labels)
        description += f"\n\nCloud Service Providers: {providers}"
    return {"description": description, "users": [], "components": []}


def _prop_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        value = json.dumps(value, ensure_ascii=False)
    return sanitize_string(value, use_default=True)


def build_requirement(record: ControlRecord, strict: bool = False) -> dict:
    """One implemented-requirement carrying the record's assessment as props."""
    requirement: dict[str, Any] = {
        "uuid": _new_uuid(),
        "control-id": sanitize_string(record.id),
        "description": sanitize_string(record.implementation),
    }

    props = [{"name": "implementation-status", "value": sanitize_string(record.status)}]
    if not strict:
        for name, value in (
            ("catalog-control-title", record.title or record.catalog_title),
            ("catalog-control-description", record.description or record.catalog_description),
            ("group-title", record.group_title),
        ):
            text = sanitize_string(value)
            if not is_placeholder(text):
                props.append({"name": name, "value": text})

        for field, prop_name in field_prop_names().items():
            if field in _BUILT_IN_PROP_FIELDS:
                continue
            value = getattr(record, field)
            if value is not None:
                props.append({"name": prop_name, "value": _prop_value(value)})

    requirement["props"] = sanitize_props((record.props or []) + props)

    for key, value in (("params", record.params), ("parts", record.parts), ("statements", record.statements)):
        if value:
            cleaned = sanitize_tree(value)
            if cleaned:
                requirement[key] = cleaned

    remarks = sanitize_string(record.remarks, use_default=False)
    if remarks:
        requirement["remarks"] = remarks

    control_class = sanitize_string(record.control_class, use_default=False)
    if control_class:
        requirement["class"] = control_class

    if strict:
        requirement = {key: requirement[key] for key in REQUIREMENT_FIELDS if key in requirement}
    return requirement


def generate_ssp(
    controls: Iterable[Union[ControlRecord, dict]],
    system_info: Union[SystemInfo, dict, None],
    metadata: Any = None,
    title: Optional[str] = None,
    version: Optional[str] = None,
    catalog_url: Optional[str] = None,
    strict: bool = False,
    oscal_version: str = DEFAULT_OSCAL_VERSION,
    integrity: bool = True,
    preserve_keys: Optional[Iterable[str]] = None,
) -> dict:
    """Assemble a sanitized OSCAL system-security-plan document.

    ``strict`` drops custom props and keeps only schema fields in metadata and
    implemented requirements. Raises ValueError if sanitization leaves no
    system-security-plan behind.
    """
    if isinstance(system_info, SystemInfo):
        info = system_info
    else:
        try:
            info = SystemInfo.model_validate(system_info or {})
        except ValidationError as e:
            console.print(f"  [yellow]WARN[/yellow] Invalid system info, using defaults: {e.error_count()} error(s)")
            info = SystemInfo()

    records = _records(controls)

    document = {
        "system-security-plan": {
            "uuid": _new_uuid(),
            "metadata": build_metadata(metadata, info, title, version, strict, oscal_version),
            "import-profile": {"href": _text(catalog_url, "#")},
            "system-characteristics": build_system_characteristics(info, strict),
            "system-implementation": build_system_implementation(info),
            "control-implementation": {
                "description": "Control implementation description",
                "implemented-requirements": [build_requirement(r, strict) for r in records],
            },
        }
    }

    sanitized = sanitize_tree(document, preserve_keys=preserve_keys)
    if not sanitized or "system-security-plan" not in sanitized:
        raise ValueError("SSP sanitization resulted in an empty document")

    console.print(f"  [green]OK[/green] Generated SSP with {len(records)} implemented requirements")

    if integrity:
        return add_integrity_hash(sanitized)
    return sanitized
