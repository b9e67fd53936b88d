"""System information recovery from an SSP.

Every lookup is optional: a missing or malformed path leaves the field at its
SystemInfo default.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError
from rich.console import Console

from ..models.system import SystemInfo

console = Console(stderr=True)

ASSESSOR_REMARKS_MARKER = "Assessment organization"

# system-characteristics props[].name -> SystemInfo field
SYSTEM_PROP_FIELDS: dict[str, str] = {
    "organization": "organization",
    "system-owner": "system_owner",
    "assessor-details": "assessor_details",
    "csp-iaas": "csp_iaas",
    "csp-paas": "csp_paas",
    "csp-saas": "csp_saas",
}


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _role_of(responsible_party: dict) -> Any:
    return responsible_party.get("role-id") or responsible_party.get("role")


def _first_party_uuid(responsible_party: dict) -> Optional[str]:
    uuids = _list(responsible_party.get("party-uuids"))
    return uuids[0] if uuids else None


def _characteristics(sys_char: dict, info: dict) -> None:
    if sys_char.get("system-name"):
        info["system_name"] = sys_char["system-name"]

    system_ids = _list(sys_char.get("system-ids"))
    if system_ids and isinstance(system_ids[0], dict):
        info["system_id"] = system_ids[0].get("id") or system_ids[0].get("identifier") or ""

    if sys_char.get("description"):
        info["description"] = sys_char["description"]

    if sys_char.get("security-sensitivity-level"):
        info["security_level"] = sys_char["security-sensitivity-level"]

    impact = _mapping(sys_char.get("security-impact-level"))
    for objective in ("confidentiality", "integrity", "availability"):
        value = impact.get(f"security-objective-{objective}")
        if value:
            info[objective] = value

    status = sys_char.get("status")
    if isinstance(status, str) and status:
        info["status"] = status
    elif isinstance(status, dict) and status.get("state"):
        info["status"] = status["state"]

    if sys_char.get("system-type"):
        info["system_type"] = sys_char["system-type"]

    boundary = _mapping(sys_char.get("authorization-boundary"))
    if boundary.get("description"):
        info["authorization_boundary"] = boundary["description"]
    if boundary.get("date"):
        info["authorization_date"] = boundary["date"]

    for prop in _list(sys_char.get("props")):
        if not isinstance(prop, dict):
            continue
        field = SYSTEM_PROP_FIELDS.get(prop.get("name"))
        if field and prop.get("value"):
            info[field] = prop["value"]


def find_assessor(parties: list, responsible_parties: list) -> Optional[str]:
    """Name of the assessment organization among the prepared-by parties.

    Several organizations may share the prepared-by role; only a party of
    type organization whose remarks carry the assessor marker qualifies.
    """
    for responsible in responsible_parties:
        if not isinstance(responsible, dict) or _role_of(responsible) != "prepared-by":
            continue
        party_uuid = _first_party_uuid(responsible)
        if not party_uuid:
            continue
        for party in parties:
            if (
                isinstance(party, dict)
                and party.get("uuid") == party_uuid
                and party.get("type") == "organization"
                and ASSESSOR_REMARKS_MARKER in str(party.get("remarks") or "")
                and party.get("name")
            ):
                return party["name"]
    return None


def _metadata(metadata: dict, info: dict) -> None:
    parties = [p for p in _list(metadata.get("parties")) if isinstance(p, dict)]
    responsible_parties = _list(metadata.get("responsible-parties"))

    organization = next(
        (
            p for p in parties
            if p.get("type") == "organization" and ASSESSOR_REMARKS_MARKER not in str(p.get("remarks") or "")
        ),
        None,
    )
    if organization and organization.get("name"):
        info["organization"] = organization["name"]

    owner_role = next(
        (rp for rp in responsible_parties if isinstance(rp, dict) and _role_of(rp) == "system-owner"),
        None,
    )
    if owner_role:
        party_uuid = _first_party_uuid(owner_role)
        owner = next((p for p in parties if party_uuid and p.get("uuid") == party_uuid), None)
        if owner and owner.get("name"):
            info["system_owner"] = owner["name"]

    assessor = find_assessor(parties, responsible_parties)
    if assessor:
        info["assessor_details"] = assessor


def _coerce(info: dict) -> dict:
    return {key: value if isinstance(value, str) else str(value) for key, value in info.items()}


def extract_system_info(document: Any) -> SystemInfo:
    """Recover system-level descriptive fields from an SSP document.

    A simplified document's ``systemInfo`` object overrides extracted values.
    """
    if not isinstance(document, dict):
        return SystemInfo()

    info: dict[str, Any] = {}
    ssp = _mapping(document.get("system-security-plan"))
    _characteristics(_mapping(ssp.get("system-characteristics")), info)
    _metadata(_mapping(ssp.get("metadata")), info)

    extracted = SystemInfo(**_coerce(info))

    overrides = document.get("systemInfo")
    if isinstance(overrides, dict):
        merged = extracted.dump()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return SystemInfo.model_validate(_coerce(merged))
        except ValidationError as e:
            console.print(f"  [yellow]WARN[/yellow] Ignoring malformed systemInfo block: {e}")

    return extracted
