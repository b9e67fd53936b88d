"""File integrity hashing for exported OSCAL documents.

A SHA-256 digest of the key-sorted, compact JSON form of the document is
stored in ``metadata.props``. The integrity props themselves are excluded
from the digest.
"""

from __future__ import annotations

import copy
import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console

from ..models.integrity import IntegrityCheck

console = Console(stderr=True)

INTEGRITY_PROPERTY_NAME = "file-integrity-hash"
INTEGRITY_TIMESTAMP_NAME = "file-integrity-timestamp"
INTEGRITY_NAMESPACE = "https://oscal-report-generator.adobe.com/ns/integrity"
INTEGRITY_ALGORITHM = "sha256"


def _metadata(document: dict) -> Optional[dict]:
    root = document.get("system-security-plan", document)
    if not isinstance(root, dict):
        return None
    metadata = root.get("metadata")
    return metadata if isinstance(metadata, dict) else None


def _is_integrity_prop(prop: Any) -> bool:
    return (
        isinstance(prop, dict)
        and prop.get("ns") == INTEGRITY_NAMESPACE
        and prop.get("name") in (INTEGRITY_PROPERTY_NAME, INTEGRITY_TIMESTAMP_NAME)
    )


def _without_integrity(document: dict) -> dict:
    stripped = copy.deepcopy(document)
    metadata = _metadata(stripped)
    if metadata is not None and isinstance(metadata.get("props"), list):
        props = [p for p in metadata["props"] if not _is_integrity_prop(p)]
        if props:
            metadata["props"] = props
        else:
            del metadata["props"]
    return stripped


def calculate_integrity_hash(document: dict) -> str:
    """Hex SHA-256 of the document, ignoring any stored integrity props."""
    normalized = json.dumps(
        _without_integrity(document),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.new(INTEGRITY_ALGORITHM, normalized.encode("utf-8")).hexdigest()


def _find_prop_value(document: dict, name: str) -> Optional[str]:
    metadata = _metadata(document)
    if metadata is None or not isinstance(metadata.get("props"), list):
        return None
    for prop in metadata["props"]:
        if _is_integrity_prop(prop) and prop.get("name") == name:
            return prop.get("value")
    return None


def add_integrity_hash(document: dict) -> dict:
    """Return a copy of the document carrying a fresh integrity hash."""
    stamped = _without_integrity(document)
    root = stamped.get("system-security-plan", stamped)
    if not isinstance(root, dict):
        raise ValueError("system-security-plan is not an object")
    if not isinstance(root.get("metadata"), dict):
        root["metadata"] = {}

    digest = calculate_integrity_hash(stamped)
    props = root["metadata"].setdefault("props", [])

    props.append({
        "name": INTEGRITY_PROPERTY_NAME,
        "ns": INTEGRITY_NAMESPACE,
        "value": digest,
        "class": "integrity",
        "remarks": (
            "FIPS 140-2 compliant SHA-256 hash for file integrity verification. "
            f"Algorithm: {INTEGRITY_ALGORITHM.upper()}."
        ),
    })
    props.append({
        "name": INTEGRITY_TIMESTAMP_NAME,
        "ns": INTEGRITY_NAMESPACE,
        "value": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "class": "integrity",
        "remarks": "Timestamp when integrity hash was calculated.",
    })
    return stamped


def verify_integrity_hash(document: dict) -> IntegrityCheck:
    """Check a document's stored integrity hash against its content."""
    stored = _find_prop_value(document, INTEGRITY_PROPERTY_NAME)
    if not stored:
        return IntegrityCheck(
            reason="No integrity hash found. File may not have been exported by this tool.",
        )

    calculated = calculate_integrity_hash(document)
    valid = stored == calculated
    if not valid:
        console.print("  [yellow]WARN[/yellow] File integrity check failed: hashes do not match")

    return IntegrityCheck(
        has_hash=True,
        valid=valid,
        verified=True,
        stored_hash=stored,
        calculated_hash=calculated,
        algorithm=INTEGRITY_ALGORITHM.upper(),
        timestamp=_find_prop_value(document, INTEGRITY_TIMESTAMP_NAME),
        reason=(
            "File integrity verified. File has not been modified since export."
            if valid
            else "File integrity check failed. File has been modified since export."
        ),
    )


def get_integrity_info(document: dict) -> dict:
    """Stored integrity details without verifying them."""
    digest = _find_prop_value(document, INTEGRITY_PROPERTY_NAME)
    return {
        "hasIntegrityHash": bool(digest),
        "hash": digest,
        "timestamp": _find_prop_value(document, INTEGRITY_TIMESTAMP_NAME),
        "algorithm": INTEGRITY_ALGORITHM.upper(),
    }
