"""N-way comparison of a baseline report against up to two CSP reports."""

from __future__ import annotations

import re
from typing import Any, Optional

from rich.console import Console

from ..models.comparison import (
    CatalogDifference,
    CatalogInfo,
    NWayClassification,
    NWayComparisonResult,
    NWayControl,
)
from ..models.control import ControlRecord
from .extractor import extract_controls

console = Console(stderr=True)

REPORT_LABELS = ("baseline", "csp1", "csp2")

CATALOG_LINK_RELS = ("source-profile", "profile", "import")
_VERSIONED_HREF = re.compile(r"v\d{4}\.\d{1,2}\.\d{1,2}")

# Tried in order, strictest first
CATALOG_VERSION_PATTERNS = (
    re.compile(r"/v(\d{4}\.\d{1,2}\.\d{1,2})/"),
    re.compile(r"v(\d{4}\.\d{1,2}\.\d{1,2})"),
    re.compile(r"(\d{4}\.\d{1,2}\.\d{1,2})"),
)

NOT_AVAILABLE = "N/A"


def _ssp_metadata(document: dict, label: str) -> dict:
    ssp = document.get("system-security-plan")
    if not isinstance(ssp, dict):
        return {}
    metadata = ssp.get("metadata")
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        console.print(f"  [yellow]WARN[/yellow] {label}: metadata is not an object, using defaults")
        return {}
    return metadata


def resolve_catalog_url(ssp: dict) -> Optional[str]:
    """Find the catalog a report was generated from.

    Priority: a link with a profile/import relation, then any link whose href
    carries a version, then the legacy import-profile reference.
    """
    metadata = ssp.get("metadata")
    links = metadata.get("links") if isinstance(metadata, dict) else None
    links = [link for link in links if isinstance(link, dict)] if isinstance(links, list) else []

    related = next((link for link in links if link.get("rel") in CATALOG_LINK_RELS), None)
    if related and related.get("href"):
        return str(related["href"])

    for link in links:
        href = link.get("href")
        if isinstance(href, str) and _VERSIONED_HREF.search(href):
            return href

    import_profile = ssp.get("import-profile")
    if isinstance(import_profile, dict):
        href = import_profile.get("href")
        if not href and isinstance(import_profile.get("#"), dict):
            href = import_profile["#"].get("href")
        if href:
            return str(href)

    return None


def parse_catalog_version(url: Optional[str]) -> Optional[str]:
    """Version token from a catalog URL, using the first pattern that matches."""
    if not url or url == "#":
        return None
    for pattern in CATALOG_VERSION_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def catalog_info(document: dict, label: str) -> CatalogInfo:
    """Catalog provenance for one report. Missing values become ``N/A``."""
    ssp = document.get("system-security-plan")
    if not isinstance(ssp, dict):
        return CatalogInfo()

    metadata = _ssp_metadata(document, label)
    url = resolve_catalog_url({**ssp, "metadata": metadata})
    version = parse_catalog_version(url)

    metadata_version = metadata.get("version") or metadata.get("Version")
    oscal_version = (
        metadata.get("oscal-version")
        or metadata.get("oscalVersion")
        or metadata.get("OSCAL-Version")
    )

    catalog_version = version or NOT_AVAILABLE
    metadata_version = str(metadata_version) if metadata_version else NOT_AVAILABLE
    oscal_version = str(oscal_version) if oscal_version else NOT_AVAILABLE

    return CatalogInfo(
        catalog_version=catalog_version,
        oscal_metadata_version=metadata_version,
        oscal_version=oscal_version,
        catalog_url=url if url and url != "#" else NOT_AVAILABLE,
        display=f"Catalog: {catalog_version} | Metadata: {metadata_version} | OSCAL: {oscal_version}",
    )


def _present_reports(reports: dict[str, Any]) -> dict[str, Any]:
    present: dict[str, Any] = {}
    for label, document in reports.items():
        if label not in REPORT_LABELS:
            console.print(f"  [yellow]WARN[/yellow] Ignoring report with unknown label {label!r}")
            continue
        if document is not None:
            present[label] = document
    return present


def _unify(control_id: str, snapshots: dict[str, ControlRecord], source_count: int) -> NWayControl:
    group = title = description = ""
    for label in REPORT_LABELS:
        record = snapshots.get(label)
        if record is None:
            continue
        group = group or record.group_title
        title = title or record.catalog_title or record.title or control_id
        description = description or record.catalog_description

    statuses = {record.status for record in snapshots.values() if record.status}
    missing = len(snapshots) < source_count
    has_differences = missing or len(statuses) > 1

    if missing:
        classification = NWayClassification.MISSING_IN_SOME
    elif has_differences:
        classification = NWayClassification.DIFFERENT
    else:
        classification = NWayClassification.IDENTICAL

    return NWayControl(
        id=control_id,
        group=group,
        title=title,
        description=description,
        has_differences=has_differences,
        classification=classification,
        **{label: record.model_copy(deep=True) for label, record in snapshots.items()},
    )


def compare_multiple_reports(
    reports: dict[str, Any],
    report_names: Optional[dict[str, str]] = None,
) -> NWayComparisonResult:
    """Build a unified control matrix over the baseline and CSP reports.

    ``reports`` maps a label in REPORT_LABELS to a document or None. Every
    present document takes part, whatever its shape; a document that yields
    no controls counts as present and missing every control.
    """
    report_names = dict(report_names or {})
    present = _present_reports(reports)

    extracted: dict[str, dict[str, ControlRecord]] = {}
    catalogs: dict[str, CatalogInfo] = {}
    order: list[str] = []
    seen: set[str] = set()

    for label in REPORT_LABELS:
        if label not in present:
            continue
        document = present[label]
        if isinstance(document, dict):
            catalogs[label] = catalog_info(document, label)
        else:
            console.print(f"  [yellow]WARN[/yellow] {label}: report is not an object, using defaults")
            catalogs[label] = CatalogInfo()

        records = extract_controls(document)
        extracted[label] = {}
        for record in records:
            extracted[label].setdefault(record.id, record)
            if record.id not in seen:
                seen.add(record.id)
                order.append(record.id)
        console.print(f"  [dim]{label}: {len(records)} controls[/dim]")

    controls = [
        _unify(
            control_id,
            {label: by_id[control_id] for label, by_id in extracted.items() if control_id in by_id},
            len(extracted),
        )
        for control_id in order
    ]

    differences = None
    if len(catalogs) > 1:
        differences = [
            CatalogDifference(label=report_names.get(label) or label, **info.model_dump())
            for label, info in catalogs.items()
        ]

    return NWayComparisonResult(
        controls=controls,
        catalogs=catalogs,
        catalog_differences=differences,
        total_controls=len(order),
        identical=sum(1 for c in controls if c.classification == NWayClassification.IDENTICAL),
        different=sum(1 for c in controls if c.classification == NWayClassification.DIFFERENT),
        missing_in_some=sum(1 for c in controls if c.classification == NWayClassification.MISSING_IN_SOME),
        report_names=report_names,
    )
