"""Two-way and n-way comparison result models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .base import CamelModel
from .control import ControlRecord
from .system import SystemInfo


class ComparisonStats(CamelModel):
    total: int = 0
    new: int = 0
    changed: int = 0
    unchanged: int = 0
    existing_total: int = 0


class ComparisonResult(CamelModel):
    """Catalog vs. existing SSP reconciliation result."""

    controls: list[ControlRecord] = []
    stats: ComparisonStats = ComparisonStats()
    system_info: SystemInfo = SystemInfo()
    comparison_date: str


class NWayClassification(str, Enum):
    IDENTICAL = "identical"
    DIFFERENT = "different"
    MISSING_IN_SOME = "missingInSome"


class CatalogInfo(CamelModel):
    """Catalog provenance recovered from one report's metadata."""

    catalog_version: str = "N/A"
    oscal_metadata_version: str = "N/A"
    oscal_version: str = "N/A"
    catalog_url: str = "N/A"
    display: str = "Catalog: N/A | Metadata: N/A | OSCAL: N/A"


class CatalogDifference(CatalogInfo):
    label: str


class NWayControl(CamelModel):
    """One control across all compared reports."""

    id: str
    group: str = ""
    title: str = ""
    description: str = ""
    baseline: Optional[ControlRecord] = None
    csp1: Optional[ControlRecord] = None
    csp2: Optional[ControlRecord] = None
    has_differences: bool = False
    classification: NWayClassification = NWayClassification.IDENTICAL


class NWayComparisonResult(CamelModel):
    controls: list[NWayControl] = []
    catalogs: dict[str, CatalogInfo] = {}
    catalog_differences: Optional[list[CatalogDifference]] = None
    total_controls: int = 0
    identical: int = 0
    different: int = 0
    missing_in_some: int = 0
    report_names: dict[str, str] = {}
