"""Control definition and control record models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import Field

from .base import CamelModel


class ImplementationStatus(str, Enum):
    NOT_ASSESSED = "not-assessed"
    EFFECTIVE = "effective"
    ALTERNATE_CONTROL = "alternate-control"
    INEFFECTIVE = "ineffective"
    NO_VISIBILITY = "no-visibility"
    NOT_IMPLEMENTED = "not-implemented"
    NOT_APPLICABLE = "not-applicable"


class ChangeStatus(str, Enum):
    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class ControlDefinition(CamelModel):
    """A control as published by a catalog."""

    id: str = Field(min_length=1)
    title: str = ""
    description: str = ""
    control_class: Optional[str] = Field(default=None, alias="class")
    params: list[Any] = []
    props: list[Any] = []
    parts: list[Any] = []
    group_id: Optional[str] = None
    group_title: Optional[str] = None
    parent_id: Optional[str] = None


# User-entered fields that reconciliation must never lose.
ASSESSMENT_FIELDS: tuple[str, ...] = (
    "status",
    "implementation",
    "remarks",
    "responsible_party",
    "control_owner",
    "consumer_guidance",
    "implementation_date",
    "review_date",
    "next_review_date",
    "control_type",
    "evidence",
    "testing_procedure",
    "testing_frequency",
    "last_test_date",
    "api_url",
    "api_credential_id",
    "api_response_data",
    "api_data_history",
    "risk_rating",
    "frameworks",
    "compensating_controls",
    "exceptions",
)


class ControlRecord(CamelModel):
    """A control's catalog text plus a system's recorded assessment data."""

    id: str = Field(min_length=1)
    catalog_title: str = ""
    catalog_description: str = ""
    group_title: str = ""

    status: str = ImplementationStatus.NOT_ASSESSED.value
    implementation: str = ""
    remarks: str = ""
    responsible_party: str = ""
    control_owner: str = ""
    consumer_guidance: str = ""
    implementation_date: str = ""
    review_date: str = ""
    next_review_date: str = ""
    control_type: str = ""
    evidence: str = ""
    testing_procedure: str = ""
    testing_frequency: str = ""
    last_test_date: str = ""
    api_url: str = ""
    api_credential_id: str = ""
    api_response_data: Any = None
    api_data_history: list[Any] = []
    risk_rating: str = ""
    frameworks: str = ""
    compensating_controls: str = ""
    exceptions: str = ""

    # Carried from the catalog definition after reconciliation
    title: Optional[str] = None
    description: Optional[str] = None
    control_class: Optional[str] = Field(default=None, alias="class")
    params: Optional[list[Any]] = None
    props: Optional[list[Any]] = None
    parts: Optional[list[Any]] = None
    statements: Optional[list[Any]] = None
    group_id: Optional[str] = None
    parent_id: Optional[str] = None

    # Change tracking
    change_status: Optional[ChangeStatus] = None
    change_reason: Optional[str] = None
    change_details: Optional[list[str]] = None
    old_title: Optional[str] = None
    old_description: Optional[str] = None

    def assessment(self) -> dict[str, Any]:
        """Return the user-entered assessment fields keyed by field name."""
        return {name: getattr(self, name) for name in ASSESSMENT_FIELDS}
