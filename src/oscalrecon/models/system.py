"""System information model."""

from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class SystemInfo(CamelModel):
    """System-level descriptive fields recovered from an SSP."""

    system_name: str = ""
    system_id: str = ""
    description: str = ""
    authorization_boundary: str = ""
    security_level: str = "moderate"
    confidentiality: str = "moderate"
    integrity: str = "moderate"
    availability: str = "moderate"
    status: str = "under-development"
    system_type: str = ""
    authorization_date: str = ""
    organization: str = ""
    system_owner: str = ""
    assessor_details: str = ""
    csp_iaas: str = Field(default="", alias="cspIaaS")
    csp_paas: str = Field(default="", alias="cspPaaS")
    csp_saas: str = Field(default="", alias="cspSaaS")
