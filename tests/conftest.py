"""Shared fixtures for OSCAL Recon tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def sample_catalog() -> dict:
    """Return a small OSCAL catalog with a nested group and a sub-control."""
    return {
        "catalog": {
            "uuid": "11111111-1111-4111-8111-111111111111",
            "metadata": {
                "title": "Test Catalog",
                "version": "2025.10.8",
                "oscal-version": "1.1.2",
                "remarks": "  Catalog remarks  ",
            },
            "groups": [
                {
                    "id": "ac",
                    "title": "Access Control",
                    "controls": [
                        {
                            "id": "AC-1",
                            "class": "SP800-53",
                            "title": "Access Control Policy",
                            "params": [{"id": "ac-1_prm_1", "label": "organization-defined personnel"}],
                            "props": [{"name": "label", "value": "AC-1"}],
                            "parts": [
                                {"id": "ac-1_smt", "name": "statement", "prose": "Develop an access control policy."},
                                {"id": "ac-1_gdn", "name": "guidance", "prose": "Policy guidance."},
                            ],
                            "controls": [
                                {
                                    "id": "AC-1.1",
                                    "title": "Policy Review",
                                    "parts": [{"name": "statement", "prose": "Review the policy."}],
                                },
                            ],
                        },
                        {
                            "id": "AC-2",
                            "title": "Account Management",
                            "parts": [{"name": "statement", "prose": "Manage accounts."}],
                        },
                    ],
                    "groups": [
                        {
                            "id": "ac-sub",
                            "title": "Remote Access",
                            "controls": [
                                {
                                    "id": "AC-17",
                                    "title": "Remote Access",
                                    "parts": [{"name": "item", "prose": "Authorize remote access."}],
                                },
                            ],
                        },
                    ],
                },
            ],
            "controls": [
                {"id": "ROOT-1", "title": "Root Control", "parts": []},
            ],
        }
    }


@pytest.fixture
def sample_ssp() -> dict:
    """Return an OSCAL SSP with props-based assessment data."""
    return {
        "system-security-plan": {
            "uuid": "22222222-2222-4222-8222-222222222222",
            "metadata": {
                "title": "Example SSP",
                "version": "1.3",
                "oscal-version": "1.1.2",
                "links": [
                    {"href": "https://example.com/catalogs/v2025.10.8/catalog.json", "rel": "source-profile"},
                ],
                "roles": [
                    {"id": "system-owner", "title": "System Owner"},
                    {"id": "prepared-by", "title": "Prepared By"},
                ],
                "parties": [
                    {"uuid": "p-org", "type": "organization", "name": "Example Corp"},
                    {"uuid": "p-owner", "type": "person", "name": "Jane Owner"},
                    {"uuid": "p-writer", "type": "organization", "name": "Docs Team", "remarks": "Technical writers"},
                    {
                        "uuid": "p-assessor",
                        "type": "organization",
                        "name": "Audit Partners LLC",
                        "remarks": "Assessment organization responsible for conducting the security assessment",
                    },
                ],
                "responsible-parties": [
                    {"role-id": "system-owner", "party-uuids": ["p-owner"]},
                    {"role-id": "prepared-by", "party-uuids": ["p-writer"]},
                    {"role-id": "prepared-by", "party-uuids": ["p-assessor"]},
                ],
            },
            "import-profile": {"href": "#"},
            "system-characteristics": {
                "system-ids": [{"id": "SYS-001"}],
                "system-name": "Payments Platform",
                "description": "Processes card payments.",
                "security-sensitivity-level": "high",
                "security-impact-level": {
                    "security-objective-confidentiality": "high",
                    "security-objective-integrity": "moderate",
                    "security-objective-availability": "low",
                },
                "status": {"state": "operational"},
                "authorization-boundary": {"description": "All production workloads."},
                "props": [
                    {"name": "csp-iaas", "value": "AWS"},
                    {"name": "csp-saas", "value": "Okta"},
                ],
            },
            "control-implementation": {
                "description": "Control implementation description",
                "implemented-requirements": [
                    {
                        "uuid": "r-1",
                        "control-id": "AC-1",
                        "description": "We maintain an access control policy.",
                        "remarks": "Reviewed annually.",
                        "props": [
                            {"name": "catalog-control-title", "value": "Access Control Policy"},
                            {"name": "catalog-control-description", "value": "Develop an access control policy."},
                            {"name": "group-title", "value": "Access Control"},
                            {"name": "implementation-status", "value": "effective"},
                            {"name": "responsible-party", "value": "Security Team"},
                            {"name": "api-response-data", "value": "{\"ok\": true}"},
                            {"name": "api-data-history", "value": "[{\"ts\": \"2025-01-01\"}]"},
                            {"name": "risk-rating", "value": "low"},
                        ],
                    },
                    {
                        "uuid": "r-2",
                        "control-id": "AC-2",
                        "description": "Accounts are managed in the IdP.",
                        "responsible-roles": [{"role-id": "it-ops"}],
                        "props": [
                            {"name": "catalog-control-title", "value": "Account Management"},
                            {"name": "catalog-control-description", "value": "Manage accounts."},
                            {"name": "implementation-status", "value": "ineffective"},
                        ],
                    },
                ],
            },
        }
    }


@pytest.fixture
def simplified_document() -> dict:
    """Return a document in the flat ``controls`` shape."""
    return {
        "systemInfo": {"systemName": "Flat System", "cspPaaS": "Heroku"},
        "controls": [
            {
                "id": "AU-2",
                "title": "Event Logging",
                "description": "Log security events.",
                "status": "effective",
                "implementation": "Logs ship to the SIEM.",
                "controlOwner": "SecOps",
                "reviewDate": "2025-06-01",
                "apiDataHistory": [{"status": 200}],
            },
            {
                "id": "AU-3",
                "title": "Content of Audit Records",
                "statements": [{"description": "Record what happened."}, {"description": "Record when."}],
            },
        ],
    }


@pytest.fixture
def write_json(tmp_path: Path):
    """Return a helper that writes a document to tmp_path and returns the path."""
    def _write(name: str, document: dict) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path
    return _write
