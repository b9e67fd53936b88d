"""Tests for core/system_info.py."""

from __future__ import annotations

from oscalrecon.core.system_info import extract_system_info, find_assessor
from oscalrecon.models.system import SystemInfo


class TestExtractSystemInfo:
    def test_characteristics(self, sample_ssp):
        info = extract_system_info(sample_ssp)
        assert info.system_name == "Payments Platform"
        assert info.system_id == "SYS-001"
        assert info.description == "Processes card payments."
        assert info.security_level == "high"
        assert info.status == "operational"
        assert info.authorization_boundary == "All production workloads."

    def test_impact_levels(self, sample_ssp):
        info = extract_system_info(sample_ssp)
        assert (info.confidentiality, info.integrity, info.availability) == ("high", "moderate", "low")

    def test_csp_props(self, sample_ssp):
        info = extract_system_info(sample_ssp)
        assert info.csp_iaas == "AWS"
        assert info.csp_saas == "Okta"
        assert info.csp_paas == ""

    def test_parties(self, sample_ssp):
        info = extract_system_info(sample_ssp)
        assert info.organization == "Example Corp"
        assert info.system_owner == "Jane Owner"

    def test_assessor_requires_marker(self, sample_ssp):
        info = extract_system_info(sample_ssp)
        assert info.assessor_details == "Audit Partners LLC"

    def test_status_as_string(self):
        document = {"system-security-plan": {"system-characteristics": {"status": "disposition"}}}
        assert extract_system_info(document).status == "disposition"

    def test_defaults(self):
        info = extract_system_info({})
        assert info == SystemInfo()
        assert info.security_level == "moderate"
        assert info.confidentiality == "moderate"
        assert info.status == "under-development"
        assert info.system_name == ""

    def test_malformed_paths_yield_defaults(self):
        document = {
            "system-security-plan": {
                "system-characteristics": "bad",
                "metadata": {"parties": "bad", "responsible-parties": [None, "x"]},
            }
        }
        assert extract_system_info(document) == SystemInfo()
        assert extract_system_info(None) == SystemInfo()

    def test_simplified_overrides(self, sample_ssp, simplified_document):
        document = {**sample_ssp, "systemInfo": simplified_document["systemInfo"]}
        info = extract_system_info(document)
        assert info.system_name == "Flat System"
        assert info.csp_paas == "Heroku"
        assert info.csp_iaas == "AWS"

    def test_dump_uses_document_keys(self, sample_ssp):
        dumped = extract_system_info(sample_ssp).dump()
        assert dumped["systemName"] == "Payments Platform"
        assert dumped["cspIaaS"] == "AWS"


class TestFindAssessor:
    def test_skips_prepared_by_without_marker(self):
        parties = [{"uuid": "a", "type": "organization", "name": "Writers"}]
        responsible = [{"role-id": "prepared-by", "party-uuids": ["a"]}]
        assert find_assessor(parties, responsible) is None

    def test_requires_organization_type(self):
        parties = [{"uuid": "a", "type": "person", "name": "Bob", "remarks": "Assessment organization lead"}]
        responsible = [{"role-id": "prepared-by", "party-uuids": ["a"]}]
        assert find_assessor(parties, responsible) is None

    def test_finds_marked_organization(self):
        parties = [{"uuid": "a", "type": "organization", "name": "Audit Co", "remarks": "Assessment organization"}]
        responsible = [{"role-id": "prepared-by", "party-uuids": ["a"]}]
        assert find_assessor(parties, responsible) == "Audit Co"
