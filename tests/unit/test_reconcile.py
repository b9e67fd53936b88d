"""Tests for core/reconcile.py."""

from __future__ import annotations

from datetime import datetime

from oscalrecon.core.catalog import extract_catalog_controls
from oscalrecon.core.integrity import add_integrity_hash
from oscalrecon.core.reconcile import compare_with_existing_ssp, extract_ssp
from oscalrecon.core.ssp_builder import generate_ssp
from oscalrecon.models.control import ChangeStatus


class TestCompareWithExistingSsp:
    def test_new_control_scenario(self):
        catalog = [{"id": "AC-1", "title": "Access Control Policy"}]
        existing = {"system-security-plan": {"control-implementation": {"implemented-requirements": []}}}

        result = compare_with_existing_ssp(catalog, existing)

        assert result.stats.total == 1
        assert result.stats.new == 1
        assert result.stats.changed == 0
        assert result.stats.unchanged == 0
        assert result.controls[0].change_status == ChangeStatus.NEW

    def test_unchanged_scenario_keeps_status(self):
        catalog = [{"id": "AC-1", "title": "Access Control Policy", "description": "Policy text"}]
        existing = {
            "controls": [
                {"id": "AC-1", "title": "Access Control Policy", "description": "Policy text", "status": "effective"},
            ]
        }

        result = compare_with_existing_ssp(catalog, existing)

        record = result.controls[0]
        assert record.change_status == ChangeStatus.UNCHANGED
        assert record.status == "effective"

    def test_catalog_against_ssp(self, sample_catalog, sample_ssp):
        result = compare_with_existing_ssp(extract_catalog_controls(sample_catalog), sample_ssp)
        records = {r.id: r for r in result.controls}

        assert [r.id for r in result.controls] == ["AC-1", "AC-1.1", "AC-2", "AC-17", "ROOT-1"]
        # AC-1 catalog description gained guidance prose since the SSP was written
        assert records["AC-1"].change_status == ChangeStatus.CHANGED
        assert records["AC-1"].change_details == ["description"]
        assert records["AC-1"].status == "effective"
        assert records["AC-1"].api_response_data == {"ok": True}
        assert records["AC-2"].change_status == ChangeStatus.UNCHANGED
        assert records["AC-2"].status == "ineffective"
        assert records["AC-17"].change_status == ChangeStatus.NEW

        assert result.stats.total == 5
        assert result.stats.new == 3
        assert result.stats.changed == 1
        assert result.stats.unchanged == 1
        assert result.stats.existing_total == 2

    def test_system_info_and_timestamp(self, sample_catalog, sample_ssp):
        result = compare_with_existing_ssp(extract_catalog_controls(sample_catalog), sample_ssp)
        assert result.system_info.system_name == "Payments Platform"
        datetime.fromisoformat(result.comparison_date)

    def test_invalid_catalog_entries_skipped(self):
        result = compare_with_existing_ssp([{"title": "no id"}, {"id": "AC-1"}], {})
        assert [r.id for r in result.controls] == ["AC-1"]

    def test_malformed_existing_document(self):
        result = compare_with_existing_ssp([{"id": "AC-1"}], "not a document")
        assert result.stats.new == 1
        assert result.stats.existing_total == 0

    def test_dump_uses_camel_case(self):
        result = compare_with_existing_ssp([{"id": "AC-1"}], {})
        dumped = result.dump(exclude_none=True)
        assert dumped["stats"]["existingTotal"] == 0
        assert dumped["controls"][0]["changeStatus"] == "new"
        assert "comparisonDate" in dumped


class TestExtractSsp:
    def test_records_and_system_info(self, sample_ssp):
        result = extract_ssp(sample_ssp)
        assert result["totalControls"] == 2
        assert result["controls"][0]["id"] == "AC-1"
        assert result["controls"][0]["status"] == "effective"
        assert "changeStatus" not in result["controls"][0]
        assert result["systemInfo"]["systemName"] == "Payments Platform"

    def test_integrity_reported(self, sample_ssp):
        assert extract_ssp(sample_ssp)["integrityCheck"]["hasHash"] is False
        stamped = add_integrity_hash(sample_ssp)
        assert extract_ssp(stamped)["integrityCheck"]["valid"] is True

    def test_non_document(self):
        result = extract_ssp(None)
        assert result["totalControls"] == 0
        assert result["integrityCheck"] is None

    def test_extracted_output_reconciles_unchanged(self, sample_catalog):
        definitions = extract_catalog_controls(sample_catalog)
        records = compare_with_existing_ssp(definitions, {}).controls
        plan = generate_ssp(records, None, integrity=False)

        result = compare_with_existing_ssp(definitions, extract_ssp(plan))

        assert {r.change_status for r in result.controls} == {ChangeStatus.UNCHANGED}
        assert result.stats.unchanged == len(definitions)
