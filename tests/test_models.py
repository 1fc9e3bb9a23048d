"""Tests for record and snapshot models."""

import pytest
from pydantic import ValidationError

from deal_brain.models import (
    DataSourceQuality,
    Domain,
    DomainRecord,
    ExtractedField,
    FieldSource,
    MasterSnapshot,
    SnapshotOrigin,
)


class TestExtractedField:
    def test_missing_field(self):
        field = ExtractedField.missing()
        assert field.value is None
        assert field.confidence == 0.0
        assert field.source == FieldSource.NONE
        assert not field.found

    def test_value_without_source_rejected(self):
        with pytest.raises(ValidationError):
            ExtractedField(value=42.0, confidence=0.5)

    def test_source_without_value_rejected(self):
        with pytest.raises(ValidationError):
            ExtractedField(value=None, confidence=0.5, source=FieldSource.AI)

    def test_confidence_out_of_bounds_rejected(self):
        with pytest.raises(ValidationError):
            ExtractedField(value=1.0, confidence=1.2, source=FieldSource.PATTERN)

    def test_with_confidence_clamps(self):
        field = ExtractedField(value=1.0, confidence=0.9, source=FieldSource.PATTERN)
        assert field.with_confidence(1.4).confidence == 1.0
        assert field.with_confidence(-0.2).confidence == 0.0

    def test_with_confidence_leaves_missing_field_alone(self):
        assert ExtractedField.missing().with_confidence(0.8).confidence == 0.0

    def test_frozen(self):
        field = ExtractedField(value=1.0, confidence=0.9, source=FieldSource.PATTERN)
        with pytest.raises(ValidationError):
            field.confidence = 0.1


class TestDomainRecord:
    def test_empty_record_has_all_fields_missing(self):
        record = DomainRecord.empty(Domain.DEAL_ASSUMPTIONS, ["dealValue", "dealLTV"])
        assert set(record.fields) == {"dealValue", "dealLTV"}
        assert all(not f.found for f in record.fields.values())

    def test_with_field_returns_new_record(self):
        record = DomainRecord.empty(Domain.DEAL_ASSUMPTIONS, ["dealValue"])
        updated = record.with_field("dealValue", ExtractedField(value=5e7, confidence=0.7, source=FieldSource.AI))
        assert updated.value("dealValue") == 5e7
        assert record.value("dealValue") is None

    def test_unknown_field_reads_as_missing(self):
        record = DomainRecord(domain=Domain.DEBT_MODEL)
        assert record.get("interestRate") == ExtractedField.missing()


class TestMasterSnapshot:
    def test_camel_case_wire_schema(self):
        snapshot = MasterSnapshot.model_validate({
            "transactionDetails": {"dealValue": 100000000, "expectedExitDate": "2030-03-31"},
            "financingStructure": {"debtLTV": 70},
            "keyMetrics": {"currentEBITDA": 12000000, "EBITDAMargin": 18.5},
            "exitAssumptions": {"expectedIRR": 22},
        })
        assert snapshot.transaction_details.deal_value == 100_000_000
        assert snapshot.financing_structure.debt_ltv == 70
        assert snapshot.key_metrics.current_ebitda == 12_000_000
        assert snapshot.key_metrics.ebitda_margin == 18.5
        assert snapshot.exit_assumptions.expected_irr == 22

    def test_formatted_numbers_parsed(self):
        snapshot = MasterSnapshot.model_validate({
            "transactionDetails": {"dealValue": "$50,000,000"},
            "financingStructure": {"debtLTV": "65%", "interestRate": "n/a"},
        })
        assert snapshot.transaction_details.deal_value == 50_000_000
        assert snapshot.financing_structure.debt_ltv == 65
        assert snapshot.financing_structure.interest_rate is None

    def test_null_sections_become_empty(self):
        snapshot = MasterSnapshot.model_validate({"companyOverview": None, "dataQuality": None})
        assert snapshot.is_empty()
        assert snapshot.overall_confidence == 0.0

    def test_confidence_on_percent_scale_normalized(self):
        snapshot = MasterSnapshot.model_validate({"dataQuality": {"overallConfidence": 85}})
        assert snapshot.overall_confidence == pytest.approx(0.85)

    def test_quality_spelling_normalized(self):
        snapshot = MasterSnapshot.model_validate({"dataQuality": {"dataSourceQuality": "High"}})
        assert snapshot.data_quality.data_source_quality == DataSourceQuality.HIGH

        snapshot = MasterSnapshot.model_validate({"dataQuality": {"dataSourceQuality": "excellent"}})
        assert snapshot.data_quality.data_source_quality == DataSourceQuality.LOW

    def test_empty_snapshot(self):
        snapshot = MasterSnapshot.empty()
        assert snapshot.is_empty()
        assert snapshot.origin == SnapshotOrigin.NONE
        assert snapshot.transaction_details.deal_value is None
        assert snapshot.company_overview.company_name is None
