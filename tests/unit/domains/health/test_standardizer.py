"""Tests for biomarker name/unit standardisation."""

from __future__ import annotations

import pytest

from labinsight.domains.health.domain_logic.standardizer import (
    NOT_SPECIFIED,
    StandardizedBiomarker,
    normalize_biomarker_name,
    normalize_unit,
    standardize_biomarkers,
    to_lab_data,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Hemoglobin A1c", "HbA1c"),
        ("HBA1C", "HbA1c"),
        ("Fasting Glucose", "Glucose"),
        ("Cholesterol, Total", "Total Cholesterol"),
        ("  hdl ", "HDL Cholesterol"),
        ("Vitamin B12", "Vitamin B12"),
        (None, ""),
        (42, ""),
    ],
)
def test_normalize_biomarker_name(raw, expected):
    assert normalize_biomarker_name(raw) == expected


def test_normalize_unit():
    assert normalize_unit("MG/DL") == "mg/dL"
    assert normalize_unit("percent") == "%"
    assert normalize_unit("cells/uL") == "cells/uL"
    assert normalize_unit(None) == ""
    assert normalize_unit(12) == "12"


class TestStandardizeBiomarkers:
    def test_alternate_keys(self):
        result = standardize_biomarkers([
            {"test_name": "Hemoglobin A1c", "result": "7.1", "units": "percent",
             "normal_range": "4.0-5.6"},
            {"name": "LDL", "value": 130, "unit": "mg/dl"},
        ])
        assert result == [
            StandardizedBiomarker("HbA1c", 7.1, "%", "4.0-5.6"),
            StandardizedBiomarker("LDL Cholesterol", 130.0, "mg/dL", NOT_SPECIFIED),
        ]

    def test_unusable_records_dropped(self):
        result = standardize_biomarkers([
            {"name": "", "value": 5},
            {"name": "Glucose", "value": "pending"},
            {"name": "Glucose", "value": None},
            {"name": "Glucose", "value": True},
            {"biomarker": "Glucose", "value": 95},
        ])
        assert [b.value for b in result] == [95.0]

    def test_non_string_name_dropped_and_unit_coerced(self):
        result = standardize_biomarkers([
            {"name": 5, "value": 1},
            {"name": ["Glucose"], "value": 2},
            {"name": "Ferritin", "value": 40, "unit": 7},
        ])
        assert result == [StandardizedBiomarker("Ferritin", 40.0, "7", NOT_SPECIFIED)]

    def test_to_dict(self):
        (record,) = standardize_biomarkers([{"name": "TSH", "value": 2.5, "unit": "mIU/L"}])
        assert record.to_dict() == {
            "biomarker": "TSH",
            "value": 2.5,
            "unit": "mIU/L",
            "reference_range": NOT_SPECIFIED,
        }


def test_to_lab_data_last_value_wins():
    lab_data = to_lab_data([
        StandardizedBiomarker("Glucose", 90.0),
        StandardizedBiomarker("HbA1c", 5.4),
        StandardizedBiomarker("Glucose", 110.0),
    ])
    assert lab_data == {"Glucose": 110.0, "HbA1c": 5.4}
