"""Biomarker standardisation: name/unit normalisation and lab-data flattening.

Parsers for CSV/JSON/Excel reports emit loosely keyed records; this module
maps them onto one shape before analysis.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

NOT_SPECIFIED = "Not specified"

BIOMARKER_NAME_MAP = {
    "cholesterol, total": "Total Cholesterol",
    "cholesterol total": "Total Cholesterol",
    "total cholesterol": "Total Cholesterol",
    "ldl cholesterol": "LDL Cholesterol",
    "ldl": "LDL Cholesterol",
    "hdl cholesterol": "HDL Cholesterol",
    "hdl": "HDL Cholesterol",
    "triglycerides": "Triglycerides",
    "glucose": "Glucose",
    "fasting glucose": "Glucose",
    "hemoglobin a1c": "HbA1c",
    "hba1c": "HbA1c",
    "tsh": "TSH",
    "free t4": "Free T4",
    "hemoglobin": "Hemoglobin",
    "creatinine": "Creatinine",
    "alt": "ALT",
    "ast": "AST",
}

UNIT_MAP = {
    "mg/dl": "mg/dL",
    "mmol/l": "mmol/L",
    "µu/ml": "µU/mL",
    "uu/ml": "µU/mL",
    "miu/l": "mIU/L",
    "ng/dl": "ng/dL",
    "g/dl": "g/dL",
    "u/l": "U/L",
    "percent": "%",
}


@dataclass(frozen=True)
class StandardizedBiomarker:
    """One lab measurement in canonical form."""

    biomarker: str
    value: float
    unit: str = ""
    reference_range: str = NOT_SPECIFIED

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def normalize_biomarker_name(name: Any) -> str:
    """Canonical biomarker name; non-string or blank input yields ''."""
    if not isinstance(name, str) or not name.strip():
        return ""
    return BIOMARKER_NAME_MAP.get(name.strip().lower(), name.strip())


def normalize_unit(unit: Any) -> str:
    if unit is None:
        return ""
    text = str(unit).strip()
    return UNIT_MAP.get(text.lower(), text)


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_value(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def standardize_biomarkers(records: Iterable[Mapping[str, Any]]) -> list[StandardizedBiomarker]:
    """Normalise raw records; those without a name or numeric value are dropped."""
    standardized: list[StandardizedBiomarker] = []
    for record in records:
        name = normalize_biomarker_name(_first(record, "biomarker", "name", "test_name"))
        value = _parse_value(_first(record, "value", "result"))
        if not name or value is None:
            continue
        standardized.append(StandardizedBiomarker(
            biomarker=name,
            value=value,
            unit=normalize_unit(_first(record, "unit", "units")),
            reference_range=str(
                _first(record, "reference_range", "referenceRange", "normal_range")
                or NOT_SPECIFIED
            ),
        ))
    return standardized


def to_lab_data(biomarkers: Iterable[StandardizedBiomarker]) -> dict[str, float]:
    """Flatten to ``{biomarker: value}``; a repeated biomarker keeps its last value."""
    return {b.biomarker: b.value for b in biomarkers}
