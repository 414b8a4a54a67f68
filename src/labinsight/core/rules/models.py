"""Data models for stored biomarker rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

RULE_CATEGORIES = (
    "Lipid Panel",
    "Glucose",
    "Thyroid",
    "Complete Blood Count",
    "Liver Function",
    "Kidney Function",
)
RULE_AGE_GROUPS = ("Adult", "Child", "Senior")
RULE_SEXES = ("Male", "Female", "Both")

SEVERITIES = ("Normal", "Borderline", "High", "Low", "Critical")
DEFAULT_SEVERITY = "Normal"


@dataclass
class BiomarkerRule:
    """A named, categorised rule wrapping an engine rule definition."""

    rule_name: str
    category: str
    definition: dict[str, Any]
    target_biomarkers: list[str] = field(default_factory=list)
    is_active: bool = True
    age_group: str = "Adult"
    sex: str = "Both"
