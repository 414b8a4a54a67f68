"""Shared test fixtures for LabInsight tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_DIR", "")
    monkeypatch.setenv("RULES_PATH", "")
    monkeypatch.setenv("TOP_N_DISEASES", "5")
    monkeypatch.setenv("CHILD_AGE_THRESHOLD", "18")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from labinsight.core.catalog.models import (  # noqa: E402
    Catalogs,
    Criterion,
    DietProfile,
    DiseaseDefinition,
    DiseaseScoreWeights,
    ReferenceRange,
)
from labinsight.core.catalog.reference_ranges import ReferenceRangeTable  # noqa: E402
from labinsight.core.rules.engine import RuleEngine  # noqa: E402

BUNDLED_HEALTH_DIR = _SRC_DIR / "labinsight" / "domains" / "health"
BUNDLED_CATALOG_DIR = BUNDLED_HEALTH_DIR / "catalogs"
BUNDLED_RULES_PATH = BUNDLED_HEALTH_DIR / "rules" / "biomarker_rules.yaml"


def make_disease(
    key: str,
    label: str | None = None,
    criteria: list[tuple[str, str, float]] | None = None,
    age_group: str = "both",
    sex: str = "both",
) -> DiseaseDefinition:
    """Create a test disease; criteria given as (biomarker, operator, threshold)."""
    return DiseaseDefinition(
        disease_key=key,
        label=label or key.replace("_", " ").title(),
        diet_key=f"{key}_diet",
        age_group=age_group,
        sex=sex,
        criteria=tuple(Criterion(b, op, t) for b, op, t in (criteria or [])),
    )


def make_weights(label: str, seriousness: float = 5, **kwargs: float) -> DiseaseScoreWeights:
    return DiseaseScoreWeights(label=label, seriousness=seriousness, **kwargs)


@pytest.fixture
def reference_table() -> ReferenceRangeTable:
    return ReferenceRangeTable([
        ReferenceRange("Glucose", "adult", "both", 70, 99, "mg/dL"),
        ReferenceRange("Glucose", "child", "both", 70, 100, "mg/dL"),
        ReferenceRange("HbA1c", "adult", "both", 4.0, 5.6, "%"),
        ReferenceRange("HDL Cholesterol", "adult", "male", 40, None, "mg/dL"),
        ReferenceRange("HDL Cholesterol", "adult", "female", 50, None, "mg/dL"),
        ReferenceRange("TSH", "senior", "both", 0.4, 6.0, "mIU/L"),
        ReferenceRange("TSH", "adult", "both", 0.4, 4.5, "mIU/L"),
    ])


@pytest.fixture
def catalogs(reference_table: ReferenceRangeTable) -> Catalogs:
    """Small catalog set: diabetes, prediabetes, low HDL (male) and a child-only anemia."""
    return Catalogs(
        reference_ranges=reference_table,
        diseases=(
            make_disease(
                "diabetes", "Diabetes",
                [("Glucose", ">=", 126), ("HbA1c", ">=", 6.5)],
            ),
            make_disease(
                "prediabetes", "Prediabetes",
                [("Glucose", ">=", 100), ("Glucose", "<", 126), ("HbA1c", ">=", 5.7)],
                age_group="adult",
            ),
            make_disease(
                "low_hdl_male", "Low HDL",
                [("HDL Cholesterol", "<", 40)],
                age_group="adult", sex="male",
            ),
            make_disease(
                "childhood_anemia", "Childhood Anemia",
                [("Hemoglobin", "<", 11.5)],
                age_group="child",
            ),
        ),
        weights=(
            make_weights("Diabetes", rarity=3, treatment_complexity=6, seriousness=8, treatment_cost=6),
            make_weights("Prediabetes", rarity=2, treatment_complexity=3, seriousness=5, treatment_cost=2),
            make_weights("Low HDL", rarity=2, treatment_complexity=3, seriousness=4, treatment_cost=2),
            make_weights("Childhood Anemia", rarity=4, treatment_complexity=3, seriousness=5, treatment_cost=2),
        ),
        diets=(
            DietProfile(
                "Diabetes",
                diet=("Limit sugary drinks", "Choose whole grains"),
                lifestyle=("Exercise 150 minutes weekly",),
                preventive=("Monitor blood glucose",),
            ),
            DietProfile(
                "Prediabetes",
                diet=("Choose whole grains", "Prefer legumes"),
                lifestyle=("Exercise 150 minutes weekly", "Lose 5% of body weight"),
                preventive=("Recheck HbA1c yearly",),
            ),
        ),
    )


@pytest.fixture
def rule_engine() -> RuleEngine:
    """Engine with a glucose rule, an age-gated cholesterol rule and a sex-gated HDL rule."""
    engine = RuleEngine()
    engine.add_rule({
        "conditions": {"all": [
            {"fact": "biomarker_glucose", "operator": "greaterThanInclusive", "value": 126},
        ]},
        "event": {"type": "DiabetesGlucose", "params": {
            "interpretation": "Glucose indicates diabetes.",
            "recommendation": "See your doctor.",
            "severity": "High",
        }},
    })
    engine.add_rule({
        "conditions": {"all": [
            {"fact": "biomarker_total_cholesterol", "operator": "greaterThanInclusive", "value": 240},
            {"fact": "userAge", "operator": "greaterThanInclusive", "value": 20},
        ]},
        "event": {"type": "HighTotalCholesterol", "params": {
            "interpretation": "Total cholesterol is high.",
            "recommendation": "Heart-healthy diet.",
        }},
    })
    engine.add_rule({
        "conditions": {"all": [
            {"fact": "biomarker_hdl_cholesterol", "operator": "lessThan", "value": 40},
            {"fact": "userSex", "operator": "equal", "value": "male"},
        ]},
        "event": {"type": "LowHDLCholesterolMale", "params": {
            "interpretation": "HDL is low.",
            "recommendation": "Exercise more.",
            "severity": "Low",
        }},
    })
    return engine
