"""Disease predictor — orchestrates matching, scoring, ranking and insights.

The predictor holds a reference to the read-only catalogs and is otherwise
stateless, so a single instance can serve concurrent requests.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from labinsight.core.catalog.loader import load_catalogs
from labinsight.core.catalog.models import SEXES, Catalogs
from labinsight.core.catalog.reference_ranges import RangeFlag
from labinsight.domains.health.domain_logic.criteria_matcher import match_diseases
from labinsight.domains.health.domain_logic.disease_scorer import rank_diseases, score_diseases
from labinsight.domains.health.domain_logic.insight_aggregator import aggregate_insights
from labinsight.domains.health.domain_logic.prediction_models import (
    CHILD_AGE_THRESHOLD,
    SENIOR_AGE_THRESHOLD,
    TOP_N_DISEASES,
    PredictionResult,
)

logger = logging.getLogger(__name__)


class PredictorNotReadyError(RuntimeError):
    """Raised when predicting before catalogs have been attached."""


class InvalidLabInputError(ValueError):
    """Raised when age, sex or lab values are malformed."""


# ---------------------------------------------------------------------------
# Input validation (the pipeline itself assumes well-typed input)
# ---------------------------------------------------------------------------

def _to_number(value: Any, what: str) -> float:
    if isinstance(value, bool):
        raise InvalidLabInputError(f"{what} must be numeric, got a boolean")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidLabInputError(f"{what} must be numeric, got {value!r}") from None
    else:
        raise InvalidLabInputError(f"{what} must be numeric, got {type(value).__name__}")
    if not math.isfinite(number):
        raise InvalidLabInputError(f"{what} must be a finite number")
    return number


def validate_age(age: Any) -> float:
    number = _to_number(age, "age")
    if number < 0:
        raise InvalidLabInputError("age must not be negative")
    return number


def validate_sex(sex: Any) -> str:
    if not isinstance(sex, str) or sex.strip().lower() not in SEXES:
        raise InvalidLabInputError(f"sex must be one of: {' | '.join(SEXES)}")
    return sex.strip().lower()


def validate_lab_data(lab_data: Any) -> dict[str, float]:
    if lab_data is None:
        return {}
    if not isinstance(lab_data, Mapping):
        raise InvalidLabInputError("lab_data must be a mapping of biomarker name to value")
    clean: dict[str, float] = {}
    for name, value in lab_data.items():
        if not isinstance(name, str) or not name.strip():
            raise InvalidLabInputError(f"Invalid biomarker name: {name!r}")
        key = name.strip()
        if key in clean:
            raise InvalidLabInputError(f"Duplicate biomarker name: {key!r}")
        clean[key] = _to_number(value, f"lab value for {name!r}")
    return clean


def resolve_age_group(age: float, child_age_threshold: int = CHILD_AGE_THRESHOLD) -> str:
    """Binary bucketing: 'child' below the threshold, 'adult' otherwise."""
    return "child" if age < child_age_threshold else "adult"


def resolve_range_age_group(
    age: float, child_age_threshold: int = CHILD_AGE_THRESHOLD
) -> str:
    """Three-way bucketing used for reference range lookups."""
    if age >= SENIOR_AGE_THRESHOLD:
        return "senior"
    return resolve_age_group(age, child_age_threshold)


# ---------------------------------------------------------------------------
# Predictor
# ---------------------------------------------------------------------------

class DiseasePredictor:
    """Public entry point for the scoring pipeline.

    Usage::

        predictor = DiseasePredictor.from_directory(catalog_dir)
        result = predictor.predict(45, "male", {"Glucose": 147, "HbA1c": 7.5})
        result.to_dict()
    """

    def __init__(
        self,
        catalogs: Catalogs | None = None,
        *,
        top_n: int = TOP_N_DISEASES,
        child_age_threshold: int = CHILD_AGE_THRESHOLD,
    ) -> None:
        self._catalogs = catalogs
        self._top_n = top_n
        self._child_age_threshold = child_age_threshold

    @classmethod
    def from_directory(cls, directory: str | Path, **kwargs: Any) -> DiseasePredictor:
        return cls(load_catalogs(directory), **kwargs)

    @property
    def is_ready(self) -> bool:
        return self._catalogs is not None

    @property
    def catalogs(self) -> Catalogs:
        if self._catalogs is None:
            raise PredictorNotReadyError(
                "Disease predictor is not initialized: catalogs have not been loaded"
            )
        return self._catalogs

    def initialize(self, catalogs: Catalogs) -> None:
        """Attach catalogs once they have finished loading."""
        self._catalogs = catalogs

    def age_group_for(self, age: float) -> str:
        return resolve_age_group(age, self._child_age_threshold)

    def predict(self, age: Any, sex: Any, lab_data: Any) -> PredictionResult:
        """Rank candidate diseases and collect insights for the top ones.

        Raises:
            PredictorNotReadyError: catalogs are not loaded.
            InvalidLabInputError: age, sex or a lab value is malformed.
        """
        catalogs = self.catalogs
        age_value = validate_age(age)
        sex_value = validate_sex(sex)
        labs = validate_lab_data(lab_data)

        age_group = self.age_group_for(age_value)
        matches = match_diseases(labs, age_group, sex_value, catalogs.diseases)
        scored = score_diseases(matches, catalogs.weights)
        top = rank_diseases(scored, self._top_n)
        insights = aggregate_insights(top, catalogs.diets)

        logger.info(
            "Prediction (%s/%s, %d biomarkers): %d matched, %d scored, %d returned",
            age_group,
            sex_value,
            len(labs),
            len(matches),
            len(scored),
            len(top),
        )
        return PredictionResult(disease_score=tuple(top), insights=insights)

    def check_reference_ranges(self, age: Any, sex: Any, lab_data: Any) -> list[RangeFlag]:
        """Flag each lab value against its demographic reference range."""
        catalogs = self.catalogs
        age_group = resolve_range_age_group(validate_age(age), self._child_age_threshold)
        return catalogs.reference_ranges.evaluate(
            validate_lab_data(lab_data), age_group, validate_sex(sex)
        )
