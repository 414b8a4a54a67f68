"""Data models for the static biomarker catalogs.

Catalogs are loaded once at startup and never mutated afterwards, so every
record here is a frozen dataclass holding tuples rather than lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from labinsight.core.catalog.reference_ranges import ReferenceRangeTable

# Comparison operators a disease criterion may use ("=" is an alias of "==").
CRITERION_OPERATORS = (">=", "<=", ">", "<", "==", "=")

SEXES = ("male", "female")
BOTH = "both"


@dataclass(frozen=True)
class ReferenceRange:
    """Expected normal interval for a biomarker in one demographic bucket.

    A ``None`` bound means the range is unbounded on that side.
    """

    biomarker: str
    age_group: str
    sex: str
    min: float | None = None
    max: float | None = None
    unit: str = ""

    def __post_init__(self) -> None:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(
                f"Reference range for {self.biomarker!r} has min {self.min} > max {self.max}"
            )


@dataclass(frozen=True)
class Criterion:
    """A single ``biomarker <operator> threshold`` test."""

    biomarker: str
    operator: str
    threshold: float


@dataclass(frozen=True)
class DiseaseDefinition:
    """A disease with its demographic applicability and lab criteria."""

    disease_key: str
    label: str
    diet_key: str = ""
    age_group: str = BOTH    # 'child' | 'adult' | 'both'
    sex: str = BOTH          # 'male' | 'female' | 'both'
    criteria: tuple[Criterion, ...] = ()


@dataclass(frozen=True)
class DiseaseScoreWeights:
    """Severity weights for one disease label (typically 0-10 each)."""

    label: str
    rarity: float = 0.0
    treatment_complexity: float = 0.0
    seriousness: float = 0.0
    treatment_cost: float = 0.0


@dataclass(frozen=True)
class DietProfile:
    """Diet, lifestyle and preventive recommendations for one disease label."""

    label: str
    diet: tuple[str, ...] = ()
    lifestyle: tuple[str, ...] = ()
    preventive: tuple[str, ...] = ()


@dataclass(frozen=True)
class Catalogs:
    """All read-only catalogs the prediction pipeline consults.

    Built once at startup and passed by reference into every pipeline step.
    Label lookups return ``None`` when there is no record; callers decide
    what a miss means.
    """

    reference_ranges: ReferenceRangeTable
    diseases: tuple[DiseaseDefinition, ...] = ()
    weights: tuple[DiseaseScoreWeights, ...] = ()
    diets: tuple[DietProfile, ...] = ()
    source: str = field(default="", compare=False)

    def find_weights(self, label: str) -> DiseaseScoreWeights | None:
        """First weight record whose label matches, or None."""
        return find_weights(self.weights, label)

    def counts(self) -> dict[str, int]:
        return {
            "reference_ranges": len(self.reference_ranges),
            "diseases": len(self.diseases),
            "weights": len(self.weights),
            "diets": len(self.diets),
        }


def find_weights(
    weights: tuple[DiseaseScoreWeights, ...] | list[DiseaseScoreWeights], label: str
) -> DiseaseScoreWeights | None:
    for record in weights:
        if record.label == label:
            return record
    return None


def find_diet(
    diets: tuple[DietProfile, ...] | list[DietProfile], label: str
) -> DietProfile | None:
    for record in diets:
        if record.label == label:
            return record
    return None
