"""Disease prediction result models and scoring constants."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


# ---------------------------------------------------------------------------
# Scoring constants (used by disease_scorer and the predictor)
# ---------------------------------------------------------------------------

# Composite weights; seriousness dominates at 60%.
RARITY_WEIGHT = 0.1
TREATMENT_COMPLEXITY_WEIGHT = 0.2
SERIOUSNESS_WEIGHT = 0.6
TREATMENT_COST_WEIGHT = 0.2

# base_score * match_ratio is rescaled by this factor for readability.
SCORE_SCALE = 10

TOP_N_DISEASES = 5

# Ages below this resolve to the 'child' group, everything else to 'adult'.
CHILD_AGE_THRESHOLD = 18

# Reference range checks (not disease scoring) also use a senior bucket.
SENIOR_AGE_THRESHOLD = 65


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchResult:
    """A disease whose criteria were partly or fully met."""

    disease_key: str
    label: str
    diet_key: str
    match_ratio: float    # 0-1: satisfied criteria / total criteria


@dataclass(frozen=True)
class ScoredDisease:
    """A matched disease with its severity-weighted score."""

    disease_key: str
    label: str
    diet_key: str
    match_ratio: float
    score: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Insights:
    """Deduplicated recommendations across the top-ranked diseases."""

    diet: tuple[str, ...] = ()
    lifestyle: tuple[str, ...] = ()
    precaution: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "diet": list(self.diet),
            "lifestyle": list(self.lifestyle),
            "precaution": list(self.precaution),
        }


@dataclass(frozen=True)
class PredictionResult:
    """Final output of the disease prediction pipeline."""

    disease_score: tuple[ScoredDisease, ...] = ()
    insights: Insights = field(default_factory=Insights)

    def to_dict(self) -> dict:
        return {
            "disease_score": [d.to_dict() for d in self.disease_score],
            "insights": self.insights.to_dict(),
        }
