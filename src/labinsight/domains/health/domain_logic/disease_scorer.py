"""Disease scorer — weights match ratios by disease severity and ranks them.

Each matched disease is scored as::

    base  = 0.1*rarity + 0.2*treatment_complexity + 0.6*seriousness + 0.2*treatment_cost
    score = base * match_ratio * 10

Matches without a weight record, or whose base score is zero, are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from labinsight.core.catalog.models import DiseaseScoreWeights, find_weights
from labinsight.domains.health.domain_logic.prediction_models import (
    RARITY_WEIGHT,
    SCORE_SCALE,
    SERIOUSNESS_WEIGHT,
    TOP_N_DISEASES,
    TREATMENT_COMPLEXITY_WEIGHT,
    TREATMENT_COST_WEIGHT,
    MatchResult,
    ScoredDisease,
)

logger = logging.getLogger(__name__)


def base_score(weights: DiseaseScoreWeights) -> float:
    """Weighted composite of the four severity dimensions."""
    return (
        RARITY_WEIGHT * weights.rarity
        + TREATMENT_COMPLEXITY_WEIGHT * weights.treatment_complexity
        + SERIOUSNESS_WEIGHT * weights.seriousness
        + TREATMENT_COST_WEIGHT * weights.treatment_cost
    )


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def score_diseases(
    matches: Iterable[MatchResult],
    weights: Sequence[DiseaseScoreWeights],
) -> list[ScoredDisease]:
    """Score each match, in input order. Unscorable matches are dropped."""
    scored: list[ScoredDisease] = []
    for match in matches:
        record = find_weights(weights, match.label)
        if record is None:
            logger.debug("No scoring weights for %s; dropping", match.label)
            continue
        base = base_score(record)
        if not base or not _is_number(match.match_ratio):
            logger.debug("Zero base score or bad ratio for %s; dropping", match.label)
            continue
        scored.append(ScoredDisease(
            disease_key=match.disease_key,
            label=match.label,
            diet_key=match.diet_key,
            match_ratio=match.match_ratio,
            score=base * match.match_ratio * SCORE_SCALE,
        ))
    return scored


def rank_diseases(
    scored: Iterable[ScoredDisease], top_n: int = TOP_N_DISEASES
) -> list[ScoredDisease]:
    """Sort by score descending (ties keep input order) and keep the top N."""
    # sorted() is stable, so equal scores retain catalog order.
    return sorted(scored, key=lambda d: d.score, reverse=True)[:top_n]
