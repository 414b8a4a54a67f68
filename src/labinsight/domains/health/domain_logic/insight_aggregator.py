"""Insight aggregator — merges diet/lifestyle/precaution advice for top diseases."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from labinsight.core.catalog.models import DietProfile, find_diet
from labinsight.domains.health.domain_logic.prediction_models import Insights, ScoredDisease

logger = logging.getLogger(__name__)


def aggregate_insights(
    top_diseases: Iterable[ScoredDisease],
    diet_catalog: Sequence[DietProfile],
) -> Insights:
    """Concatenate recommendations across diseases, then dedupe per category.

    Diseases without a diet profile contribute nothing. Duplicates are
    removed by value; the first occurrence is kept.
    """
    diet: list[str] = []
    lifestyle: list[str] = []
    precaution: list[str] = []

    for disease in top_diseases:
        profile = find_diet(diet_catalog, disease.label)
        if profile is None:
            logger.debug("No diet profile for %s", disease.label)
            continue
        diet.extend(profile.diet)
        lifestyle.extend(profile.lifestyle)
        precaution.extend(profile.preventive)

    return Insights(
        diet=tuple(dict.fromkeys(diet)),
        lifestyle=tuple(dict.fromkeys(lifestyle)),
        precaution=tuple(dict.fromkeys(precaution)),
    )
