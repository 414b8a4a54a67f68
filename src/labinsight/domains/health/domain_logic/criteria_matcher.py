"""Criteria matcher — evaluates disease criteria against lab values.

Deterministic: no scoring, no ranking. Emits diseases in catalog order.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable, Mapping, Sequence

from labinsight.core.catalog.models import BOTH, Criterion, DiseaseDefinition
from labinsight.domains.health.domain_logic.prediction_models import MatchResult

logger = logging.getLogger(__name__)

_COMPARATORS: dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "=": operator.eq,
}


def applies_to(disease: DiseaseDefinition, age_group: str, sex: str) -> bool:
    """Demographic filter: each of age group and sex must match or be 'both'."""
    return (
        disease.age_group in (age_group, BOTH)
        and disease.sex in (sex, BOTH)
    )


def criterion_satisfied(criterion: Criterion, lab_data: Mapping[str, float]) -> bool:
    """True when the lab value is present and passes the comparison."""
    if criterion.biomarker not in lab_data:
        return False
    compare = _COMPARATORS.get(criterion.operator)
    if compare is None:
        logger.debug("Unknown operator %r on %s", criterion.operator, criterion.biomarker)
        return False
    return compare(lab_data[criterion.biomarker], criterion.threshold)


def compute_match_ratio(
    criteria: Sequence[Criterion], lab_data: Mapping[str, float]
) -> float:
    """Satisfied criteria over total criteria; 0 for an empty list.

    Absent biomarkers still count toward the denominator.
    """
    if not criteria:
        return 0.0
    matched = sum(1 for c in criteria if criterion_satisfied(c, lab_data))
    return matched / len(criteria)


def match_diseases(
    lab_data: Mapping[str, float],
    age_group: str,
    sex: str,
    diseases: Iterable[DiseaseDefinition],
) -> list[MatchResult]:
    """Return every applicable disease with a match ratio above zero.

    Diseases failing the demographic filter are excluded outright, as are
    those where no criterion holds.
    """
    matches: list[MatchResult] = []
    for disease in diseases:
        if not applies_to(disease, age_group, sex):
            continue
        ratio = compute_match_ratio(disease.criteria, lab_data)
        if ratio > 0:
            matches.append(MatchResult(
                disease_key=disease.disease_key,
                label=disease.label,
                diet_key=disease.diet_key,
                match_ratio=ratio,
            ))
    return matches
