"""Rule-based biomarker analysis.

Turns standardized biomarkers plus user demographics into named facts,
runs them through a rule evaluator, and converts every fired rule into an
analysis record. This path is advisory: evaluator failures yield an empty
analysis rather than an error.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from labinsight.core.rules.engine import RuleEvaluator
from labinsight.core.rules.models import DEFAULT_SEVERITY
from labinsight.domains.health.domain_logic.standardizer import StandardizedBiomarker

logger = logging.getLogger(__name__)

FACT_PREFIX = "biomarker_"
USER_AGE_FACT = "userAge"
USER_SEX_FACT = "userSex"


@dataclass(frozen=True)
class AnalysisRecord:
    """Interpretation attached to one fired rule."""

    type: str
    interpretation: str
    recommendation: str
    severity: str = DEFAULT_SEVERITY

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def fact_name(biomarker: str) -> str:
    """``'Total Cholesterol'`` -> ``'biomarker_total_cholesterol'``."""
    return FACT_PREFIX + re.sub(r"\s+", "_", biomarker.strip()).lower()


def _to_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def calculate_age(date_of_birth: date | datetime | str, today: date | None = None) -> int:
    """Whole years elapsed, using calendar month/day (not 365-day years)."""
    born = _to_date(date_of_birth)
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def prepare_facts(
    biomarkers: Iterable[StandardizedBiomarker | Mapping[str, Any]],
    user: Mapping[str, Any],
    *,
    today: date | None = None,
) -> dict[str, Any]:
    """Build the fact mapping the rule evaluator tests against."""
    facts: dict[str, Any] = {}

    for biomarker in biomarkers:
        if isinstance(biomarker, StandardizedBiomarker):
            name, value = biomarker.biomarker, biomarker.value
        else:
            name = biomarker.get("biomarker") or biomarker.get("name")
            value = biomarker.get("value")
        if not isinstance(name, str) or not name.strip():
            continue
        facts[fact_name(name)] = value

    dob = user.get("date_of_birth") or user.get("dateOfBirth")
    if dob:
        try:
            facts[USER_AGE_FACT] = calculate_age(dob, today)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparsable date of birth")

    sex = user.get("sex")
    if sex:
        facts[USER_SEX_FACT] = str(sex).strip().lower()

    return facts


class BiomarkerAnalyzer:
    """Runs per-biomarker rules against a report.

    Usage::

        analyzer = BiomarkerAnalyzer(build_rule_engine(load_rule_file(path)))
        records = analyzer.analyze(biomarkers, {"date_of_birth": "1980-04-02", "sex": "male"})
    """

    def __init__(self, evaluator: RuleEvaluator) -> None:
        self._evaluator = evaluator

    def analyze(
        self,
        biomarkers: Iterable[StandardizedBiomarker | Mapping[str, Any]],
        user: Mapping[str, Any] | None = None,
        *,
        today: date | None = None,
    ) -> list[AnalysisRecord]:
        """Return one record per fired rule, or [] if evaluation fails."""
        try:
            facts = prepare_facts(biomarkers, user or {}, today=today)
            events = self._evaluator.run(facts)
        except Exception:
            logger.exception("Rule analysis failed; returning empty analysis")
            return []

        records = []
        for event in events:
            params = event.params
            records.append(AnalysisRecord(
                type=event.type,
                interpretation=params.get("interpretation", ""),
                recommendation=params.get("recommendation", ""),
                severity=params.get("severity") or DEFAULT_SEVERITY,
            ))
        logger.info("Biomarker analysis: %d facts, %d findings", len(facts), len(records))
        return records
