"""Reference range table — composite-key index with demographic fallback."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from labinsight.core.catalog.models import BOTH, ReferenceRange

logger = logging.getLogger(__name__)

DEFAULT_AGE_GROUP = "adult"


@dataclass(frozen=True)
class RangeFlag:
    """Outcome of checking one lab value against its resolved range."""

    biomarker: str
    value: float
    status: str                  # 'low' | 'high' | 'normal' | 'unknown'
    min: float | None = None
    max: float | None = None
    unit: str = ""

    def to_dict(self) -> dict:
        return {
            "biomarker": self.biomarker,
            "value": self.value,
            "status": self.status,
            "min": self.min,
            "max": self.max,
            "unit": self.unit,
        }


def is_out_of_range(value: float, ref: ReferenceRange | None) -> bool:
    """True when ``value`` falls outside ``ref``; a missing range never flags."""
    if ref is None:
        return False
    if ref.min is not None and value < ref.min:
        return True
    if ref.max is not None and value > ref.max:
        return True
    return False


class ReferenceRangeTable:
    """Reference ranges keyed by ``(biomarker, age_group, sex)``.

    Usage::

        table = ReferenceRangeTable(ranges)
        ref = table.resolve("Glucose", "child", "female")
    """

    def __init__(self, ranges: Iterable[ReferenceRange] = ()) -> None:
        self._ranges: dict[tuple[str, str, str], ReferenceRange] = {}
        for ref in ranges:
            # Later rows overwrite earlier ones for the same key.
            self._ranges[(ref.biomarker, ref.age_group, ref.sex)] = ref

    def __len__(self) -> int:
        return len(self._ranges)

    def __contains__(self, biomarker: object) -> bool:
        return any(key[0] == biomarker for key in self._ranges)

    def biomarkers(self) -> list[str]:
        """Distinct biomarker names, in first-seen order."""
        return list(dict.fromkeys(key[0] for key in self._ranges))

    def candidate_keys(
        self, biomarker: str, age_group: str, sex: str
    ) -> list[tuple[str, str, str]]:
        """Lookup keys in resolution order: exact, any-sex, adult any-sex."""
        return [
            (biomarker, age_group, sex),
            (biomarker, age_group, BOTH),
            (biomarker, DEFAULT_AGE_GROUP, BOTH),
        ]

    def resolve(self, biomarker: str, age_group: str, sex: str) -> ReferenceRange | None:
        """Return the most specific range for the demographic, or None."""
        for key in self.candidate_keys(biomarker, age_group, sex):
            ref = self._ranges.get(key)
            if ref is not None:
                return ref
        return None

    def evaluate(
        self, lab_data: Mapping[str, float], age_group: str, sex: str
    ) -> list[RangeFlag]:
        """Flag each lab value as low/high/normal, or unknown without a range."""
        flags: list[RangeFlag] = []
        for biomarker, value in lab_data.items():
            ref = self.resolve(biomarker, age_group, sex)
            if ref is None:
                logger.debug("No reference range for %s (%s/%s)", biomarker, age_group, sex)
                flags.append(RangeFlag(biomarker=biomarker, value=value, status="unknown"))
                continue

            if not is_out_of_range(value, ref):
                status = "normal"
            elif ref.min is not None and value < ref.min:
                status = "low"
            else:
                status = "high"
            flags.append(RangeFlag(
                biomarker=biomarker,
                value=value,
                status=status,
                min=ref.min,
                max=ref.max,
                unit=ref.unit,
            ))
        return flags
