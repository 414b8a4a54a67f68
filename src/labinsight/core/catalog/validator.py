"""Catalog validator — reports gaps and inconsistencies across loaded catalogs.

None of these issues stop the pipeline (lookup misses degrade silently at
prediction time); they are surfaced so catalog authors can fix them.
"""

from __future__ import annotations

import logging
from collections import Counter

from labinsight.core.catalog.models import Catalogs

logger = logging.getLogger(__name__)


def validate_catalogs(catalogs: Catalogs) -> list[str]:
    """Return human-readable issues found in ``catalogs``."""
    issues: list[str] = []

    key_counts = Counter(d.disease_key for d in catalogs.diseases)
    for key, count in key_counts.items():
        if count > 1:
            issues.append(f"Duplicate disease key '{key}' ({count} definitions)")

    weight_counts = Counter(w.label for w in catalogs.weights)
    diet_labels = {d.label for d in catalogs.diets}

    for disease in catalogs.diseases:
        label = disease.label
        if not disease.criteria:
            issues.append(f"Disease '{disease.disease_key}' has no criteria and can never match")

        count = weight_counts.get(label, 0)
        if count == 0:
            issues.append(f"Disease '{label}' has no scoring weights and will be dropped")
        elif count > 1:
            issues.append(
                f"Disease '{label}' has {count} scoring records; only the first is used"
            )
        else:
            weights = catalogs.find_weights(label)
            if weights is not None and not any((
                weights.rarity,
                weights.treatment_complexity,
                weights.seriousness,
                weights.treatment_cost,
            )):
                issues.append(f"Disease '{label}' has all-zero weights and will be dropped")

        if label not in diet_labels:
            issues.append(f"Disease '{label}' has no diet profile")

        for criterion in disease.criteria:
            if criterion.biomarker not in catalogs.reference_ranges:
                issues.append(
                    f"Disease '{disease.disease_key}' references '{criterion.biomarker}' "
                    "which has no reference range"
                )

    return issues


def log_catalog_issues(catalogs: Catalogs) -> int:
    """Validate and log every issue as a warning. Returns the issue count."""
    issues = validate_catalogs(catalogs)
    for issue in issues:
        logger.warning("%s", issue)
    return len(issues)
