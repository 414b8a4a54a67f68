"""Catalog loader — reads reference ranges (CSV) and disease catalogs (YAML/JSON)."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

import yaml

from labinsight.core.catalog.models import (
    BOTH,
    CRITERION_OPERATORS,
    Catalogs,
    Criterion,
    DietProfile,
    DiseaseDefinition,
    DiseaseScoreWeights,
    ReferenceRange,
)
from labinsight.core.catalog.reference_ranges import DEFAULT_AGE_GROUP, ReferenceRangeTable

logger = logging.getLogger(__name__)

REFERENCE_RANGES_FILE = "reference_ranges.csv"
DISEASES_FILE = "diseases.yaml"
SCORING_FILE = "scoring.yaml"
DIET_FILE = "diet.yaml"


class CatalogError(Exception):
    """Raised when a catalog source is missing or malformed."""


def load_catalogs(directory: str | Path) -> Catalogs:
    """Load all four catalogs from a directory.

    Expects ``reference_ranges.csv``, ``diseases.yaml``, ``scoring.yaml``
    and ``diet.yaml``.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise CatalogError(f"Catalog directory does not exist: {directory}")

    catalogs = Catalogs(
        reference_ranges=load_reference_ranges(directory / REFERENCE_RANGES_FILE),
        diseases=load_disease_catalog(directory / DISEASES_FILE),
        weights=load_scoring_catalog(directory / SCORING_FILE),
        diets=load_diet_catalog(directory / DIET_FILE),
        source=str(directory),
    )
    logger.info("Loaded catalogs from %s: %s", directory, catalogs.counts())
    return catalogs


# ---------------------------------------------------------------------------
# Reference ranges (row-based tabular source)
# ---------------------------------------------------------------------------

def load_reference_ranges(path: str | Path) -> ReferenceRangeTable:
    """Parse a ``param,age_group,gender,min,max,unit`` CSV into a table."""
    path = Path(path)
    if not path.is_file():
        raise CatalogError(f"Reference range file does not exist: {path}")

    ranges: list[ReferenceRange] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        # Row 1 is the header.
        for line_no, row in enumerate(reader, start=2):
            param = (row.get("param") or "").strip()
            if not param:
                continue
            try:
                ranges.append(ReferenceRange(
                    biomarker=param,
                    age_group=(row.get("age_group") or "").strip().lower() or DEFAULT_AGE_GROUP,
                    sex=(row.get("gender") or "").strip().lower() or BOTH,
                    min=_optional_float(row.get("min")),
                    max=_optional_float(row.get("max")),
                    unit=(row.get("unit") or "").strip(),
                ))
            except ValueError as exc:
                raise CatalogError(f"{path}:{line_no}: {exc}") from exc

    table = ReferenceRangeTable(ranges)
    logger.info("Loaded %d reference ranges from %s", len(table), path)
    return table


def _optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    return float(raw)


# ---------------------------------------------------------------------------
# Structured (array-of-object) catalogs
# ---------------------------------------------------------------------------

def load_disease_catalog(path: str | Path) -> tuple[DiseaseDefinition, ...]:
    """Parse disease definitions with their criteria, preserving file order."""
    entries = _read_entries(path, "diseases")
    diseases = []
    for index, data in enumerate(entries):
        try:
            diseases.append(_parse_disease(data))
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogError(f"{path}: disease #{index}: {exc}") from exc
    return tuple(diseases)


def _parse_disease(data: dict[str, Any]) -> DiseaseDefinition:
    criteria = []
    for c in data.get("criteria") or []:
        op = str(c["operator"]).strip()
        if op not in CRITERION_OPERATORS:
            raise ValueError(f"unknown operator {op!r}")
        biomarker = c.get("param", c.get("biomarker"))
        if not biomarker:
            raise ValueError("criterion has no biomarker")
        criteria.append(Criterion(
            biomarker=biomarker,
            operator=op,
            threshold=float(c.get("value", c.get("threshold"))),
        ))

    return DiseaseDefinition(
        disease_key=data["diseaseKey"] if "diseaseKey" in data else data["disease_key"],
        label=data["label"],
        diet_key=data.get("dietKey", data.get("diet_key", "")),
        age_group=str(data.get("age_group", BOTH)).lower(),
        sex=str(data.get("gender", data.get("sex", BOTH))).lower(),
        criteria=tuple(criteria),
    )


def load_scoring_catalog(path: str | Path) -> tuple[DiseaseScoreWeights, ...]:
    """Parse per-label severity weights (nested under ``scoring``)."""
    entries = _read_entries(path, "scores")
    weights = []
    for index, data in enumerate(entries):
        scoring = data.get("scoring", data)
        try:
            weights.append(DiseaseScoreWeights(
                label=data["label"],
                rarity=float(scoring.get("rarity", 0)),
                treatment_complexity=float(scoring.get("treatment_complexity", 0)),
                seriousness=float(scoring.get("seriousness", 0)),
                treatment_cost=float(scoring.get("treatment_cost", 0)),
            ))
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogError(f"{path}: score #{index}: {exc}") from exc
    return tuple(weights)


def load_diet_catalog(path: str | Path) -> tuple[DietProfile, ...]:
    """Parse per-label diet/lifestyle/preventive recommendations."""
    entries = _read_entries(path, "diets")
    diets = []
    for index, data in enumerate(entries):
        try:
            diets.append(DietProfile(
                label=data["label"],
                diet=tuple(data.get("diet", [])),
                lifestyle=tuple(data.get("lifestyle", [])),
                preventive=tuple(data.get("preventive", [])),
            ))
        except (KeyError, TypeError) as exc:
            raise CatalogError(f"{path}: diet #{index}: {exc}") from exc
    return tuple(diets)


def _read_entries(path: str | Path, key: str) -> list[dict[str, Any]]:
    """Read a YAML/JSON document holding a list, or a mapping with ``key``."""
    path = Path(path)
    if not path.is_file():
        raise CatalogError(f"Catalog file does not exist: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise CatalogError(f"{path}: invalid YAML/JSON: {exc}") from exc

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise CatalogError(f"{path}: expected a list of entries under '{key}'")
    logger.info("Read %d %s entries from %s", len(data), key, path)
    return data
