"""MCP tools for lab biomarker analysis and disease prediction.

All tools are deterministic: they run the scoring pipeline and rule
evaluator over the loaded catalogs and return JSON. Malformed input and an
uninitialised predictor are reported as ``{"status": "error"}`` payloads.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from labinsight.domains.health.domain_logic.biomarker_analyzer import BiomarkerAnalyzer
    from labinsight.domains.health.domain_logic.predictor import DiseasePredictor

from labinsight.core.catalog.validator import validate_catalogs
from labinsight.domains.health.domain_logic.biomarker_analyzer import calculate_age
from labinsight.domains.health.domain_logic.predictor import (
    InvalidLabInputError,
    PredictorNotReadyError,
)
from labinsight.domains.health.domain_logic.standardizer import (
    standardize_biomarkers,
    to_lab_data,
)

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "Advisory scores only. This is not a diagnosis; discuss results with a "
    "qualified healthcare provider."
)


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def _user(date_of_birth: str, sex: str) -> dict[str, Any]:
    user: dict[str, Any] = {}
    if date_of_birth:
        user["date_of_birth"] = date_of_birth
    if sex:
        user["sex"] = sex
    return user


def register_lab_analysis_tools(
    mcp: FastMCP,
    predictor: DiseasePredictor,
    analyzer: BiomarkerAnalyzer,
) -> None:
    """Register prediction, rule analysis and reference range tools."""

    @mcp.tool
    async def predict_diseases(
        ctx: Context,
        age: float,
        sex: str,
        lab_data: dict[str, float],
    ) -> str:
        """Rank candidate conditions for a set of lab values.

        Args:
            age: Age in years (under 18 uses child criteria).
            sex: 'male' or 'female'.
            lab_data: Biomarker name to value, e.g. {"Glucose": 147, "HbA1c": 7.5}.
        """
        try:
            result = predictor.predict(age, sex, lab_data)
        except (InvalidLabInputError, PredictorNotReadyError) as exc:
            logger.warning("predict_diseases rejected: %s", exc)
            return _error(str(exc))

        payload = result.to_dict()
        payload["status"] = "ok"
        payload["disclaimer"] = DISCLAIMER
        return json.dumps(payload)

    @mcp.tool
    async def analyze_biomarkers(
        ctx: Context,
        biomarkers: list[dict[str, Any]],
        date_of_birth: str = "",
        sex: str = "",
    ) -> str:
        """Interpret individual biomarkers with the configured rules.

        Args:
            biomarkers: Records with name (or biomarker), value, unit and reference_range.
            date_of_birth: ISO 8601 date of birth, used for age-dependent rules.
            sex: 'male' or 'female', used for sex-specific rules.
        """
        standardized = standardize_biomarkers(biomarkers)
        records = analyzer.analyze(standardized, _user(date_of_birth, sex))
        return json.dumps({
            "status": "ok",
            "biomarker_count": len(standardized),
            "analysis": [r.to_dict() for r in records],
        })

    @mcp.tool
    async def check_reference_ranges(
        ctx: Context,
        age: float,
        sex: str,
        lab_data: dict[str, float],
    ) -> str:
        """Flag each lab value as low, high, normal or unknown.

        Args:
            age: Age in years.
            sex: 'male' or 'female'.
            lab_data: Biomarker name to value.
        """
        try:
            flags = predictor.check_reference_ranges(age, sex, lab_data)
        except (InvalidLabInputError, PredictorNotReadyError) as exc:
            return _error(str(exc))

        return json.dumps({
            "status": "ok",
            "flags": [f.to_dict() for f in flags],
            "out_of_range": [f.biomarker for f in flags if f.status in ("low", "high")],
        })

    @mcp.tool
    async def analyze_lab_report(
        ctx: Context,
        biomarkers: list[dict[str, Any]],
        date_of_birth: str = "",
        sex: str = "",
    ) -> str:
        """Standardize a parsed lab report, interpret it and predict conditions.

        Prediction runs only when both a date of birth and sex are given.

        Args:
            biomarkers: Parsed report rows (name, value, unit, reference_range).
            date_of_birth: ISO 8601 date of birth.
            sex: 'male' or 'female'.
        """
        standardized = standardize_biomarkers(biomarkers)
        analysis = analyzer.analyze(standardized, _user(date_of_birth, sex))

        response: dict[str, Any] = {
            "status": "ok",
            "standardized_results": [b.to_dict() for b in standardized],
            "analysis": [r.to_dict() for r in analysis],
            "prediction": None,
            "disclaimer": DISCLAIMER,
        }

        if date_of_birth and sex:
            try:
                age = calculate_age(date_of_birth)
                prediction = predictor.predict(age, sex, to_lab_data(standardized))
            except (ValueError, PredictorNotReadyError) as exc:
                # ValueError covers InvalidLabInputError and a bad date of birth
                response["prediction_error"] = str(exc)
            else:
                response["prediction"] = prediction.to_dict()

        return json.dumps(response)

    @mcp.tool
    async def catalog_status(ctx: Context) -> str:
        """Report loaded catalog sizes and any catalog consistency issues."""
        if not predictor.is_ready:
            return _error("Disease predictor is not initialized: catalogs have not been loaded")
        catalogs = predictor.catalogs
        issues = validate_catalogs(catalogs)
        return json.dumps({
            "status": "ok",
            "source": catalogs.source,
            "counts": catalogs.counts(),
            "issue_count": len(issues),
            "issues": issues,
        })
