"""LabInsight MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastmcp import FastMCP

from labinsight.core.catalog.loader import CatalogError, load_catalogs
from labinsight.core.catalog.models import Catalogs
from labinsight.core.catalog.validator import log_catalog_issues
from labinsight.core.config.settings import get_settings
from labinsight.core.rules.engine import RuleDefinitionError, RuleEngine, RuleEvaluator
from labinsight.core.rules.loader import build_rule_engine, load_rule_file
from labinsight.domains.health.domain_logic.biomarker_analyzer import BiomarkerAnalyzer
from labinsight.domains.health.domain_logic.predictor import DiseasePredictor
from labinsight.domains.health.tools.lab_analysis_tools import register_lab_analysis_tools

logger = logging.getLogger(__name__)

# Bundled data lives under src/labinsight/domains/health/
_HEALTH_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "health"
_CATALOG_DIR = _HEALTH_DIR / "catalogs"
_RULES_PATH = _HEALTH_DIR / "rules" / "biomarker_rules.yaml"


def create_app(
    *,
    catalogs_override: Catalogs | None = None,
    rule_engine_override: RuleEvaluator | None = None,
) -> FastMCP:
    """Create and configure the LabInsight MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads and validates the static catalogs (reference ranges, diseases,
       scoring weights, diet profiles)
    3. Loads the biomarker rules into a rule engine
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "LabInsight",
        instructions=(
            "Lab biomarker analysis server. Matches lab values against disease "
            "criteria, ranks candidate conditions by severity-weighted scores, "
            "returns diet and lifestyle insights, and interprets individual "
            "biomarkers with configurable rules. Results are advisory only."
        ),
    )

    # --- Catalogs ---
    predictor = DiseasePredictor(
        top_n=settings.top_n_diseases,
        child_age_threshold=settings.child_age_threshold,
    )
    if catalogs_override is not None:
        predictor.initialize(catalogs_override)
    else:
        catalog_dir = Path(settings.catalog_dir).expanduser() if settings.catalog_dir else _CATALOG_DIR
        try:
            predictor.initialize(load_catalogs(catalog_dir))
        except CatalogError as exc:
            logger.error("Failed to load catalogs: %s", exc)
            logger.warning("Continuing without catalogs — predictions will be rejected")

    if predictor.is_ready:
        issue_count = log_catalog_issues(predictor.catalogs)
        if issue_count:
            logger.warning("Catalog validation reported %d issue(s)", issue_count)

    # --- Rules ---
    rule_count = 0
    if rule_engine_override is not None:
        rule_engine: RuleEvaluator = rule_engine_override
        if isinstance(rule_engine_override, RuleEngine):
            rule_count = len(rule_engine_override)
    else:
        rules_path = Path(settings.rules_path).expanduser() if settings.rules_path else _RULES_PATH
        try:
            engine = build_rule_engine(load_rule_file(rules_path))
            rule_count = len(engine)
            logger.info("Loaded %d active biomarker rules from %s", rule_count, rules_path)
        except RuleDefinitionError as exc:
            logger.error("Failed to load biomarker rules: %s", exc)
            engine = RuleEngine()
        rule_engine = engine

    analyzer = BiomarkerAnalyzer(rule_engine)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": "LabInsight",
            "version": "0.1.0",
            "predictor_ready": predictor.is_ready,
            "rules_loaded": rule_count,
        }
        if predictor.is_ready:
            status["catalogs"] = predictor.catalogs.counts()
        return status

    register_lab_analysis_tools(server, predictor, analyzer)
    logger.info("Lab analysis tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
