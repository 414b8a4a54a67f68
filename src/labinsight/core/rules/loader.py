"""Rule loader — reads biomarker rules from YAML and builds an engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from labinsight.core.rules.engine import RuleDefinitionError, RuleEngine
from labinsight.core.rules.models import (
    RULE_AGE_GROUPS,
    RULE_CATEGORIES,
    RULE_SEXES,
    SEVERITIES,
    BiomarkerRule,
)

logger = logging.getLogger(__name__)


def load_rule_file(path: str | Path) -> list[BiomarkerRule]:
    """Parse a YAML file (list, or mapping with ``rules``) into rules.

    Raises RuleDefinitionError on structural problems, duplicate rule names
    or values outside the allowed category, age group, sex and severity
    vocabularies.
    """
    path = Path(path)
    if not path.is_file():
        raise RuleDefinitionError(f"Rule file does not exist: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data: Any = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise RuleDefinitionError(f"{path}: invalid YAML: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("rules", [])
    if not isinstance(data, list):
        raise RuleDefinitionError(f"{path}: expected a list of rules")

    rules: list[BiomarkerRule] = []
    seen: set[str] = set()
    for index, entry in enumerate(data):
        try:
            rule = _parse_rule(entry)
        except (KeyError, TypeError) as exc:
            raise RuleDefinitionError(f"{path}: rule #{index}: missing {exc}") from exc
        if rule.rule_name in seen:
            raise RuleDefinitionError(f"{path}: duplicate rule name {rule.rule_name!r}")
        seen.add(rule.rule_name)
        rules.append(rule)

    logger.info("Loaded %d biomarker rules from %s", len(rules), path)
    return rules


def _parse_rule(entry: dict[str, Any]) -> BiomarkerRule:
    rule = BiomarkerRule(
        rule_name=entry["rule_name"],
        category=entry["category"],
        definition=entry["definition"],
        target_biomarkers=list(entry.get("target_biomarkers", [])),
        is_active=bool(entry.get("is_active", True)),
        age_group=entry.get("age_group", "Adult"),
        sex=entry.get("sex", "Both"),
    )
    if rule.category not in RULE_CATEGORIES:
        raise RuleDefinitionError(f"{rule.rule_name}: unknown category {rule.category!r}")
    if rule.age_group not in RULE_AGE_GROUPS:
        raise RuleDefinitionError(f"{rule.rule_name}: unknown age group {rule.age_group!r}")
    if rule.sex not in RULE_SEXES:
        raise RuleDefinitionError(f"{rule.rule_name}: unknown sex {rule.sex!r}")
    severity = _event_severity(rule.definition)
    if severity is not None and severity not in SEVERITIES:
        raise RuleDefinitionError(f"{rule.rule_name}: unknown severity {severity!r}")
    return rule


def _event_severity(definition: Any) -> Any:
    if not isinstance(definition, dict):
        return None
    event = definition.get("event")
    params = event.get("params") if isinstance(event, dict) else None
    return params.get("severity") if isinstance(params, dict) else None


def build_rule_engine(rules: Iterable[BiomarkerRule]) -> RuleEngine:
    """Create a RuleEngine holding every active rule."""
    engine = RuleEngine()
    for rule in rules:
        if not rule.is_active:
            logger.debug("Skipping inactive rule %s", rule.rule_name)
            continue
        try:
            engine.add_rule(rule.definition)
        except RuleDefinitionError as exc:
            raise RuleDefinitionError(f"{rule.rule_name}: {exc}") from exc
    return engine
