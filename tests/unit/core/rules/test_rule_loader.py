"""Tests for loading biomarker rules from YAML."""

from __future__ import annotations

import pytest

from conftest import BUNDLED_RULES_PATH
from labinsight.core.rules.engine import RuleDefinitionError
from labinsight.core.rules.loader import build_rule_engine, load_rule_file

_VALID = """
rules:
  - rule_name: High Glucose
    category: Glucose
    target_biomarkers: [Glucose]
    definition:
      conditions:
        all:
          - {fact: biomarker_glucose, operator: greaterThanInclusive, value: 126}
      event: {type: HighGlucose, params: {severity: High}}
  - rule_name: Inactive Rule
    category: Thyroid
    is_active: false
    definition:
      conditions: {all: []}
      event: {type: Never}
"""


def test_load_and_build(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(_VALID)
    rules = load_rule_file(path)
    assert [r.rule_name for r in rules] == ["High Glucose", "Inactive Rule"]
    assert rules[0].target_biomarkers == ["Glucose"]
    assert rules[0].sex == "Both"
    assert rules[1].is_active is False

    engine = build_rule_engine(rules)
    assert len(engine) == 1
    assert [e.type for e in engine.run({"biomarker_glucose": 130})] == ["HighGlucose"]


def test_duplicate_rule_names_rejected(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(_VALID.replace("Inactive Rule", "High Glucose"))
    with pytest.raises(RuleDefinitionError, match="duplicate"):
        load_rule_file(path)


def test_unknown_category_rejected(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(_VALID.replace("category: Thyroid", "category: Dermatology"))
    with pytest.raises(RuleDefinitionError, match="category"):
        load_rule_file(path)


def test_unknown_severity_rejected(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(_VALID.replace("severity: High", "severity: Urgent"))
    with pytest.raises(RuleDefinitionError, match="severity"):
        load_rule_file(path)


def test_missing_definition_rejected(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("- rule_name: X\n  category: Glucose\n")
    with pytest.raises(RuleDefinitionError, match="rule #0"):
        load_rule_file(path)


def test_bad_definition_names_rule(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "- rule_name: Broken\n  category: Glucose\n"
        "  definition: {conditions: {all: []}, event: {}}\n"
    )
    with pytest.raises(RuleDefinitionError, match="Broken"):
        build_rule_engine(load_rule_file(path))


def test_missing_file(tmp_path):
    with pytest.raises(RuleDefinitionError, match="does not exist"):
        load_rule_file(tmp_path / "missing.yaml")


def test_bundled_rules_load():
    rules = load_rule_file(BUNDLED_RULES_PATH)
    engine = build_rule_engine(rules)
    assert len(engine) == sum(1 for r in rules if r.is_active)

    events = engine.run({"biomarker_glucose": 140})
    assert [e.type for e in events] == ["DiabetesGlucose"]
