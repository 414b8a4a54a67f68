"""Generic fact/rule evaluator for json-rules-engine style rule definitions.

A rule definition looks like::

    {
        "conditions": {"all": [
            {"fact": "biomarker_glucose", "operator": "greaterThanInclusive", "value": 126},
        ]},
        "event": {"type": "DiabetesGlucose", "params": {"severity": "High"}},
        "priority": 1,
    }

The engine knows nothing about biomarkers or diseases: it only tests named
facts against boolean condition trees and reports the events of the rules
that fire.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 1


def _contains(container: Any, item: Any) -> bool:
    return item in container


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equal": operator.eq,
    "notEqual": operator.ne,
    "lessThan": operator.lt,
    "lessThanInclusive": operator.le,
    "greaterThan": operator.gt,
    "greaterThanInclusive": operator.ge,
    "in": lambda fact, value: fact in value,
    "notIn": lambda fact, value: fact not in value,
    "contains": _contains,
    "doesNotContain": lambda fact, value: not _contains(fact, value),
}


class RuleDefinitionError(ValueError):
    """Raised when a rule definition is malformed."""


@dataclass
class RuleEvent:
    """The event emitted by a rule whose conditions held."""

    type: str
    params: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class RuleEvaluator(Protocol):
    """Pluggable rule evaluation capability."""

    def add_rule(self, definition: Mapping[str, Any]) -> None:
        """Register a rule definition."""
        ...

    def run(self, facts: Mapping[str, Any]) -> list[RuleEvent]:
        """Evaluate all rules against ``facts`` and return fired events."""
        ...


@dataclass
class _Rule:
    conditions: dict[str, Any]
    event: RuleEvent
    priority: int
    order: int


class RuleEngine:
    """In-memory evaluator for ``all`` / ``any`` / ``not`` condition trees.

    Rules are evaluated highest ``priority`` first; equal priorities keep
    the order they were added in. A condition that references a fact not
    present in the facts mapping evaluates false.

    Usage::

        engine = RuleEngine()
        engine.add_rule(definition)
        events = engine.run({"biomarker_glucose": 140, "userAge": 52})
    """

    def __init__(self) -> None:
        self._rules: list[_Rule] = []

    def __len__(self) -> int:
        return len(self._rules)

    def add_rule(self, definition: Mapping[str, Any]) -> None:
        conditions = definition.get("conditions")
        if not isinstance(conditions, Mapping) or not (
            {"all", "any", "not"} & conditions.keys()
        ):
            raise RuleDefinitionError("Rule conditions must have an 'all', 'any' or 'not' root")
        _check_node(conditions)

        event = definition.get("event")
        if not isinstance(event, Mapping) or not event.get("type"):
            raise RuleDefinitionError("Rule event must define a 'type'")

        priority = definition.get("priority", DEFAULT_PRIORITY)
        if not isinstance(priority, int) or isinstance(priority, bool) or priority < 1:
            raise RuleDefinitionError(f"Rule priority must be a positive integer, got {priority!r}")

        self._rules.append(_Rule(
            conditions=dict(conditions),
            event=RuleEvent(type=str(event["type"]), params=dict(event.get("params") or {})),
            priority=priority,
            order=len(self._rules),
        ))

    def run(self, facts: Mapping[str, Any]) -> list[RuleEvent]:
        events: list[RuleEvent] = []
        for rule in sorted(self._rules, key=lambda r: (-r.priority, r.order)):
            if _evaluate(rule.conditions, facts):
                logger.debug("Rule fired: %s", rule.event.type)
                events.append(RuleEvent(type=rule.event.type, params=dict(rule.event.params)))
        return events


def _check_node(node: Any) -> None:
    """Validate a condition tree recursively."""
    if not isinstance(node, Mapping):
        raise RuleDefinitionError(f"Condition must be a mapping, got {type(node).__name__}")

    if "all" in node or "any" in node:
        children = node.get("all", node.get("any"))
        if not isinstance(children, list):
            raise RuleDefinitionError("'all' / 'any' must hold a list of conditions")
        for child in children:
            _check_node(child)
        return

    if "not" in node:
        _check_node(node["not"])
        return

    if "fact" not in node or "operator" not in node or "value" not in node:
        raise RuleDefinitionError(f"Condition needs fact, operator and value: {dict(node)!r}")
    if node["operator"] not in OPERATORS:
        raise RuleDefinitionError(f"Unknown operator {node['operator']!r}")


def _evaluate(node: Mapping[str, Any], facts: Mapping[str, Any]) -> bool:
    if "all" in node:
        return all(_evaluate(child, facts) for child in node["all"])
    if "any" in node:
        return any(_evaluate(child, facts) for child in node["any"])
    if "not" in node:
        return not _evaluate(node["not"], facts)

    name = node["fact"]
    if name not in facts:
        return False
    try:
        return bool(OPERATORS[node["operator"]](facts[name], node["value"]))
    except TypeError:
        # e.g. comparing a string fact to a numeric threshold
        return False
