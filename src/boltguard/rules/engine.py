"""
Rule Engine for boltguard.

The rule engine evaluates every rule of a policy against one set of image
facts and returns one Result per rule, in declaration order.

Evaluation Flow:
    For each rule in the policy:
        a. Look up the evaluator for the rule's kind
           (unknown kind: failing result naming the kind)
        b. Run the evaluator
           (evaluator error: failing result embedding the error)
        c. Label the result with the rule's id, name, severity, description

Design Principles:
    - Total: every rule yields exactly one Result, the loop never aborts
    - Deterministic: same facts and policy give identical Results
    - Stateless: nothing is kept between evaluate() calls, so one engine
      can serve concurrent scans once registration is done
    - fail_fast is only surfaced to callers, never enforced here
"""

import logging

from boltguard.errors import EvaluatorError
from boltguard.facts import Facts
from boltguard.rules.base import Evaluator
from boltguard.rules.registry import EvaluatorRegistry, create_default_registry
from boltguard.schema import SEVERITIES, Policy, Result, Rule, severity_rank

logger = logging.getLogger(__name__)


class RuleEngine:
    """
    Evaluates policies against image facts.

    Usage:
        engine = RuleEngine()
        results = engine.evaluate(facts, policy)
        if count_failures(results):
            ...

    Attributes:
        registry: Evaluators available to this engine, by kind
    """

    def __init__(self, registry: EvaluatorRegistry | None = None) -> None:
        """
        Initialize the rule engine.

        Args:
            registry: Evaluator registry (defaults to a new registry holding
                the built-in evaluators)
        """
        self.registry = registry if registry is not None else create_default_registry()

    def register(self, evaluator: Evaluator) -> None:
        """Add or replace the evaluator for a rule kind."""
        self.registry.register(evaluator)

    def evaluate(self, facts: Facts, policy: Policy) -> list[Result]:
        """
        Evaluate every rule of a policy.

        Args:
            facts: Image facts
            policy: A validated policy

        Returns:
            One Result per rule, in rule declaration order
        """
        results = [self.evaluate_rule(facts, rule) for rule in policy.rules]
        logger.debug(
            "Evaluated %d rules of policy %r: %d failed",
            len(results),
            policy.name,
            count_failures(results),
        )
        return results

    def evaluate_rule(self, facts: Facts, rule: Rule) -> Result:
        """Evaluate a single rule; never raises for evaluator problems."""
        evaluator = self.registry.get_optional(rule.kind)
        if evaluator is None:
            logger.warning("Rule %s uses unknown kind %r", rule.id, rule.kind)
            return _error_result(rule, f"unknown rule kind: {rule.kind}")

        try:
            result = evaluator.evaluate(facts, rule)
        except EvaluatorError as e:
            logger.warning("Rule %s could not be evaluated: %s", rule.id, e.message)
            return _error_result(rule, f"evaluation error: {e.message}")
        except Exception as e:
            # Third-party evaluators may break their contract
            logger.warning("Evaluator %r crashed on rule %s: %s", rule.kind, rule.id, e)
            return _error_result(rule, f"evaluation error: {e}")

        return result.model_copy(
            update={
                "rule_id": rule.id,
                "rule_name": rule.name,
                "severity": rule.severity,
                "description": rule.description,
            }
        )


def _error_result(rule: Rule, message: str) -> Result:
    """Failing result for a rule that could not be evaluated."""
    return Result(
        rule_id=rule.id,
        rule_name=rule.name,
        severity=rule.severity,
        description=rule.description,
        passed=False,
        message=message,
        errored=True,
    )


# =============================================================================
# Aggregates
# =============================================================================


def count_failures(results: list[Result]) -> int:
    """Number of failing results."""
    return sum(1 for r in results if not r.passed)


def count_by_severity(results: list[Result]) -> dict[str, int]:
    """Failures per severity; every severity is present, zero when absent."""
    counts = {severity: 0 for severity in SEVERITIES}
    for r in results:
        if not r.passed:
            counts[r.severity] = counts.get(r.severity, 0) + 1
    return counts


def has_critical_failures(results: list[Result]) -> bool:
    """True when any critical rule failed."""
    return any(not r.passed and r.severity == "critical" for r in results)


def has_errors(results: list[Result]) -> bool:
    """True when any rule could not be evaluated."""
    return any(r.errored for r in results)


def failures_at_or_above(results: list[Result], min_severity: str) -> list[Result]:
    """Failing results whose severity is at least min_severity."""
    threshold = severity_rank(min_severity)
    return [r for r in results if not r.passed and severity_rank(r.severity) >= threshold]


def fail_fast_triggered(policy: Policy, results: list[Result]) -> list[Result]:
    """
    Failing results whose rule is marked fail_fast.

    Results are matched to rules by position, which the engine guarantees.
    """
    return [
        result
        for rule, result in zip(policy.rules, results)
        if rule.fail_fast and not result.passed
    ]
