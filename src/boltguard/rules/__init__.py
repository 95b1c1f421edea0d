"""
Rule evaluation for boltguard.

Architecture:
    - Evaluator: Abstract base class, one subclass per rule kind
    - EvaluatorRegistry: Maps rule kinds to evaluators (the extension point)
    - RuleEngine: Runs every rule of a policy against image facts
    - Aggregates: Pure functions over a list of Results

Built-in kinds: user, size, label, env, base, layers.
"""

from boltguard.rules.base import Evaluator
from boltguard.rules.engine import (
    RuleEngine,
    count_by_severity,
    count_failures,
    fail_fast_triggered,
    failures_at_or_above,
    has_critical_failures,
    has_errors,
)
from boltguard.rules.evaluators import (
    BaseImageEvaluator,
    EnvEvaluator,
    LabelEvaluator,
    LayersEvaluator,
    SizeEvaluator,
    UserEvaluator,
    builtin_evaluators,
)
from boltguard.rules.registry import EvaluatorRegistry, create_default_registry

__all__ = [
    "Evaluator",
    "EvaluatorRegistry",
    "RuleEngine",
    "create_default_registry",
    "builtin_evaluators",
    "UserEvaluator",
    "SizeEvaluator",
    "LabelEvaluator",
    "EnvEvaluator",
    "BaseImageEvaluator",
    "LayersEvaluator",
    "count_failures",
    "count_by_severity",
    "has_critical_failures",
    "has_errors",
    "failures_at_or_above",
    "fail_fast_triggered",
]
