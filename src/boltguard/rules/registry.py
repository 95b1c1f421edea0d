"""
Evaluator registry for boltguard.

The registry maps rule kinds to evaluators. It is the extension point of
the rule engine: registering an evaluator for a new kind makes policies
using that kind evaluable without touching the engine.

Usage:
    from boltguard.rules.registry import create_default_registry

    registry = create_default_registry()
    registry.register(MyEvaluator())
    evaluator = registry.get("my-kind")
"""

from typing import Iterator

from boltguard.errors import UnknownRuleKindError
from boltguard.rules.base import Evaluator
from boltguard.rules.evaluators import builtin_evaluators


class EvaluatorRegistry:
    """
    Registry for looking up evaluators by rule kind.

    Attributes:
        _evaluators: Internal mapping of kinds to evaluator instances
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._evaluators: dict[str, Evaluator] = {}

    def register(self, evaluator: Evaluator) -> None:
        """
        Register an evaluator under its kind.

        Registering a kind that already exists replaces the previous
        evaluator, which lets callers override built-ins.

        Args:
            evaluator: The evaluator instance to register

        Raises:
            ValueError: If evaluator is None or has an empty kind
        """
        if evaluator is None:
            msg = "Cannot register None as an evaluator"
            raise ValueError(msg)

        kind = evaluator.kind
        if not kind:
            msg = "Evaluator must have a non-empty kind"
            raise ValueError(msg)

        self._evaluators[kind] = evaluator

    def get(self, kind: str) -> Evaluator:
        """
        Look up an evaluator by kind.

        Raises:
            UnknownRuleKindError: If no evaluator handles that kind
        """
        evaluator = self._evaluators.get(kind)
        if evaluator is None:
            raise UnknownRuleKindError(kind=kind)
        return evaluator

    def get_optional(self, kind: str) -> Evaluator | None:
        """Look up an evaluator by kind, returning None if not found."""
        return self._evaluators.get(kind)

    def has(self, kind: str) -> bool:
        """Check if a kind is registered."""
        return kind in self._evaluators

    def unregister(self, kind: str) -> bool:
        """
        Remove an evaluator from the registry.

        Returns:
            True if the evaluator was removed, False if it wasn't registered
        """
        if kind in self._evaluators:
            del self._evaluators[kind]
            return True
        return False

    def list_kinds(self) -> list[str]:
        """List all registered kinds in sorted order."""
        return sorted(self._evaluators.keys())

    def __len__(self) -> int:
        """Return the number of registered evaluators."""
        return len(self._evaluators)

    def __iter__(self) -> Iterator[Evaluator]:
        """Iterate over all registered evaluators."""
        return iter(self._evaluators.values())

    def __contains__(self, kind: str) -> bool:
        """Check if a kind is registered using 'in' operator."""
        return kind in self._evaluators

    def __repr__(self) -> str:
        """String representation of the registry."""
        kinds = ", ".join(self.list_kinds())
        return f"<EvaluatorRegistry: [{kinds}]>"


def create_default_registry() -> EvaluatorRegistry:
    """Return a new registry holding the six built-in evaluators."""
    registry = EvaluatorRegistry()
    for evaluator in builtin_evaluators():
        registry.register(evaluator)
    return registry
