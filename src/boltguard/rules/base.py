"""
Base class for rule evaluators.

An evaluator is the decision function behind one rule kind. It receives the
image facts and the rule (for its config) and returns a Result.

Contract for every evaluator, built-in or third-party:
    - Total: always returns exactly one Result, never a partial one
    - Deterministic: same facts and rule give the same Result
    - Side-effect free: no I/O, no state kept between calls
    - Unaware of rule identity: the engine labels the Result afterwards

An evaluator that cannot decide raises EvaluatorError; the engine turns that
into a failing Result for the rule and carries on with the next one.
"""

from abc import ABC, abstractmethod

from boltguard.facts import Facts
from boltguard.schema import Result, Rule


class Evaluator(ABC):
    """
    Abstract base class for all evaluators.

    Subclasses must implement:
    - kind property: The rule kind this evaluator handles
    - evaluate(): The decision logic

    Example:
        class ArchEvaluator(Evaluator):
            @property
            def kind(self) -> str:
                return "arch"

            def evaluate(self, facts: Facts, rule: Rule) -> Result:
                wanted = rule.config_str("architecture")
                if facts.architecture == wanted:
                    return Result.pass_(f"architecture: {facts.architecture}")
                return Result.fail(f"architecture {facts.architecture} is not {wanted}")
    """

    @property
    @abstractmethod
    def kind(self) -> str:
        """The rule kind this evaluator handles (e.g. "user", "size")."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the evaluator checks."""
        return f"Evaluator: {self.kind}"

    @abstractmethod
    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        """
        Decide whether the image satisfies the rule.

        Args:
            facts: Image facts (read-only)
            rule: The rule being evaluated; only its config matters here

        Returns:
            A Result with passed and message set

        Raises:
            EvaluatorError: When the rule config makes a decision impossible
        """
        ...

    def __repr__(self) -> str:
        """String representation of the evaluator."""
        return f"<Evaluator: {self.kind}>"
