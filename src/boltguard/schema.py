"""
Schema definitions for boltguard.

This module defines the Pydantic models shared by the policy loader, the
rule engine and the report builder:
- Policy/Settings/Rule: What to check and how severe a violation is
- Result: The outcome of evaluating one rule against one image

Design Decisions:
    - Models are immutable once parsed (frozen=True)
    - Unknown keys are rejected (extra="forbid") so typos surface at load time
    - Policy documents are hand-written YAML: numbers are accepted for string
      fields (`version: 1.0`, `id: 101`) and empty sections mean "default"
    - Rule.config stays an open mapping; evaluators read it through typed
      accessors that fall back to a zero value instead of raising
    - Severity is kept as a plain string here and checked by the policy
      validator, which can name the offending rule
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Severity
# =============================================================================


class Severity(str, Enum):
    """Rule severity, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


SEVERITIES: tuple[str, ...] = tuple(s.value for s in Severity)

# Higher rank is more severe
SEVERITY_RANK: dict[str, int] = {
    "info": 0,
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}


def severity_rank(severity: str) -> int:
    """Return the rank of a severity, -1 for values outside the enumeration."""
    return SEVERITY_RANK.get(severity, -1)


# =============================================================================
# Policy Models
# =============================================================================


class Settings(BaseModel):
    """
    Global policy settings.

    Attributes:
        fail_on_error: Treat rules that could not be evaluated as scan failures
        min_severity: Lowest severity whose failures fail the scan
    """

    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)

    fail_on_error: bool = Field(
        default=False,
        description="Treat rules that could not be evaluated as scan failures",
    )
    min_severity: str = Field(
        default="info",
        description="Lowest severity whose failures fail the scan",
    )


class Rule(BaseModel):
    """
    A single declarative check.

    Attributes:
        id: Identifier, unique within its policy
        name: Display name
        description: Free-text explanation, shown as detail on failure
        severity: One of critical, high, medium, low, info
        kind: Which evaluator handles this rule (e.g. "user", "size")
        fail_fast: Signals callers to stop processing when this rule fails
        config: Evaluator-specific settings
    """

    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)

    id: str = Field(default="", description="Rule identifier")
    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="Free-text explanation")
    severity: str = Field(default="", description="critical/high/medium/low/info")
    kind: str = Field(default="", description="Evaluator kind")
    fail_fast: bool = Field(
        default=False,
        description="Signals callers to stop processing when this rule fails",
    )
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Evaluator-specific settings",
    )

    @field_validator("config", mode="before")
    @classmethod
    def _empty_config(cls, value: Any) -> Any:
        # "config:" with nothing after it parses as null
        return {} if value is None else value

    def config_str(self, key: str) -> str:
        """Return a string setting, or "" when absent or not a string."""
        value = self.config.get(key)
        return value if isinstance(value, str) else ""

    def config_int(self, key: str) -> int:
        """
        Return an integer setting, or 0 when absent or not numeric.

        YAML may produce either an int or a float for numeric values;
        floats are truncated. Booleans are not treated as numbers.
        """
        value = self.config.get(key)
        if isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            return int(value)
        return 0

    def config_bool(self, key: str) -> bool:
        """Return a boolean setting, or False when absent or not a bool."""
        value = self.config.get(key)
        return value if isinstance(value, bool) else False

    def config_list(self, key: str) -> list[str]:
        """Return the string items of a list setting, or [] when absent."""
        value = self.config.get(key)
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, str)]


class Policy(BaseModel):
    """
    A named, versioned set of rules.

    Rules are evaluated, and reported, in declaration order.

    Attributes:
        name: Policy name (required)
        description: What the policy is for
        version: Semantic version of the policy document
        settings: Global settings
        rules: Ordered list of rules
    """

    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)

    name: str = Field(default="", description="Policy name")
    description: str = Field(default="", description="What the policy is for")
    version: str = Field(default="", description="Policy document version")
    settings: Settings = Field(
        default_factory=Settings,
        description="Global settings",
    )
    rules: list[Rule] = Field(
        default_factory=list,
        description="Ordered list of rules",
    )

    @field_validator("settings", mode="before")
    @classmethod
    def _empty_settings(cls, value: Any) -> Any:
        return Settings() if value is None else value

    @field_validator("rules", mode="before")
    @classmethod
    def _empty_rules(cls, value: Any) -> Any:
        return [] if value is None else value

    def get_rule(self, rule_id: str) -> Rule | None:
        """Return the first rule with the given ID, or None."""
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None


# =============================================================================
# Runtime Models
# =============================================================================


class Result(BaseModel):
    """
    Outcome of evaluating one rule against one image.

    Evaluators only decide passed/message; the rule engine fills in the
    rule metadata afterwards.

    Attributes:
        rule_id: ID of the rule this result is for
        rule_name: Display name of the rule
        severity: Severity of the rule
        description: Rule description
        passed: Whether the image satisfies the rule
        message: Human-readable explanation
        errored: True when the rule could not be evaluated at all
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rule_id: str = Field(default="", description="Rule ID")
    rule_name: str = Field(default="", description="Rule display name")
    severity: str = Field(default="", description="Rule severity")
    description: str = Field(default="", description="Rule description")
    passed: bool = Field(..., description="Whether the image satisfies the rule")
    message: str = Field(default="", description="Human-readable explanation")
    errored: bool = Field(
        default=False,
        description="True when the rule could not be evaluated",
    )

    @classmethod
    def pass_(cls, message: str) -> "Result":
        """Create a passing result."""
        return cls(passed=True, message=message)

    @classmethod
    def fail(cls, message: str) -> "Result":
        """Create a failing result."""
        return cls(passed=False, message=message)
