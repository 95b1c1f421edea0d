"""
Exception hierarchy for boltguard.

All boltguard exceptions inherit from BoltguardError, allowing callers to
catch all boltguard-specific exceptions with a single except clause.

Exception Categories:
    - PolicyLoadError / PolicyValidationError: policy could not be used
    - UnknownRuleKindError: rule names an evaluator that isn't registered
    - EvaluatorError / InvalidPatternError: evaluator could not decide
    - ImageLoadError / ImageNotFoundError: image metadata unavailable
    - ReportFormatError: unsupported output format

Policy and image errors are fatal before evaluation starts. Evaluation
errors never escape the rule engine; they become failing results.
"""

from dataclasses import dataclass


# =============================================================================
# Error Codes
# =============================================================================

# Policy errors: 1xxx
ERROR_POLICY_LOAD = 1001
ERROR_POLICY_INVALID = 1002

# Evaluation errors: 2xxx
ERROR_UNKNOWN_KIND = 2001
ERROR_EVALUATOR_FAILED = 2002
ERROR_INVALID_PATTERN = 2003

# Image errors: 3xxx
ERROR_IMAGE_LOAD = 3001
ERROR_IMAGE_NOT_FOUND = 3002

# Report errors: 4xxx
ERROR_REPORT_FORMAT = 4001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class BoltguardError(Exception):
    """
    Base exception for all boltguard errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"suggestion={self.suggestion!r})"
        )


# =============================================================================
# Policy Errors
# =============================================================================


@dataclass
class PolicyLoadError(BoltguardError):
    """
    Raised when a policy document cannot be read or parsed.

    Attributes:
        path: Where the policy was loaded from ("<string>" for inline text)
        reason: What went wrong
    """

    path: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load policy {self.path}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_POLICY_LOAD


@dataclass
class PolicyValidationError(BoltguardError):
    """
    Raised when a parsed policy is structurally invalid.

    Attributes:
        field_name: The field that failed validation
        rule_index: Position of the offending rule (None for policy-level fields)
        rule_id: ID of the offending rule, when it has one
    """

    field_name: str = ""
    rule_index: int | None = None
    rule_id: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            if self.rule_index is None:
                self.message = f"Invalid policy: {self.field_name}"
            else:
                label = self.rule_id or f"#{self.rule_index}"
                self.message = f"Invalid policy: rule {label} has invalid {self.field_name}"
        if self.code == 0:
            self.code = ERROR_POLICY_INVALID


# =============================================================================
# Evaluation Errors
# =============================================================================


@dataclass
class UnknownRuleKindError(BoltguardError):
    """Raised when no evaluator is registered for a rule kind."""

    kind: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"unknown rule kind: {self.kind}"
        if self.code == 0:
            self.code = ERROR_UNKNOWN_KIND
        if not self.suggestion:
            self.suggestion = "Check the rule kind spelling or register an evaluator for it"


@dataclass
class EvaluatorError(BoltguardError):
    """
    Raised by an evaluator that cannot reach a decision.

    The rule engine converts this into a failing result; it never aborts
    the evaluation of the remaining rules.

    Attributes:
        kind: Kind of the evaluator that failed
        reason: What went wrong
    """

    kind: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = self.reason or f"{self.kind} evaluator failed"
        if self.code == 0:
            self.code = ERROR_EVALUATOR_FAILED


@dataclass
class InvalidPatternError(EvaluatorError):
    """Raised when a rule's regular expression does not compile."""

    pattern: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"invalid regex pattern {self.pattern}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_INVALID_PATTERN
        super().__post_init__()


# =============================================================================
# Image Errors
# =============================================================================


@dataclass
class ImageLoadError(BoltguardError):
    """
    Raised when image metadata cannot be read.

    Attributes:
        reference: Image reference or archive path
        reason: What went wrong
    """

    reference: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load image {self.reference}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_IMAGE_LOAD


@dataclass
class ImageNotFoundError(ImageLoadError):
    """Raised when the image exists neither as an archive nor in the daemon."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Image not found locally: {self.reference}"
        if self.code == 0:
            self.code = ERROR_IMAGE_NOT_FOUND
        if not self.suggestion:
            self.suggestion = f"Run 'docker save {self.reference} -o image.tar' and scan the archive"
        super().__post_init__()


# =============================================================================
# Report Errors
# =============================================================================


@dataclass
class ReportFormatError(BoltguardError):
    """Raised when a report is requested in an unsupported format."""

    fmt: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unsupported report format: {self.fmt}"
        if self.code == 0:
            self.code = ERROR_REPORT_FORMAT
        if not self.suggestion:
            self.suggestion = "Use one of: text, json, sarif"
