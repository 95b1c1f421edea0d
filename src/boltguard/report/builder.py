"""
Report model for boltguard.

A Report bundles the results of one scan with what is needed to present
them: the image identifier, the policy used and when the scan happened.
Counts are computed once, when the report is built, and every renderer
reads them from here instead of re-deriving them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from boltguard.facts import Facts
from boltguard.rules.engine import count_by_severity
from boltguard.schema import Policy, Result

# RFC 3339, always UTC
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass
class Report:
    """
    Aggregated outcome of one scan.

    Attributes:
        image: Image identifier as given by the caller
        policy: The policy the image was evaluated against
        results: One Result per policy rule, in rule order
        timestamp: When the scan happened
        facts: The facts that were evaluated, when available
        total: Number of results
        passed: Number of passing results
        failed: Number of failing results
        by_severity: Failures per severity, all five severities present
    """

    image: str
    policy: Policy
    results: list[Result]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    facts: Facts | None = None

    total: int = field(init=False)
    passed: int = field(init=False)
    failed: int = field(init=False)
    by_severity: dict[str, int] = field(init=False)

    def __post_init__(self) -> None:
        """Compute the summary counts."""
        if self.timestamp.tzinfo is None:
            self.timestamp = self.timestamp.replace(tzinfo=UTC)
        self.total = len(self.results)
        self.passed = sum(1 for r in self.results if r.passed)
        self.failed = self.total - self.passed
        self.by_severity = count_by_severity(self.results)

    @property
    def success(self) -> bool:
        """Whether every rule passed."""
        return self.failed == 0

    @property
    def failures(self) -> list[Result]:
        """Failing results in rule order."""
        return [r for r in self.results if not r.passed]

    @property
    def passes(self) -> list[Result]:
        """Passing results in rule order."""
        return [r for r in self.results if r.passed]

    @property
    def timestamp_str(self) -> str:
        """Scan time as an RFC 3339 UTC string."""
        return self.timestamp.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def build_report(
    image: str,
    policy: Policy,
    results: list[Result],
    facts: Facts | None = None,
    timestamp: datetime | None = None,
) -> Report:
    """Build a Report, stamping it with the current time unless given one."""
    return Report(
        image=image,
        policy=policy,
        results=results,
        timestamp=timestamp or datetime.now(UTC),
        facts=facts,
    )
