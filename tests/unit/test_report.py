"""
Unit tests for report building and rendering.

Tests cover:
- Report summary counts
- Text rendering: section order, severity breakdown, verdict
- JSON rendering: document shape
- SARIF rendering: rules, findings and level mapping
- Format dispatch
"""

import json
from datetime import UTC, datetime, timedelta, timezone

import pytest

from boltguard.errors import ReportFormatError
from boltguard.report import (
    REPORT_FORMATS,
    Report,
    build_report,
    build_report_dict,
    build_sarif_dict,
    render_report,
    render_text_report,
    severity_to_level,
)
from boltguard.schema import Policy, Result, Rule

SCAN_TIME = datetime(2024, 6, 1, 8, 0, 0, tzinfo=UTC)


@pytest.fixture
def policy() -> Policy:
    return Policy(
        name="test-policy",
        version="2.0.0",
        rules=[
            Rule(id="R1", name="Non-root user", description="Run as non-root", severity="high", kind="user"),
            Rule(id="R2", name="Image size", severity="medium", kind="size"),
            Rule(id="R3", name="Secrets", description="No secrets", severity="critical", kind="env"),
            Rule(id="R4", name="Layers", severity="info", kind="layers"),
        ],
    )


@pytest.fixture
def mixed_results() -> list[Result]:
    return [
        Result(rule_id="R1", rule_name="Non-root user", severity="high",
               description="Run as non-root", passed=False, message="image runs as root (user=)"),
        Result(rule_id="R2", rule_name="Image size", severity="medium",
               passed=True, message="image size: 80MB"),
        Result(rule_id="R3", rule_name="Secrets", severity="critical", description="No secrets",
               passed=False, message="found suspicious env vars: env var API_KEY matches pattern (?i)key"),
        Result(rule_id="R4", rule_name="Layers", severity="info",
               passed=True, message="layer count: 4"),
    ]


@pytest.fixture
def passing_results(mixed_results: list[Result]) -> list[Result]:
    return [r.model_copy(update={"passed": True}) for r in mixed_results]


class TestReport:
    """Tests for the Report model."""

    def test_counts(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Counts are computed at build time."""
        report = build_report("app:1", policy, mixed_results, timestamp=SCAN_TIME)

        assert report.total == 4
        assert report.passed == 2
        assert report.failed == 2
        assert report.by_severity == {"critical": 1, "high": 1, "medium": 0, "low": 0, "info": 0}
        assert report.success is False
        assert [r.rule_id for r in report.failures] == ["R1", "R3"]
        assert [r.rule_id for r in report.passes] == ["R2", "R4"]

    def test_success(self, policy: Policy, passing_results: list[Result]) -> None:
        """A report without failures is a success."""
        report = build_report("app:1", policy, passing_results)
        assert report.success is True
        assert report.failed == 0

    def test_timestamp_format(self, policy: Policy) -> None:
        """Timestamps render as RFC 3339 UTC."""
        report = build_report("app:1", policy, [], timestamp=SCAN_TIME)
        assert report.timestamp_str == "2024-06-01T08:00:00Z"

    def test_timestamp_converted_to_utc(self, policy: Policy) -> None:
        """Offsets are normalized to UTC."""
        tz = timezone(timedelta(hours=2))
        report = build_report("app:1", policy, [], timestamp=datetime(2024, 6, 1, 10, 0, tzinfo=tz))
        assert report.timestamp_str == "2024-06-01T08:00:00Z"

    def test_naive_timestamp_treated_as_utc(self, policy: Policy) -> None:
        """Naive datetimes are taken to be UTC."""
        report = Report(image="x", policy=policy, results=[], timestamp=datetime(2024, 6, 1, 8, 0))
        assert report.timestamp_str == "2024-06-01T08:00:00Z"

    def test_default_timestamp(self, policy: Policy) -> None:
        """Reports are stamped with the current time."""
        before = datetime.now(UTC)
        report = build_report("x", policy, [])
        assert report.timestamp >= before


class TestTextReport:
    """Tests for the text renderer."""

    def test_header(self, policy: Policy, mixed_results: list[Result]) -> None:
        """The header names the image, policy and scan time."""
        text = render_text_report(build_report("app:1", policy, mixed_results, timestamp=SCAN_TIME))

        assert "boltguard report" in text
        assert "Image:    app:1" in text
        assert "Policy:   test-policy (v2.0.0)" in text
        assert "Scanned:  2024-06-01T08:00:00Z" in text

    def test_summary(self, policy: Policy, mixed_results: list[Result]) -> None:
        """The summary lists the counts."""
        text = render_text_report(build_report("app:1", policy, mixed_results))

        assert "Total checks: 4" in text
        assert "Passed:     2" in text
        assert "Failed:     2" in text

    def test_section_order(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Sections appear in a fixed order."""
        text = render_text_report(build_report("app:1", policy, mixed_results))

        positions = [
            text.index("boltguard report"),
            text.index("Summary"),
            text.index("Failures by severity:"),
            text.index("Failures\n"),
            text.index("Passed Checks"),
            text.index("2 check(s) failed"),
        ]
        assert positions == sorted(positions)

    def test_severity_breakdown_skips_zero(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Only severities with failures are listed."""
        text = render_text_report(build_report("app:1", policy, mixed_results))
        breakdown = text.split("Failures by severity:")[1].split("Failures\n")[0]

        assert "Critical:" in breakdown
        assert "High:" in breakdown
        assert "Medium:" not in breakdown
        assert "Info:" not in breakdown
        assert breakdown.index("Critical:") < breakdown.index("High:")

    def test_failure_details(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Each failure shows severity, name, ID, message and description."""
        text = render_text_report(build_report("app:1", policy, mixed_results))

        assert "[HIGH] Non-root user" in text
        assert "[CRITICAL] Secrets" in text
        assert "ID:      R1" in text
        assert "Message: image runs as root (user=)" in text
        assert "Detail:  Run as non-root" in text

    def test_markup_in_messages_is_literal(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Square brackets in messages are printed, not interpreted."""
        results = [mixed_results[0].model_copy(update={"message": "pattern [a-z]+ matched [bold]"})]
        text = render_text_report(build_report("app:1", policy, results))
        assert "pattern [a-z]+ matched [bold]" in text

    def test_passed_checks(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Passing rules are listed with their message."""
        text = render_text_report(build_report("app:1", policy, mixed_results))
        assert "✓ Image size: image size: 80MB" in text
        assert "✓ Layers: layer count: 4" in text

    def test_all_passed(self, policy: Policy, passing_results: list[Result]) -> None:
        """A clean report has no failure sections."""
        text = render_text_report(build_report("app:1", policy, passing_results))

        assert "All checks passed" in text
        assert "Failures by severity:" not in text
        assert "check(s) failed" not in text


class TestJsonReport:
    """Tests for the JSON renderer."""

    def test_document_shape(self, policy: Policy, mixed_results: list[Result]) -> None:
        """The document carries image, policy, timestamp, summary and results."""
        report = build_report("app:1", policy, mixed_results, timestamp=SCAN_TIME)
        data = json.loads(render_report(report, "json"))

        assert data["image"] == "app:1"
        assert data["policy"] == {"name": "test-policy", "version": "2.0.0"}
        assert data["timestamp"] == "2024-06-01T08:00:00Z"
        assert data["summary"] == {
            "total": 4,
            "passed": 2,
            "failed": 2,
            "by_severity": {"critical": 1, "high": 1, "medium": 0, "low": 0, "info": 0},
        }
        assert len(data["results"]) == 4

    def test_results_in_order(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Results keep rule order and all their fields."""
        data = build_report_dict(build_report("app:1", policy, mixed_results))

        assert [r["rule_id"] for r in data["results"]] == ["R1", "R2", "R3", "R4"]
        first = data["results"][0]
        assert first["rule_name"] == "Non-root user"
        assert first["severity"] == "high"
        assert first["passed"] is False
        assert first["message"] == "image runs as root (user=)"
        assert first["description"] == "Run as non-root"


class TestSarifReport:
    """Tests for the SARIF renderer."""

    @pytest.mark.parametrize(
        ("severity", "level"),
        [
            ("critical", "error"),
            ("high", "error"),
            ("medium", "warning"),
            ("low", "note"),
            ("info", "none"),
            ("bogus", "none"),
        ],
    )
    def test_level_mapping(self, severity: str, level: str) -> None:
        """Severities map onto SARIF levels."""
        assert severity_to_level(severity) == level

    def test_log_shape(self, policy: Policy, mixed_results: list[Result]) -> None:
        """The log is SARIF 2.1.0 with a single run."""
        data = json.loads(render_report(build_report("app:1", policy, mixed_results), "sarif"))

        assert data["version"] == "2.1.0"
        assert "$schema" in data
        assert len(data["runs"]) == 1
        assert data["runs"][0]["tool"]["driver"]["name"] == "boltguard"

    def test_rule_descriptors(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Every policy rule gets a descriptor, passing or not."""
        run = build_sarif_dict(build_report("app:1", policy, mixed_results))["runs"][0]
        rules = run["tool"]["driver"]["rules"]

        assert [r["id"] for r in rules] == ["R1", "R2", "R3", "R4"]
        assert rules[0]["defaultConfiguration"]["level"] == "error"
        assert rules[0]["properties"] == {"severity": "high", "kind": "user"}
        assert rules[1]["fullDescription"]["text"] == "Image size"

    def test_findings_only_for_failures(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Only failing results become findings."""
        run = build_sarif_dict(build_report("app:1", policy, mixed_results))["runs"][0]
        findings = run["results"]

        assert [f["ruleId"] for f in findings] == ["R1", "R3"]
        assert findings[1]["level"] == "error"
        assert findings[0]["message"]["text"] == "image runs as root (user=)"
        uri = findings[0]["locations"][0]["physicalLocation"]["artifactLocation"]["uri"]
        assert uri == "app:1"

    def test_zero_findings(self, policy: Policy, passing_results: list[Result]) -> None:
        """A clean scan is still a valid log with an empty results list."""
        run = build_sarif_dict(build_report("app:1", policy, passing_results))["runs"][0]

        assert run["results"] == []
        assert len(run["tool"]["driver"]["rules"]) == 4
        assert run["invocations"][0]["executionSuccessful"] is True


class TestRenderReport:
    """Tests for format dispatch."""

    def test_formats(self) -> None:
        """Three formats are supported."""
        assert REPORT_FORMATS == ("text", "json", "sarif")

    def test_text_default(self, policy: Policy, mixed_results: list[Result]) -> None:
        """Text is the default format."""
        assert "boltguard report" in render_report(build_report("app:1", policy, mixed_results))

    def test_unknown_format(self, policy: Policy) -> None:
        """Unknown formats raise."""
        with pytest.raises(ReportFormatError) as exc_info:
            render_report(build_report("app:1", policy, []), "xml")
        assert exc_info.value.fmt == "xml"
