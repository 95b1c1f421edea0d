"""
Integration tests for the scan pipeline.

Tests cover:
- Scanning a `docker save` archive against a policy
- Scanning preloaded images and bare facts
- Scanning against the packaged default policy
- Rendering the resulting report in every format
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

from boltguard.facts import Facts
from boltguard.image import LoadedImage
from boltguard.policy import load_default_policy
from boltguard.report import render_report
from boltguard.rules import RuleEngine
from boltguard.scanner import Scanner
from boltguard.schema import Policy

SCAN_TIME = datetime(2024, 6, 1, 8, 0, 0, tzinfo=UTC)


class TestScanArchive:
    """Scanning a saved image end to end."""

    def test_scan(self, make_archive: Callable[..., Path], sample_policy: Policy) -> None:
        """The archive is evaluated against every rule."""
        path = make_archive()
        report = Scanner().scan(str(path), sample_policy, timestamp=SCAN_TIME)

        assert report.image == str(path)
        assert report.total == 6
        outcome = {r.rule_id: r.passed for r in report.results}
        assert outcome == {
            "R1": False,  # runs as root
            "R2": True,
            "R3": False,  # no version label
            "R4": False,  # DB_PASSWORD
            "R5": False,  # base image unknown
            "R6": True,
        }
        assert report.failed == 4
        assert report.by_severity["critical"] == 1
        assert report.facts is not None
        assert report.facts.layer_count == 2

    def test_render_every_format(self, make_archive: Callable[..., Path], sample_policy: Policy) -> None:
        """Reports from real scans render in every format."""
        report = Scanner().scan(str(make_archive()), sample_policy, timestamp=SCAN_TIME)

        assert "4 check(s) failed" in render_report(report, "text")
        assert json.loads(render_report(report, "json"))["summary"]["failed"] == 4
        sarif = json.loads(render_report(report, "sarif"))
        assert len(sarif["runs"][0]["results"]) == 4

    def test_default_policy(self, make_archive: Callable[..., Path]) -> None:
        """The packaged policy flags the root user and the password."""
        report = Scanner().scan(str(make_archive()), load_default_policy())
        failed = {r.rule_id for r in report.failures}

        assert "BG001" in failed
        assert "BG004" in failed
        assert "BG005" not in failed  # unknown base allowed
        assert "BG006" not in failed


class TestScanPreloaded:
    """Scanning without touching any image source."""

    def test_scan_image(self, sample_policy: Policy) -> None:
        """Preloaded metadata is evaluated like a loaded image."""
        image = LoadedImage(
            reference="inline:1",
            config={
                "config": {"User": "app", "Labels": {"maintainer": "a", "version": "1"}},
                "history": [{"created_by": "FROM debian:12"}],
            },
        )
        report = Scanner().scan_image(image, sample_policy, timestamp=SCAN_TIME)

        assert report.image == "inline:1"
        assert report.success is True
        assert report.timestamp == SCAN_TIME

    def test_scan_facts(self, make_facts: Callable[..., Facts], sample_policy: Policy) -> None:
        """Facts gathered elsewhere can be evaluated directly."""
        facts = make_facts(user="root")
        report = Scanner().scan_facts("external", facts, sample_policy)

        assert report.image == "external"
        assert report.facts is facts
        assert report.results[0].passed is False

    def test_custom_engine(self, make_facts: Callable[..., Facts], sample_policy: Policy) -> None:
        """A scanner uses the engine it was given."""
        engine = RuleEngine()
        engine.registry.unregister("user")
        report = Scanner(engine=engine).scan_facts("x", make_facts(), sample_policy)

        assert report.results[0].message == "unknown rule kind: user"
