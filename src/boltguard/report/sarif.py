"""
SARIF report generator for boltguard.

Produces a SARIF 2.1.0 log so scan results can be uploaded to code
scanning dashboards. SARIF is a findings format, so only failing results
are emitted; every policy rule still gets a rule descriptor.

There is no file-level location for image metadata, so every finding
points at the scanned image itself.

Reference: https://docs.oasis-open.org/sarif/sarif/v2.1.0/sarif-v2.1.0.html
"""

import json
from typing import Any

from boltguard import __version__
from boltguard.report.builder import Report

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
TOOL_NAME = "boltguard"
TOOL_URI = "https://github.com/boltguard/boltguard"

_LEVELS = {
    "critical": "error",
    "high": "error",
    "medium": "warning",
    "low": "note",
}


def severity_to_level(severity: str) -> str:
    """Map a rule severity to a SARIF level."""
    return _LEVELS.get(severity, "none")


def generate_sarif_report(report: Report, indent: int = 2) -> str:
    """Render a report as a SARIF 2.1.0 JSON document."""
    return json.dumps(build_sarif_dict(report), indent=indent)


def build_sarif_dict(report: Report) -> dict[str, Any]:
    """Build the SARIF log for a report."""
    return {
        "version": SARIF_VERSION,
        "$schema": SARIF_SCHEMA,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "informationUri": TOOL_URI,
                        "version": __version__,
                        "semanticVersion": __version__,
                        "rules": _build_rules(report),
                    },
                },
                "artifacts": [
                    {
                        "location": {"uri": report.image},
                        "description": {"text": f"Container image: {report.image}"},
                    },
                ],
                "invocations": [
                    {
                        "executionSuccessful": True,
                        "endTimeUtc": report.timestamp_str,
                    },
                ],
                "results": _build_results(report),
            },
        ],
    }


def _build_rules(report: Report) -> list[dict[str, Any]]:
    """One rule descriptor per policy rule."""
    return [
        {
            "id": rule.id,
            "name": rule.name,
            "shortDescription": {"text": rule.name},
            "fullDescription": {"text": rule.description or rule.name},
            "defaultConfiguration": {"level": severity_to_level(rule.severity)},
            "properties": {"severity": rule.severity, "kind": rule.kind},
        }
        for rule in report.policy.rules
    ]


def _build_results(report: Report) -> list[dict[str, Any]]:
    """One finding per failing result."""
    return [
        {
            "ruleId": result.rule_id,
            "level": severity_to_level(result.severity),
            "message": {"text": result.message},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": report.image},
                    },
                },
            ],
        }
        for result in report.results
        if not result.passed
    ]
