"""
JSON report generator for boltguard.

Generates structured output for programmatic consumption: image, policy,
timestamp, summary counts and the full ordered list of results.
"""

import json
from typing import Any

from boltguard.report.builder import Report


def generate_json_report(report: Report, indent: int = 2) -> str:
    """
    Render a report as JSON.

    Args:
        report: The report to render
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string
    """
    return json.dumps(build_report_dict(report), indent=indent)


def build_report_dict(report: Report) -> dict[str, Any]:
    """Build the JSON-ready dictionary for a report."""
    return {
        "image": report.image,
        "policy": {
            "name": report.policy.name,
            "version": report.policy.version,
        },
        "timestamp": report.timestamp_str,
        "summary": {
            "total": report.total,
            "passed": report.passed,
            "failed": report.failed,
            "by_severity": dict(report.by_severity),
        },
        "results": [result.model_dump() for result in report.results],
    }
