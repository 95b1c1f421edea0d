"""
Reporting module for boltguard.

Turns a scan's results into one of three output formats:
    - text:  Rich console rendering for humans
    - json:  Structured output for programmatic consumption
    - sarif: SARIF 2.1.0 for code scanning dashboards

All renderers read the counts precomputed on Report.

Example:
    from boltguard.report import build_report, render_report

    report = build_report("nginx:latest", policy, results)
    print(render_report(report, "sarif"))
"""

from boltguard.errors import ReportFormatError
from boltguard.report.builder import Report, build_report
from boltguard.report.json import build_report_dict, generate_json_report
from boltguard.report.sarif import build_sarif_dict, generate_sarif_report, severity_to_level
from boltguard.report.text import generate_text_report, render_text_report

REPORT_FORMATS = ("text", "json", "sarif")


def render_report(report: Report, fmt: str = "text") -> str:
    """
    Render a report in the requested format.

    Raises:
        ReportFormatError: If fmt is not one of REPORT_FORMATS
    """
    if fmt == "text":
        return render_text_report(report)
    if fmt == "json":
        return generate_json_report(report)
    if fmt == "sarif":
        return generate_sarif_report(report)
    raise ReportFormatError(fmt=fmt)


__all__ = [
    "REPORT_FORMATS",
    "Report",
    "build_report",
    "render_report",
    "generate_text_report",
    "render_text_report",
    "generate_json_report",
    "build_report_dict",
    "generate_sarif_report",
    "build_sarif_dict",
    "severity_to_level",
]
