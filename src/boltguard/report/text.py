"""
Console report generator for boltguard.

Renders the human-readable report with Rich. Sections always appear in the
same order:

    header, summary, failures by severity, failures, passed checks, verdict

Severity breakdown only lists severities with at least one failure. The
verdict depends on nothing but the failed count.
"""

from io import StringIO

from rich.console import Console
from rich.markup import escape

from boltguard.report.builder import Report
from boltguard.schema import SEVERITIES

ICON_PASS = "[green]✓[/green]"
ICON_FAIL = "[red]✗[/red]"

_SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "cyan",
    "info": "dim",
}


def generate_text_report(report: Report, console: Console | None = None) -> None:
    """
    Print a report to the console.

    Args:
        report: The report to render
        console: Rich Console instance (creates one if not provided)
    """
    if console is None:
        console = Console()

    _print_header(console, report)
    _print_summary(console, report)
    if report.failed > 0:
        _print_severity_breakdown(console, report)
        _print_failures(console, report)
    if report.passed > 0:
        _print_passes(console, report)
    _print_verdict(console, report)


def render_text_report(report: Report, width: int = 100) -> str:
    """Render a report to a plain string, without colors."""
    buffer = StringIO()
    console = Console(
        file=buffer,
        width=width,
        color_system=None,
        highlight=False,
        soft_wrap=True,
        emoji=False,
    )
    generate_text_report(report, console=console)
    return buffer.getvalue()


def _print_header(console: Console, report: Report) -> None:
    console.print("[bold]boltguard report[/bold]")
    console.print("================")
    console.print()
    console.print(f"Image:    [cyan]{escape(report.image)}[/cyan]")
    console.print(f"Policy:   {escape(report.policy.name)} (v{escape(report.policy.version)})")
    console.print(f"Scanned:  {report.timestamp_str}")
    console.print()


def _print_summary(console: Console, report: Report) -> None:
    console.print("[bold]Summary[/bold]")
    console.print("-------")
    console.print(f"Total checks: {report.total}")
    console.print(f"  Passed:     [green]{report.passed}[/green]")
    failed_style = "red" if report.failed else "green"
    console.print(f"  Failed:     [{failed_style}]{report.failed}[/{failed_style}]")
    console.print()


def _print_severity_breakdown(console: Console, report: Report) -> None:
    console.print("Failures by severity:")
    for severity in SEVERITIES:
        count = report.by_severity.get(severity, 0)
        if count > 0:
            label = f"{severity.capitalize()}:"
            style = _SEVERITY_STYLES[severity]
            console.print(f"  [{style}]{label:<9}[/{style}] {count}")
    console.print()


def _print_failures(console: Console, report: Report) -> None:
    console.print("[bold]Failures[/bold]")
    console.print("--------")
    for result in report.failures:
        style = _SEVERITY_STYLES.get(result.severity, "bold")
        tag = escape(f"[{result.severity.upper()}]")
        console.print(f"[{style}]{tag}[/{style}] {escape(result.rule_name)}")
        console.print(f"  ID:      {escape(result.rule_id)}")
        console.print(f"  Message: {escape(result.message)}")
        if result.description:
            console.print(f"  Detail:  {escape(result.description)}")
        console.print()


def _print_passes(console: Console, report: Report) -> None:
    console.print("[bold]Passed Checks[/bold]")
    console.print("-------------")
    for result in report.passes:
        console.print(f"{ICON_PASS} {escape(result.rule_name)}: {escape(result.message)}")
    console.print()


def _print_verdict(console: Console, report: Report) -> None:
    if report.failed == 0:
        console.print(f"{ICON_PASS} [bold green]All checks passed[/bold green]")
    else:
        console.print(f"{ICON_FAIL} [bold red]{report.failed} check(s) failed[/bold red]")
