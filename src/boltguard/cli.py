"""
CLI entry point for boltguard.

This module provides the Typer-based command-line interface.

Commands:
    scan        Evaluate one or more images against a policy
    validate    Check that a policy file is well-formed
    kinds       List the rule kinds this build can evaluate

Exit codes:
    0   All images passed (at the policy's min_severity)
    1   At least one image failed
    2   A policy or image could not be loaded

The CLI is intentionally thin: it resolves inputs, delegates to Scanner and
the report renderers, and maps outcomes to exit codes.
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from boltguard import __version__
from boltguard.errors import BoltguardError
from boltguard.log import setup_logging
from boltguard.policy import load_policy, resolve_policy
from boltguard.report import REPORT_FORMATS, Report, build_report_dict, generate_text_report
from boltguard.report.sarif import build_sarif_dict
from boltguard.rules import RuleEngine, fail_fast_triggered, failures_at_or_above, has_errors
from boltguard.scanner import Scanner
from boltguard.schema import Policy

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2

app = typer.Typer(
    name="boltguard",
    help="Offline policy checks for container images.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]boltguard[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    boltguard - Offline policy checks for container images.

    Evaluates image metadata against a declarative YAML policy and reports
    a pass/fail verdict per rule.
    """
    pass


@app.command()
def scan(
    images: Annotated[
        list[str],
        typer.Argument(help="Image references or `docker save` archives to scan."),
    ],
    policy_path: Annotated[
        Optional[Path],
        typer.Option(
            "--policy",
            "-p",
            help="Path to the policy YAML file. Defaults to the first policy found "
            "in ./policies, /etc/boltguard, ~/.config/boltguard, then the built-in one.",
            envvar="BOLTGUARD_POLICY",
            resolve_path=True,
        ),
    ] = None,
    fmt: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: text, json or sarif.",
            envvar="BOLTGUARD_FORMAT",
        ),
    ] = "text",
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Write the report to this file instead of stdout.",
            resolve_path=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log progress to stderr.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug mode with full error tracebacks.",
        ),
    ] = False,
) -> None:
    """
    Evaluate images against a policy.

    Images are scanned in order. Scanning stops early when an image fails a
    rule marked fail_fast.

    Example:
        $ boltguard scan nginx:latest --policy strict.yaml --format sarif -o out.sarif
    """
    setup_logging("DEBUG" if debug else "INFO" if verbose else "WARNING", console=err_console)
    json_errors = fmt in ("json", "sarif")

    if fmt not in REPORT_FORMATS:
        _fail(f"Unsupported format: {fmt} (valid: {', '.join(REPORT_FORMATS)})", "usage_error", json_errors, debug)

    try:
        policy = resolve_policy(policy_path)
    except BoltguardError as e:
        _fail(f"Error loading policy: {e.message}", "policy_load_error", json_errors, debug)

    scanner = Scanner()
    reports: list[Report] = []
    for index, image in enumerate(images):
        try:
            report = scanner.scan(image, policy)
        except BoltguardError as e:
            _fail(f"Error loading image: {e.message}", "image_load_error", json_errors, debug, e.suggestion)
        reports.append(report)

        stopped_by = fail_fast_triggered(policy, report.results)
        if stopped_by and index < len(images) - 1:
            logger.warning(
                "Rule %s failed on %s and is marked fail_fast, skipping remaining images",
                stopped_by[0].rule_id,
                image,
            )
            break

    _emit(reports, fmt, output)
    raise typer.Exit(code=_exit_code(policy, reports))


@app.command()
def validate(
    policy_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the policy YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug mode with full error tracebacks.",
        ),
    ] = False,
) -> None:
    """
    Check that a policy file is well-formed.

    Example:
        $ boltguard validate policies/strict.yaml
    """
    try:
        policy = load_policy(policy_path)
    except BoltguardError as e:
        _fail(f"Invalid policy: {e.message}", "policy_load_error", False, debug)

    registry = RuleEngine().registry
    unknown = [rule for rule in policy.rules if rule.kind not in registry]
    for rule in unknown:
        console.print(
            f"[yellow]warning:[/yellow] rule {escape(rule.id)} uses unknown kind "
            f"{escape(rule.kind)!r}; it will always fail"
        )

    console.print(
        f"[green]✓[/green] Policy [bold]{escape(policy.name)}[/bold] "
        f"v{escape(policy.version)} is valid ({len(policy.rules)} rules)"
    )


@app.command()
def kinds() -> None:
    """List the rule kinds this build can evaluate."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Description")

    registry = RuleEngine().registry
    for kind in registry.list_kinds():
        table.add_row(kind, registry.get(kind).description)

    console.print(table)


# =============================================================================
# Helpers
# =============================================================================


def _emit(reports: list[Report], fmt: str, output: Path | None) -> None:
    """Render reports to stdout or a file."""
    if fmt == "text":
        if output is None:
            for report in reports:
                generate_text_report(report, console=console)
            return
        with output.open("w", encoding="utf-8") as f:
            file_console = Console(file=f, color_system=None, highlight=False, soft_wrap=True, emoji=False)
            for report in reports:
                generate_text_report(report, console=file_console)
        return

    if fmt == "json":
        documents = [build_report_dict(r) for r in reports]
        data: dict[str, Any] | list[dict[str, Any]] = documents[0] if len(documents) == 1 else documents
    else:
        sarif = build_sarif_dict(reports[0])
        for report in reports[1:]:
            sarif["runs"].extend(build_sarif_dict(report)["runs"])
        data = sarif

    text = json.dumps(data, indent=2)
    if output is None:
        print(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")


def _exit_code(policy: Policy, reports: list[Report]) -> int:
    """Map scan outcomes to an exit code."""
    for report in reports:
        if fail_fast_triggered(policy, report.results):
            return EXIT_FAILED
        if failures_at_or_above(report.results, policy.settings.min_severity):
            return EXIT_FAILED
        if policy.settings.fail_on_error and has_errors(report.results):
            return EXIT_FAILED
    return EXIT_OK


def _fail(
    message: str,
    error_type: str,
    json_output: bool,
    debug: bool,
    suggestion: str | None = None,
) -> NoReturn:
    """Report a fatal error and exit with EXIT_ERROR."""
    if json_output:
        data = {"error": True, "error_type": error_type, "message": message}
        if suggestion:
            data["suggestion"] = suggestion
        if debug:
            data["traceback"] = traceback.format_exc()
        print(json.dumps(data, indent=2))
    else:
        err_console.print(f"[red]error:[/red] {escape(message)}")
        if suggestion:
            err_console.print(f"[dim]{escape(suggestion)}[/dim]")
        if debug:
            err_console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
    raise typer.Exit(code=EXIT_ERROR)


if __name__ == "__main__":
    app()
