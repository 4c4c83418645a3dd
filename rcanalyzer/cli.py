"""rcanalyzer CLI: entry point for the support dump analyzer."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from rcanalyzer import __app_name__, __version__
from rcanalyzer.config import load_rules
from rcanalyzer.core.pipeline import run_analysis
from rcanalyzer.exceptions import ConfigurationError
from rcanalyzer.models import (
    CRITICAL,
    DOMAINS,
    ERROR,
    INFO,
    SEVERITIES,
    STATISTICS,
    WARNING,
    DumpAnalysis,
    normalize_severity,
)
from rcanalyzer.report import build_csv_report, build_json_report
from rcanalyzer.utils import validate_path

# ---------------------------------------------------------------------------
# App & Console
# ---------------------------------------------------------------------------

app = typer.Typer(
    name=__app_name__,
    help="RocketChat support dump analyzer: issues, health score and recommendations.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMATS: tuple[str, ...] = ("console", "json", "csv")

# ---------------------------------------------------------------------------
# Severity → Rich color mapping
# ---------------------------------------------------------------------------

_SEVERITY_COLORS: dict[str, str] = {
    CRITICAL: "magenta",
    ERROR: "red",
    WARNING: "yellow",
    INFO: "blue",
}


def _score_color(score: float) -> str:
    if score >= 90:
        return "green"
    if score >= 75:
        return "cyan"
    if score >= 60:
        return "yellow"
    return "red"


# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _parse_level(option: str, value: Optional[str]) -> Optional[str]:  # noqa: UP007
    """Validate a severity option value, exiting on bad input."""
    if value is None:
        return None
    level = normalize_severity(value)
    if level.lower() != value.strip().lower():
        console.print(
            f"[bold red]✗[/bold red] Invalid {option} value: {value}. "
            f"Must be one of: {', '.join(SEVERITIES)}"
        )
        raise typer.Exit(code=1)
    return level


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-v",
        help="Show the application version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Analyze RocketChat support dumps for deployment health."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    path: str = typer.Argument(
        ...,
        help="Path to the support dump directory or a single dump file.",
    ),
    output_format: str = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: console, json or csv.",
    ),
    output: Optional[Path] = typer.Option(  # noqa: UP007
        None,
        "--output",
        "-o",
        help="Write the json/csv report to this file instead of stdout.",
    ),
    config: Optional[Path] = typer.Option(  # noqa: UP007
        None,
        "--config",
        "-c",
        help="Rule configuration file (JSON).",
    ),
    severity: Optional[str] = typer.Option(  # noqa: UP007
        None,
        "--severity",
        "-s",
        help="Minimum severity to list (Info, Warning, Error, Critical).",
    ),
    fail_on: Optional[str] = typer.Option(  # noqa: UP007
        None,
        "--fail-on",
        help="Exit with code 1 if any issue meets this severity.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging on stderr.",
    ),
) -> None:
    """Analyze a RocketChat support dump."""

    _configure_logging(verbose)

    # --- Validate path ---
    try:
        target = validate_path(path)
    except FileNotFoundError as exc:
        console.print(f"[bold red]✗[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    # --- Validate options ---
    output_format = output_format.lower()
    if output_format not in OUTPUT_FORMATS:
        console.print(
            f"[bold red]✗[/bold red] Invalid --format value: {output_format}. "
            f"Must be one of: {', '.join(OUTPUT_FORMATS)}"
        )
        raise typer.Exit(code=1)
    min_severity = _parse_level("--severity", severity)
    fail_level = _parse_level("--fail-on", fail_on)

    try:
        rules = load_rules(config)
    except ConfigurationError as exc:
        console.print(f"[bold red]✗[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    # --- Run pipeline ---
    if output_format == "console":
        console.print(
            Panel(
                "[bold green]Support dump analysis[/bold green]",
                title="RocketChat Dump Analyzer",
                subtitle=f"v{__version__}",
                border_style="cyan",
            )
        )
        console.print(f"[dim]Target:[/dim] {target}\n")

    analysis = run_analysis(target, rules)

    # --- Output ---
    if output_format == "json":
        _emit(json.dumps(build_json_report(analysis, min_severity), indent=2), output)
    elif output_format == "csv":
        issues = analysis.filter_issues(min_severity) if min_severity else analysis.all_issues
        _emit(build_csv_report(issues), output)
    else:
        _print_rich(analysis, min_severity)

    # --- Fail-on check ---
    if fail_level and analysis.has_severity(fail_level):
        if output_format == "console":
            console.print(
                f"\n[bold red]✗ Analysis failed:[/bold red] "
                f"Issues at severity [bold]{fail_level}[/bold] or above were found."
            )
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _emit(text: str, output: Optional[Path]) -> None:  # noqa: UP007
    """Write *text* to *output*, or to stdout when no file is given."""
    if output is None:
        print(text)
        return
    output.write_text(text, encoding="utf-8")
    err_console.print(f"[green]✔[/green] Report exported to: {output}")


def _print_rich(analysis: DumpAnalysis, min_severity: Optional[str]) -> None:  # noqa: UP007
    """Render the analysis using Rich tables and panels."""
    _print_health(analysis)
    _print_statistics(analysis)

    issues = analysis.filter_issues(min_severity) if min_severity else analysis.all_issues
    if issues:
        _print_issues_table(issues)
    else:
        console.print(
            Panel("[bold green]✔ No issues found[/bold green]", border_style="green")
        )
    _print_recommendations(analysis)


def _print_health(analysis: DumpAnalysis) -> None:
    """Print the overall score and the per-component scores."""
    health = analysis.health
    color = _score_color(health.overall_score)

    table = Table(title="Component Scores", header_style="bold magenta")
    table.add_column("Component", style="bold")
    table.add_column("Score", justify="right")
    for name, score in health.component_scores.items():
        table.add_row(name, f"[{_score_color(score)}]{score:.1f}[/{_score_color(score)}]")

    counts = health.issue_counts
    lines = [
        f"[bold]Health score:[/bold] [bold {color}]{health.overall_score:.1f}/100[/bold {color}]"
        f" ({health.rating})",
        f"[bold]Security review:[/bold] {analysis.security.score:.1f}/100",
        "",
        f"[bold magenta]Critical:[/bold magenta] {counts.get(CRITICAL, 0)}",
        f"[bold red]Error:[/bold red]    {counts.get(ERROR, 0)}",
        f"[bold yellow]Warning:[/bold yellow]  {counts.get(WARNING, 0)}",
        f"[bold blue]Info:[/bold blue]     {counts.get(INFO, 0)}",
    ]
    console.print(Panel("\n".join(lines), title="📊 Health Summary", border_style="cyan"))
    console.print(table)
    console.print()


def _print_statistics(analysis: DumpAnalysis) -> None:
    """Print server facts when a statistics file was analyzed."""
    stats = analysis.results[STATISTICS].summary
    if stats is None:
        return

    memory = (
        f"{stats.memory_used_percent:.1f}% used"
        if stats.memory_used_percent is not None
        else "unknown"
    )
    lines = [
        f"[bold]Version:[/bold]  {stats.version}",
        f"[bold]Node.js:[/bold]  {stats.node_version}",
        f"[bold]Platform:[/bold] {stats.platform} ({stats.arch})",
        f"[bold]Uptime:[/bold]   {stats.uptime_readable}",
        f"[bold]Memory:[/bold]   {memory}",
        f"[bold]Users:[/bold]    {stats.total_users} total ({stats.online_users} online)",
        f"[bold]Messages:[/bold] {stats.total_messages} in {stats.total_rooms} rooms",
    ]
    console.print(Panel("\n".join(lines), title="🖥 Server", border_style="cyan"))


def _print_issues_table(issues: list) -> None:
    """Render detected issues as a Rich table."""
    table = Table(
        title="🔍 Detected Issues",
        show_lines=True,
        header_style="bold magenta",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Component", style="cyan")
    table.add_column("Type", style="bold")
    table.add_column("Severity", justify="center")
    table.add_column("Message", max_width=70)

    for idx, issue in enumerate(issues, start=1):
        color = _SEVERITY_COLORS.get(issue.severity, "white")
        table.add_row(
            str(idx),
            issue.component,
            issue.issue_type,
            f"[bold {color}]{issue.severity}[/bold {color}]",
            issue.message,
        )

    console.print(table)
    console.print()


def _print_recommendations(analysis: DumpAnalysis) -> None:
    """Print ranked recommendations and the files that were analyzed."""
    recs = "\n".join(
        f"{idx}. {rec}" for idx, rec in enumerate(analysis.health.recommendations, start=1)
    )
    console.print(Panel(recs, title="💡 Recommendations", border_style="green"))

    sources = [
        f"[dim]{domain}:[/dim] {analysis.results[domain].source or 'not found'}"
        for domain in DOMAINS
    ]
    console.print("\n".join(sources))
