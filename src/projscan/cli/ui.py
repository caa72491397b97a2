"""
UI components module for the projscan CLI.

Provides styled terminal output using the Rich library for scan summaries,
rule and project tables, and error rendering.
"""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from projscan.core.rules import RuleSet, Severity
from projscan.services.models import Report

SEVERITY_STYLES = {
    Severity.CRITICAL.value: "bold red",
    Severity.ERROR.value: "red",
    Severity.WARNING.value: "yellow",
    Severity.INFO.value: "blue",
}


def render_scan_summary(report: Report, console: Console, output: Path | None = None) -> None:
    """
    Render the scan summary panel.

    Args:
        report: Aggregated report
        console: Rich Console instance for output.
        output: File the full report was written to, if any
    """
    summary = Table.grid(padding=1)
    summary.add_column(style="bold")
    summary.add_column()
    summary.add_row("Project:", report.project_name)
    summary.add_row("Total Files:", str(report.total_files))
    summary.add_row("Total Directories:", str(report.total_directories))
    summary.add_row("Total Lines:", str(report.total_lines))
    summary.add_row("Total Issues:", str(report.total_issues))
    for severity, count in report.severity_counts.items():
        style = SEVERITY_STYLES.get(severity, "white")
        summary.add_row(f"  {severity.capitalize()}:", f"[{style}]{count}[/{style}]")

    missing = [path for path, exists in report.important_files.items() if not exists]
    if missing:
        summary.add_row("Missing Files:", f"[yellow]{', '.join(missing)}[/yellow]")
    if report.failures:
        summary.add_row("Failed Files:", f"[red]{len(report.failures)}[/red]")
    if report.rule_errors:
        summary.add_row("Rejected Rules:", f"[red]{len(report.rule_errors)}[/red]")
    if output is not None:
        summary.add_row("Report:", str(output))

    console.print(
        Panel(
            summary,
            title="[bold green]Scan Complete[/bold green]",
            border_style="green",
            expand=False,
        )
    )


def render_rules_table(rule_set: RuleSet, console: Console) -> None:
    """Render loaded rules and rejected definitions."""
    table = Table(
        title="Code Rules",
        title_style="bold cyan",
        border_style="blue",
        show_header=True,
        header_style="bold white",
    )
    table.add_column("Rule", style="green", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Extensions", style="cyan")
    table.add_column("Message", style="white")

    for rule in rule_set:
        style = SEVERITY_STYLES.get(rule.severity.value, "white")
        table.add_row(
            rule.id,
            Text(rule.severity.value, style=style),
            ", ".join(sorted(rule.extensions)) or "*",
            rule.message,
        )

    console.print(table)

    for error in rule_set.errors:
        render_warning(f"Rule '{error.rule_id}' rejected: {error.reason}", console)


def render_projects(names: list[str], projects_root: Path, console: Console) -> None:
    """Render the project list."""
    if not names:
        console.print(f"[yellow]No projects found in {projects_root}[/yellow]")
        return

    table = Table(title=f"Projects in {projects_root}", box=None, show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Project", style="cyan")
    for index, name in enumerate(names, 1):
        table.add_row(str(index), name)
    console.print(Panel(table, border_style="blue", expand=False))


def render_error(message: str, console: Console) -> None:
    """
    Render an error message in a visually distinct red panel.

    Args:
        message: Error message to display.
        console: Rich Console instance for output.
    """
    error_text = Text()
    error_text.append("Error: ", style="bold red")
    error_text.append(message, style="red")

    console.print(
        Panel(
            error_text,
            border_style="red",
            title="[bold red]Error[/bold red]",
            expand=False,
        )
    )


def render_success(message: str, console: Console) -> None:
    console.print(Panel(Text(message, style="green"), border_style="green", expand=False))


def render_warning(message: str, console: Console) -> None:
    console.print(Text.assemble(("Warning: ", "yellow"), message))
