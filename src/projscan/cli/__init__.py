"""
CLI for projscan.

Provides command-line interface for scanning projects, listing projects
and managing code rules.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from projscan.cli.ui import (
    render_error,
    render_projects,
    render_rules_table,
    render_scan_summary,
    render_success,
)
from projscan.core.config import ProjScanConfig, load_config
from projscan.core.errors import ProjScanError, ScanCancelledError
from projscan.core.path_utils import ensure_directory_exists, list_projects, validate_scan_root
from projscan.core.rules import load_rules
from projscan.infrastructure import RuleStore
from projscan.services import ReportFormat, create_services

# Initialize Rich Consoles; logs go to stderr so reports on stdout stay clean
console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="projscan",
    help="Project scanner - directory tree export and pattern-based code analysis",
    add_completion=False,
)

rules_app = typer.Typer(help="List, export and import code rules.", add_completion=False)
app.add_typer(rules_app, name="rules")


def setup_logging(level: str) -> None:
    """Attach a RichHandler to the projscan logger at the given level."""
    pkg_logger = logging.getLogger("projscan")
    for handler in list(pkg_logger.handlers):
        if isinstance(handler, RichHandler):
            pkg_logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level.upper())


def _load_config(config_path: Optional[Path]) -> ProjScanConfig:
    """Load .env and configuration, then set up logging."""
    load_dotenv()
    cfg = load_config(config_path)
    setup_logging(cfg.logging.level)
    return cfg


@app.command()
def scan(
    path: Path = typer.Argument(..., help="Project directory to scan"),
    rules: Optional[Path] = typer.Option(
        None, "--rules", "-r", help="Rule file (YAML or JSON); defaults to the configured rules"
    ),
    ignore: Optional[list[str]] = typer.Option(
        None,
        "--ignore",
        "-i",
        help="Ignore pattern. Can be specified multiple times; replaces the configured patterns.",
    ),
    important: Optional[list[str]] = typer.Option(
        None,
        "--important",
        help="File whose presence is checked. Can be specified multiple times.",
    ),
    format: Optional[str] = typer.Option(
        None, "--format", "-f", help="Output format: text, json, yaml or context"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the report to this file instead of stdout"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Number of parallel analysis workers"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", help="Project name shown in the report (default: directory name)"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Scan a project directory and export the report."""
    validation = validate_scan_root(path)
    if not validation.valid:
        render_error(validation.error_message or "Invalid path", console)
        raise typer.Exit(1)

    try:
        cfg = _load_config(config)

        actual_format = format if format is not None else cfg.report.default_format
        valid_formats = {f.value for f in ReportFormat}
        if actual_format not in valid_formats:
            render_error(
                f"Invalid format: {actual_format}. Valid formats: {', '.join(sorted(valid_formats))}",
                console,
            )
            raise typer.Exit(1)

        if workers is not None:
            if workers < 1:
                render_error("--workers must be at least 1", console)
                raise typer.Exit(1)
            cfg.analysis.max_workers = workers

        services = create_services(config=cfg)
        rule_set = load_rules(rules, strict=True) if rules is not None else None

        with err_console.status(f"[bold blue]Scanning[/bold blue] {path}..."):
            report = services.scan_service.scan_project(
                path,
                project_name=name,
                ignore_patterns=ignore or None,
                rule_set=rule_set,
                important_files=important or None,
            )
        rendered = services.scan_service.render(report, actual_format)

        if output is not None:
            if not ensure_directory_exists(output.parent):
                render_error(f"Cannot create directory: {output.parent}", console)
                raise typer.Exit(1)
            output.write_text(rendered, encoding="utf-8")
            render_scan_summary(report, console, output=output)
        else:
            typer.echo(rendered, nl=False)

    except (KeyboardInterrupt, ScanCancelledError):
        render_error("Scan cancelled", console)
        raise typer.Exit(130)
    except (ProjScanError, ValueError, OSError) as e:
        render_error(str(e), console)
        raise typer.Exit(1)


@app.command()
def projects(
    root: Optional[Path] = typer.Argument(
        None, help="Directory holding one subdirectory per project (default: configured root)"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """List available projects."""
    try:
        cfg = _load_config(config)
        projects_root = root or Path(cfg.projects.projects_root or Path.cwd())
        names = list_projects(projects_root)
        render_projects(names, projects_root, console)
    except (ProjScanError, ValueError, OSError) as e:
        render_error(str(e), console)
        raise typer.Exit(1)


def _rule_store(rules: Optional[Path], config: Optional[Path]) -> RuleStore:
    cfg = _load_config(config)
    return RuleStore(rules or cfg.analysis.rules_file or None)


@rules_app.command("list")
def rules_list(
    rules: Optional[Path] = typer.Option(None, "--rules", "-r", help="Rule file (YAML or JSON)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Show the active rules."""
    try:
        rule_set = _rule_store(rules, config).load()
        render_rules_table(rule_set, console)
    except (ProjScanError, ValueError, OSError) as e:
        render_error(str(e), console)
        raise typer.Exit(1)


@rules_app.command("export")
def rules_export(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the JSON export to this file instead of stdout"
    ),
    rules: Optional[Path] = typer.Option(None, "--rules", "-r", help="Rule file (YAML or JSON)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Export the active rules as JSON."""
    try:
        exported = _rule_store(rules, config).export_json()
        if output is not None:
            output.write_text(exported + "\n", encoding="utf-8")
            render_success(f"Rules exported to {output}", console)
        else:
            typer.echo(exported)
    except (ProjScanError, ValueError, OSError) as e:
        render_error(str(e), console)
        raise typer.Exit(1)


@rules_app.command("import")
def rules_import(
    source: Path = typer.Argument(..., help="JSON file with rule definitions"),
    rules: Optional[Path] = typer.Option(
        None, "--rules", "-r", help="Rule file to replace (default: configured rules file)"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Replace the stored rules with definitions from a JSON file."""
    try:
        store = _rule_store(rules, config)
        rule_set = store.import_json(source.read_text(encoding="utf-8"))
        render_success(f"Imported {len(rule_set)} rules into {store.path}", console)
    except (ProjScanError, ValueError, OSError) as e:
        render_error(str(e), console)
        raise typer.Exit(1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="HTTP host (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="HTTP port (default from config)"),
    projects_root: Optional[Path] = typer.Option(
        None, "--projects-root", help="Directory holding the projects"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Start the HTTP API server."""
    import uvicorn

    from projscan.http_server import create_app

    try:
        cfg = _load_config(config)
        actual_host = host if host is not None else cfg.server.host
        actual_port = port if port is not None else cfg.server.port

        http_app = create_app(services=create_services(config=cfg), projects_root=projects_root)
        console.print(
            f"[bold green]Starting API server at http://{actual_host}:{actual_port}[/bold green]"
        )
        uvicorn.run(http_app, host=actual_host, port=actual_port, reload=False, log_level="info")
    except (ProjScanError, ValueError, OSError) as e:
        render_error(str(e), console)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
