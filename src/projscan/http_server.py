"""
HTTP layer for projscan.

Provides a lightweight FastAPI server exposing project listing, scanning,
file viewing and rule management endpoints. Handlers only call services.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from projscan.core.errors import (
    ConfigurationMissingError,
    NotReadableError,
    RuleValidationError,
)
from projscan.core.path_utils import list_projects, resolve_within_root
from projscan.core.rules import parse_rules
from projscan.core.tree_scanner import format_file_size
from projscan.services.container import ServicesContainer, create_services
from projscan.services.report_aggregator import ReportFormat, to_dict

logger = logging.getLogger(__name__)


class RulesUpdateRequest(BaseModel):
    """Request model for replacing the stored rules."""

    rules: dict[str, dict[str, Any]]


class FileViewResponse(BaseModel):
    project: str
    path: str
    size_bytes: int
    size: str
    extension: str
    content: str


def _resolve_project(projects_root: Path, name: str) -> Path:
    """Resolve a project directory, mapping bad names to HTTP errors."""
    try:
        project_dir = resolve_within_root(projects_root, name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if project_dir == projects_root.resolve() or not project_dir.is_dir():
        raise HTTPException(status_code=404, detail=f"Project not found: {name}")
    return project_dir


def create_app(
    config_path: str | Path | None = None,
    services: ServicesContainer | None = None,
    projects_root: str | Path | None = None,
) -> FastAPI:
    """
    FastAPI application factory.

    Args:
        config_path: Optional configuration file, used when ``services`` is None
        services: Pre-built services container
        projects_root: Directory whose subdirectories are the projects.
                      Defaults to ``projects.projects_root`` or the current directory.
    """
    if services is None:
        services = create_services(config_path)
    cfg = services.config
    scan_service = services.scan_service
    rule_store = services.rule_store

    root = Path(projects_root or cfg.projects.projects_root or Path.cwd())

    app = FastAPI(
        title="projscan",
        version="0.1.0",
        description="HTTP interface for project scanning and code rule analysis.",
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/projects")
    async def projects():
        try:
            names = await asyncio.to_thread(list_projects, root)
        except NotReadableError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return {"projects_root": str(root), "projects": names}

    @app.get("/projects/{name}/scan")
    async def scan_project(name: str, format: str = "json"):
        try:
            fmt = ReportFormat(format)
        except ValueError:
            allowed = ", ".join(f.value for f in ReportFormat)
            raise HTTPException(
                status_code=400, detail=f"Invalid format: {format}. Valid formats: {allowed}"
            )

        project_dir = _resolve_project(root, name)
        try:
            report = await asyncio.to_thread(
                scan_service.scan_project, project_dir, project_name=name
            )
        except NotReadableError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except Exception as exc:
            logger.error(f"Error in /projects/{name}/scan: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

        if fmt == ReportFormat.JSON:
            return to_dict(report)
        return PlainTextResponse(scan_service.render(report, fmt))

    @app.get("/projects/{name}/file", response_model=FileViewResponse)
    async def view_file(name: str, path: str):
        project_dir = _resolve_project(root, name)
        try:
            file_path = resolve_within_root(project_dir, path)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

        def read_for_view() -> tuple[int, str]:
            if not file_path.exists():
                raise HTTPException(
                    status_code=404, detail=f"File '{path}' not found in project '{name}'"
                )
            if file_path.is_dir():
                raise HTTPException(status_code=400, detail="Only file contents can be viewed")

            size = file_path.stat().st_size
            if size > cfg.server.max_view_bytes:
                raise HTTPException(
                    status_code=413,
                    detail=f"File has {size} bytes; the viewing limit is {cfg.server.max_view_bytes} bytes",
                )
            return size, file_path.read_text(encoding="utf-8", errors="replace")

        try:
            size, content = await asyncio.to_thread(read_for_view)
        except OSError as exc:
            logger.warning(f"Cannot read file for viewing: {file_path} - {exc}")
            raise HTTPException(status_code=404, detail=f"File '{path}' is not readable")

        return FileViewResponse(
            project=name,
            path=path,
            size_bytes=size,
            size=format_file_size(size),
            extension=file_path.suffix.lstrip(".").lower(),
            content=content,
        )

    @app.get("/rules")
    async def get_rules():
        try:
            definitions = await asyncio.to_thread(rule_store.load_raw)
        except ValueError as exc:
            logger.error(f"Error in /rules: {exc}")
            raise HTTPException(status_code=500, detail=str(exc))
        rule_set = parse_rules(definitions)
        return {
            "rules": definitions,
            "errors": [{"rule_id": e.rule_id, "reason": e.reason} for e in rule_set.errors],
        }

    @app.put("/rules")
    async def put_rules(req: RulesUpdateRequest):
        try:
            rule_set = await asyncio.to_thread(rule_store.save, req.rules)
        except RuleValidationError as exc:
            raise HTTPException(
                status_code=400,
                detail={
                    "message": str(exc),
                    "errors": [{"rule_id": e.rule_id, "reason": e.reason} for e in exc.errors],
                },
            )
        except ConfigurationMissingError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        except ValueError as exc:
            logger.error(f"Error in /rules: {exc}", exc_info=True)
            raise HTTPException(status_code=409, detail=str(exc))
        return {"saved": len(rule_set)}

    return app


def main() -> None:
    """Run the HTTP server with uvicorn using configured host and port."""
    import uvicorn
    from dotenv import load_dotenv

    from projscan.core.config import load_config

    load_dotenv()
    cfg = load_config()
    app = create_app(services=create_services(config=cfg))
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, reload=False, log_level="info")
