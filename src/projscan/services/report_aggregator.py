"""
Report aggregation and rendering.

Combines a ScanResult with important-file checks into a Report and renders
it as plain text, JSON, YAML, or a compact working-context digest.
All renderers are pure functions of the Report.
"""

import json
import logging
import posixpath
from collections.abc import Mapping
from datetime import datetime
from enum import Enum

import yaml

from projscan.core.rules import Severity
from projscan.services.models import (
    SEVERITY_ORDER,
    Issue,
    Report,
    ScanResult,
    count_by_severity,
    group_by_file,
)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CONTEXT_ITEMS_PER_SEVERITY = 5

SEVERITY_ICONS = {
    Severity.CRITICAL: "🛑",
    Severity.ERROR: "❌",
    Severity.WARNING: "⚠️",
    Severity.INFO: "ℹ️",
}

SEVERITY_LABELS = {
    Severity.CRITICAL: "Critical",
    Severity.ERROR: "Errors",
    Severity.WARNING: "Warnings",
    Severity.INFO: "Info",
}


class ReportFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    CONTEXT = "context"


def to_dict(report: Report) -> dict:
    """Structured export of a Report; the basis for JSON and YAML output."""
    return {
        "project_name": report.project_name,
        "generated_at": report.generated_at.isoformat(),
        "summary": {
            "total_files": report.total_files,
            "total_directories": report.total_directories,
            "total_lines": report.total_lines,
            "total_issues": report.total_issues,
            "severity_counts": dict(report.severity_counts),
        },
        "tree": [
            {
                "kind": node.kind.value,
                "path": node.path,
                "depth": node.depth,
                "label": node.display_label,
            }
            for node in report.tree
        ],
        "important_files": dict(report.important_files),
        "quality": report.quality.to_dict(),
        "issues_by_file": {
            path: [issue.to_dict() for issue in issues]
            for path, issues in report.issues_by_file.items()
        },
        "failures": [
            {"file_path": f.file_path, "reason": f.reason} for f in report.failures
        ],
        "rule_errors": [
            {"rule_id": e.rule_id, "reason": e.reason} for e in report.rule_errors
        ],
        "skipped_paths": [
            {"path": s.path, "reason": s.reason} for s in report.skipped_paths
        ],
    }


def render_json(report: Report) -> str:
    return json.dumps(to_dict(report), indent=2, ensure_ascii=False)


def render_yaml(report: Report) -> str:
    return yaml.safe_dump(
        to_dict(report), default_flow_style=False, sort_keys=False, allow_unicode=True
    )


def _format_issue_location(issue: Issue) -> str:
    if issue.line_number is None:
        return issue.message
    return f"{issue.message} (line {issue.line_number})"


def render_text(report: Report, legacy_list_limit: int = 10) -> str:
    """
    Render the full plain-text export.

    Sections, in order: header, project structure, important files,
    quality counters, issues by severity, issues per file, analysis
    failures, rule configuration errors, skipped paths, and the short
    lists of files without doc blocks, logger or namespace.
    """
    quality = report.quality
    lines: list[str] = [
        f"=== PROJECT EXPORT: {report.project_name} ===",
        f"Generated: {report.generated_at.strftime(TIMESTAMP_FORMAT)}",
        "========================================",
        "",
        "📁 PROJECT STRUCTURE:",
    ]
    lines.extend(node.render() for node in report.tree)

    lines += ["", "🎯 IMPORTANT FILES CHECK:"]
    for path, exists in report.important_files.items():
        status = "✅ EXISTS" if exists else "❌ MISSING"
        lines.append(f"{status} - {path}")

    lines += [
        "",
        "🔍 CODE QUALITY ANALYSIS:",
        f"  • Total files: {report.total_files}",
        f"  • Total directories: {report.total_directories}",
        f"  • Checked files: {quality.files_checked}",
        f"  • Total lines: {quality.total_lines}",
        f"  • Files without doc block: {len(quality.missing_docblock)}",
        f"  • Files without logger: {len(quality.missing_logger)}",
        f"  • Files without namespace: {len(quality.missing_namespace)}",
        f"  • Files without strict types: {len(quality.missing_strict_types)}",
        "",
        "  🚨 ISSUES BY SEVERITY:",
    ]
    for severity in SEVERITY_ORDER:
        count = report.severity_counts.get(severity.value, 0)
        lines.append(f"    • {SEVERITY_LABELS[severity]}: {count}")

    if report.issues_by_file:
        lines += ["", "  📋 ISSUES BY FILE:"]
        for path, issues in report.issues_by_file.items():
            lines += ["", f"     📄 {path}:"]
            # sorted() is stable, so equal severities keep match order
            for issue in sorted(issues, key=lambda i: -i.severity.rank):
                icon = SEVERITY_ICONS[issue.severity]
                tag = issue.severity.value.upper()
                lines.append(f"       {icon} [{tag}] {_format_issue_location(issue)}")
                if issue.suggestion:
                    lines.append(f"          💡 SUGGESTION: {issue.suggestion}")
                if issue.snippet:
                    lines.append(f"          📝 CODE: {issue.snippet}")

    if report.failures:
        lines += ["", "  ⛔ ANALYSIS FAILURES:"]
        lines.extend(f"     • {f.file_path}: {f.reason}" for f in report.failures)

    if report.rule_errors:
        lines += ["", "  ⚙️ RULE CONFIGURATION ERRORS:"]
        lines.extend(f"     • {e.rule_id}: {e.reason}" for e in report.rule_errors)

    if report.skipped_paths:
        lines += ["", "  🚧 SKIPPED PATHS:"]
        lines.extend(f"     • {s.path}: {s.reason}" for s in report.skipped_paths)

    legacy = (
        ("Files without doc block", quality.missing_docblock),
        ("Files without logger", quality.missing_logger),
        ("Files without namespace", quality.missing_namespace),
    )
    for title, paths in legacy:
        if not paths:
            continue
        lines += ["", f"  📋 {title}:"]
        lines.extend(f"     ❌ {posixpath.basename(p)}" for p in paths[:legacy_list_limit])

    lines += ["", "=== END EXPORT ===", ""]
    return "\n".join(lines)


def render_context(report: Report) -> str:
    """Render the compact working-context digest."""
    lines: list[str] = [
        "=== AI WORKING CONTEXT ===",
        f"Project: {report.project_name}",
        f"Scan Date: {report.generated_at.strftime(TIMESTAMP_FORMAT)}",
        "",
        "🔍 CODE QUALITY ISSUES:",
    ]

    by_severity: dict[Severity, list[Issue]] = {severity: [] for severity in SEVERITY_ORDER}
    for issue in report.iter_issues():
        by_severity[issue.severity].append(issue)

    if not report.total_issues:
        lines.append("  No issues found")
    for severity, issues in by_severity.items():
        if not issues:
            continue
        lines.append(f"  {severity.value.upper()} ({len(issues)}):")
        for issue in issues[:CONTEXT_ITEMS_PER_SEVERITY]:
            lines.append(f"    • {issue.file_path}: {_format_issue_location(issue)}")
        if len(issues) > CONTEXT_ITEMS_PER_SEVERITY:
            lines.append(f"    • ... and {len(issues) - CONTEXT_ITEMS_PER_SEVERITY} more")

    lines += ["", "🔍 IMPORTANT FILES STATUS:"]
    for path, exists in report.important_files.items():
        status = "✅ FOUND" if exists else "❌ MISSING"
        lines.append(f"  {status} - {path}")

    lines += ["", "=== END AI CONTEXT ===", ""]
    return "\n".join(lines)


class ReportAggregator:
    """Builds Reports from scan results and renders them."""

    def __init__(self, legacy_list_limit: int = 10, logger: logging.Logger | None = None):
        self._legacy_list_limit = legacy_list_limit
        self._logger = logger or logging.getLogger(__name__)

    def aggregate(
        self,
        scan_result: ScanResult,
        important_files: Mapping[str, bool],
        project_name: str,
        generated_at: datetime | None = None,
    ) -> Report:
        """
        Combine a scan result and important-file checks into a Report.

        Args:
            scan_result: Output of one scan invocation
            important_files: Relative path -> presence flag
            project_name: Name shown in report headers
            generated_at: Report timestamp; defaults to now

        Returns:
            Report ready for rendering
        """
        if generated_at is None:
            generated_at = datetime.now().replace(microsecond=0)

        issues = scan_result.issues
        severity_counts = count_by_severity(issues)
        report = Report(
            project_name=project_name,
            generated_at=generated_at,
            tree=tuple(scan_result.tree),
            important_files=dict(important_files),
            severity_counts=severity_counts,
            issues_by_file=group_by_file(issues),
            quality=scan_result.quality,
            failures=list(scan_result.failures),
            rule_errors=tuple(scan_result.rule_errors),
            skipped_paths=tuple(scan_result.skipped_paths),
            total_files=len(scan_result.files),
            total_directories=len(scan_result.directories),
            total_lines=sum(f.line_count or 0 for f in scan_result.files),
            total_issues=len(issues),
        )

        self._logger.debug(
            "Report aggregated",
            extra={
                "project": project_name,
                "total_issues": report.total_issues,
                "files_with_issues": len(report.issues_by_file),
            },
        )
        return report

    def render(self, report: Report, format: ReportFormat | str = ReportFormat.TEXT) -> str:
        """
        Render a Report in the requested format.

        Raises:
            ValueError: If the format is unknown
        """
        try:
            fmt = ReportFormat(format)
        except ValueError:
            allowed = ", ".join(f.value for f in ReportFormat)
            raise ValueError(f"Unknown report format '{format}' (expected one of: {allowed})") from None

        if fmt == ReportFormat.JSON:
            return render_json(report)
        if fmt == ReportFormat.YAML:
            return render_yaml(report)
        if fmt == ReportFormat.CONTEXT:
            return render_context(report)
        return render_text(report, self._legacy_list_limit)

    @staticmethod
    def to_dict(report: Report) -> dict:
        return to_dict(report)
