"""
Service layer data models.

Contains dataclasses for issues, analysis results, quality summaries,
scan results and reports.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from projscan.core.rules import RuleConfigError, Severity
from projscan.core.tree_scanner import DirectoryEntry, FileEntry, SkippedPath, TreeNode

# Display order for severity groupings, most serious first
SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)


@dataclass(frozen=True)
class Issue:
    """A single rule match in a file."""

    rule_id: str
    message: str
    severity: Severity
    file_path: str
    line_number: int | None = None
    snippet: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "message": self.message,
            "severity": self.severity.value,
            "file_path": self.file_path,
            "line_number": self.line_number,
            "snippet": self.snippet,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class AnalysisFailure:
    """A file whose content could not be analyzed."""

    file_path: str
    reason: str


@dataclass
class AnalysisResult:
    """Result of running the rule analyzer over a file list."""

    issues: list[Issue] = field(default_factory=list)
    failures: list[AnalysisFailure] = field(default_factory=list)
    files_analyzed: int = 0


@dataclass
class QualitySummary:
    """Aggregated outcome of the per-file quality checks."""

    files_checked: int = 0
    total_lines: int = 0
    missing_docblock: list[str] = field(default_factory=list)
    missing_logger: list[str] = field(default_factory=list)
    missing_namespace: list[str] = field(default_factory=list)
    missing_strict_types: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "files_checked": self.files_checked,
            "total_lines": self.total_lines,
            "missing_docblock": list(self.missing_docblock),
            "missing_logger": list(self.missing_logger),
            "missing_namespace": list(self.missing_namespace),
            "missing_strict_types": list(self.missing_strict_types),
        }


def count_by_severity(issues: Iterable[Issue]) -> dict[str, int]:
    """Count issues per severity; every severity is present, most serious first."""
    counts = Counter(issue.severity for issue in issues)
    return {severity.value: counts.get(severity, 0) for severity in SEVERITY_ORDER}


def group_by_file(issues: Iterable[Issue]) -> dict[str, list[Issue]]:
    """Group issues by file path, keeping first-seen file order."""
    grouped: dict[str, list[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.file_path, []).append(issue)
    return grouped


@dataclass(frozen=True)
class ScanStats:
    """Derived counters of a ScanResult."""

    total_files: int
    total_directories: int
    total_issues: int
    severity_counts: dict[str, int]
    issues_per_file: dict[str, int]


@dataclass
class ScanResult:
    """Everything one scan invocation produced."""

    root: Path
    files: tuple[FileEntry, ...] = ()
    directories: tuple[DirectoryEntry, ...] = ()
    tree: tuple[TreeNode, ...] = ()
    issues: list[Issue] = field(default_factory=list)
    failures: list[AnalysisFailure] = field(default_factory=list)
    quality: QualitySummary = field(default_factory=QualitySummary)
    skipped_paths: tuple[SkippedPath, ...] = ()
    rule_errors: tuple[RuleConfigError, ...] = ()

    @property
    def stats(self) -> ScanStats:
        return ScanStats(
            total_files=len(self.files),
            total_directories=len(self.directories),
            total_issues=len(self.issues),
            severity_counts=count_by_severity(self.issues),
            issues_per_file={
                path: len(items) for path, items in group_by_file(self.issues).items()
            },
        )


@dataclass
class Report:
    """
    Aggregated, render-ready view of a scan.

    Renderers depend only on this object, so rendering the same Report
    twice yields the same output.
    """

    project_name: str
    generated_at: datetime
    tree: tuple[TreeNode, ...] = ()
    important_files: dict[str, bool] = field(default_factory=dict)
    severity_counts: dict[str, int] = field(default_factory=dict)
    issues_by_file: dict[str, list[Issue]] = field(default_factory=dict)
    quality: QualitySummary = field(default_factory=QualitySummary)
    failures: list[AnalysisFailure] = field(default_factory=list)
    rule_errors: tuple[RuleConfigError, ...] = ()
    skipped_paths: tuple[SkippedPath, ...] = ()
    total_files: int = 0
    total_directories: int = 0
    total_lines: int = 0
    total_issues: int = 0

    def iter_issues(self):
        for items in self.issues_by_file.values():
            yield from items
