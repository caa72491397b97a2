"""
Scan Service for projscan.

Orchestrates one scan invocation: tree walk, rule analysis, quality checks
and report aggregation.
"""

import logging
import threading
import time
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from projscan.core.errors import ScanCancelledError
from projscan.core.rules import RuleSet
from projscan.core.tree_scanner import TreeScannerInterface
from projscan.infrastructure.rule_store import RuleStore
from projscan.services.models import Report, ScanResult
from projscan.services.quality_checks import QualityChecker
from projscan.services.report_aggregator import ReportAggregator, ReportFormat
from projscan.services.rule_analyzer import RuleAnalyzer


class ScanService:
    """
    Runs the scan -> analyze -> aggregate pipeline.

    Arguments left as None fall back to the defaults given at construction.
    A cancelled invocation raises ScanCancelledError and returns nothing.
    """

    def __init__(
        self,
        tree_scanner: TreeScannerInterface,
        analyzer: RuleAnalyzer,
        quality_checker: QualityChecker,
        aggregator: ReportAggregator,
        rule_store: RuleStore | None = None,
        ignore_patterns: Sequence[str] | None = None,
        important_files: Sequence[str] | None = None,
        logger: logging.Logger | None = None,
    ):
        self._tree_scanner = tree_scanner
        self._analyzer = analyzer
        self._quality_checker = quality_checker
        self._aggregator = aggregator
        self._rule_store = rule_store
        self._ignore_patterns = list(ignore_patterns or [])
        self._important_files = list(important_files or [])
        self._logger = logger or logging.getLogger(__name__)

    @property
    def aggregator(self) -> ReportAggregator:
        return self._aggregator

    def load_rules(self) -> RuleSet:
        """Rules from the configured store, or an empty RuleSet without one."""
        if self._rule_store is None:
            return RuleSet()
        return self._rule_store.load()

    def scan(
        self,
        root: Path | str,
        ignore_patterns: Sequence[str] | None = None,
        rule_set: RuleSet | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ScanResult:
        """
        Scan a project directory and analyze its files.

        Args:
            root: Project root directory
            ignore_patterns: Overrides the configured ignore patterns
            rule_set: Overrides the rules from the rule store
            cancel_event: Optional event; when set the scan is abandoned

        Returns:
            ScanResult for the whole tree

        Raises:
            NotReadableError: If the root cannot be listed
            ScanCancelledError: If cancel_event was set
        """
        start_time = time.time()
        root = Path(root)
        patterns = list(ignore_patterns) if ignore_patterns is not None else self._ignore_patterns
        if rule_set is None:
            rule_set = self.load_rules()

        tree = self._tree_scanner.scan(root, patterns, cancel_event=cancel_event)

        read_file = self._analyzer.reader_for(root)
        analysis = self._analyzer.analyze(
            tree.files, rule_set, read_file=read_file, cancel_event=cancel_event
        )

        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelledError("Scan cancelled before quality checks")
        quality = self._quality_checker.check(tree.files, read_file)

        result = ScanResult(
            root=root,
            files=tree.files,
            directories=tree.directories,
            tree=tree.tree,
            issues=analysis.issues,
            failures=analysis.failures,
            quality=quality,
            skipped_paths=tree.skipped,
            rule_errors=rule_set.errors,
        )

        self._logger.info(
            "Scan completed",
            extra={
                "root": str(root),
                "total_files": len(result.files),
                "total_issues": len(result.issues),
                "duration_seconds": time.time() - start_time,
            },
        )
        return result

    def check_important_files(
        self, root: Path | str, paths: Sequence[str] | None = None
    ) -> dict[str, bool]:
        """Map each relative path to whether it exists under root."""
        root = Path(root)
        if paths is None:
            paths = self._important_files
        return {path: (root / path).exists() for path in paths}

    def scan_project(
        self,
        root: Path | str,
        project_name: str | None = None,
        ignore_patterns: Sequence[str] | None = None,
        rule_set: RuleSet | None = None,
        important_files: Sequence[str] | None = None,
        cancel_event: threading.Event | None = None,
        generated_at: datetime | None = None,
    ) -> Report:
        """
        Scan a project and aggregate the result into a Report.

        Args:
            root: Project root directory
            project_name: Report title; defaults to the root directory name
            ignore_patterns: Overrides the configured ignore patterns
            rule_set: Overrides the rules from the rule store
            important_files: Overrides the configured important files
            cancel_event: Optional event; when set the scan is abandoned
            generated_at: Report timestamp; defaults to now

        Returns:
            Aggregated Report
        """
        root = Path(root)
        result = self.scan(
            root, ignore_patterns=ignore_patterns, rule_set=rule_set, cancel_event=cancel_event
        )
        presence = self.check_important_files(root, important_files)
        name = project_name or root.resolve().name
        return self._aggregator.aggregate(result, presence, name, generated_at=generated_at)

    def render(self, report: Report, format: ReportFormat | str = ReportFormat.TEXT) -> str:
        return self._aggregator.render(report, format)
