"""
Rule Analyzer for projscan.

Evaluates a RuleSet against file contents and produces typed issues.

Supports bounded parallel file processing on a ThreadPoolExecutor; per-file
results are merged in input order, so output is identical to a sequential run.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from projscan.core.errors import FileUnreadableError, ScanCancelledError
from projscan.core.rules import Rule, RuleSet
from projscan.core.tree_scanner import FileEntry
from projscan.services.models import AnalysisFailure, AnalysisResult, Issue

# Files with a NUL byte in this many leading characters are treated as binary
BINARY_SNIFF_LENGTH = 8192

ReadFile = Callable[[str], str]


def line_number_at(content: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return content.count("\n", 0, offset) + 1


def snippet_at(content: str, offset: int, max_length: int = 200) -> str:
    """The stripped line containing ``offset``, truncated to ``max_length`` characters."""
    line_start = content.rfind("\n", 0, offset) + 1
    line_end = content.find("\n", offset)
    if line_end == -1:
        line_end = len(content)
    line = content[line_start:line_end].strip()
    if len(line) > max_length:
        return line[:max_length] + "..."
    return line


def is_binary_content(content: str) -> bool:
    return "\x00" in content[:BINARY_SNIFF_LENGTH]


def make_root_reader(root: Path | str, max_file_size_bytes: int | None = None) -> ReadFile:
    """
    Build a reader for paths relative to ``root``.

    Content is decoded as UTF-8 with replacement characters.

    Raises (from the returned callable):
        FileUnreadableError: If the file vanished, is not readable or is too large
    """
    base = Path(root)

    def read(rel_path: str) -> str:
        full_path = base / rel_path
        try:
            size = full_path.stat().st_size
            if max_file_size_bytes is not None and size > max_file_size_bytes:
                raise FileUnreadableError(
                    f"File size {size} exceeds limit of {max_file_size_bytes} bytes",
                    path=rel_path,
                )
            return full_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise FileUnreadableError(f"Cannot read file: {e}", path=rel_path) from e

    return read


class RuleAnalyzer:
    """
    Applies rules to files and collects issues and per-file failures.

    A file is read only if at least one rule applies to its extension.
    Issues are ordered by file (input order), then rule (RuleSet order),
    then match offset.
    """

    def __init__(
        self,
        max_workers: int = 1,
        snippet_length: int = 200,
        max_file_size_bytes: int = 10 * 1024 * 1024,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the analyzer.

        Args:
            max_workers: Worker threads for per-file analysis; 1 means sequential
            snippet_length: Maximum snippet length before truncation
            max_file_size_bytes: Files larger than this are recorded as failures
            logger: Logger for analysis events
        """
        self._max_workers = max(1, max_workers)
        self._snippet_length = snippet_length
        self._max_file_size_bytes = max_file_size_bytes
        self._logger = logger or logging.getLogger(__name__)

    def reader_for(self, root: Path | str) -> ReadFile:
        """Reader for paths relative to root, honouring the file size limit."""
        return make_root_reader(root, self._max_file_size_bytes)

    def analyze(
        self,
        files: Sequence[FileEntry],
        rule_set: RuleSet,
        read_file: ReadFile | None = None,
        root: Path | str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AnalysisResult:
        """
        Analyze files against a RuleSet.

        Args:
            files: Files to analyze, usually from a TreeScanner run
            rule_set: Rules to apply; shared read-only
            read_file: Callable returning the text of a relative path.
                      Defaults to reading from ``root``.
            root: Directory the relative paths resolve against
            cancel_event: Optional event; when set the analysis is abandoned

        Returns:
            AnalysisResult with issues and failures

        Raises:
            ValueError: If neither read_file nor root is given
            ScanCancelledError: If cancel_event was set
        """
        if read_file is None:
            if root is None:
                raise ValueError("Either read_file or root is required")
            read_file = self.reader_for(root)

        work = [
            (entry, rules)
            for entry in files
            if (rules := rule_set.applicable_to(entry.extension))
        ]
        result = AnalysisResult()
        if not work:
            return result

        if self._max_workers > 1 and len(work) > 1:
            outcomes = self._analyze_parallel(work, read_file, cancel_event)
        else:
            outcomes = self._analyze_sequential(work, read_file, cancel_event)

        for issues, failure, analyzed in outcomes:
            result.issues.extend(issues)
            if failure is not None:
                result.failures.append(failure)
            if analyzed:
                result.files_analyzed += 1

        self._logger.info(
            "Rule analysis completed",
            extra={
                "files_analyzed": result.files_analyzed,
                "total_issues": len(result.issues),
                "failed_files": len(result.failures),
                "rules": len(rule_set),
            },
        )
        return result

    def _analyze_sequential(
        self,
        work: list[tuple[FileEntry, list[Rule]]],
        read_file: ReadFile,
        cancel_event: threading.Event | None,
    ) -> list[tuple[list[Issue], AnalysisFailure | None, bool]]:
        """Process files one after another (fallback for a single worker)."""
        outcomes = []
        for entry, rules in work:
            _raise_if_cancelled(cancel_event)
            outcomes.append(self._analyze_file(entry, rules, read_file))
        return outcomes

    def _analyze_parallel(
        self,
        work: list[tuple[FileEntry, list[Rule]]],
        read_file: ReadFile,
        cancel_event: threading.Event | None,
    ) -> list[tuple[list[Issue], AnalysisFailure | None, bool]]:
        """
        Process files on a bounded thread pool.

        Results are collected in submission order. Falls back to sequential
        processing if the pool cannot be started.
        """
        try:
            executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="projscan-analyze"
            )
        except (RuntimeError, ValueError) as exc:
            self._logger.warning(
                "ThreadPoolExecutor failed (%s). Falling back to sequential processing.", exc
            )
            return self._analyze_sequential(work, read_file, cancel_event)

        with executor:
            try:
                futures = [
                    executor.submit(self._analyze_file, entry, rules, read_file, cancel_event)
                    for entry, rules in work
                ]
            except RuntimeError as exc:
                self._logger.warning(
                    "ThreadPoolExecutor failed (%s). Falling back to sequential processing.", exc
                )
                return self._analyze_sequential(work, read_file, cancel_event)

            outcomes = []
            for future in futures:
                if cancel_event is not None and cancel_event.is_set():
                    for pending in futures:
                        pending.cancel()
                    raise ScanCancelledError("Scan cancelled during rule analysis")
                outcomes.append(future.result())

        _raise_if_cancelled(cancel_event)
        return outcomes

    def _analyze_file(
        self,
        entry: FileEntry,
        rules: list[Rule],
        read_file: ReadFile,
        cancel_event: threading.Event | None = None,
    ) -> tuple[list[Issue], AnalysisFailure | None, bool]:
        """
        Analyze one file.

        Returns:
            (issues, failure, analyzed) where analyzed is False for skipped files
        """
        if cancel_event is not None and cancel_event.is_set():
            return [], None, False

        try:
            content = read_file(entry.path)
        except (FileUnreadableError, OSError, UnicodeDecodeError) as e:
            self._logger.warning(
                f"Cannot analyze file: {entry.path} - {e}", extra={"path": entry.path}
            )
            return [], AnalysisFailure(file_path=entry.path, reason=str(e)), False

        if is_binary_content(content):
            self._logger.debug(f"Skipping binary file: {entry.path}")
            return [], None, False

        issues: list[Issue] = []
        for rule in rules:
            for match in rule.regex.finditer(content):
                offset = match.start()
                issues.append(
                    Issue(
                        rule_id=rule.id,
                        message=rule.message,
                        severity=rule.severity,
                        file_path=entry.path,
                        line_number=line_number_at(content, offset),
                        snippet=snippet_at(content, offset, self._snippet_length),
                        suggestion=rule.suggestion,
                    )
                )
        return issues, None, True


def _raise_if_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ScanCancelledError("Scan cancelled during rule analysis")
