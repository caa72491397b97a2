"""
Boolean per-file quality checks.

Independent from the rule analyzer: each check answers a yes/no question
about a file and the results are collected into summary buckets.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from projscan.core.errors import FileUnreadableError
from projscan.core.tree_scanner import FileEntry
from projscan.services.models import QualitySummary
from projscan.services.rule_analyzer import ReadFile

_DOCBLOCK = re.compile(r"/\*\*[\s\S]*?\*/")
_NAMESPACE = re.compile(r"^\s*namespace\s+[\w\\]+\s*;", re.MULTILINE)
_STRICT_TYPES = re.compile(r"declare\s*\(\s*strict_types\s*=\s*1\s*\)")

DEFAULT_LOGGER_PATTERNS = (r"Logger::", r"\\Logger", r"use\s+[\w\\]*Logger")
DEFAULT_LOGGER_EXPECTED_PATTERNS = (
    r"app/Services/",
    r"app/Controllers/",
    r"app/Auth/",
    r"Controller\.php$",
    r"Service\.php$",
)


def has_docblock(content: str) -> bool:
    return _DOCBLOCK.search(content) is not None


def declares_namespace(content: str) -> bool:
    return _NAMESPACE.search(content) is not None


def declares_strict_types(content: str) -> bool:
    return _STRICT_TYPES.search(content) is not None


def _compile_all(patterns: Iterable[str], key: str) -> list[re.Pattern]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ValueError(f"Invalid regex in {key}: {pattern!r} - {e}") from e
    return compiled


class QualityChecker:
    """
    Runs the boolean quality checks over a file list.

    Only files whose extension is in ``extensions`` are checked. A file is
    reported as missing a logger only when its path says it should have one.
    """

    def __init__(
        self,
        extensions: Iterable[str] = ("php",),
        logger_patterns: Iterable[str] | None = None,
        logger_expected_patterns: Iterable[str] | None = None,
        logger: logging.Logger | None = None,
    ):
        self._extensions = frozenset(ext.lower().lstrip(".") for ext in extensions)
        self._logger_res = _compile_all(
            logger_patterns if logger_patterns is not None else DEFAULT_LOGGER_PATTERNS,
            "logger_patterns",
        )
        self._expected_res = _compile_all(
            logger_expected_patterns
            if logger_expected_patterns is not None
            else DEFAULT_LOGGER_EXPECTED_PATTERNS,
            "logger_expected_patterns",
        )
        self._logger = logger or logging.getLogger(__name__)

    def references_logger(self, content: str) -> bool:
        return any(regex.search(content) for regex in self._logger_res)

    def should_have_logger(self, path: str) -> bool:
        return any(regex.search(path) for regex in self._expected_res)

    def check(self, files: Sequence[FileEntry], read_file: ReadFile) -> QualitySummary:
        """
        Check every eligible file and collect the results.

        Args:
            files: Candidate files
            read_file: Callable returning the text of a relative path

        Returns:
            QualitySummary with per-check buckets of relative paths
        """
        summary = QualitySummary()

        for entry in files:
            if entry.extension not in self._extensions:
                continue

            try:
                content = read_file(entry.path)
            except (FileUnreadableError, OSError, UnicodeDecodeError) as e:
                self._logger.warning(
                    f"Skipping quality checks for unreadable file: {entry.path} - {e}",
                    extra={"path": entry.path},
                )
                continue

            summary.files_checked += 1
            summary.total_lines += content.count("\n") + 1

            if not has_docblock(content):
                summary.missing_docblock.append(entry.path)
            if not declares_namespace(content):
                summary.missing_namespace.append(entry.path)
            if not declares_strict_types(content):
                summary.missing_strict_types.append(entry.path)
            if self.should_have_logger(entry.path) and not self.references_logger(content):
                summary.missing_logger.append(entry.path)

        self._logger.debug(
            "Quality checks completed",
            extra={
                "files_checked": summary.files_checked,
                "missing_docblock": len(summary.missing_docblock),
                "missing_logger": len(summary.missing_logger),
            },
        )
        return summary
