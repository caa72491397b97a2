"""
TreeScanner implementation for recursive directory scanning.
"""

import logging
import os
import threading
from collections.abc import Iterable
from pathlib import Path

from projscan.core.errors import NotReadableError, ScanCancelledError

from .ignore import IgnoreMatcher
from .interfaces import TreeScannerInterface
from .models import DirectoryEntry, FileEntry, ScanTree, SkippedPath
from .tree_builder import build_tree, natural_sort_key


def count_lines(file_path: Path | str) -> int:
    """Count lines as the number of newline terminators plus one."""
    newlines = 0
    with open(file_path, "rb") as f:
        for block in iter(lambda: f.read(64 * 1024), b""):
            newlines += block.count(b"\n")
    return newlines + 1


def _extension_of(name: str) -> str:
    """Lower-cased extension without the dot; dotfiles like '.env' have none."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


class TreeScanner(TreeScannerInterface):
    """
    Concrete implementation of TreeScannerInterface.

    Provides depth-first directory walking with:
    - Ignore-pattern filtering (directory matches prune the whole subtree)
    - Per-file metadata (size, mtime, extension, optional line count)
    - Natural, case-insensitive ordering of the display tree
    - Graceful handling of unreadable subdirectories and vanished files
    - Symlinks are never followed or recorded
    """

    def __init__(
        self,
        ignore_patterns: list[str] | None = None,
        countable_extensions: Iterable[str] | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the TreeScanner.

        Args:
            ignore_patterns: Default ignore patterns used when scan() receives none.
                            None means no filtering.
            countable_extensions: Extensions (without dot) whose files get a line count.
                                 Defaults to {'php'}.
            logger: Logger used for scan events. Defaults to the module logger.
        """
        self._ignore_patterns: list[str] = list(ignore_patterns or [])
        if countable_extensions is None:
            countable_extensions = {"php"}
        self._countable_extensions = frozenset(
            ext.lower().lstrip(".") for ext in countable_extensions
        )
        self._logger = logger or logging.getLogger(__name__)

    def set_ignore_patterns(self, patterns: list[str]) -> None:
        """Replace the default ignore patterns."""
        self._ignore_patterns = list(patterns)

    def scan(
        self,
        root_path: Path | str,
        ignore_patterns: list[str] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ScanTree:
        """
        Recursively scan a directory.

        Args:
            root_path: Root directory to scan
            ignore_patterns: Patterns overriding the configured ones
            cancel_event: Optional event; when set the scan is abandoned

        Returns:
            ScanTree with files, directories and the display tree
        """
        root = Path(root_path)

        if not root.exists():
            raise NotReadableError(f"Root path does not exist: {root}", path=str(root))
        if not root.is_dir():
            raise NotReadableError(f"Root path is not a directory: {root}", path=str(root))

        try:
            root_entries = self._list_directory(root)
        except OSError as e:
            raise NotReadableError(f"Cannot list root directory: {root} - {e}", path=str(root)) from e

        patterns = ignore_patterns if ignore_patterns is not None else self._ignore_patterns
        matcher = IgnoreMatcher(patterns)

        files: list[FileEntry] = []
        directories: list[DirectoryEntry] = []
        skipped: list[SkippedPath] = []

        self._logger.debug(
            "Starting tree scan",
            extra={"root": str(root), "ignore_pattern_count": len(matcher.patterns)},
        )

        self._scan_directory(
            root_entries, "", matcher, files, directories, skipped, cancel_event
        )

        tree = build_tree(files, directories)

        self._logger.info(
            f"Scanned {root}: {len(files)} files, {len(directories)} directories",
            extra={
                "root": str(root),
                "total_files": len(files),
                "total_directories": len(directories),
                "skipped": len(skipped),
            },
        )

        return ScanTree(
            root=root,
            files=tuple(files),
            directories=tuple(directories),
            tree=tuple(tree),
            skipped=tuple(skipped),
        )

    @staticmethod
    def _list_directory(path: Path) -> list[os.DirEntry]:
        """List a directory, ordered by natural name order."""
        with os.scandir(path) as it:
            entries = list(it)
        entries.sort(key=lambda e: natural_sort_key(e.name))
        return entries

    def _scan_directory(
        self,
        entries: list[os.DirEntry],
        rel_dir: str,
        matcher: IgnoreMatcher,
        files: list[FileEntry],
        directories: list[DirectoryEntry],
        skipped: list[SkippedPath],
        cancel_event: threading.Event | None,
    ) -> None:
        """
        Walk the already-listed entries of one directory.

        Args:
            entries: Directory entries of the current directory
            rel_dir: Slash-separated path of the current directory ("" for root)
            matcher: Ignore matcher for this scan
            files: Accumulator for file entries
            directories: Accumulator for directory entries
            skipped: Accumulator for paths that could not be visited
            cancel_event: Optional cancellation event
        """
        for entry in entries:
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelledError("Scan cancelled during directory walk")

            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name

            try:
                if entry.is_symlink():
                    self._logger.debug(f"Skipping symlink: {rel_path}")
                    continue
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as e:
                self._logger.warning(f"Error inspecting entry: {rel_path} - {e}")
                skipped.append(SkippedPath(path=rel_path, reason=str(e)))
                continue

            pattern = matcher.match(rel_path, entry.name)
            if pattern is not None:
                self._logger.debug(f"Ignoring: {rel_path}", extra={"pattern": pattern})
                continue

            if is_dir:
                try:
                    children = self._list_directory(Path(entry.path))
                except PermissionError as e:
                    self._logger.warning(
                        f"Permission denied accessing directory: {rel_path} - {e}",
                        extra={"path": rel_path},
                    )
                    skipped.append(SkippedPath(path=rel_path, reason="permission denied"))
                    continue
                except OSError as e:
                    self._logger.warning(
                        f"Error accessing directory: {rel_path} - {e}",
                        extra={"path": rel_path},
                    )
                    skipped.append(SkippedPath(path=rel_path, reason=str(e)))
                    continue

                directories.append(DirectoryEntry(path=rel_path, name=entry.name))
                self._scan_directory(
                    children, rel_path, matcher, files, directories, skipped, cancel_event
                )
            elif is_file:
                file_entry = self._scan_file(entry, rel_path)
                if file_entry is None:
                    skipped.append(SkippedPath(path=rel_path, reason="file vanished or unreadable"))
                else:
                    files.append(file_entry)
            else:
                self._logger.debug(f"Skipping special file: {rel_path}")

    def _scan_file(self, entry: os.DirEntry, rel_path: str) -> FileEntry | None:
        """
        Extract metadata for a single file.

        Args:
            entry: Directory entry of the file
            rel_path: Slash-separated relative path

        Returns:
            FileEntry or None if the file could not be stat'ed
        """
        try:
            stat = entry.stat(follow_symlinks=False)
        except OSError as e:
            self._logger.warning(f"Error reading file metadata: {rel_path} - {e}")
            return None

        extension = _extension_of(entry.name)
        line_count: int | None = None
        if extension in self._countable_extensions:
            try:
                line_count = count_lines(entry.path)
            except OSError as e:
                self._logger.warning(
                    f"Failed to count lines: {rel_path} - {e}", extra={"path": rel_path}
                )

        return FileEntry(
            path=rel_path,
            name=entry.name,
            size_bytes=stat.st_size,
            extension=extension,
            modified_at=stat.st_mtime,
            line_count=line_count,
        )
