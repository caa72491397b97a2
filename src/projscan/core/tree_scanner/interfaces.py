"""
Abstract interfaces for tree scanning operations.
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path

from .models import ScanTree


class TreeScannerInterface(ABC):
    """
    Abstract interface for directory tree scanning.

    Implementations walk a project root, apply ignore patterns and return
    both a flat entry listing and an ordered display tree.
    """

    @abstractmethod
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

        Raises:
            NotReadableError: If the root cannot be listed
            ScanCancelledError: If cancel_event was set during the walk
        """
        pass
