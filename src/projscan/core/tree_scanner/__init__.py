"""
TreeScanner module for projscan.

Provides recursive directory scanning with ignore-pattern filtering,
per-file metadata extraction, and a naturally ordered display tree.
"""

from .ignore import IgnoreMatcher
from .interfaces import TreeScannerInterface
from .models import (
    TREE_INDENT,
    DirectoryEntry,
    EntryKind,
    FileEntry,
    ScanTree,
    SkippedPath,
    TreeNode,
)
from .scanner import TreeScanner, count_lines
from .tree_builder import build_tree, format_file_size, natural_sort_key

__all__ = [
    # Main classes
    "TreeScanner",
    "TreeScannerInterface",
    "IgnoreMatcher",
    # Models
    "FileEntry",
    "DirectoryEntry",
    "EntryKind",
    "TreeNode",
    "SkippedPath",
    "ScanTree",
    # Helpers
    "build_tree",
    "count_lines",
    "format_file_size",
    "natural_sort_key",
    # Constants
    "TREE_INDENT",
]
