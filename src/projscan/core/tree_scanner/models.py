"""
Data models for the tree scanner module.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Indentation unit used when a tree node is rendered as a line of text
TREE_INDENT = "│   "


class EntryKind(str, Enum):
    """Kind of filesystem entry represented by a tree node."""

    FILE = "file"
    DIRECTORY = "directory"


def parent_of(path: str) -> str:
    """Return the slash-separated parent of a relative path ("" for top level)."""
    return path.rpartition("/")[0]


@dataclass(frozen=True)
class FileEntry:
    """
    A file discovered during a scan.

    Attributes:
        path: Path relative to the scan root, slash-separated. Unique per scan.
        name: Base name of the file
        size_bytes: File size in bytes
        extension: Lower-cased extension without the leading dot ('' if none)
        modified_at: Modification timestamp (Unix epoch)
        line_count: Number of lines, only set for countable extensions
    """

    path: str
    name: str
    size_bytes: int
    extension: str
    modified_at: float
    line_count: int | None = None

    @property
    def parent(self) -> str:
        return parent_of(self.path)


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory discovered during a scan."""

    path: str
    name: str

    @property
    def parent(self) -> str:
        return parent_of(self.path)


@dataclass(frozen=True)
class TreeNode:
    """
    One line of the display tree.

    Attributes:
        kind: Whether the node is a file or a directory
        entry: The FileEntry or DirectoryEntry it represents
        depth: Nesting level, 0 for direct children of the root
        display_label: Label shown for the node (icon, name, size)
    """

    kind: EntryKind
    entry: FileEntry | DirectoryEntry
    depth: int
    display_label: str

    @property
    def path(self) -> str:
        return self.entry.path

    def render(self, indent: str = TREE_INDENT) -> str:
        """Render the node as an indented text line."""
        return f"{indent * self.depth}{self.display_label}"


@dataclass(frozen=True)
class SkippedPath:
    """A path the walker could not visit (unlistable directory, vanished file)."""

    path: str
    reason: str


@dataclass(frozen=True)
class ScanTree:
    """
    Result of a directory walk: flat entry lists plus the ordered display tree.

    The set of paths in ``tree`` always equals the set of paths in
    ``files`` and ``directories`` combined.
    """

    root: Path
    files: tuple[FileEntry, ...] = ()
    directories: tuple[DirectoryEntry, ...] = ()
    tree: tuple[TreeNode, ...] = ()
    skipped: tuple[SkippedPath, ...] = field(default_factory=tuple)

    def tree_lines(self, indent: str = TREE_INDENT) -> list[str]:
        """Render the whole tree as text lines."""
        return [node.render(indent) for node in self.tree]

    def file_paths(self) -> set[str]:
        return {f.path for f in self.files}

    def directory_paths(self) -> set[str]:
        return {d.path for d in self.directories}
