"""
Construction of the ordered display tree from flat scan results.
"""

import re
from collections import defaultdict
from collections.abc import Sequence

from .models import DirectoryEntry, EntryKind, FileEntry, TreeNode

_DIGIT_RUN = re.compile(r"(\d+)")

DIRECTORY_ICON = "📁"
FILE_ICON = "📄"


def natural_sort_key(name: str) -> tuple:
    """
    Sort key for case-insensitive natural ordering.

    Digit runs compare numerically, so "file2" sorts before "file10".
    The unmodified name is the final tie-breaker to keep ordering total.
    """
    parts = []
    for part in _DIGIT_RUN.split(name.lower()):
        if _DIGIT_RUN.fullmatch(part):
            parts.append((0, int(part), part))
        else:
            parts.append((1, part))
    return (tuple(parts), name)


def format_file_size(size_bytes: int) -> str:
    """Format a byte count as B, KB or MB with one decimal place."""
    if size_bytes >= 1024 * 1024:
        return f"{round(size_bytes / (1024 * 1024), 1):g}MB"
    if size_bytes >= 1024:
        return f"{round(size_bytes / 1024, 1):g}KB"
    return f"{size_bytes}B"


def directory_label(entry: DirectoryEntry) -> str:
    return f"{DIRECTORY_ICON} {entry.name}/"


def file_label(entry: FileEntry) -> str:
    if entry.size_bytes > 0:
        return f"{FILE_ICON} {entry.name} ({format_file_size(entry.size_bytes)})"
    return f"{FILE_ICON} {entry.name}"


def build_tree(
    files: Sequence[FileEntry], directories: Sequence[DirectoryEntry]
) -> list[TreeNode]:
    """
    Build the pre-order display tree.

    At each level child directories are emitted first, each expanded before
    its next sibling, followed by the child files. Both groups use natural,
    case-insensitive name order.

    Args:
        files: Flat list of files from the walk
        directories: Flat list of directories from the walk

    Returns:
        Ordered list of TreeNode objects

    Raises:
        ValueError: If an entry's parent directory is not among ``directories``,
            which would leave it out of the tree.
    """
    child_files: dict[str, list[FileEntry]] = defaultdict(list)
    child_dirs: dict[str, list[DirectoryEntry]] = defaultdict(list)

    for file_entry in files:
        child_files[file_entry.parent].append(file_entry)
    for dir_entry in directories:
        child_dirs[dir_entry.parent].append(dir_entry)

    nodes: list[TreeNode] = []
    _emit_level("", 0, child_files, child_dirs, nodes)

    expected = len(files) + len(directories)
    if len(nodes) != expected:
        emitted = {node.path for node in nodes}
        orphans = sorted(
            e.path for e in [*files, *directories] if e.path not in emitted
        )
        raise ValueError(
            f"{expected - len(nodes)} entries have no recorded parent directory: "
            f"{', '.join(orphans[:5])}"
        )

    return nodes


def _emit_level(
    parent: str,
    depth: int,
    child_files: dict[str, list[FileEntry]],
    child_dirs: dict[str, list[DirectoryEntry]],
    nodes: list[TreeNode],
) -> None:
    for dir_entry in sorted(child_dirs.get(parent, ()), key=lambda d: natural_sort_key(d.name)):
        nodes.append(
            TreeNode(
                kind=EntryKind.DIRECTORY,
                entry=dir_entry,
                depth=depth,
                display_label=directory_label(dir_entry),
            )
        )
        _emit_level(dir_entry.path, depth + 1, child_files, child_dirs, nodes)

    for file_entry in sorted(child_files.get(parent, ()), key=lambda f: natural_sort_key(f.name)):
        nodes.append(
            TreeNode(
                kind=EntryKind.FILE,
                entry=file_entry,
                depth=depth,
                display_label=file_label(file_entry),
            )
        )
