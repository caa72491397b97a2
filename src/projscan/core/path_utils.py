"""
Path validation utilities for projscan.

Provides scan-root validation, project discovery and confinement of
user-supplied relative paths, used across the CLI and HTTP layers.
"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from projscan.core.errors import NotReadableError
from projscan.core.tree_scanner.tree_builder import natural_sort_key


@dataclass
class PathValidationResult:
    """Result of path validation.

    Attributes:
        valid: True if the path is valid for the requested operation.
        error_message: Human-readable error message if validation failed.
    """
    valid: bool
    error_message: Optional[str] = None


def validate_scan_root(path: str | Path) -> PathValidationResult:
    """
    Validate that a path is suitable as a scan root.

    Performs the following checks:
    1. Path exists
    2. Path is a directory

    Args:
        path: Path to validate (string or Path object).

    Returns:
        PathValidationResult with valid=True if all checks pass,
        or valid=False with an appropriate error message.
    """
    try:
        p = Path(path) if isinstance(path, str) else path

        if not p.exists():
            return PathValidationResult(
                valid=False,
                error_message=f"Path '{path}' does not exist"
            )

        if not p.is_dir():
            return PathValidationResult(
                valid=False,
                error_message=f"Path '{path}' is not a directory"
            )

        return PathValidationResult(valid=True)

    except (OSError, ValueError) as e:
        return PathValidationResult(
            valid=False,
            error_message=f"Invalid path '{path}': {e}"
        )


def list_projects(projects_root: str | Path) -> list[str]:
    """
    List project names: the immediate subdirectories of ``projects_root``.

    Hidden directories (leading dot) are not projects.

    Args:
        projects_root: Directory holding one subdirectory per project.

    Returns:
        Directory names in natural, case-insensitive order.

    Raises:
        NotReadableError: If ``projects_root`` cannot be listed.
    """
    root = Path(projects_root)
    try:
        with os.scandir(root) as it:
            names = [
                entry.name
                for entry in it
                if not entry.name.startswith(".") and entry.is_dir(follow_symlinks=False)
            ]
    except OSError as e:
        raise NotReadableError(f"Cannot list projects root: {root} - {e}", path=str(root)) from e

    return sorted(names, key=natural_sort_key)


def resolve_within_root(root: str | Path, relative_path: str) -> Path:
    """
    Resolve a user-supplied relative path, refusing anything outside ``root``.

    Args:
        root: Directory the result must stay inside.
        relative_path: Slash-separated path relative to ``root``.

    Returns:
        Absolute, resolved path inside ``root``.

    Raises:
        ValueError: If the path is empty, absolute, or escapes ``root``.
    """
    if not relative_path or not relative_path.strip():
        raise ValueError("Path must not be empty")

    candidate = PurePosixPath(relative_path.replace("\\", "/"))
    if candidate.is_absolute():
        raise ValueError(f"Path must be relative: {relative_path}")

    root_resolved = Path(root).resolve()
    resolved = (root_resolved / candidate).resolve()
    if resolved != root_resolved and root_resolved not in resolved.parents:
        raise ValueError(f"Path escapes the project root: {relative_path}")
    return resolved


def ensure_directory_exists(path: Path) -> bool:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory to ensure exists.

    Returns:
        True if the directory exists or was created successfully,
        False if creation failed (e.g., permission error).
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        return True
    except OSError:
        return False
