"""Shared fixtures for projscan tests."""

from pathlib import Path

import pytest


def write_files(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create files (and their parent directories) under root.

    Keys ending in "/" create empty directories.
    """
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in files.items():
        target = root / rel_path
        if rel_path.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8", newline="")
    return root


@pytest.fixture
def make_project(tmp_path):
    """Factory fixture: make_project({"a/b.php": "..."}, name="demo") -> project root."""

    def _make(files: dict[str, str | bytes], name: str = "project") -> Path:
        return write_files(tmp_path / name, files)

    return _make
