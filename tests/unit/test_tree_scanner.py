"""
Unit tests for TreeScanner, IgnoreMatcher and the display tree builder.
"""

import os
import threading

import pytest

from projscan.core.errors import NotReadableError, ScanCancelledError
from projscan.core.tree_scanner import (
    DirectoryEntry,
    FileEntry,
    IgnoreMatcher,
    TreeScanner,
    build_tree,
    count_lines,
    format_file_size,
    natural_sort_key,
)
from projscan.core.tree_scanner.models import EntryKind


class TestTreeScanner:
    """Tests for the recursive directory walk."""

    def test_directory_prefix_pattern_prunes_subtree(self, make_project):
        root = make_project({"a/x.txt": "x", "b/y.txt": "y", "b/c/z.txt": "z"})

        result = TreeScanner().scan(root, ["b/"])

        assert result.file_paths() == {"a/x.txt"}
        assert result.directory_paths() == {"a"}

    def test_tree_covers_every_file_and_directory(self, make_project):
        root = make_project({"src/app.php": "<?php", "src/lib/util.php": "", "README.md": "#"})

        result = TreeScanner().scan(root)

        tree_paths = {node.path for node in result.tree}
        assert tree_paths == result.file_paths() | result.directory_paths()
        assert len(result.tree) == len(result.files) + len(result.directories)

    def test_natural_case_insensitive_order(self, make_project):
        root = make_project({"file10.php": "", "file2.php": "", "File1.php": ""})

        result = TreeScanner().scan(root)

        assert [node.entry.name for node in result.tree] == [
            "File1.php",
            "file2.php",
            "file10.php",
        ]

    def test_directories_before_files_and_expanded_in_place(self, make_project):
        root = make_project({"z.txt": "z", "a/b.txt": "b", "c/": None})

        result = TreeScanner().scan(root)

        assert [(node.path, node.depth) for node in result.tree] == [
            ("a", 0),
            ("a/b.txt", 1),
            ("c", 0),
            ("z.txt", 0),
        ]
        assert result.tree[0].kind == EntryKind.DIRECTORY
        assert result.tree[-1].kind == EntryKind.FILE

    def test_labels_include_icon_and_size(self, make_project):
        root = make_project({"lib/": None, "big.txt": "x" * 2048, "empty.txt": ""})

        result = TreeScanner().scan(root)
        labels = {node.path: node.display_label for node in result.tree}

        assert labels["lib"] == "📁 lib/"
        assert labels["big.txt"] == "📄 big.txt (2KB)"
        assert labels["empty.txt"] == "📄 empty.txt"

    def test_rendered_lines_are_indented_by_depth(self, make_project):
        root = make_project({"a/b/c.txt": "c"})

        lines = TreeScanner().scan(root).tree_lines(indent="  ")

        assert lines == ["📁 a/", "  📁 b/", "    📄 c.txt (1B)"]

    def test_line_count_only_for_countable_extensions(self, make_project):
        root = make_project({"a.php": "<?php\necho 1;\n", "notes.txt": "one\ntwo\n"})

        result = TreeScanner(countable_extensions=["php"]).scan(root)
        files = {f.path: f for f in result.files}

        assert files["a.php"].line_count == 3
        assert files["notes.txt"].line_count is None

    def test_file_metadata(self, make_project):
        root = make_project({"docs/README.MD": "hello", ".htaccess": "x", "a.tar.gz": "z"})

        files = {f.path: f for f in TreeScanner().scan(root).files}

        readme = files["docs/README.MD"]
        assert readme.name == "README.MD"
        assert readme.extension == "md"
        assert readme.size_bytes == 5
        assert readme.parent == "docs"
        assert files[".htaccess"].extension == ""
        assert files["a.tar.gz"].extension == "gz"

    def test_default_ignore_patterns_apply_when_none_given(self, make_project):
        root = make_project({"vendor/lib.php": "", "index.php": "", "index.php~": ""})

        scanner = TreeScanner(ignore_patterns=["vendor/", "~"])

        assert scanner.scan(root).file_paths() == {"index.php"}
        assert scanner.scan(root, []).file_paths() == {
            "vendor/lib.php",
            "index.php",
            "index.php~",
        }

    def test_set_ignore_patterns_replaces_defaults(self, make_project):
        root = make_project({"build/out.js": "", "main.js": ""})

        scanner = TreeScanner()
        scanner.set_ignore_patterns(["build/"])

        assert scanner.scan(root).file_paths() == {"main.js"}

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(NotReadableError):
            TreeScanner().scan(tmp_path / "missing")

    def test_file_root_raises(self, make_project):
        root = make_project({"a.txt": "a"})
        with pytest.raises(NotReadableError):
            TreeScanner().scan(root / "a.txt")

    def test_empty_root(self, tmp_path):
        result = TreeScanner().scan(tmp_path)
        assert result.files == ()
        assert result.directories == ()
        assert result.tree == ()

    def test_symlinks_are_skipped(self, make_project):
        root = make_project({"real/a.txt": "a"})
        try:
            os.symlink(root / "real", root / "link")
            os.symlink(root / "real" / "a.txt", root / "alias.txt")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        result = TreeScanner().scan(root)

        assert result.file_paths() == {"real/a.txt"}
        assert result.directory_paths() == {"real"}

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="permission checks are bypassed for root",
    )
    def test_unlistable_subdirectory_is_recorded_and_skipped(self, make_project):
        root = make_project({"ok/a.txt": "a", "locked/b.txt": "b"})
        locked = root / "locked"
        locked.chmod(0)
        try:
            result = TreeScanner().scan(root)
        finally:
            locked.chmod(0o755)

        assert result.file_paths() == {"ok/a.txt"}
        assert "locked" not in result.directory_paths()
        assert [s.path for s in result.skipped] == ["locked"]

    def test_cancel_event_aborts_scan(self, make_project):
        root = make_project({"a.txt": "a"})
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ScanCancelledError):
            TreeScanner().scan(root, cancel_event=cancel)


class TestIgnoreMatcher:
    """Tests for the four ignore matching rules."""

    def test_full_path_equality(self):
        matcher = IgnoreMatcher(["src/config.php"])
        assert matcher.is_ignored("src/config.php")
        assert not matcher.is_ignored("config.php")
        assert not matcher.is_ignored("lib/config.php")

    def test_directory_prefix(self):
        matcher = IgnoreMatcher(["vendor/"])
        assert matcher.is_ignored("vendor")
        assert matcher.is_ignored("vendor/autoload.php")
        assert not matcher.is_ignored("vendorX/a.php")

    def test_nested_directory_prefix(self):
        matcher = IgnoreMatcher(["storage/cache/"])
        assert matcher.is_ignored("storage/cache/x.tmp")
        assert not matcher.is_ignored("storage/logs/app.log")

    def test_single_character_suffix(self):
        matcher = IgnoreMatcher(["~"])
        assert matcher.is_ignored("src/index.php~")
        assert not matcher.is_ignored("src/index.php")

    def test_base_name_equality_at_any_depth(self):
        matcher = IgnoreMatcher([".DS_Store"])
        assert matcher.is_ignored(".DS_Store")
        assert matcher.is_ignored("a/b/.DS_Store")

    def test_backslashes_and_leading_slash_are_normalized(self):
        matcher = IgnoreMatcher(["\\build\\", "/dist/", ""])
        assert matcher.patterns == ("build/", "dist/")
        assert matcher.is_ignored("build/app.js")
        assert matcher.is_ignored("dist/app.js")

    def test_match_returns_first_matching_pattern(self):
        matcher = IgnoreMatcher(["node_modules/", "~"])
        assert matcher.match("node_modules/x~") == "node_modules/"
        assert matcher.match("x~") == "~"
        assert matcher.match("x") is None


class TestTreeBuilder:
    """Tests for ordering, size formatting and tree construction helpers."""

    def test_natural_sort_key(self):
        names = ["item10", "Item2", "item1", "alpha", "Beta"]
        assert sorted(names, key=natural_sort_key) == ["alpha", "Beta", "item1", "Item2", "item10"]

    def test_superscript_digits_sort_as_text(self):
        names = ["m1²", "m1", "m10", "v٣"]
        assert sorted(names, key=natural_sort_key) == ["m1", "m1²", "m10", "v٣"]

    def test_superscript_digit_names_do_not_abort_scan(self, make_project):
        root = make_project({"m1²/a.txt": "a", "b.txt": "b"})

        result = TreeScanner().scan(root)

        assert [node.path for node in result.tree] == ["m1²", "m1²/a.txt", "b.txt"]

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0B"),
            (1023, "1023B"),
            (1024, "1KB"),
            (1536, "1.5KB"),
            (3 * 1024 * 1024, "3MB"),
        ],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_orphan_entry_is_rejected(self):
        orphan = FileEntry(path="missing/a.txt", name="a.txt", size_bytes=1, extension="txt", modified_at=0.0)
        with pytest.raises(ValueError, match="no recorded parent"):
            build_tree([orphan], [])

    def test_build_tree_from_flat_lists(self):
        files = [
            FileEntry(path="b.txt", name="b.txt", size_bytes=0, extension="txt", modified_at=0.0),
            FileEntry(path="d/a.txt", name="a.txt", size_bytes=0, extension="txt", modified_at=0.0),
        ]
        directories = [DirectoryEntry(path="d", name="d")]

        nodes = build_tree(files, directories)

        assert [node.path for node in nodes] == ["d", "d/a.txt", "b.txt"]

    def test_count_lines(self, tmp_path):
        path = tmp_path / "a.php"
        path.write_bytes(b"one\ntwo\nthree")
        assert count_lines(path) == 3
        path.write_bytes(b"")
        assert count_lines(path) == 1
