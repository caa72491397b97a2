"""
Unit tests for RuleAnalyzer.

Most tests use an in-memory reader so file contents are explicit; a few
read from a real directory to cover the size limit and vanished files.
"""

import threading

import pytest

from projscan.core.errors import FileUnreadableError, ScanCancelledError
from projscan.core.rules import Severity, parse_rules
from projscan.core.tree_scanner import FileEntry
from projscan.services.rule_analyzer import RuleAnalyzer, line_number_at, snippet_at


def make_entry(path: str) -> FileEntry:
    name = path.rsplit("/", 1)[-1]
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return FileEntry(path=path, name=name, size_bytes=0, extension=extension, modified_at=0.0)


def make_reader(contents: dict[str, str], calls: list[str] | None = None):
    def read(path: str) -> str:
        if calls is not None:
            calls.append(path)
        if path not in contents:
            raise FileUnreadableError(f"Cannot read file: {path}", path=path)
        return contents[path]

    return read


ECHO_RULES = parse_rules(
    {
        "no_echo_without_escape": {
            "pattern": r"echo\s+\$[a-zA-Z_]",
            "message": "Variable echoed without escaping",
            "severity": "warning",
            "extensions": ["php"],
            "suggestion": "Use htmlspecialchars()",
        }
    }
)


class TestRuleAnalyzer:
    """Tests for issue production and failure handling."""

    def test_single_match(self):
        reader = make_reader({"a/b.php": "echo $x;"})

        result = RuleAnalyzer().analyze([make_entry("a/b.php")], ECHO_RULES, read_file=reader)

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.rule_id == "no_echo_without_escape"
        assert issue.file_path == "a/b.php"
        assert issue.line_number == 1
        assert issue.severity is Severity.WARNING
        assert issue.snippet == "echo $x;"
        assert issue.suggestion == "Use htmlspecialchars()"
        assert result.files_analyzed == 1
        assert result.failures == []

    def test_every_match_is_reported_with_its_line(self):
        content = "<?php\necho $a;\n\n    echo $b; // again\n"
        reader = make_reader({"index.php": content})

        result = RuleAnalyzer().analyze([make_entry("index.php")], ECHO_RULES, read_file=reader)

        assert [i.line_number for i in result.issues] == [2, 4]
        assert result.issues[1].snippet == "echo $b; // again"

    def test_rules_are_not_applied_outside_their_extensions(self):
        calls: list[str] = []
        reader = make_reader({"app.js": "echo $x;", "b.php": "nothing"}, calls)

        result = RuleAnalyzer().analyze(
            [make_entry("app.js"), make_entry("b.php")], ECHO_RULES, read_file=reader
        )

        assert result.issues == []
        assert calls == ["b.php"]

    def test_issue_order_is_file_then_rule_then_offset(self):
        rules = parse_rules({"bbb": {"pattern": "b"}, "aaa": {"pattern": "a"}})
        reader = make_reader({"1.txt": "ab\nba", "2.txt": "a"})

        result = RuleAnalyzer().analyze(
            [make_entry("1.txt"), make_entry("2.txt")], rules, read_file=reader
        )

        assert [(i.file_path, i.rule_id, i.line_number) for i in result.issues] == [
            ("1.txt", "bbb", 1),
            ("1.txt", "bbb", 2),
            ("1.txt", "aaa", 1),
            ("1.txt", "aaa", 2),
            ("2.txt", "aaa", 1),
        ]

    def test_unreadable_file_is_a_failure_not_fatal(self):
        reader = make_reader({"ok.php": "echo $x;"})

        result = RuleAnalyzer().analyze(
            [make_entry("gone.php"), make_entry("ok.php")], ECHO_RULES, read_file=reader
        )

        assert [f.file_path for f in result.failures] == ["gone.php"]
        assert [i.file_path for i in result.issues] == ["ok.php"]
        assert result.files_analyzed == 1

    def test_binary_content_is_skipped(self):
        reader = make_reader({"blob.php": "echo $x;\x00\x01"})

        result = RuleAnalyzer().analyze([make_entry("blob.php")], ECHO_RULES, read_file=reader)

        assert result.issues == []
        assert result.failures == []
        assert result.files_analyzed == 0

    def test_long_snippet_is_truncated(self):
        line = "echo $x; " + "y" * 300
        reader = make_reader({"long.php": line})

        result = RuleAnalyzer(snippet_length=50).analyze(
            [make_entry("long.php")], ECHO_RULES, read_file=reader
        )

        snippet = result.issues[0].snippet
        assert snippet == line[:50] + "..."

    def test_parallel_matches_sequential(self):
        contents = {f"f{n}.php": "echo $a;\n" * (n % 4) for n in range(30)}
        files = [make_entry(path) for path in contents]

        sequential = RuleAnalyzer(max_workers=1).analyze(
            files, ECHO_RULES, read_file=make_reader(contents)
        )
        parallel = RuleAnalyzer(max_workers=4).analyze(
            files, ECHO_RULES, read_file=make_reader(contents)
        )

        assert parallel.issues == sequential.issues
        assert parallel.files_analyzed == sequential.files_analyzed == 30

    @pytest.mark.parametrize("workers", [1, 4])
    def test_cancelled_analysis_raises(self, workers):
        cancel = threading.Event()
        cancel.set()
        reader = make_reader({"a.php": "echo $x;", "b.php": "echo $y;"})

        with pytest.raises(ScanCancelledError):
            RuleAnalyzer(max_workers=workers).analyze(
                [make_entry("a.php"), make_entry("b.php")],
                ECHO_RULES,
                read_file=reader,
                cancel_event=cancel,
            )

    def test_reader_or_root_is_required(self):
        with pytest.raises(ValueError):
            RuleAnalyzer().analyze([make_entry("a.php")], ECHO_RULES)

    def test_empty_rule_set_reads_nothing(self):
        calls: list[str] = []
        result = RuleAnalyzer().analyze(
            [make_entry("a.php")], parse_rules({}), read_file=make_reader({}, calls)
        )
        assert result.issues == []
        assert calls == []


class TestRootReader:
    """Tests for analysis that reads from a directory."""

    def test_reads_relative_to_root(self, make_project):
        root = make_project({"src/a.php": "<?php\necho $x;"})

        result = RuleAnalyzer().analyze([make_entry("src/a.php")], ECHO_RULES, root=root)

        assert [i.line_number for i in result.issues] == [2]

    def test_oversized_file_is_a_failure(self, make_project):
        root = make_project({"big.php": "echo $x;" * 20})

        result = RuleAnalyzer(max_file_size_bytes=10).analyze(
            [make_entry("big.php")], ECHO_RULES, root=root
        )

        assert result.issues == []
        assert len(result.failures) == 1
        assert "exceeds" in result.failures[0].reason

    def test_vanished_file_is_a_failure(self, make_project):
        root = make_project({"a.php": "echo $x;"})
        (root / "a.php").unlink()

        result = RuleAnalyzer().analyze([make_entry("a.php")], ECHO_RULES, root=root)

        assert [f.file_path for f in result.failures] == ["a.php"]

    def test_invalid_utf8_is_replaced(self, make_project):
        root = make_project({"a.php": b"\xff\xfe echo $x;"})

        result = RuleAnalyzer().analyze([make_entry("a.php")], ECHO_RULES, root=root)

        assert len(result.issues) == 1
        assert result.failures == []


class TestHelpers:
    def test_line_number_at(self):
        content = "a\nb\nc"
        assert line_number_at(content, 0) == 1
        assert line_number_at(content, 2) == 2
        assert line_number_at(content, 4) == 3

    def test_snippet_at_returns_stripped_line(self):
        content = "first\n   second line   \nthird"
        assert snippet_at(content, content.index("second")) == "second line"
        assert snippet_at(content, content.index("third")) == "third"
