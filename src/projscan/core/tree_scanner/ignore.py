"""
Ignore-pattern matching for the tree scanner.

A candidate is ignored when any pattern matches it under one of these rules:

1. The pattern equals the full relative path.
2. The pattern ends with "/" and the relative path plus a trailing "/"
   starts with it (directory prefix).
3. The pattern is a single character and the entry name ends with it
   (backup-file suffixes such as "~").
4. The pattern equals the entry's base name.
"""

from collections.abc import Iterable


class IgnoreMatcher:
    """
    Evaluates ignore patterns against slash-separated relative paths.

    Example:
        >>> matcher = IgnoreMatcher(["vendor/", "~", ".DS_Store"])
        >>> matcher.is_ignored("vendor/autoload.php")
        True
        >>> matcher.is_ignored("src/index.php~")
        True
        >>> matcher.is_ignored("src/index.php")
        False
    """

    def __init__(self, patterns: Iterable[str] | None = None):
        normalized: list[str] = []
        for pattern in patterns or ():
            if not pattern:
                continue
            pattern = pattern.replace("\\", "/")
            if len(pattern) > 1:
                pattern = pattern.lstrip("/") or pattern
            normalized.append(pattern)
        self._patterns: tuple[str, ...] = tuple(normalized)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def match(self, rel_path: str, name: str | None = None) -> str | None:
        """
        Return the first pattern that ignores the candidate, or None.

        Args:
            rel_path: Slash-separated path relative to the scan root
            name: Base name of the entry. Derived from rel_path if omitted.
        """
        if name is None:
            name = rel_path.rpartition("/")[2]

        for pattern in self._patterns:
            if rel_path == pattern:
                return pattern
            if pattern.endswith("/") and (rel_path + "/").startswith(pattern):
                return pattern
            if len(pattern) == 1 and name.endswith(pattern):
                return pattern
            if pattern == name:
                return pattern
        return None

    def is_ignored(self, rel_path: str, name: str | None = None) -> bool:
        """Check whether a candidate path is excluded from the scan."""
        return self.match(rel_path, name) is not None
