"""
Data models for pattern-based rules.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Issue severity, ordered from least to most serious."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Parse a severity name case-insensitively.

        Raises:
            ValueError: If the name is not a known severity
        """
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of: {allowed})") from None


_SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
    Severity.CRITICAL: 3,
}


@dataclass(frozen=True)
class Rule:
    """
    A single pattern check.

    Attributes:
        id: Unique identifier within a RuleSet
        pattern: Source text of the regular expression
        message: Human-readable description reported with each match
        severity: Severity of the resulting issues
        extensions: Lower-cased extensions the rule applies to; empty means all
        regex: Compiled pattern
        suggestion: Optional hint on how to fix a finding
        flags: Inline flag letters (i, m, s, x, u) applied when compiling
    """

    id: str
    pattern: str
    message: str
    severity: Severity
    extensions: frozenset[str]
    regex: re.Pattern = field(compare=False, repr=False)
    suggestion: str | None = None
    flags: str = ""

    def applies_to(self, extension: str) -> bool:
        """Check whether the rule applies to files with this extension."""
        if not self.extensions:
            return True
        return extension.lower().lstrip(".") in self.extensions

    def to_definition(self) -> dict:
        """Return the rule as a configuration mapping entry."""
        definition = {
            "pattern": self.pattern,
            "message": self.message,
            "severity": self.severity.value,
            "extensions": sorted(self.extensions),
        }
        if self.suggestion:
            definition["suggestion"] = self.suggestion
        if self.flags:
            definition["flags"] = self.flags
        return definition


@dataclass(frozen=True)
class RuleConfigError:
    """A rule definition that was rejected while loading a RuleSet."""

    rule_id: str
    reason: str


@dataclass(frozen=True)
class RuleSet:
    """
    Immutable, ordered collection of rules.

    Rules that failed to load are kept in ``errors`` so callers can report
    them; they never take part in analysis.
    """

    rules: tuple[Rule, ...] = ()
    errors: tuple[RuleConfigError, ...] = ()

    def __post_init__(self):
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    def get(self, rule_id: str) -> Rule | None:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def applicable_to(self, extension: str) -> list[Rule]:
        """Rules that apply to the given extension, in RuleSet order."""
        return [rule for rule in self.rules if rule.applies_to(extension)]

    def to_definitions(self) -> dict[str, dict]:
        return {rule.id: rule.to_definition() for rule in self.rules}
