"""
Rule definitions and loading for the pattern-based analyzer.
"""

from .loader import (
    DEFAULT_RULES_PATH,
    compile_pattern,
    load_default_rules,
    load_rules,
    parse_rule,
    parse_rules,
    read_rule_file,
    split_delimited,
)
from .models import Rule, RuleConfigError, RuleSet, Severity

__all__ = [
    "Rule",
    "RuleConfigError",
    "RuleSet",
    "Severity",
    "DEFAULT_RULES_PATH",
    "compile_pattern",
    "load_default_rules",
    "load_rules",
    "parse_rule",
    "parse_rules",
    "read_rule_file",
    "split_delimited",
]
