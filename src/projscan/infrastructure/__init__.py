"""
Infrastructure Layer - Persistence for rule definitions.
"""

from projscan.infrastructure.rule_store import RuleStore

__all__ = [
    "RuleStore",
]
