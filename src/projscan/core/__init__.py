"""
Core Layer - Configuration, tree scanning, rules and path utilities.
"""

from projscan.core.config import (
    AnalysisConfig,
    LoggingConfig,
    ProjectsConfig,
    ProjScanConfig,
    ReportConfig,
    ScanConfig,
    ServerConfig,
    load_config,
)
from projscan.core.errors import (
    ConfigurationMissingError,
    FileUnreadableError,
    InvalidRulePatternError,
    NotReadableError,
    ProjScanError,
    RuleValidationError,
    ScanCancelledError,
)
from projscan.core.rules import Rule, RuleConfigError, RuleSet, Severity, load_rules
from projscan.core.tree_scanner import (
    DirectoryEntry,
    FileEntry,
    ScanTree,
    TreeNode,
    TreeScanner,
    TreeScannerInterface,
)

__all__ = [
    # Config
    "ProjScanConfig",
    "ScanConfig",
    "AnalysisConfig",
    "ReportConfig",
    "ProjectsConfig",
    "ServerConfig",
    "LoggingConfig",
    "load_config",
    # Errors
    "ProjScanError",
    "NotReadableError",
    "FileUnreadableError",
    "InvalidRulePatternError",
    "ConfigurationMissingError",
    "ScanCancelledError",
    "RuleValidationError",
    # Rules
    "Rule",
    "RuleConfigError",
    "RuleSet",
    "Severity",
    "load_rules",
    # TreeScanner
    "TreeScanner",
    "TreeScannerInterface",
    "FileEntry",
    "DirectoryEntry",
    "TreeNode",
    "ScanTree",
]
