"""
Centralized services container module for projscan.

Provides a shared container for all services used across the CLI and HTTP
entry points.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from projscan.core.config import ProjScanConfig, load_config
from projscan.core.tree_scanner import TreeScanner
from projscan.infrastructure.rule_store import RuleStore
from projscan.services.quality_checks import QualityChecker
from projscan.services.report_aggregator import ReportAggregator
from projscan.services.rule_analyzer import RuleAnalyzer
from projscan.services.scan_service import ScanService


@dataclass
class ServicesContainer:
    """
    Container holding all shared service instances.

    Attributes:
        config: Application configuration
        tree_scanner: Directory walker
        analyzer: Rule analyzer
        quality_checker: Boolean quality checks
        aggregator: Report aggregation and rendering
        rule_store: Rule definitions store
        scan_service: Pipeline orchestration
    """

    config: ProjScanConfig
    tree_scanner: TreeScanner
    analyzer: RuleAnalyzer
    quality_checker: QualityChecker
    aggregator: ReportAggregator
    rule_store: RuleStore
    scan_service: ScanService


def create_services(
    config_path: Optional[Path | str] = None,
    config: Optional[ProjScanConfig] = None,
    rules_path: Optional[Path | str] = None,
    logger: Optional[logging.Logger] = None,
) -> ServicesContainer:
    """
    Create and wire all services.

    Args:
        config_path: Optional configuration file. Ignored when ``config`` is given.
        config: Already loaded configuration
        rules_path: Rule file overriding ``analysis.rules_file``
        logger: Logger passed to every component; each defaults to its module logger

    Returns:
        ServicesContainer with all initialized services.
    """
    if config is None:
        config = load_config(config_path)

    tree_scanner = TreeScanner(
        ignore_patterns=config.scan.ignore_patterns,
        countable_extensions=config.scan.countable_extensions,
        logger=logger,
    )

    analyzer = RuleAnalyzer(
        max_workers=config.analysis.max_workers,
        snippet_length=config.analysis.snippet_length,
        max_file_size_bytes=config.analysis.max_file_size_bytes,
        logger=logger,
    )

    quality_checker = QualityChecker(
        extensions=config.analysis.quality_extensions,
        logger_patterns=config.analysis.logger_patterns,
        logger_expected_patterns=config.analysis.logger_expected_patterns,
        logger=logger,
    )

    aggregator = ReportAggregator(
        legacy_list_limit=config.report.legacy_list_limit,
        logger=logger,
    )

    rule_store = RuleStore(rules_path or config.analysis.rules_file or None, logger=logger)

    scan_service = ScanService(
        tree_scanner=tree_scanner,
        analyzer=analyzer,
        quality_checker=quality_checker,
        aggregator=aggregator,
        rule_store=rule_store,
        ignore_patterns=config.scan.ignore_patterns,
        important_files=config.report.important_files,
        logger=logger,
    )

    return ServicesContainer(
        config=config,
        tree_scanner=tree_scanner,
        analyzer=analyzer,
        quality_checker=quality_checker,
        aggregator=aggregator,
        rule_store=rule_store,
        scan_service=scan_service,
    )
