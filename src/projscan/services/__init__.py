"""
Service Layer - RuleAnalyzer, QualityChecker, ReportAggregator, ScanService and ServicesContainer.
"""

from projscan.services.container import ServicesContainer, create_services
from projscan.services.models import (
    AnalysisFailure,
    AnalysisResult,
    Issue,
    QualitySummary,
    Report,
    ScanResult,
    ScanStats,
)
from projscan.services.quality_checks import QualityChecker
from projscan.services.report_aggregator import ReportAggregator, ReportFormat
from projscan.services.rule_analyzer import RuleAnalyzer
from projscan.services.scan_service import ScanService

__all__ = [
    # Container and factory
    "ServicesContainer",
    "create_services",
    # Services
    "RuleAnalyzer",
    "QualityChecker",
    "ReportAggregator",
    "ReportFormat",
    "ScanService",
    # Models
    "Issue",
    "AnalysisFailure",
    "AnalysisResult",
    "QualitySummary",
    "ScanResult",
    "ScanStats",
    "Report",
]
