# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""DAB+ ETSI compliance validation with Thai metadata analysis."""

from dabcheck.config import AnalyzerConfig, ConfigProvider, ConfigurationError
from dabcheck.model import (
    STANDARD_ORDER,
    ComplianceResult,
    ETIAnalysisReport,
    StandardResults,
    level_for_score,
    severity_for_score,
)
from dabcheck.report import ReportAssembler
from dabcheck.sink import ResultSink, SinkError
from dabcheck.standards import ETSIStandardsAnalyzer

__all__ = [
    "AnalyzerConfig",
    "ComplianceResult",
    "ConfigProvider",
    "ConfigurationError",
    "ETIAnalysisReport",
    "ETSIStandardsAnalyzer",
    "ReportAssembler",
    "ResultSink",
    "STANDARD_ORDER",
    "SinkError",
    "StandardResults",
    "level_for_score",
    "severity_for_score",
]
