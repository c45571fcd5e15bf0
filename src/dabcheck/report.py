# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Assemble per-standard findings into one analysis report."""

import logging
from datetime import datetime, timedelta

from dabcheck.model import (
    STANDARD_ORDER,
    ComplianceResult,
    ETIAnalysisReport,
    Standard,
    StandardResults,
    level_for_score,
    standard_name,
)
from dabcheck.thai.engine import ThaiMetadata

logger = logging.getLogger(__name__)


def overall_score(groups: tuple[StandardResults, ...]) -> float:
    """Return the mean of per-standard mean scores.

    Every standard weighs the same regardless of how many checks it ran.
    """
    if not groups:
        return 0.0
    return sum(group.mean_score for group in groups) / len(groups)


class ReportAssembler:
    """Build immutable analysis reports from grouped findings."""

    def assemble(
        self,
        source_id: str,
        analysis_time: datetime,
        findings: dict[Standard, list[ComplianceResult]],
        thai_analysis: ThaiMetadata | None,
        frames_analyzed: int,
        analysis_duration: timedelta,
        guidelines: list[str] | None = None,
    ) -> ETIAnalysisReport:
        """Assemble one report.

        Args:
            source_id: Caller-supplied identifier of the analyzed buffer.
            analysis_time: Time the analysis started.
            findings: Findings per standard in check-execution order.
            thai_analysis: Thai metadata record, if Thai text was analyzed.
            frames_analyzed: Number of ETI frames decoded.
            analysis_duration: Elapsed analysis time.
            guidelines: Date-specific content guidelines to append to the
                recommendations.

        Returns:
            The assembled report.
        """
        groups = tuple(
            StandardResults(standard=standard, results=tuple(findings[standard]))
            for standard in STANDARD_ORDER
            if standard in findings
        )
        results = [result for group in groups for result in group.results]
        score = overall_score(groups)
        violations = sum(1 for result in results if not result.passed)
        critical_issues = tuple(
            f"{standard_name(result.standard)}: {result.description}: {result.details}"
            for result in results
            if result.severity == "critical"
        )
        recommendations = tuple(
            dict.fromkeys(
                [
                    result.recommendation
                    for result in results
                    if not result.passed and result.recommendation
                ]
                + list(guidelines or [])
            )
        )
        summary = self.executive_summary(
            score,
            groups,
            violations,
            len(critical_issues),
            frames_analyzed,
            thai_analysis,
        )
        logger.debug(
            f"Report assembled (source_id={source_id} score={score:.2f} "
            f"violations={violations} critical={len(critical_issues)})"
        )
        return ETIAnalysisReport(
            source_id=source_id,
            analysis_time=analysis_time,
            overall_score=score,
            standard_results=groups,
            thai_analysis=thai_analysis,
            frames_analyzed=frames_analyzed,
            violations_found=violations,
            analysis_duration=analysis_duration,
            critical_issues=critical_issues,
            recommendations=recommendations,
            executive_summary=summary,
        )

    def executive_summary(
        self,
        score: float,
        groups: tuple[StandardResults, ...],
        violations: int,
        critical: int,
        frames_analyzed: int,
        thai_analysis: ThaiMetadata | None,
    ) -> str:
        compliant = sum(
            1 for group in groups if level_for_score(group.mean_score) == "compliant"
        )
        summary = (
            f"Overall compliance {score:.1f}/100 ({level_for_score(score)}). "
            f"{compliant} of {len(groups)} standards compliant across "
            f"{frames_analyzed} frames; {violations} violations, {critical} critical."
        )
        if thai_analysis is not None:
            summary += (
                f" Thai metadata {thai_analysis.overall_compliance:.1f}/100 "
                f"({thai_analysis.compliance_level})."
            )
        return summary
