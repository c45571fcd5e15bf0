# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for compliance findings and analysis reports."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Literal, Mapping

if TYPE_CHECKING:
    from dabcheck.thai.engine import ThaiMetadata


Standard = Literal[
    "EN_302_077",
    "EN_300_401",
    "TS_102_563",
    "TS_101_756",
    "TR_101_496_3",
    "TS_101_499",
    "TS_102_818",
    "TS_103_551",
    "TS_103_176",
]

STANDARD_ORDER: tuple[Standard, ...] = (
    "EN_302_077",
    "EN_300_401",
    "TS_102_563",
    "TS_101_756",
    "TR_101_496_3",
    "TS_101_499",
    "TS_102_818",
    "TS_103_551",
    "TS_103_176",
)

STANDARD_NAMES: dict[Standard, str] = {
    "EN_302_077": "ETSI EN 302 077 (RF equipment)",
    "EN_300_401": "ETSI EN 300 401 (DAB core)",
    "TS_102_563": "ETSI TS 102 563 (DAB+ audio coding)",
    "TS_101_756": "ETSI TS 101 756 (character sets)",
    "TR_101_496_3": "ETSI TR 101 496-3 (network implementation)",
    "TS_101_499": "ETSI TS 101 499 (SlideShow)",
    "TS_102_818": "ETSI TS 102 818 (Service and Programme Information)",
    "TS_103_551": "ETSI TS 103 551 (TPEG)",
    "TS_103_176": "ETSI TS 103 176 (service information features)",
}

Severity = Literal["info", "warning", "error", "critical"]
ComplianceLevel = Literal["compliant", "warning", "non_compliant", "critical"]
FindingCategory = Literal[
    "ok",
    "violation",
    "insufficient_data",
    "malformed_structure",
    "not_applicable",
]


def standard_name(standard: Standard) -> str:
    """Return the human-readable name of a standard tag."""
    return STANDARD_NAMES[standard]


def clamp_score(score: float) -> float:
    """Clamp a score into [0, 100]; NaN collapses to 0."""
    if score != score:
        return 0.0
    return max(0.0, min(100.0, float(score)))


def level_for_score(score: float) -> ComplianceLevel:
    """Map a 0-100 score to a compliance level.

    Bands include their lower bound: 95 and above is compliant, 85 up to 95 is
    a warning, 70 up to 85 is non-compliant and anything lower is critical.
    """
    score = clamp_score(score)
    if score >= 95.0:
        return "compliant"
    if score >= 85.0:
        return "warning"
    if score >= 70.0:
        return "non_compliant"
    return "critical"


def severity_for_score(score: float) -> Severity:
    """Map a 0-100 score to a finding severity using the compliance bands."""
    return _LEVEL_TO_SEVERITY[level_for_score(score)]


_LEVEL_TO_SEVERITY: dict[ComplianceLevel, Severity] = {
    "compliant": "info",
    "warning": "warning",
    "non_compliant": "error",
    "critical": "critical",
}


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class ComplianceResult:
    """Represent one atomic compliance finding.

    Attributes:
        standard: Standard the check belongs to.
        check_name: Stable machine name of the check.
        description: Short human description of what was checked.
        severity: Finding severity.
        passed: Whether the check structurally passed.
        score: Compliance score in [0, 100].
        details: Explanation of the outcome.
        recommendation: Suggested fix; empty when nothing needs fixing.
        category: Outcome category (`ok`, `violation`, `insufficient_data`,
            `malformed_structure`, `not_applicable`).
        timestamp: Creation time (UTC).
        metadata: Check-specific extras, read-only.
    """

    standard: Standard
    check_name: str
    description: str
    severity: Severity
    passed: bool
    score: float
    details: str
    recommendation: str = ""
    category: FindingCategory = "ok"
    timestamp: datetime = field(default_factory=_utc_now)
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", clamp_score(self.score))
        object.__setattr__(
            self, "metadata", MappingProxyType(dict(self.metadata))
        )


@dataclass(frozen=True)
class StandardResults:
    """Represent the ordered findings of one standard."""

    standard: Standard
    results: tuple[ComplianceResult, ...]

    @property
    def mean_score(self) -> float:
        """Return the mean score of the findings, 0 when there are none."""
        if not self.results:
            return 0.0
        return sum(result.score for result in self.results) / len(self.results)


@dataclass(frozen=True)
class ETIAnalysisReport:
    """Represent the assembled analysis of one ETI/FIG buffer.

    Attributes:
        source_id: Caller-supplied identifier of the analysed buffer.
        analysis_time: Time the analysis started (UTC).
        overall_score: Mean of the per-standard mean scores.
        standard_results: Findings grouped per standard, in standard order.
        thai_analysis: Thai metadata record, when Thai validation ran.
        frames_analyzed: Number of ETI frames decoded from the buffer.
        violations_found: Number of findings that did not pass.
        analysis_duration: Wall-clock duration of the analysis.
        critical_issues: One line per critical finding.
        recommendations: Distinct recommendations of failed findings.
        executive_summary: Short prose summary.
    """

    source_id: str
    analysis_time: datetime
    overall_score: float
    standard_results: tuple[StandardResults, ...]
    thai_analysis: "ThaiMetadata | None"
    frames_analyzed: int
    violations_found: int
    analysis_duration: timedelta
    critical_issues: tuple[str, ...]
    recommendations: tuple[str, ...]
    executive_summary: str

    def results_for(self, standard: Standard) -> tuple[ComplianceResult, ...]:
        """Return the findings recorded for a standard."""
        for group in self.standard_results:
            if group.standard == standard:
                return group.results
        return ()

    @property
    def compliance_level(self) -> ComplianceLevel:
        """Return the compliance level of the overall score."""
        return level_for_score(self.overall_score)

    @property
    def thai_compliance_level(self) -> ComplianceLevel | None:
        """Return the compliance level of the Thai record, if any."""
        if self.thai_analysis is None:
            return None
        return level_for_score(self.thai_analysis.overall_compliance)
