# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""TS 101 756 character set checks on FIG 1 labels."""

import logging

from dabcheck.eti import DecodedBuffer, LabelFig, parse_label
from dabcheck.model import ComplianceResult
from dabcheck.thai.engine import CHARSET_UTF8, ThaiAnalysisEngine, ThaiMetadata
from dabcheck.thai.profile import DEFAULT_PROFILE, PROFILE_ID
from dabcheck.validator import BufferValidator, ResultFactory

logger = logging.getLogger(__name__)

# Character set codes with a defined repertoire in TS 101 756 table 1 and 19.
DEFINED_CHARSETS = frozenset(
    {0x00, 0x01, 0x02, 0x03, 0x04, 0x06, PROFILE_ID, CHARSET_UTF8}
)
MAX_SHORT_LABEL_CHARS = 8


def _decodable(label: LabelFig) -> bool:
    raw = label.label.rstrip(b"\x00")
    if label.charset == CHARSET_UTF8:
        try:
            raw.decode("utf-8")
        except UnicodeDecodeError:
            return False
        return True
    if label.charset == PROFILE_ID:
        return all(DEFAULT_PROFILE.from_profile(byte) is not None for byte in raw)
    return True


def thai_findings(
    results: ResultFactory, metadata: ThaiMetadata, check_name: str, subject: str
) -> list[ComplianceResult]:
    """Turn a Thai metadata record into character and cultural findings.

    Args:
        results: Factory of the standard receiving the findings.
        metadata: Thai record to report.
        check_name: Prefix of the check names.
        subject: Human description of what was analyzed.

    Returns:
        One profile finding and one cultural finding.
    """
    present = [
        validation.compliance_score
        for text, validation in zip(
            (
                metadata.title_thai,
                metadata.artist_thai,
                metadata.album_thai,
                metadata.genre_thai,
            ),
            metadata.field_validations,
        )
        if text
    ]
    character_score = sum(present) / len(present) if present else 100.0
    issues = metadata.issues
    profile_details = f"{subject}: character score {character_score:.1f}"
    if issues:
        profile_details += f"; {'; '.join(issues)}"
    profile = results.result(
        f"{check_name}_profile",
        f"{subject} encodable in Thai profile 0x0E",
        passed=not issues,
        score=character_score,
        details=profile_details,
        recommendation=(
            "Replace characters outside profile 0x0E or broadcast the label in UTF-8."
            if issues
            else ""
        ),
        category="violation" if issues else "ok",
        metadata={
            "overall_compliance": f"{metadata.overall_compliance:.2f}",
            "compliance_level": metadata.compliance_level,
            "english_fallback": str(metadata.has_english_fallback).lower(),
        },
    )

    cultural = metadata.cultural_analysis
    keywords = ", ".join(cultural.detected_keywords) or "none"
    cultural_result = results.result(
        f"{check_name}_cultural",
        f"{subject} culturally appropriate",
        passed=cultural.appropriate_language,
        score=cultural.cultural_compliance,
        details=(
            f"{subject}: category {cultural.cultural_category}, keywords {keywords}."
        ),
        recommendation=(
            ""
            if cultural.appropriate_language
            else "Remove inappropriate or informal wording before broadcast."
        ),
        category="ok" if cultural.appropriate_language else "violation",
        metadata={"category": cultural.cultural_category},
    )
    return [profile, cultural_result]


class CharacterSetValidator(BufferValidator):
    """Check FIG 1 label character sets, flags and decodability.

    Labels broadcast in the Thai profile are additionally analyzed by the Thai
    engine when one is supplied.
    """

    standard = "TS_101_756"
    minimum_length = 2

    def __init__(
        self,
        strictness: float = 1.0,
        thai_engine: ThaiAnalysisEngine | None = None,
    ) -> None:
        super().__init__(strictness)
        self._thai_engine = thai_engine

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        figs = [fig for fig in decoded.figs if fig.fig_type == 1]
        if not figs:
            return [
                self.results.not_applicable(
                    "label_charset",
                    "FIG 1 label character set",
                    "Buffer carries no FIG 1 labels.",
                )
            ]
        labels = [label for label in map(parse_label, figs) if label is not None]
        findings = [
            self.results.ratio(
                "label_structure",
                "FIG 1 label length",
                len(labels),
                len(figs),
                f"{len(labels)} of {len(figs)} FIG 1 labels have a valid length.",
                "Labels carry an identifier, 16 label bytes and a 16-bit flag field.",
            )
        ]
        if not labels:
            return findings

        defined = [label for label in labels if label.charset in DEFINED_CHARSETS]
        findings.append(
            self.results.ratio(
                "label_charset",
                "FIG 1 label character set",
                len(defined),
                len(labels),
                f"{len(defined)} of {len(labels)} labels use a defined character set.",
                "Signal one of the character sets defined for DAB labels.",
            )
        )
        flagged = [
            label
            for label in labels
            if 1 <= bin(label.char_flags).count("1") <= MAX_SHORT_LABEL_CHARS
        ]
        findings.append(
            self.results.ratio(
                "short_label_flags",
                "Short label character flags",
                len(flagged),
                len(labels),
                f"{len(flagged)} of {len(labels)} labels select 1 to "
                f"{MAX_SHORT_LABEL_CHARS} short-label characters.",
                "Set between one and eight bits in the character flag field.",
            )
        )
        decodable = [label for label in labels if _decodable(label)]
        findings.append(
            self.results.ratio(
                "label_decodability",
                "Label bytes valid in signalled character set",
                len(decodable),
                len(labels),
                f"{len(decodable)} of {len(labels)} labels decode cleanly.",
                "Re-encode labels in the character set they signal.",
            )
        )
        if self._thai_engine is not None:
            findings.extend(self._thai_labels(labels))
        return findings

    def _thai_labels(self, labels: list[LabelFig]) -> list[ComplianceResult]:
        findings: list[ComplianceResult] = []
        for label in labels:
            if label.charset != PROFILE_ID:
                continue
            metadata = self._thai_engine.analyze_fig1_labels(label)
            subject = f"FIG 1/{label.extension} label 0x{label.identifier:X}"
            findings.extend(
                thai_findings(self.results, metadata, "thai_label", subject)
            )
        logger.debug(f"Thai label analysis complete (findings={len(findings)})")
        return findings
