# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Standard validator contract and shared finding construction."""

import logging
from typing import Mapping, Protocol

from dabcheck.eti import DecodedBuffer, decode_buffer
from dabcheck.model import (
    ComplianceResult,
    FindingCategory,
    Severity,
    Standard,
    severity_for_score,
    standard_name,
)

logger = logging.getLogger(__name__)

ERROR_BAND_FLOOR = 70.0
STRICTNESS_SPAN = 15.0


class StandardValidator(Protocol):
    """Define the contract for validating a buffer against one standard."""

    standard: Standard
    minimum_length: int

    def validate(
        self, buffer: bytes, decoded: DecodedBuffer | None = None
    ) -> list[ComplianceResult]:
        """Validate one buffer and return findings in check-execution order."""


class ResultFactory:
    """Build findings for one standard with consistent severity mapping.

    Severity follows the fixed score bands. A finding that lands in the error
    band is promoted to a warning when its score reaches
    ``70 + 15 * strictness``, so lower strictness tolerates more borderline
    failures. Strictness never changes whether a check passed.
    """

    def __init__(self, standard: Standard, strictness: float = 1.0) -> None:
        """Initialize the factory.

        Args:
            standard: Standard the findings belong to.
            strictness: Validation strictness in [0, 1].

        Raises:
            ValueError: If ``strictness`` is outside [0, 1].
        """
        if not 0.0 <= strictness <= 1.0:
            raise ValueError("strictness must be within [0, 1]")
        self.standard = standard
        self.strictness = strictness

    def severity(self, score: float) -> Severity:
        severity = severity_for_score(score)
        if (
            severity == "error"
            and score >= ERROR_BAND_FLOOR + STRICTNESS_SPAN * self.strictness
        ):
            return "warning"
        return severity

    def result(
        self,
        check_name: str,
        description: str,
        *,
        passed: bool,
        score: float,
        details: str,
        recommendation: str = "",
        category: FindingCategory = "ok",
        metadata: Mapping[str, str] | None = None,
    ) -> ComplianceResult:
        return ComplianceResult(
            standard=self.standard,
            check_name=check_name,
            description=description,
            severity=self.severity(score),
            passed=passed,
            score=score,
            details=details,
            recommendation=recommendation,
            category=category,
            metadata=metadata or {},
        )

    def ok(
        self,
        check_name: str,
        description: str,
        details: str,
        metadata: Mapping[str, str] | None = None,
    ) -> ComplianceResult:
        return self.result(
            check_name,
            description,
            passed=True,
            score=100.0,
            details=details,
            metadata=metadata,
        )

    def violation(
        self,
        check_name: str,
        description: str,
        score: float,
        details: str,
        recommendation: str,
        metadata: Mapping[str, str] | None = None,
    ) -> ComplianceResult:
        return self.result(
            check_name,
            description,
            passed=False,
            score=score,
            details=details,
            recommendation=recommendation,
            category="violation",
            metadata=metadata,
        )

    def ratio(
        self,
        check_name: str,
        description: str,
        good: int,
        total: int,
        details: str,
        recommendation: str,
        metadata: Mapping[str, str] | None = None,
    ) -> ComplianceResult:
        """Score a check as the share of items that passed."""
        if total == 0 or good == total:
            return self.ok(check_name, description, details, metadata)
        return self.violation(
            check_name,
            description,
            100.0 * good / total,
            details,
            recommendation,
            metadata,
        )

    def malformed(
        self,
        check_name: str,
        description: str,
        details: str,
        score: float = 0.0,
        recommendation: str = "",
    ) -> ComplianceResult:
        return self.result(
            check_name,
            description,
            passed=False,
            score=score,
            details=details,
            recommendation=recommendation
            or "Check the multiplexer output for truncated or corrupted structures.",
            category="malformed_structure",
        )

    def not_applicable(
        self, check_name: str, description: str, details: str
    ) -> ComplianceResult:
        return self.result(
            check_name,
            description,
            passed=True,
            score=100.0,
            details=details,
            category="not_applicable",
        )

    def insufficient_data(self, length: int, minimum_length: int) -> ComplianceResult:
        """Build the single finding for a buffer too short to be parsed."""
        return self.result(
            "insufficient_data",
            f"Minimum data for {standard_name(self.standard)}",
            passed=False,
            score=0.0,
            details=(
                f"Buffer holds {length} bytes; at least {minimum_length} bytes are "
                "required before any structure can be checked."
            ),
            recommendation="Supply a complete ETI frame or FIG structure.",
            category="insufficient_data",
            metadata={"length": str(length), "minimum_length": str(minimum_length)},
        )


class BufferValidator:
    """Base class that guards the minimum length and decodes the buffer once.

    Subclasses set ``standard`` and ``minimum_length`` and implement ``check``.
    ``frame_minimum_length`` applies on top of ``minimum_length`` to buffers
    that start with an ETI frame sync only.
    """

    standard: Standard
    minimum_length: int = 1
    frame_minimum_length: int = 0

    def __init__(self, strictness: float = 1.0) -> None:
        self.results = ResultFactory(self.standard, strictness)

    def validate(
        self, buffer: bytes, decoded: DecodedBuffer | None = None
    ) -> list[ComplianceResult]:
        """Validate one buffer.

        Args:
            buffer: Raw frame or FIG bytes.
            decoded: Already decoded form of ``buffer``, to avoid decoding
                again per standard.

        Returns:
            Findings in check-execution order.
        """
        if len(buffer) < self.minimum_length:
            return self._too_short(len(buffer), self.minimum_length)
        if decoded is None:
            decoded = decode_buffer(buffer)
        if decoded.kind == "eti" and len(buffer) < self.frame_minimum_length:
            return self._too_short(len(buffer), self.frame_minimum_length)
        return self.check(decoded)

    def _too_short(self, length: int, minimum_length: int) -> list[ComplianceResult]:
        logger.warning(
            f"Buffer too short for validation (standard={self.standard} "
            f"length={length} minimum={minimum_length})"
        )
        return [self.results.insufficient_data(length, minimum_length)]

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        raise NotImplementedError
