# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Run all standard validators over a buffer and publish the report."""

import concurrent.futures
import logging
import time
from datetime import date, datetime, timedelta, timezone

from dabcheck.config import AnalyzerConfig, ConfigProvider, ConfigurationError
from dabcheck.eti import DecodedBuffer, decode_buffer
from dabcheck.model import ComplianceResult, ETIAnalysisReport, Standard
from dabcheck.report import ReportAssembler
from dabcheck.sink import ResultSink, SinkError
from dabcheck.thai.engine import (
    DLSThaiAnalysis,
    ThaiAnalysisEngine,
    ThaiMetadata,
    ThaiTextFields,
)
from dabcheck.validator import ResultFactory, StandardValidator
from dabcheck.validators import build_validators
from dabcheck.validators.charsets import thai_findings

logger = logging.getLogger(__name__)

THAI_STANDARD: Standard = "TS_101_756"
DLS_SPLIT_SCORE = 85.0


def dls_findings(
    results: ResultFactory, analysis: DLSThaiAnalysis
) -> list[ComplianceResult]:
    """Turn a DLS analysis into length, character and cultural findings."""
    findings: list[ComplianceResult] = []
    if analysis.exceeds_limit:
        findings.append(
            results.result(
                "dls_length",
                "Dynamic label within length limit",
                passed=False,
                score=DLS_SPLIT_SCORE,
                details=(
                    f"DLS is {analysis.segment_length} bytes and needs "
                    f"{len(analysis.segments)} segments."
                ),
                recommendation="Shorten the dynamic label or send it as segments.",
                category="violation",
                metadata={"segments": str(len(analysis.segments))},
            )
        )
    else:
        findings.append(
            results.ok(
                "dls_length",
                "Dynamic label within length limit",
                f"DLS is {analysis.segment_length} bytes.",
            )
        )
    validation = analysis.validation
    findings.append(
        results.result(
            "dls_profile",
            "Dynamic label encodable in Thai profile 0x0E",
            passed=not validation.issues,
            score=validation.compliance_score,
            details=(
                "; ".join(validation.issues)
                or f"All characters valid; bilingual={str(analysis.bilingual).lower()}."
            ),
            recommendation=(
                "Replace characters outside profile 0x0E." if validation.issues else ""
            ),
            category="violation" if validation.issues else "ok",
        )
    )
    cultural = analysis.cultural
    findings.append(
        results.result(
            "dls_cultural",
            "Dynamic label culturally appropriate",
            passed=cultural.appropriate_language,
            score=cultural.cultural_compliance,
            details=f"Category {cultural.cultural_category}.",
            recommendation=(
                ""
                if cultural.appropriate_language
                else "Remove inappropriate or informal wording before broadcast."
            ),
            category="ok" if cultural.appropriate_language else "violation",
        )
    )
    return findings


class ETSIStandardsAnalyzer:
    """Validate ETI frames and FIG buffers against the nine DAB standards.

    Settings are fixed at construction; build a new analyzer to change them.
    The analyzer holds no per-call state, so one instance may serve many
    threads at once.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        thai_engine: ThaiAnalysisEngine | None = None,
        sink: ResultSink | None = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            config: Analyzer settings; defaults apply when omitted.
            thai_engine: Thai analysis engine, required when Thai validation
                is enabled.
            sink: Optional receiver of reports and critical findings.

        Raises:
            ConfigurationError: If Thai validation is enabled without an engine.
        """
        self._config = config or AnalyzerConfig()
        if self._config.thai_validation_enabled and thai_engine is None:
            raise ConfigurationError(
                "thai_validation_enabled requires a ThaiAnalysisEngine"
            )
        self._thai_engine = (
            thai_engine if self._config.thai_validation_enabled else None
        )
        self._sink = sink
        self._validators = build_validators(
            self._config.validation_strictness, self._thai_engine
        )
        self._thai_results = ResultFactory(
            THAI_STANDARD, self._config.validation_strictness
        )
        self._assembler = ReportAssembler()

    @classmethod
    def from_provider(
        cls,
        provider: ConfigProvider,
        thai_engine: ThaiAnalysisEngine | None = None,
        sink: ResultSink | None = None,
    ) -> "ETSIStandardsAnalyzer":
        """Build an analyzer from settings read once from a provider."""
        return cls(provider.load_config(), thai_engine=thai_engine, sink=sink)

    @property
    def config(self) -> AnalyzerConfig:
        return self._config

    @property
    def validators(self) -> dict[Standard, StandardValidator]:
        return dict(self._validators)

    def validate_standard(
        self, standard: Standard, buffer: bytes, decoded: DecodedBuffer | None = None
    ) -> list[ComplianceResult]:
        """Validate one buffer against a single standard.

        Args:
            standard: Standard tag.
            buffer: Raw frame or FIG bytes.
            decoded: Already decoded form of ``buffer``.

        Returns:
            Findings in check-execution order.
        """
        return self._validators[standard].validate(bytes(buffer), decoded)

    def analyze_thai_text(
        self,
        fields: ThaiTextFields | None = None,
        dls_text: str | bytes | None = None,
        when: date | None = None,
    ) -> tuple[ThaiMetadata | None, list[ComplianceResult]]:
        """Analyze pre-extracted Thai text as TS 101 756 findings.

        Args:
            fields: Metadata text fields.
            dls_text: Dynamic label text.
            when: Broadcast date for calendar-dependent policy.

        Returns:
            The Thai metadata record (``None`` without fields) and the
            findings. Both are empty when Thai validation is disabled.
        """
        if self._thai_engine is None:
            return None, []
        metadata: ThaiMetadata | None = None
        findings: list[ComplianceResult] = []
        if fields is not None:
            metadata = self._thai_engine.analyze_metadata(fields, when)
            findings.extend(
                thai_findings(self._thai_results, metadata, "thai_metadata", "Metadata")
            )
        if dls_text is not None:
            analysis = self._thai_engine.analyze_dls_content(dls_text)
            findings.extend(dls_findings(self._thai_results, analysis))
        return metadata, findings

    def analyze_complete_eti(
        self,
        source_id: str,
        buffer: bytes,
        thai_fields: ThaiTextFields | None = None,
        dls_text: str | bytes | None = None,
        when: date | None = None,
    ) -> ETIAnalysisReport:
        """Run all nine validators over one buffer and assemble the report.

        Args:
            source_id: Identifier of the buffer for the report.
            buffer: One ETI frame or FIG structure.
            thai_fields: Thai metadata fields extracted alongside the buffer.
            dls_text: Dynamic label text extracted alongside the buffer.
            when: Broadcast date for calendar-dependent policy.

        Returns:
            The assembled report, also handed to the result sink if configured.
        """
        analysis_time = datetime.now(tz=timezone.utc)
        started_at = time.monotonic()
        buffer = bytes(buffer)
        decoded = decode_buffer(buffer)

        findings: dict[Standard, list[ComplianceResult]] = {}
        for standard, validator in self._validators.items():
            findings[standard] = validator.validate(buffer, decoded)

        thai_metadata, thai_results = self.analyze_thai_text(
            thai_fields, dls_text, when
        )
        # A standard that failed on length keeps its single zero-score finding.
        if not any(
            result.check_name == "insufficient_data"
            for result in findings[THAI_STANDARD]
        ):
            findings[THAI_STANDARD].extend(thai_results)

        guidelines: list[str] = []
        if self._thai_engine is not None and when is not None:
            guidelines = self._thai_engine.get_date_specific_guidelines(when)

        report = self._assembler.assemble(
            source_id=source_id,
            analysis_time=analysis_time,
            findings=findings,
            thai_analysis=thai_metadata,
            frames_analyzed=1 if decoded.is_frame else 0,
            analysis_duration=timedelta(seconds=time.monotonic() - started_at),
            guidelines=guidelines,
        )
        logger.info(
            f"Buffer analyzed (source_id={source_id} kind={decoded.kind} "
            f"score={report.overall_score:.2f} violations={report.violations_found} "
            f"critical={len(report.critical_issues)})"
        )
        self._publish(report)
        return report

    def analyze_frames(
        self,
        source_id: str,
        frames: list[bytes],
        max_workers: int = 4,
        progress_batch_size: int = 100,
        first_index: int = 0,
    ) -> list[ETIAnalysisReport]:
        """Analyze many frames concurrently, returning reports in input order.

        Args:
            source_id: Prefix of the per-frame identifiers (``<id>#<index>``).
            frames: Frame buffers to analyze.
            max_workers: Worker threads.
            progress_batch_size: Frames between progress log lines.
            first_index: Index of the first frame within the source.

        Returns:
            One report per frame, in the order of ``frames``.

        Raises:
            ValueError: If ``max_workers`` or ``progress_batch_size`` is not
                greater than zero.
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        if progress_batch_size <= 0:
            raise ValueError("progress_batch_size must be > 0")
        reports: list[ETIAnalysisReport | None] = [None] * len(frames)
        completed = 0
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(
                    self.analyze_complete_eti,
                    f"{source_id}#{first_index + index}",
                    frame,
                ): index
                for index, frame in enumerate(frames)
            }
            for future in concurrent.futures.as_completed(future_to_index):
                reports[future_to_index[future]] = future.result()
                completed += 1
                if completed % progress_batch_size == 0 or completed == len(frames):
                    logger.info(
                        f"Frame analysis progress (source_id={source_id} "
                        f"completed={completed} total={len(frames)})"
                    )
        return [report for report in reports if report is not None]

    def _publish(self, report: ETIAnalysisReport) -> None:
        if self._sink is None:
            return
        try:
            self._sink.submit_report(report)
        except SinkError as exc:
            logger.warning(
                f"Result sink rejected report "
                f"(source_id={report.source_id} error={exc})"
            )
        if not self._config.government_reporting_enabled:
            return
        for group in report.standard_results:
            for result in group.results:
                if result.severity != "critical":
                    continue
                try:
                    self._sink.submit_result(result)
                except SinkError as exc:
                    logger.warning(
                        f"Result sink rejected critical finding (source_id="
                        f"{report.source_id} check={result.check_name} error={exc})"
                    )
