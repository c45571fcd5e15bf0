# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""CLI verification harness for ETI compliance analysis and Thai text checks."""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table

from dabcheck.config import AnalyzerConfig, ConfigurationError
from dabcheck.eti import ETI_FRAME_SIZE
from dabcheck.model import ETIAnalysisReport, standard_name
from dabcheck.standards import ETSIStandardsAnalyzer
from dabcheck.thai.engine import ThaiAnalysisEngine, ThaiMetadata, ThaiTextFields

logger = logging.getLogger(__name__)

TABLE_COLUMN_RATIOS: dict[str, int] = {
    "check": 2,
    "severity": 1,
    "passed": 1,
    "score": 1,
    "details": 6,
}

SEVERITY_STYLES: dict[str, str] = {
    "info": "green",
    "warning": "yellow",
    "error": "red",
    "critical": "bold red",
}


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _add_thai_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", help="Thai title text.")
    parser.add_argument("--artist", help="Thai artist text.")
    parser.add_argument("--album", help="Thai album text.")
    parser.add_argument("--genre", help="Thai genre text.")
    parser.add_argument("--station", help="Thai station name.")
    parser.add_argument("--dls", help="Dynamic label text.")
    parser.add_argument(
        "--date",
        help="Broadcast date as YYYY-MM-DD for holy-day and festival policy.",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="dabcheck")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze")
    analyze_parser.add_argument(
        "--path", required=True, help="ETI(NI) recording or raw FIC/FIG file."
    )
    analyze_parser.add_argument(
        "--max-frames",
        type=int,
        default=1,
        help="Analyze at most N frames of 6144 bytes.",
    )
    analyze_parser.add_argument(
        "--workers", type=int, default=4, help="Worker threads for multiple frames."
    )
    analyze_parser.add_argument(
        "--strictness",
        type=float,
        default=1.0,
        help="Validation strictness in [0, 1].",
    )
    analyze_parser.add_argument(
        "--no-thai", action="store_true", help="Disable Thai validation."
    )
    analyze_parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format.",
    )
    analyze_parser.add_argument(
        "--output",
        required=False,
        help="Optional output file path for raw JSON when --format json is used.",
    )
    _add_thai_arguments(analyze_parser)

    thai_parser = subparsers.add_parser("thai")
    _add_thai_arguments(thai_parser)
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.command == "analyze":
        return _run_analyze(args=args, stdout=stdout, stderr=stderr)
    if args.command == "thai":
        return _run_thai(args=args, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def parse_date(value: str | None) -> date | None:
    """Parse an optional ISO date argument.

    Raises:
        ValueError: If the value is not a YYYY-MM-DD date.
    """
    if value is None:
        return None
    return date.fromisoformat(value)


def thai_fields_from_args(args: argparse.Namespace) -> ThaiTextFields | None:
    """Return the Thai text fields given on the command line, if any."""
    values = {
        name: getattr(args, name) or ""
        for name in ("title", "artist", "album", "genre", "station")
    }
    if not any(values.values()):
        return None
    return ThaiTextFields(**values)


def read_frames(path: Path, max_frames: int) -> list[bytes]:
    """Read up to ``max_frames`` ETI(NI) frames from a file.

    A file shorter than one frame is returned whole, as raw FIC or FIG data.

    Raises:
        OSError: If the file cannot be read.
    """
    data = path.read_bytes()
    if len(data) <= ETI_FRAME_SIZE:
        return [data]
    return [
        data[offset : offset + ETI_FRAME_SIZE]
        for offset in range(0, len(data), ETI_FRAME_SIZE)
    ][:max_frames]


def _run_analyze(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run analyze command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    path = Path(args.path)
    if not path.exists():
        logger.warning(f"Path does not exist (path={path})")
        stderr.write(f"Path does not exist: {path}\n")
        return 2
    if args.max_frames <= 0 or args.workers <= 0:
        logger.warning(
            f"Invalid frame or worker count (max_frames={args.max_frames} "
            f"workers={args.workers})"
        )
        stderr.write("max-frames and workers must be > 0\n")
        return 2
    try:
        when = parse_date(args.date)
        config = AnalyzerConfig(
            validation_strictness=args.strictness,
            thai_validation_enabled=not args.no_thai,
        )
    except ValueError as exc:
        logger.warning(f"Invalid analysis option (error={exc})")
        stderr.write(f"Invalid option: {exc}\n")
        return 2

    try:
        frames = read_frames(path, args.max_frames)
    except OSError as exc:
        logger.warning(f"Failed to read input (path={path} error={exc})")
        stderr.write(f"Failed to read input: {path}\n")
        return 2

    engine = None if args.no_thai else ThaiAnalysisEngine()
    try:
        analyzer = ETSIStandardsAnalyzer(config, thai_engine=engine)
    except ConfigurationError as exc:
        stderr.write(f"Invalid configuration: {exc}\n")
        return 2

    reports = [
        analyzer.analyze_complete_eti(
            f"{path.name}#0",
            frames[0],
            thai_fields=thai_fields_from_args(args),
            dls_text=args.dls,
            when=when,
        )
    ]
    if len(frames) > 1:
        reports.extend(
            analyzer.analyze_frames(
                path.name, frames[1:], max_workers=args.workers, first_index=1
            )
        )
    logger.info(
        f"Analysis completed (path={path} frames={len(frames)} "
        f"reports={len(reports)})"
    )

    if args.format == "json":
        payload = {"reports": [report_payload(report) for report in reports]}
        if args.output:
            try:
                _write_json_file(payload=payload, output_path=Path(args.output))
            except OSError as exc:
                logger.warning(
                    f"Failed to write JSON output file (output_path={args.output} "
                    f"error={exc})"
                )
                stderr.write(f"Failed to write JSON output file: {args.output}\n")
                return 2
        else:
            _write_json(payload=payload, stdout=stdout)
        return 0

    for report in reports:
        _write_report(report=report, stdout=stdout)
    _write_summary(reports=reports, stdout=stdout)
    return 0


def _run_thai(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run thai command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    try:
        when = parse_date(args.date)
    except ValueError as exc:
        logger.warning(f"Invalid date argument (date={args.date} error={exc})")
        stderr.write(f"Invalid date: {args.date}\n")
        return 2
    fields = thai_fields_from_args(args)
    if fields is None and args.dls is None:
        stderr.write("At least one text field or --dls is required\n")
        return 2

    engine = ThaiAnalysisEngine()
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    if fields is not None:
        _write_thai_metadata(engine.analyze_metadata(fields, when), console)
    if args.dls is not None:
        analysis = engine.analyze_dls_content(args.dls)
        table = Table(title="Dynamic label", show_header=True, expand=True)
        table.add_column("segment", justify="right")
        table.add_column("text", ratio=4, overflow="fold")
        table.add_column("bytes", justify="right")
        table.add_column("score", justify="right")
        for index, (segment, validation) in enumerate(
            zip(analysis.segments, analysis.segment_validations)
        ):
            table.add_row(
                str(index),
                segment,
                str(len(engine.character_analyzer.convert_to_profile(segment).data)),
                f"{validation.compliance_score:.1f}",
            )
        console.print(table)
        console.print(
            f"thai={analysis.thai_portion!r} english={analysis.english_portion!r} "
            f"bilingual={analysis.bilingual} exceeds_limit={analysis.exceeds_limit} "
            f"score={analysis.compliance_score:.1f}",
            markup=False,
            highlight=False,
        )
    if when is not None and engine.should_use_special_validation(when):
        console.rule(
            f"{engine.calendar.get_festival_name(when)} "
            f"({engine.calendar.format_buddhist_date(when)})",
            characters="-",
        )
        for guideline in engine.get_date_specific_guidelines(when):
            console.print(f"- {guideline}", markup=False, highlight=False)
    return 0


def report_payload(report: ETIAnalysisReport) -> dict[str, Any]:
    """Convert a report to JSON-compatible primitives."""
    payload: dict[str, Any] = {
        "source_id": report.source_id,
        "analysis_time": report.analysis_time.isoformat(),
        "overall_score": round(report.overall_score, 2),
        "compliance_level": report.compliance_level,
        "frames_analyzed": report.frames_analyzed,
        "violations_found": report.violations_found,
        "analysis_duration_ms": round(
            report.analysis_duration.total_seconds() * 1000, 3
        ),
        "critical_issues": list(report.critical_issues),
        "recommendations": list(report.recommendations),
        "executive_summary": report.executive_summary,
        "standards": [
            {
                "standard": group.standard,
                "name": standard_name(group.standard),
                "mean_score": round(group.mean_score, 2),
                "results": [
                    {
                        "check_name": result.check_name,
                        "description": result.description,
                        "severity": result.severity,
                        "passed": result.passed,
                        "score": round(result.score, 2),
                        "category": result.category,
                        "details": result.details,
                        "recommendation": result.recommendation,
                        "timestamp": result.timestamp.isoformat(),
                        "metadata": dict(result.metadata),
                    }
                    for result in group.results
                ],
            }
            for group in report.standard_results
        ],
        "thai_analysis": None,
    }
    if report.thai_analysis is not None:
        thai = report.thai_analysis
        payload["thai_analysis"] = {
            "overall_compliance": round(thai.overall_compliance, 2),
            "compliance_level": thai.compliance_level,
            "has_english_fallback": thai.has_english_fallback,
            "cultural_category": thai.cultural_analysis.cultural_category,
            "issues": list(thai.issues),
        }
    return payload


def _write_json(payload: dict[str, Any], stdout: TextIO) -> None:
    """Write a payload in JSON format.

    Args:
        payload: JSON-compatible payload.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(
        json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_json_file(payload: dict[str, Any], output_path: Path) -> None:
    """Write raw JSON payload to an output file.

    Args:
        payload: JSON-compatible payload.
        output_path: Target file path.

    Raises:
        OSError: If directory creation or file writing fails.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False),
        encoding="utf-8",
    )


def _write_report(report: ETIAnalysisReport, stdout: TextIO) -> None:
    """Write the findings of one report as one table per standard.

    Args:
        report: Assembled report.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.rule(f"{report.source_id}", style=Style(color="cyan"), characters="-")
    for group in report.standard_results:
        table = Table(
            title=f"{standard_name(group.standard)}: {group.mean_score:.1f}",
            show_header=True,
            show_lines=True,
            expand=True,
        )
        for column, ratio in TABLE_COLUMN_RATIOS.items():
            justify = "right" if column == "score" else "left"
            table.add_column(column, ratio=ratio, justify=justify, overflow="fold")
        for result in group.results:
            table.add_row(
                result.check_name,
                result.severity,
                "yes" if result.passed else "no",
                f"{result.score:.1f}",
                result.details,
                style=SEVERITY_STYLES[result.severity] if not result.passed else None,
            )
        console.print(table)
    console.print(report.executive_summary, markup=False, highlight=False)
    for issue in report.critical_issues:
        console.print(f"critical: {issue}", markup=False, highlight=False)


def _write_summary(reports: list[ETIAnalysisReport], stdout: TextIO) -> None:
    """Write one summary row per report.

    Args:
        reports: Assembled reports.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    table = Table(title="Summary", show_header=True, expand=True)
    table.add_column("source", overflow="fold")
    table.add_column("score", justify="right")
    table.add_column("level")
    table.add_column("violations", justify="right")
    table.add_column("critical", justify="right")
    table.add_column("thai", justify="right")
    for report in reports:
        thai = report.thai_analysis
        table.add_row(
            report.source_id,
            f"{report.overall_score:.1f}",
            report.compliance_level,
            str(report.violations_found),
            str(len(report.critical_issues)),
            "-" if thai is None else f"{thai.overall_compliance:.1f}",
        )
    console.print(table)


def _write_thai_metadata(metadata: ThaiMetadata, console: Console) -> None:
    """Write per-field Thai validation results.

    Args:
        metadata: Thai metadata record.
        console: Target console.
    """
    table = Table(title="Thai metadata", show_header=True, expand=True)
    table.add_column("field")
    table.add_column("text", ratio=3, overflow="fold")
    table.add_column("profile bytes", ratio=3, overflow="fold")
    table.add_column("score", justify="right")
    table.add_column("issues", ratio=3, overflow="fold")
    rows = (
        ("title", metadata.title_thai, metadata.title_dab, metadata.title_validation),
        (
            "artist",
            metadata.artist_thai,
            metadata.artist_dab,
            metadata.artist_validation,
        ),
        ("album", metadata.album_thai, metadata.album_dab, metadata.album_validation),
        ("genre", metadata.genre_thai, metadata.genre_dab, metadata.genre_validation),
    )
    for name, text, encoded, validation in rows:
        table.add_row(
            name,
            text,
            encoded.hex(" "),
            f"{validation.compliance_score:.1f}",
            "; ".join(validation.issues),
        )
    console.print(table)
    cultural = metadata.cultural_analysis
    console.print(
        f"overall={metadata.overall_compliance:.1f} level={metadata.compliance_level} "
        f"category={cultural.cultural_category} "
        f"keywords={', '.join(cultural.detected_keywords) or '-'} "
        f"english_fallback={metadata.has_english_fallback}",
        markup=False,
        highlight=False,
    )


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
