# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the Thai analysis engine and its running statistics."""

import concurrent.futures
import math
from datetime import date

import pytest

from dabcheck.eti import LabelFig
from dabcheck.thai.characters import INVALID_UTF8_ISSUE, ThaiCharacterAnalyzer
from dabcheck.thai.engine import (
    ComplianceStatistics,
    ThaiAnalysisEngine,
    ThaiTextFields,
    issue_category,
    weighted_compliance,
)
from frames import SERVICE_ID, fib, fic, fig1


def _profile_label(text: str) -> bytes:
    return ThaiCharacterAnalyzer().convert_to_profile(text).data.ljust(16, b" ")


def test_thai_eng_001_weighted_compliance() -> None:
    assert weighted_compliance([100.0, 100.0, 100.0, 100.0], 50.0) == pytest.approx(
        80.0
    )
    assert weighted_compliance([], 100.0) == pytest.approx(100.0)


def test_thai_eng_002_issue_category_drops_codepoint() -> None:
    assert (
        issue_category("contains non-Thai-profile codepoint U+65E5")
        == "contains non-Thai-profile codepoint"
    )
    assert issue_category(INVALID_UTF8_ISSUE) == INVALID_UTF8_ISSUE


def test_thai_eng_003_metadata_combines_character_and_cultural_scores() -> None:
    engine = ThaiAnalysisEngine()

    metadata = engine.analyze_metadata(
        ThaiTextFields(title="เพลงรัก", artist="日本", genre="ลูกทุ่ง")
    )

    assert metadata.artist_validation.compliance_score == 0.0
    assert metadata.album_validation.compliance_score == 100.0
    assert metadata.cultural_analysis.cultural_category == "traditional"
    assert metadata.overall_compliance == pytest.approx(85.0)
    assert metadata.compliance_level == "warning"
    assert engine.get_overall_compliance_level(metadata) == "warning"
    assert metadata.issues == (
        "contains non-Thai-profile codepoint U+65E5",
        "contains non-Thai-profile codepoint U+672C",
    )
    assert metadata.artist_dab == b"??"
    assert not metadata.has_english_fallback
    assert engine.get_total_analyzed_count() == 1
    assert engine.get_running_compliance_average() == pytest.approx(85.0)
    assert engine.get_issue_frequency() == {"contains non-Thai-profile codepoint": 2}


def test_thai_eng_004_holy_day_expects_formal_register() -> None:
    engine = ThaiAnalysisEngine()
    fields = ThaiTextFields(title="ไปเที่ยวกันเว้ย")

    ordinary = engine.analyze_metadata(fields, when=date(2026, 10, 18))
    holy_day = engine.analyze_metadata(fields, when=date(2026, 7, 29))

    assert ordinary.cultural_analysis.appropriate_language
    assert not holy_day.cultural_analysis.appropriate_language
    assert holy_day.cultural_analysis.cultural_compliance == 90.0
    assert engine.get_issue_frequency() == {"inappropriate or informal language": 1}


def test_thai_eng_005_invalid_utf8_field_is_reported() -> None:
    engine = ThaiAnalysisEngine()

    metadata = engine.analyze_metadata(ThaiTextFields(title=b"\xe0\xb8", album="Hits"))

    assert INVALID_UTF8_ISSUE in metadata.issues
    assert not metadata.title_validation.valid_encoding
    assert metadata.has_english_fallback


def test_thai_eng_006_short_bilingual_dls_is_one_segment() -> None:
    engine = ThaiAnalysisEngine()

    analysis = engine.analyze_dls_content("เพลงใหม่ New Song")

    assert analysis.bilingual
    assert analysis.thai_portion == "เพลงใหม่"
    assert analysis.english_portion == "New Song"
    assert not analysis.exceeds_limit
    assert analysis.segments == ("เพลงใหม่ New Song",)
    assert analysis.compliance_score == pytest.approx(100.0)
    assert engine.get_total_analyzed_count() == 1


def test_thai_eng_007_long_dls_is_split_within_byte_limit() -> None:
    engine = ThaiAnalysisEngine()
    characters = ThaiCharacterAnalyzer()
    text = "ก" * 200

    analysis = engine.analyze_dls_content(text)

    assert analysis.segment_length == 200
    assert analysis.exceeds_limit
    assert len(analysis.segments) == math.ceil(200 / 128)
    assert all(
        len(characters.convert_to_profile(segment).data) <= 128
        for segment in analysis.segments
    )
    assert "".join(analysis.segments) == text
    assert len(analysis.segment_validations) == 2


def test_thai_eng_008_split_does_not_cut_inside_keyword() -> None:
    engine = ThaiAnalysisEngine()
    text = "ก" * 124 + "สงกรานต์"

    assert engine.split_dls(text) == ["ก" * 124, "สงกรานต์"]


def test_thai_eng_009_split_keeps_combining_marks_with_base() -> None:
    engine = ThaiAnalysisEngine()
    text = "ก" * 127 + "ที่"

    segments = engine.split_dls(text)

    assert segments == ["ก" * 127, "ที่"]


def test_thai_eng_010_custom_dls_limit_and_invalid_limit() -> None:
    engine = ThaiAnalysisEngine(dls_limit=4)

    assert engine.split_dls("abcdefghij") == ["abcd", "efgh", "ij"]
    with pytest.raises(ValueError):
        ThaiAnalysisEngine(dls_limit=0)


def test_thai_eng_011_statistics_are_consistent_under_concurrency() -> None:
    statistics = ComplianceStatistics()

    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as executor:
        futures = [
            executor.submit(
                statistics.update_compliance_statistics,
                50.0,
                ("contains non-Thai-profile codepoint U+0041",),
            )
            for _ in range(200)
        ]
        for future in futures:
            future.result()

    assert statistics.get_total_analyzed_count() == 200
    assert statistics.get_running_compliance_average() == pytest.approx(50.0)
    assert statistics.get_issue_frequency() == {
        "contains non-Thai-profile codepoint": 200
    }


def test_thai_eng_012_empty_statistics_average_is_zero_and_reset_clears() -> None:
    statistics = ComplianceStatistics()
    assert statistics.get_running_compliance_average() == 0.0

    statistics.update_compliance_statistics(70.0, ["x"])
    statistics.reset()

    assert statistics.get_total_analyzed_count() == 0
    assert statistics.get_issue_frequency() == {}


def test_thai_eng_013_shared_statistics_aggregate_across_engines() -> None:
    shared = ComplianceStatistics()
    first = ThaiAnalysisEngine(statistics=shared)
    second = ThaiAnalysisEngine(statistics=shared)

    first.analyze_dls_content("สวัสดี")
    second.analyze_dls_content("สวัสดี")

    assert shared.get_total_analyzed_count() == 2
    assert first.statistics is second.statistics


def test_thai_eng_014_profile_label_is_decoded_and_analyzed() -> None:
    engine = ThaiAnalysisEngine()
    label = LabelFig(
        extension=1,
        charset=0x0E,
        identifier=SERVICE_ID,
        label=_profile_label("สวัสดี"),
        char_flags=0xFC00,
    )

    metadata = engine.analyze_fig1_labels(label)

    assert engine.decode_label(label) == "สวัสดี"
    assert metadata.title_thai == "สวัสดี"
    assert metadata.station_name_thai == "สวัสดี"
    assert metadata.overall_compliance == pytest.approx(100.0)


def test_thai_eng_015_utf8_and_latin1_labels_decode() -> None:
    engine = ThaiAnalysisEngine()
    raw = "ไทย".encode("utf-8").ljust(16, b"\x00")
    utf8 = LabelFig(1, 0x0F, SERVICE_ID, raw, 0xE000)
    latin = LabelFig(1, 0x00, SERVICE_ID, b"Thai FM         ", 0xFF00)

    assert engine.decode_label(utf8) == "ไทย"
    assert engine.decode_label(latin) == "Thai FM"


def test_thai_eng_016_extract_thai_labels_from_fic() -> None:
    engine = ThaiAnalysisEngine()
    data = fic(
        fib(fig1(1, SERVICE_ID, _profile_label("วิทยุ"), charset=0x0E)),
        fib(fig1(1, SERVICE_ID + 1, b"Latin label")),
    )

    assert engine.extract_thai_labels(data) == ["วิทยุ"]
    assert engine.validate_service_labels(data).compliance_score == 100.0


def test_thai_eng_017_date_specific_guidelines() -> None:
    engine = ThaiAnalysisEngine()

    assert engine.should_use_special_validation(date(2026, 4, 13))
    assert engine.get_date_specific_guidelines(date(2026, 4, 13))
    assert not engine.should_use_special_validation(date(2026, 10, 18))


def test_thai_eng_018_dls_length_counts_profile_bytes() -> None:
    engine = ThaiAnalysisEngine()
    text = "ก" * 127 + "ที่" + "ข" * 125

    fits = engine.analyze_dls_content("ก" * 100)
    split = engine.analyze_dls_content(text)

    assert fits.segment_length == 100
    assert not fits.exceeds_limit
    assert split.segment_length == 255
    assert len(split.segments) == math.ceil(255 / 128)
    assert split.segments == ("ก" * 127, "ที่" + "ข" * 125)


def test_thai_eng_019_split_settles_on_overlapping_keywords() -> None:
    engine = ThaiAnalysisEngine(dls_limit=18)
    text = "ก" * 5 + "พระบาทสมเด็จพระเจ้าอยู่หัว"

    segments = engine.split_dls(text)

    assert segments[0] == "ก" * 5
    assert "".join(segments) == text
    assert segments[1].startswith("พระบาทสมเด็จ")


def test_thai_eng_020_running_average_is_mean_of_distinct_scores() -> None:
    statistics = ComplianceStatistics()

    for score in (10.0, 40.0, 100.0):
        statistics.update_compliance_statistics(score, [])

    assert statistics.get_total_analyzed_count() == 3
    assert statistics.get_running_compliance_average() == pytest.approx(50.0)


def test_thai_eng_021_concurrent_analyses_count_every_call() -> None:
    engine = ThaiAnalysisEngine()
    fields = [
        ThaiTextFields(title="เพลงรัก"),
        ThaiTextFields(title="日本", artist="ศิลปิน"),
    ]

    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as executor:
        futures = [
            executor.submit(engine.analyze_metadata, fields[index % 2])
            for index in range(64)
        ]
        scores = [future.result().overall_compliance for future in futures]

    assert engine.get_total_analyzed_count() == 64
    assert engine.get_running_compliance_average() == pytest.approx(
        sum(scores) / len(scores)
    )
