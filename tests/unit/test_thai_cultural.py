# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for cultural classification and the Buddhist calendar."""

from datetime import date

import pytest

from dabcheck.thai.calendar import BuddhistCalendar, CalendarTable, day_key
from dabcheck.thai.cultural import CulturalContentAnalyzer, CulturalPolicy


def test_thai_cul_001_royal_outranks_buddhist_content() -> None:
    analyzer = CulturalContentAnalyzer()

    analysis = analyzer.analyze("ในหลวงเสด็จวัด")

    assert analysis.cultural_category == "royal"
    assert analysis.has_royal_content
    assert analysis.has_buddhist_content
    assert not analysis.has_traditional_content
    assert analysis.detected_keywords == ("ในหลวง", "วัด")
    assert analysis.cultural_compliance == 100.0


def test_thai_cul_002_each_inappropriate_occurrence_costs_a_penalty() -> None:
    analyzer = CulturalContentAnalyzer()

    analysis = analyzer.analyze("damn this shit damn")

    assert not analysis.appropriate_language
    assert analysis.cultural_compliance == 25.0
    assert analyzer.detect_inappropriate_content("damn this shit damn") == [
        "damn",
        "shit",
    ]
    assert not analyzer.check_respectful_language("damn")


def test_thai_cul_003_score_is_floored_at_zero() -> None:
    analyzer = CulturalContentAnalyzer(policy=CulturalPolicy(inappropriate_penalty=50))

    assert analyzer.calculate_cultural_compliance("shit shit shit") == 0.0


def test_thai_cul_004_informal_register_only_penalized_when_formal_expected() -> None:
    analyzer = CulturalContentAnalyzer()

    relaxed = analyzer.analyze("ไปกันเว้ย")
    formal = analyzer.analyze("ไปกันเว้ย", formal_expected=True)

    assert relaxed.appropriate_language
    assert relaxed.cultural_compliance == 100.0
    assert not formal.appropriate_language
    assert formal.cultural_compliance == 90.0


def test_thai_cul_005_latin_keywords_match_whole_words_only() -> None:
    analyzer = CulturalContentAnalyzer()

    assert analyzer.classify_content_type("The KING speaks") == "royal"
    assert analyzer.classify_content_type("Kingdom FM") == "general"
    assert analyzer.classify_content_type("Songkran party") == "traditional"


def test_thai_cul_006_formal_language_usage() -> None:
    analyzer = CulturalContentAnalyzer()

    assert analyzer.check_formal_language_usage("กรุณาฟังครับ")
    assert not analyzer.check_formal_language_usage("กรุณาฟังเว้ย")
    assert not analyzer.check_formal_language_usage("ฟังเพลง")


def test_thai_cul_007_recommendations_follow_detected_flags() -> None:
    analyzer = CulturalContentAnalyzer()

    assert analyzer.get_content_recommendations("ฟังเพลง") == []
    recommendations = analyzer.get_content_recommendations(
        "ลอยกระทง lol", formal_expected=True
    )
    assert len(recommendations) == 2
    assert "tradition" in recommendations[0]
    assert "informal" in recommendations[1]


def test_thai_cul_008_keyword_spans_cover_every_occurrence() -> None:
    analyzer = CulturalContentAnalyzer()
    text = "วัด วัด"

    assert analyzer.keyword_spans(text) == [(0, 3), (4, 7)]


def test_thai_cul_009_negative_penalty_is_rejected() -> None:
    with pytest.raises(ValueError):
        CulturalPolicy(informal_penalty=-1.0)


def test_thai_cal_001_buddhist_era_formatting() -> None:
    calendar = BuddhistCalendar()

    assert calendar.to_buddhist_year(2026) == 2569
    assert calendar.format_buddhist_date(date(2026, 10, 18)) == "18/10/2569"
    assert day_key(date(2026, 4, 3)) == "04-03"


def test_thai_cal_002_holy_day_lookup_and_guidelines() -> None:
    calendar = BuddhistCalendar()
    visakha = date(2026, 5, 31)

    assert calendar.is_holy_day(visakha)
    assert not calendar.is_major_festival(visakha)
    assert calendar.requires_special_handling(visakha)
    assert calendar.get_festival_name(visakha) == "Visakha Bucha Day"
    assert any("alcohol" in line for line in calendar.get_content_guidelines(visakha))


def test_thai_cal_003_royal_observance_requires_royal_vocabulary() -> None:
    calendar = BuddhistCalendar()
    fathers_day = date(2026, 12, 5)

    assert calendar.is_major_festival(fathers_day)
    assert not calendar.is_holy_day(fathers_day)
    guidelines = calendar.get_content_guidelines(fathers_day)
    assert any("ราชาศัพท์" in line for line in guidelines)


def test_thai_cal_004_ordinary_day_has_no_special_handling() -> None:
    calendar = BuddhistCalendar()
    ordinary = date(2026, 10, 18)

    assert not calendar.requires_special_handling(ordinary)
    assert calendar.get_festival_name(ordinary) == ""
    assert calendar.get_content_guidelines(ordinary) == []


def test_thai_cal_005_custom_table_is_copied_on_construction() -> None:
    holy_days = {"01-02": "Local observance"}
    table = CalendarTable(holy_days=holy_days, guidelines={"01-02": ["Be quiet."]})
    holy_days["01-03"] = "Added later"
    calendar = BuddhistCalendar(table)

    assert calendar.is_holy_day(date(2027, 1, 2))
    assert not calendar.is_holy_day(date(2027, 1, 3))
    assert calendar.get_content_guidelines(date(2027, 1, 2)) == ["Be quiet."]
