# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Keyword-based cultural content classification for Thai broadcast text."""

import logging
import re
from dataclasses import dataclass
from typing import Literal

from dabcheck.thai.characters import is_thai_codepoint

logger = logging.getLogger(__name__)

CulturalCategory = Literal["royal", "buddhist", "traditional", "general"]


@dataclass(frozen=True)
class KeywordDatabase:
    """Immutable keyword sets used for cultural classification."""

    buddhist: frozenset[str]
    royal: frozenset[str]
    traditional: frozenset[str]
    inappropriate: frozenset[str]
    formal: frozenset[str]
    informal: frozenset[str]


DEFAULT_KEYWORDS = KeywordDatabase(
    buddhist=frozenset(
        {
            "พระพุทธ",
            "พระธรรม",
            "ธรรมะ",
            "พระสงฆ์",
            "วัด",
            "ทำบุญ",
            "ศีล",
            "นิพพาน",
            "มาฆบูชา",
            "วิสาขบูชา",
            "อาสาฬหบูชา",
            "เข้าพรรษา",
            "buddha",
            "buddhist",
            "dharma",
            "dhamma",
            "monk",
            "temple",
            "sangha",
        }
    ),
    royal=frozenset(
        {
            "พระบาทสมเด็จ",
            "พระมหากษัตริย์",
            "ในหลวง",
            "พระราชินี",
            "พระบรมราช",
            "สมเด็จพระ",
            "ราชวงศ์",
            "พระราชพิธี",
            "king",
            "queen",
            "royal",
            "majesty",
            "monarchy",
        }
    ),
    traditional=frozenset(
        {
            "สงกรานต์",
            "ลอยกระทง",
            "ประเพณี",
            "วัฒนธรรม",
            "มวยไทย",
            "ลูกทุ่ง",
            "หมอลำ",
            "ดนตรีไทย",
            "รำไทย",
            "songkran",
            "loy krathong",
            "muay thai",
            "luk thung",
            "mor lam",
        }
    ),
    inappropriate=frozenset(
        {
            "เหี้ย",
            "สัส",
            "ชิบหาย",
            "shit",
            "fuck",
            "damn",
            "bitch",
        }
    ),
    formal=frozenset(
        {
            "ครับ",
            "ค่ะ",
            "ท่าน",
            "กรุณา",
            "ขอเชิญ",
            "ขอแสดงความ",
            "please",
            "kindly",
        }
    ),
    informal=frozenset(
        {
            "มึง",
            "เว้ย",
            "โว้ย",
            "แม่ง",
            "ว่ะ",
            "gonna",
            "wanna",
            "lol",
        }
    ),
)


@dataclass(frozen=True)
class CulturalPolicy:
    """Scoring penalties for cultural compliance.

    Attributes:
        inappropriate_penalty: Points removed per inappropriate-term occurrence.
        informal_penalty: Points removed once when informal register appears
            where formal register is expected.
    """

    inappropriate_penalty: float = 25.0
    informal_penalty: float = 10.0

    def __post_init__(self) -> None:
        if self.inappropriate_penalty < 0.0 or self.informal_penalty < 0.0:
            raise ValueError("Cultural penalties must be >= 0.")


@dataclass(frozen=True)
class CulturalAnalysis:
    """Represent the cultural outcome for one text field.

    Attributes:
        has_buddhist_content: A Buddhist keyword occurs.
        has_royal_content: A royal keyword occurs.
        has_traditional_content: A traditional-culture keyword occurs.
        appropriate_language: No inappropriate terms and, when formal register
            is expected, no informal markers.
        cultural_category: Highest-priority matching category.
        detected_keywords: Distinct matched keywords in order of appearance.
        cultural_compliance: Appropriateness score in [0, 100].
    """

    has_buddhist_content: bool
    has_royal_content: bool
    has_traditional_content: bool
    appropriate_language: bool
    cultural_category: CulturalCategory
    detected_keywords: tuple[str, ...]
    cultural_compliance: float


_RECOMMENDATIONS: tuple[tuple[str, str], ...] = (
    (
        "royal",
        "Use royal vocabulary (ราชาศัพท์) and formal register for royal references.",
    ),
    (
        "buddhist",
        "Keep Buddhist references respectful and avoid commercial framing.",
    ),
    (
        "traditional",
        "Verify festival and tradition names against the official Thai spelling.",
    ),
    (
        "inappropriate",
        "Remove inappropriate terms before broadcast.",
    ),
    (
        "informal",
        "Rephrase informal wording in formal register.",
    ),
)


@dataclass(frozen=True)
class _Matcher:
    keyword: str
    pattern: re.Pattern[str] | None

    def spans(self, text: str) -> list[tuple[int, int]]:
        if self.pattern is None:
            spans: list[tuple[int, int]] = []
            start = text.find(self.keyword)
            while start != -1:
                end = start + len(self.keyword)
                spans.append((start, end))
                start = text.find(self.keyword, end)
            return spans
        return [match.span() for match in self.pattern.finditer(text)]


def _build_matchers(keywords: frozenset[str]) -> tuple[_Matcher, ...]:
    matchers: list[_Matcher] = []
    for keyword in sorted(keywords):
        if any(is_thai_codepoint(ord(char)) for char in keyword):
            matchers.append(_Matcher(keyword=keyword, pattern=None))
        else:
            pattern = re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
            matchers.append(_Matcher(keyword=keyword, pattern=pattern))
    return tuple(matchers)


class CulturalContentAnalyzer:
    """Classify text into cultural categories and score appropriateness.

    Thai keywords match as plain substrings since Thai is written without word
    spaces; Latin keywords match case-insensitively on word boundaries.
    """

    def __init__(
        self,
        keywords: KeywordDatabase = DEFAULT_KEYWORDS,
        policy: CulturalPolicy | None = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            keywords: Keyword database to match against.
            policy: Scoring penalties; documented defaults when omitted.
        """
        self._policy = policy or CulturalPolicy()
        self._buddhist = _build_matchers(keywords.buddhist)
        self._royal = _build_matchers(keywords.royal)
        self._traditional = _build_matchers(keywords.traditional)
        self._inappropriate = _build_matchers(keywords.inappropriate)
        self._formal = _build_matchers(keywords.formal)
        self._informal = _build_matchers(keywords.informal)

    def analyze(self, text: str, formal_expected: bool = False) -> CulturalAnalysis:
        """Analyze one text field.

        Args:
            text: Text to classify.
            formal_expected: Whether the caller requires formal register.

        Returns:
            The cultural analysis for the text.
        """
        hits: list[tuple[int, str]] = []
        for matchers in (self._royal, self._buddhist, self._traditional):
            for matcher in matchers:
                spans = matcher.spans(text)
                if spans:
                    hits.append((spans[0][0], matcher.keyword))
        hits.sort()

        inappropriate = self._count(self._inappropriate, text)
        informal = formal_expected and self._count(self._informal, text) > 0
        return CulturalAnalysis(
            has_buddhist_content=self.detect_buddhist_content(text),
            has_royal_content=self.detect_royal_content(text),
            has_traditional_content=self.detect_traditional_content(text),
            appropriate_language=inappropriate == 0 and not informal,
            cultural_category=self.classify_content_type(text),
            detected_keywords=tuple(dict.fromkeys(keyword for _, keyword in hits)),
            cultural_compliance=self._score(inappropriate, informal),
        )

    def detect_buddhist_content(self, text: str) -> bool:
        return self._contains(self._buddhist, text)

    def detect_royal_content(self, text: str) -> bool:
        return self._contains(self._royal, text)

    def detect_traditional_content(self, text: str) -> bool:
        return self._contains(self._traditional, text)

    def check_formal_language_usage(self, text: str) -> bool:
        """Return whether text uses formal markers and no informal ones."""
        return self._contains(self._formal, text) and not self._contains(
            self._informal, text
        )

    def check_respectful_language(self, text: str) -> bool:
        return not self._contains(self._inappropriate, text)

    def detect_inappropriate_content(self, text: str) -> list[str]:
        """Return the distinct inappropriate terms found in the text."""
        return [
            matcher.keyword for matcher in self._inappropriate if matcher.spans(text)
        ]

    def classify_content_type(self, text: str) -> CulturalCategory:
        """Return the highest-priority category: royal, buddhist, traditional."""
        if self.detect_royal_content(text):
            return "royal"
        if self.detect_buddhist_content(text):
            return "buddhist"
        if self.detect_traditional_content(text):
            return "traditional"
        return "general"

    def calculate_cultural_compliance(
        self, text: str, formal_expected: bool = False
    ) -> float:
        """Score cultural appropriateness.

        Args:
            text: Text to score.
            formal_expected: Whether informal markers are penalized.

        Returns:
            100 minus one penalty per inappropriate-term occurrence, minus the
            informal penalty when applicable, floored at 0.
        """
        inappropriate = self._count(self._inappropriate, text)
        informal = formal_expected and self._count(self._informal, text) > 0
        return self._score(inappropriate, informal)

    def get_content_recommendations(
        self, text: str, formal_expected: bool = False
    ) -> list[str]:
        """Return static recommendations for the flags the text sets."""
        flags = {
            "royal": self.detect_royal_content(text),
            "buddhist": self.detect_buddhist_content(text),
            "traditional": self.detect_traditional_content(text),
            "inappropriate": self._count(self._inappropriate, text) > 0,
            "informal": formal_expected and self._count(self._informal, text) > 0,
        }
        return [advice for key, advice in _RECOMMENDATIONS if flags[key]]

    def keyword_spans(self, text: str) -> list[tuple[int, int]]:
        """Return the character spans of every cultural keyword occurrence."""
        spans: list[tuple[int, int]] = []
        for matchers in (
            self._royal,
            self._buddhist,
            self._traditional,
            self._inappropriate,
        ):
            for matcher in matchers:
                spans.extend(matcher.spans(text))
        return sorted(spans)

    def _score(self, inappropriate: int, informal: bool) -> float:
        score = 100.0 - self._policy.inappropriate_penalty * inappropriate
        if informal:
            score -= self._policy.informal_penalty
        return max(0.0, score)

    def _contains(self, matchers: tuple[_Matcher, ...], text: str) -> bool:
        return any(matcher.spans(text) for matcher in matchers)

    def _count(self, matchers: tuple[_Matcher, ...], text: str) -> int:
        return sum(len(matcher.spans(text)) for matcher in matchers)
