# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Thai metadata analysis orchestration and running statistics."""

import logging
import threading
import unicodedata
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from dabcheck.eti import LabelFig, decode_buffer, parse_label
from dabcheck.model import ComplianceLevel, level_for_score
from dabcheck.thai.calendar import BuddhistCalendar
from dabcheck.thai.characters import (
    CharacterValidation,
    ThaiCharacterAnalyzer,
    is_latin_codepoint,
)
from dabcheck.thai.cultural import CulturalAnalysis, CulturalContentAnalyzer
from dabcheck.thai.profile import PROFILE_ID

logger = logging.getLogger(__name__)

DLS_MAX_LENGTH = 128
CHARACTER_WEIGHT = 0.6
CULTURAL_WEIGHT = 0.4

CHARSET_UTF8 = 0x0F


def weighted_compliance(
    character_scores: list[float], cultural_score: float
) -> float:
    """Combine character and cultural scores into one compliance score.

    Args:
        character_scores: Per-field character validation scores.
        cultural_score: Cultural compliance score.

    Returns:
        The mean character score weighted 0.6 plus the cultural score weighted 0.4.
    """
    mean = sum(character_scores) / len(character_scores) if character_scores else 100.0
    return CHARACTER_WEIGHT * mean + CULTURAL_WEIGHT * cultural_score


def issue_category(issue: str) -> str:
    """Strip the codepoint suffix so repeated issue kinds share one key."""
    return issue.split(" U+", 1)[0]


def _as_text(value: str | bytes) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


@dataclass(frozen=True)
class ThaiTextFields:
    """Thai text fields extracted from one broadcast item."""

    title: str | bytes = ""
    artist: str | bytes = ""
    album: str | bytes = ""
    genre: str | bytes = ""
    station: str | bytes = ""


@dataclass(frozen=True)
class ThaiMetadata:
    """Represent the Thai-language compliance record of one broadcast item.

    ``overall_compliance`` is derived from the four character validations and
    the cultural analysis and cannot be set on its own.

    Attributes:
        title_thai: Title text.
        title_dab: Title encoded in profile 0x0E.
        artist_thai: Artist text.
        artist_dab: Artist encoded in profile 0x0E.
        album_thai: Album text.
        album_dab: Album encoded in profile 0x0E.
        genre_thai: Genre text.
        genre_dab: Genre encoded in profile 0x0E.
        station_name_thai: Station name text.
        station_name_dab: Station name encoded in profile 0x0E.
        title_validation: Character validation of the title.
        artist_validation: Character validation of the artist.
        album_validation: Character validation of the album.
        genre_validation: Character validation of the genre.
        cultural_analysis: Cultural analysis over all four fields.
        has_english_fallback: Some field carries Latin text.
        timestamp: Creation time (UTC).
    """

    title_thai: str
    title_dab: bytes
    artist_thai: str
    artist_dab: bytes
    album_thai: str
    album_dab: bytes
    genre_thai: str
    genre_dab: bytes
    station_name_thai: str
    station_name_dab: bytes
    title_validation: CharacterValidation
    artist_validation: CharacterValidation
    album_validation: CharacterValidation
    genre_validation: CharacterValidation
    cultural_analysis: CulturalAnalysis
    has_english_fallback: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @property
    def field_validations(self) -> tuple[CharacterValidation, ...]:
        return (
            self.title_validation,
            self.artist_validation,
            self.album_validation,
            self.genre_validation,
        )

    @property
    def overall_compliance(self) -> float:
        return weighted_compliance(
            [validation.compliance_score for validation in self.field_validations],
            self.cultural_analysis.cultural_compliance,
        )

    @property
    def compliance_level(self) -> ComplianceLevel:
        return level_for_score(self.overall_compliance)

    @property
    def issues(self) -> tuple[str, ...]:
        """Return the distinct character issues of all fields."""
        return tuple(
            dict.fromkeys(
                issue
                for validation in self.field_validations
                for issue in validation.issues
            )
        )


@dataclass(frozen=True)
class DLSThaiAnalysis:
    """Represent the analysis of one Dynamic Label Segment.

    Attributes:
        original_text: DLS text as received.
        thai_portion: Thai runs joined for display.
        english_portion: English runs joined for display.
        bilingual: Both portions are non-empty.
        validation: Character validation of the whole text.
        cultural: Cultural analysis of the whole text.
        segment_length: Length of the text in profile 0x0E bytes.
        exceeds_limit: ``segment_length`` is over the DLS limit.
        segments: Sub-segments after splitting; the text itself when it fits.
        segment_validations: Character validation of each sub-segment.
    """

    original_text: str
    thai_portion: str
    english_portion: str
    bilingual: bool
    validation: CharacterValidation
    cultural: CulturalAnalysis
    segment_length: int
    exceeds_limit: bool
    segments: tuple[str, ...]
    segment_validations: tuple[CharacterValidation, ...]

    @property
    def compliance_score(self) -> float:
        return weighted_compliance(
            [self.validation.compliance_score], self.cultural.cultural_compliance
        )


class ComplianceStatistics:
    """Running compliance statistics shared by concurrent analyses.

    Count, score sum and issue frequencies change together under one lock, so a
    reader never observes a count that disagrees with the sum.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_analyzed = 0
        self._score_sum = 0.0
        self._issue_frequency: Counter[str] = Counter()

    def update_compliance_statistics(
        self, score: float, issues: tuple[str, ...] | list[str] = ()
    ) -> None:
        """Record one completed analysis.

        Args:
            score: Compliance score of the analysis.
            issues: Issue descriptions reported by the analysis.
        """
        categories = [issue_category(issue) for issue in issues]
        with self._lock:
            self._total_analyzed += 1
            self._score_sum += score
            self._issue_frequency.update(categories)

    def get_running_compliance_average(self) -> float:
        with self._lock:
            if self._total_analyzed == 0:
                return 0.0
            return self._score_sum / self._total_analyzed

    def get_total_analyzed_count(self) -> int:
        with self._lock:
            return self._total_analyzed

    def get_issue_frequency(self) -> dict[str, int]:
        with self._lock:
            return dict(self._issue_frequency)

    def reset(self) -> None:
        with self._lock:
            self._total_analyzed = 0
            self._score_sum = 0.0
            self._issue_frequency.clear()


class ThaiAnalysisEngine:
    """Run character, cultural and calendar analysis over Thai metadata."""

    def __init__(
        self,
        character_analyzer: ThaiCharacterAnalyzer | None = None,
        cultural_analyzer: CulturalContentAnalyzer | None = None,
        calendar: BuddhistCalendar | None = None,
        statistics: ComplianceStatistics | None = None,
        dls_limit: int = DLS_MAX_LENGTH,
    ) -> None:
        """Initialize the engine.

        Args:
            character_analyzer: Character-set analyzer.
            cultural_analyzer: Cultural content analyzer.
            calendar: Buddhist calendar used for date-specific policy.
            statistics: Statistics owner; pass a shared instance to aggregate
                across engines.
            dls_limit: Maximum DLS length in profile 0x0E bytes.

        Raises:
            ValueError: If ``dls_limit`` is not greater than zero.
        """
        if dls_limit <= 0:
            raise ValueError("dls_limit must be > 0")
        self._characters = character_analyzer or ThaiCharacterAnalyzer()
        self._cultural = cultural_analyzer or CulturalContentAnalyzer()
        self._calendar = calendar or BuddhistCalendar()
        self._statistics = statistics or ComplianceStatistics()
        self._dls_limit = dls_limit

    @property
    def statistics(self) -> ComplianceStatistics:
        return self._statistics

    @property
    def character_analyzer(self) -> ThaiCharacterAnalyzer:
        return self._characters

    @property
    def calendar(self) -> BuddhistCalendar:
        return self._calendar

    def analyze_metadata(
        self, fields: ThaiTextFields, when: date | None = None
    ) -> ThaiMetadata:
        """Analyze the Thai text fields of one broadcast item.

        Args:
            fields: Text fields to analyze; absent fields are empty.
            when: Broadcast date; formal register is expected on holy days and
                major festivals.

        Returns:
            The Thai metadata record.
        """
        formal_expected = when is not None and self.should_use_special_validation(when)
        title = _as_text(fields.title)
        artist = _as_text(fields.artist)
        album = _as_text(fields.album)
        genre = _as_text(fields.genre)
        station = _as_text(fields.station)
        combined = " ".join(text for text in (title, artist, album, genre) if text)

        metadata = ThaiMetadata(
            title_thai=title,
            title_dab=self._characters.convert_to_profile(fields.title).data,
            artist_thai=artist,
            artist_dab=self._characters.convert_to_profile(fields.artist).data,
            album_thai=album,
            album_dab=self._characters.convert_to_profile(fields.album).data,
            genre_thai=genre,
            genre_dab=self._characters.convert_to_profile(fields.genre).data,
            station_name_thai=station,
            station_name_dab=self._characters.convert_to_profile(fields.station).data,
            title_validation=self._characters.validate(fields.title),
            artist_validation=self._characters.validate(fields.artist),
            album_validation=self._characters.validate(fields.album),
            genre_validation=self._characters.validate(fields.genre),
            cultural_analysis=self._cultural.analyze(
                combined, formal_expected=formal_expected
            ),
            has_english_fallback=any(
                is_latin_codepoint(ord(char))
                for text in (title, artist, album, genre, station)
                for char in text
            ),
        )
        self.update_compliance_statistics(metadata)
        logger.info(
            f"Thai metadata analyzed (score={metadata.overall_compliance:.2f} "
            f"level={metadata.compliance_level} issues={len(metadata.issues)})"
        )
        return metadata

    def analyze_fig1_labels(
        self, label: LabelFig, when: date | None = None
    ) -> ThaiMetadata:
        """Analyze a FIG 1 label as the title and station name of an item."""
        text = self.decode_label(label)
        return self.analyze_metadata(ThaiTextFields(title=text, station=text), when)

    def analyze_dls_content(self, text: str | bytes) -> DLSThaiAnalysis:
        """Analyze a Dynamic Label Segment and split it when too long.

        Args:
            text: DLS text as ``str`` or UTF-8 ``bytes``.

        Returns:
            The DLS analysis, with sub-segments when the text exceeds the limit.
        """
        validation = self._characters.validate(text)
        text = _as_text(text)
        thai, english = self._characters.separate_thai_english(text)
        length = len(self._characters.convert_to_profile(text).data)
        exceeds = length > self._dls_limit
        segments = tuple(self.split_dls(text)) if exceeds else (text,)
        if exceeds:
            logger.warning(
                f"DLS exceeds length limit (length={length} limit={self._dls_limit} "
                f"segments={len(segments)})"
            )

        analysis = DLSThaiAnalysis(
            original_text=text,
            thai_portion=thai.text,
            english_portion=english.text,
            bilingual=bool(thai.text) and bool(english.text),
            validation=validation,
            cultural=self._cultural.analyze(text),
            segment_length=length,
            exceeds_limit=exceeds,
            segments=segments,
            segment_validations=tuple(
                self._characters.validate(segment) for segment in segments
            ),
        )
        self._statistics.update_compliance_statistics(
            analysis.compliance_score, validation.issues
        )
        return analysis

    def split_dls(self, text: str) -> list[str]:
        """Split text into chunks of at most ``dls_limit`` profile 0x0E bytes.

        Profile 0x0E carries every codepoint as one byte, substitutions
        included. A cut never falls between a Thai base character and its
        combining marks or inside a cultural keyword. When no such cut fits
        a chunk is cut at the limit instead.

        Args:
            text: Text to split.

        Returns:
            Chunks whose concatenation equals ``text``.
        """
        protected = self._cultural.keyword_spans(text)
        segments: list[str] = []
        start = 0
        while start < len(text):
            end = min(start + self._dls_limit, len(text))
            if end < len(text):
                end = self._safe_cut(text, start, end, protected)
            segments.append(text[start:end])
            start = end
        return segments

    def _safe_cut(
        self, text: str, start: int, end: int, protected: list[tuple[int, int]]
    ) -> int:
        cut = end
        moved = True
        while moved:
            moved = False
            for span_start, span_end in protected:
                if span_start < cut < span_end and span_start > start:
                    cut = span_start
                    moved = True
            while cut > start + 1 and unicodedata.category(text[cut]) == "Mn":
                cut -= 1
                moved = True
        return cut

    def decode_label(self, label: LabelFig) -> str:
        """Decode FIG 1 label bytes according to the signalled character set."""
        raw = label.label.rstrip(b"\x00")
        if label.charset == PROFILE_ID:
            text = self._characters.decode_profile(raw)
        elif label.charset == CHARSET_UTF8:
            text = raw.decode("utf-8", errors="replace")
        else:
            text = raw.decode("latin-1")
        return text.rstrip()

    def extract_thai_labels(self, fig_data: bytes) -> list[str]:
        """Return the FIG 1 labels in profile 0x0E found in FIC or FIG data."""
        decoded = decode_buffer(fig_data)
        for error in decoded.fig_errors:
            logger.warning(
                f"Skipping malformed FIG while extracting labels (error={error})"
            )
        labels: list[str] = []
        for fig in decoded.figs:
            label = parse_label(fig)
            if label is not None and label.charset == PROFILE_ID:
                labels.append(self.decode_label(label))
        return labels

    def validate_service_labels(self, fig_data: bytes) -> CharacterValidation:
        """Validate all Thai FIG 1 labels in raw FIG data as one text."""
        return self._characters.validate("".join(self.extract_thai_labels(fig_data)))

    def get_overall_compliance_level(self, metadata: ThaiMetadata) -> ComplianceLevel:
        return level_for_score(metadata.overall_compliance)

    def update_compliance_statistics(self, metadata: ThaiMetadata) -> None:
        issues = list(metadata.issues)
        if not metadata.cultural_analysis.appropriate_language:
            issues.append("inappropriate or informal language")
        self._statistics.update_compliance_statistics(
            metadata.overall_compliance, issues
        )

    def get_running_compliance_average(self) -> float:
        return self._statistics.get_running_compliance_average()

    def get_total_analyzed_count(self) -> int:
        return self._statistics.get_total_analyzed_count()

    def get_issue_frequency(self) -> dict[str, int]:
        return self._statistics.get_issue_frequency()

    def should_use_special_validation(self, when: date) -> bool:
        return self._calendar.requires_special_handling(when)

    def get_date_specific_guidelines(self, when: date) -> list[str]:
        return self._calendar.get_content_guidelines(when)
