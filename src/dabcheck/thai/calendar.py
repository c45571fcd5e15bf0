# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Buddhist Era dates and holy-day lookup for content policy selection."""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Mapping

BUDDHIST_ERA_OFFSET = 543

_HOLY_DAY_GUIDELINES: tuple[str, ...] = (
    "Do not air alcohol advertising on Buddhist holy days.",
    "Prefer respectful programming; avoid party or nightlife promotions.",
    "Use formal register in labels and dynamic label text.",
)
_ROYAL_GUIDELINES: tuple[str, ...] = (
    "Use royal vocabulary (ราชาศัพท์) for royal references.",
    "Use formal register in labels and dynamic label text.",
)
_FESTIVAL_GUIDELINES: tuple[str, ...] = (
    "Keep festival content family-appropriate.",
    "Include road-safety messaging during holiday travel periods.",
)


def _frozen(mapping: dict[str, object]) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CalendarTable:
    """Maintained observance data keyed by ``MM-DD``.

    Lunar observances move every year, so the defaults carry the dates of
    Buddhist Era 2569 (2026) and must be refreshed from the official
    announcement each year.

    Attributes:
        holy_days: Buddhist holy days by day key.
        festivals: Major festivals and royal observances by day key.
        guidelines: Content guidelines by day key.
    """

    holy_days: Mapping[str, str] = field(default_factory=dict)
    festivals: Mapping[str, str] = field(default_factory=dict)
    guidelines: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "holy_days", _frozen(dict(self.holy_days)))
        object.__setattr__(self, "festivals", _frozen(dict(self.festivals)))
        object.__setattr__(
            self,
            "guidelines",
            _frozen({key: tuple(value) for key, value in self.guidelines.items()}),
        )


_DEFAULT_HOLY_DAYS: dict[str, str] = {
    "03-03": "Makha Bucha Day",
    "05-31": "Visakha Bucha Day",
    "07-29": "Asanha Bucha Day",
    "07-30": "Buddhist Lent Day (Khao Phansa)",
    "10-26": "End of Buddhist Lent (Ok Phansa)",
}

_DEFAULT_FESTIVALS: dict[str, str] = {
    "01-01": "New Year's Day",
    "04-06": "Chakri Memorial Day",
    "04-13": "Songkran Festival",
    "04-14": "Songkran Festival",
    "04-15": "Songkran Festival",
    "05-04": "Coronation Day",
    "06-03": "Queen Suthida's Birthday",
    "07-28": "King Vajiralongkorn's Birthday",
    "08-12": "Queen Mother's Birthday (Mother's Day)",
    "10-13": "King Bhumibol Memorial Day",
    "10-23": "King Chulalongkorn Memorial Day",
    "11-24": "Loy Krathong",
    "12-05": "King Bhumibol's Birthday (Father's Day)",
}

_ROYAL_DAYS = frozenset(
    {"04-06", "05-04", "06-03", "07-28", "08-12", "10-13", "10-23", "12-05"}
)

DEFAULT_CALENDAR_TABLE = CalendarTable(
    holy_days=_DEFAULT_HOLY_DAYS,
    festivals=_DEFAULT_FESTIVALS,
    guidelines={
        **{key: _HOLY_DAY_GUIDELINES for key in _DEFAULT_HOLY_DAYS},
        **{
            key: _ROYAL_GUIDELINES if key in _ROYAL_DAYS else _FESTIVAL_GUIDELINES
            for key in _DEFAULT_FESTIVALS
        },
    },
)


def day_key(day: date) -> str:
    """Return the ``MM-DD`` lookup key of a date or datetime."""
    return f"{day.month:02d}-{day.day:02d}"


class BuddhistCalendar:
    """Convert dates to the Buddhist Era and look up observances."""

    def __init__(self, table: CalendarTable = DEFAULT_CALENDAR_TABLE) -> None:
        self._table = table

    def to_buddhist_year(self, gregorian_year: int) -> int:
        return gregorian_year + BUDDHIST_ERA_OFFSET

    def format_buddhist_date(self, day: date) -> str:
        """Format a date as ``DD/MM/YYYY`` with the Buddhist Era year."""
        return f"{day.day:02d}/{day.month:02d}/{self.to_buddhist_year(day.year)}"

    def is_holy_day(self, day: date) -> bool:
        return day_key(day) in self._table.holy_days

    def is_major_festival(self, day: date) -> bool:
        return day_key(day) in self._table.festivals

    def get_festival_name(self, day: date) -> str:
        """Return the observance name for a date, or an empty string."""
        key = day_key(day)
        return self._table.holy_days.get(key) or self._table.festivals.get(key, "")

    def get_content_guidelines(self, day: date) -> list[str]:
        """Return the content guidelines attached to a date, if any."""
        return list(self._table.guidelines.get(day_key(day), ()))

    def requires_special_handling(self, day: date) -> bool:
        return self.is_holy_day(day) or self.is_major_festival(day)
