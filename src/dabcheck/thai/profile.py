# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Character profile 0x0E (Thai) mapping table for DAB text fields."""

from types import MappingProxyType
from typing import Mapping

PROFILE_ID = 0x0E

# Substituted for codepoints the profile cannot carry.
FALLBACK_BYTE = 0x3F

# DAB dynamic label control codes (EN 300 401 clause 5.2.2.2.1).
PREFERRED_LINE_BREAK = 0x0A
END_OF_HEADLINE = 0x0B
PREFERRED_WORD_BREAK = 0x1F
CONTROL_CODES: frozenset[int] = frozenset(
    {PREFERRED_LINE_BREAK, END_OF_HEADLINE, PREFERRED_WORD_BREAK}
)

THAI_BLOCK_START = 0x0E00
THAI_BLOCK_END = 0x0E7F

# Thai block segments that carry assigned characters, with their profile offsets.
_THAI_SEGMENTS: tuple[tuple[int, int, int], ...] = (
    (0x0E01, 0x0E3A, 0xA1),
    (0x0E3F, 0x0E5B, 0xDF),
)

# Mapped, but not drawn by common receiver fonts.
_NON_RENDERABLE_THAI: frozenset[int] = frozenset({0x0E4E, 0x0E5A, 0x0E5B})


class CharacterProfileTable:
    """Bidirectional lookup between Unicode and the 8-bit Thai profile.

    The table is built once and is read-only afterwards, so one instance can be
    shared by any number of analyzers and threads.
    """

    def __init__(self) -> None:
        to_profile: dict[int, int] = {}
        for byte in range(0x20, 0x7F):
            to_profile[byte] = byte
        for code in CONTROL_CODES:
            to_profile[code] = code

        valid_thai: set[int] = set()
        for first, last, offset in _THAI_SEGMENTS:
            for codepoint in range(first, last + 1):
                to_profile[codepoint] = offset + (codepoint - first)
                valid_thai.add(codepoint)

        renderable = {
            codepoint
            for codepoint in to_profile
            if codepoint not in CONTROL_CODES
            and codepoint not in _NON_RENDERABLE_THAI
        }

        self._to_profile: Mapping[int, int] = MappingProxyType(to_profile)
        self._from_profile: Mapping[int, int] = MappingProxyType(
            {byte: codepoint for codepoint, byte in to_profile.items()}
        )
        self._valid_thai = frozenset(valid_thai)
        self._renderable = frozenset(renderable)

    def to_profile(self, codepoint: int) -> int | None:
        """Return the profile byte for a codepoint, or ``None`` if unmapped."""
        return self._to_profile.get(codepoint)

    def from_profile(self, byte: int) -> int | None:
        """Return the codepoint carried by a profile byte, or ``None``."""
        return self._from_profile.get(byte)

    def is_valid_thai(self, codepoint: int) -> bool:
        """Return whether a codepoint is an assigned Thai character."""
        return codepoint in self._valid_thai

    def is_renderable(self, codepoint: int) -> bool:
        """Return whether receivers can display the codepoint."""
        return codepoint in self._renderable

    def is_mapped(self, codepoint: int) -> bool:
        return codepoint in self._to_profile


DEFAULT_PROFILE = CharacterProfileTable()
