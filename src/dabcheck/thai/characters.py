# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Thai character-set validation and conversion against profile 0x0E."""

import logging
from dataclasses import dataclass
from typing import Literal

from dabcheck.thai.profile import (
    CONTROL_CODES,
    DEFAULT_PROFILE,
    FALLBACK_BYTE,
    THAI_BLOCK_END,
    THAI_BLOCK_START,
    CharacterProfileTable,
)

logger = logging.getLogger(__name__)

Script = Literal["thai", "latin"]

INVALID_UTF8_ISSUE = "invalid UTF-8 byte sequence"

_SURROGATE_START = 0xD800
_SURROGATE_END = 0xDFFF


@dataclass(frozen=True)
class CharacterValidation:
    """Represent the character-set outcome for one text field.

    Attributes:
        valid_encoding: Text decoded as UTF-8 without errors.
        dab_profile_compliant: Every codepoint maps into profile 0x0E.
        renderable: Every mapped codepoint can be drawn by receivers.
        invalid_chars: Number of codepoints that failed validation.
        issues: Distinct problem descriptions in first-occurrence order.
        compliance_score: Share of valid codepoints as a 0-100 score.
    """

    valid_encoding: bool
    dab_profile_compliant: bool
    renderable: bool
    invalid_chars: int
    issues: tuple[str, ...]
    compliance_score: float


@dataclass(frozen=True)
class ProfileString:
    """Represent text encoded in profile 0x0E.

    Attributes:
        data: Encoded profile bytes.
        substitutions: Number of codepoints replaced by the fallback byte.
    """

    data: bytes
    substitutions: int


@dataclass(frozen=True)
class ScriptRun:
    """Represent one contiguous run of a script within a text."""

    script: Script
    text: str
    index: int


@dataclass(frozen=True)
class ScriptPortion:
    """Represent the runs of one script, in original order."""

    script: Script
    runs: tuple[ScriptRun, ...]

    @property
    def text(self) -> str:
        """Return the portion as display text, runs separated by one space."""
        parts = [run.text.strip() for run in self.runs]
        return " ".join(part for part in parts if part)

    def __bool__(self) -> bool:
        return bool(self.runs)


def join_portions(*portions: ScriptPortion) -> str:
    """Rebuild the original text from separated portions."""
    runs = sorted(
        (run for portion in portions for run in portion.runs),
        key=lambda run: run.index,
    )
    return "".join(run.text for run in runs)


def decode_codepoints(text: str | bytes) -> tuple[list[int], int]:
    """Decode text to codepoints without failing on bad UTF-8.

    Every undecodable byte becomes one invalid codepoint and decoding resumes at
    the following byte.

    Args:
        text: Text as ``str`` or raw UTF-8 ``bytes``.

    Returns:
        A tuple of the codepoints and the number of undecodable units.
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="surrogateescape")
    codepoints = [ord(char) for char in text]
    broken = sum(
        1 for code in codepoints if _SURROGATE_START <= code <= _SURROGATE_END
    )
    return codepoints, broken


def is_thai_codepoint(codepoint: int) -> bool:
    return THAI_BLOCK_START <= codepoint <= THAI_BLOCK_END


def is_latin_codepoint(codepoint: int) -> bool:
    if 0x41 <= codepoint <= 0x5A or 0x61 <= codepoint <= 0x7A:
        return True
    return 0xC0 <= codepoint <= 0x24F and codepoint not in (0xD7, 0xF7)


class ThaiCharacterAnalyzer:
    """Validate and convert Thai text for DAB profile 0x0E."""

    def __init__(self, profile: CharacterProfileTable | None = None) -> None:
        """Initialize the analyzer.

        Args:
            profile: Mapping table to validate against; the shared default
                table is used when omitted.
        """
        self._profile = profile or DEFAULT_PROFILE

    def validate(self, text: str | bytes) -> CharacterValidation:
        """Validate one text field against the profile.

        Args:
            text: Text as ``str`` or raw UTF-8 ``bytes``.

        Returns:
            The character validation. Empty text scores 100.
        """
        codepoints, broken = decode_codepoints(text)
        if not codepoints:
            return CharacterValidation(
                valid_encoding=True,
                dab_profile_compliant=True,
                renderable=True,
                invalid_chars=0,
                issues=(),
                compliance_score=100.0,
            )

        issues: list[str] = []
        valid_count = 0
        unmapped = 0
        non_renderable = 0
        for codepoint in codepoints:
            if _SURROGATE_START <= codepoint <= _SURROGATE_END:
                _add_issue(issues, INVALID_UTF8_ISSUE)
                continue
            if not self._profile.is_mapped(codepoint):
                unmapped += 1
                _add_issue(
                    issues,
                    f"contains non-Thai-profile codepoint U+{codepoint:04X}",
                )
                continue
            if codepoint not in CONTROL_CODES and not self._profile.is_renderable(
                codepoint
            ):
                non_renderable += 1
                _add_issue(
                    issues, f"contains non-renderable codepoint U+{codepoint:04X}"
                )
                continue
            valid_count += 1

        if broken:
            logger.warning(
                f"Text field contains undecodable bytes (invalid_bytes={broken})"
            )
        return CharacterValidation(
            valid_encoding=broken == 0,
            dab_profile_compliant=broken == 0 and unmapped == 0,
            renderable=non_renderable == 0,
            invalid_chars=len(codepoints) - valid_count,
            issues=tuple(issues),
            compliance_score=100.0 * valid_count / len(codepoints),
        )

    def convert_to_profile(self, text: str | bytes) -> ProfileString:
        """Encode text into profile bytes.

        Unmapped codepoints, including undecodable UTF-8 bytes, are replaced by
        the fallback byte and counted.

        Args:
            text: Text as ``str`` or raw UTF-8 ``bytes``.

        Returns:
            Encoded bytes with the substitution count.
        """
        codepoints, _ = decode_codepoints(text)
        encoded = bytearray()
        substitutions = 0
        for codepoint in codepoints:
            byte = self._profile.to_profile(codepoint)
            if byte is None:
                substitutions += 1
                byte = FALLBACK_BYTE
            encoded.append(byte)
        return ProfileString(data=bytes(encoded), substitutions=substitutions)

    def decode_profile(self, data: bytes) -> str:
        """Decode profile bytes back to text; unknown bytes become U+FFFD."""
        chars: list[str] = []
        for byte in data:
            codepoint = self._profile.from_profile(byte)
            chars.append("\ufffd" if codepoint is None else chr(codepoint))
        return "".join(chars)

    def is_valid_thai_character(self, codepoint: int) -> bool:
        return self._profile.is_valid_thai(codepoint)

    def is_renderable_on_dab(self, codepoint: int) -> bool:
        return self._profile.is_renderable(codepoint)

    def detect_thai_script(self, text: str | bytes) -> bool:
        """Return whether the text contains at least one Thai character."""
        codepoints, _ = decode_codepoints(text)
        return any(is_thai_codepoint(code) for code in codepoints)

    def detect_mixed_scripts(self, text: str | bytes) -> bool:
        """Return whether the text mixes Thai and Latin characters."""
        codepoints, _ = decode_codepoints(text)
        has_thai = any(is_thai_codepoint(code) for code in codepoints)
        has_latin = any(is_latin_codepoint(code) for code in codepoints)
        return has_thai and has_latin

    def separate_thai_english(
        self, text: str | bytes
    ) -> tuple[ScriptPortion, ScriptPortion]:
        """Split text into Thai and English portions.

        Each run of Thai or Latin characters goes to its script's portion.
        Punctuation, digits and whitespace attach to the preceding run; leading
        neutral characters attach to the first run. Text without any Thai or
        Latin character is returned as a single English run.

        Args:
            text: Text as ``str`` or raw UTF-8 ``bytes``.

        Returns:
            The Thai portion and the English portion.
        """
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8", errors="replace")

        runs: list[tuple[Script, list[str]]] = []
        leading: list[str] = []
        for char in text:
            codepoint = ord(char)
            script: Script | None = None
            if is_thai_codepoint(codepoint):
                script = "thai"
            elif is_latin_codepoint(codepoint):
                script = "latin"

            if script is None:
                if runs:
                    runs[-1][1].append(char)
                else:
                    leading.append(char)
                continue
            if runs and runs[-1][0] == script:
                runs[-1][1].append(char)
                continue
            runs.append((script, leading + [char]))
            leading = []

        if leading:
            runs.append(("latin", leading))

        thai_runs: list[ScriptRun] = []
        latin_runs: list[ScriptRun] = []
        for index, (script, chars) in enumerate(runs):
            run = ScriptRun(script=script, text="".join(chars), index=index)
            (thai_runs if script == "thai" else latin_runs).append(run)
        return (
            ScriptPortion(script="thai", runs=tuple(thai_runs)),
            ScriptPortion(script="latin", runs=tuple(latin_runs)),
        )

    def check_profile_compliance(self, text: str | bytes) -> bool:
        return self.validate(text).dab_profile_compliant

    def get_compliance_issues(self, text: str | bytes) -> list[str]:
        return list(self.validate(text).issues)

    def calculate_compliance_score(self, text: str | bytes) -> float:
        return self.validate(text).compliance_score


def _add_issue(issues: list[str], issue: str) -> None:
    if issue not in issues:
        issues.append(issue)
