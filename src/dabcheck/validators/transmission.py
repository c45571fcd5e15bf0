# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""EN 302 077 transmission parameter checks on the ETI frame header."""

from dabcheck.eti import (
    FIB_SIZE,
    FRAME_HEADER_SIZE,
    TRANSMISSION_MODES,
    DecodedBuffer,
)
from dabcheck.model import ComplianceResult
from dabcheck.validator import BufferValidator

FRAME_COUNT_MODULUS = 250
_FIC_SIZES = frozenset(size for _, size in TRANSMISSION_MODES.values())


class TransmissionValidator(BufferValidator):
    """Check that the signalled transmission mode is usable by a transmitter."""

    standard = "EN_302_077"
    frame_minimum_length = FRAME_HEADER_SIZE

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        if not decoded.is_frame:
            return [self._fic_size(decoded)]
        if decoded.fc is None:
            return [
                self.results.malformed(
                    "transmission_mode",
                    "Transmission mode signalled in FC",
                    "Frame ends before the frame characterization field.",
                )
            ]
        return [
            self._mode(decoded),
            self._frame_count(decoded),
            self._fic_length(decoded),
        ]

    def _mode(self, decoded: DecodedBuffer) -> ComplianceResult:
        fc = decoded.fc
        mode, fic_size = TRANSMISSION_MODES[fc.mid]
        return self.results.ok(
            "transmission_mode",
            "Transmission mode signalled in FC",
            f"MID {fc.mid} selects transmission mode {mode}.",
            {"mode": mode, "mid": str(fc.mid), "fic_bytes": str(fic_size)},
        )

    def _frame_count(self, decoded: DecodedBuffer) -> ComplianceResult:
        fct = decoded.fc.fct
        if fct < FRAME_COUNT_MODULUS:
            return self.results.ok(
                "frame_count",
                "Frame count within modulo-250 range",
                f"FCT is {fct}.",
                {"fct": str(fct)},
            )
        return self.results.violation(
            "frame_count",
            "Frame count within modulo-250 range",
            50.0,
            f"FCT is {fct}; the counter must wrap at {FRAME_COUNT_MODULUS}.",
            "Fix the frame counter in the multiplexer so it counts 0 to 249.",
            {"fct": str(fct)},
        )

    def _fic_length(self, decoded: DecodedBuffer) -> ComplianceResult:
        fc = decoded.fc
        if not fc.ficf:
            return self.results.not_applicable(
                "fic_length",
                "FIC length matches transmission mode",
                "FICF is clear; the frame carries no FIC.",
            )
        mode, fic_size = TRANSMISSION_MODES[fc.mid]
        expected_fibs = fic_size // FIB_SIZE
        if len(decoded.fib_crc) == expected_fibs:
            return self.results.ok(
                "fic_length",
                "FIC length matches transmission mode",
                f"Mode {mode} FIC carries {expected_fibs} FIBs.",
                {"fibs": str(expected_fibs)},
            )
        return self.results.malformed(
            "fic_length",
            "FIC length matches transmission mode",
            f"Mode {mode} requires {expected_fibs} FIBs but only "
            f"{len(decoded.fib_crc)} are present.",
        )

    def _fic_size(self, decoded: DecodedBuffer) -> ComplianceResult:
        if decoded.kind != "fic":
            return self.results.not_applicable(
                "fic_length",
                "FIC length matches transmission mode",
                "Buffer carries bare FIGs without frame or FIB framing.",
            )
        if decoded.length in _FIC_SIZES:
            return self.results.ok(
                "fic_length",
                "FIC length matches transmission mode",
                f"FIC data of {decoded.length} bytes matches a transmission mode.",
                {"fic_bytes": str(decoded.length)},
            )
        return self.results.violation(
            "fic_length",
            "FIC length matches transmission mode",
            80.0,
            f"FIC data of {decoded.length} bytes does not match the 96 or 128 "
            "bytes carried per frame.",
            "Supply FIC data for exactly one ETI frame.",
            {"fic_bytes": str(decoded.length)},
        )
