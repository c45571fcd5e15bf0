# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""EN 300 401 core structure checks for ETI frames and the FIC."""

from dabcheck.eti import (
    EOF_SIZE,
    FRAME_HEADER_SIZE,
    FSYNC_EVEN,
    MAX_STREAMS,
    TIST_SIZE,
    DecodedBuffer,
    expected_frame_length,
)
from dabcheck.model import ComplianceResult
from dabcheck.validator import BufferValidator

# FIG types 3 and 4 are reserved; type 7 is reserved apart from the end marker.
RESERVED_FIG_TYPES = frozenset({3, 4, 7})
FIG_ERROR_PENALTY = 25.0


class CoreStructureValidator(BufferValidator):
    """Check frame synchronisation, header consistency, CRCs and FIG bounds."""

    standard = "EN_300_401"
    minimum_length = 2

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        findings: list[ComplianceResult] = []
        if decoded.is_frame:
            findings.append(self._frame_sync(decoded))
            findings.append(self._frame_characterization(decoded))
            if decoded.fc is not None:
                findings.append(self._frame_length(decoded))
                findings.append(
                    self._crc("header_crc", "Header CRC", decoded.header_crc_ok)
                )
                findings.append(
                    self._crc("mst_crc", "Main stream CRC", decoded.mst_crc_ok)
                )
        else:
            findings.append(
                self.results.not_applicable(
                    "frame_sync",
                    "ETI frame synchronisation",
                    f"Buffer is {decoded.kind} data without ETI framing.",
                )
            )
        findings.append(self._fib_crc(decoded))
        findings.append(self._fig_structure(decoded))
        return findings

    def _frame_sync(self, decoded: DecodedBuffer) -> ComplianceResult:
        parity = "even" if decoded.sync_word == FSYNC_EVEN else "odd"
        return self.results.ok(
            "frame_sync",
            "ETI frame synchronisation",
            f"FSYNC 0x{decoded.sync_word:06X} found ({parity} frame).",
            {"fsync": f"0x{decoded.sync_word:06X}"},
        )

    def _frame_characterization(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "frame_characterization"
        description = "Frame characterization field"
        fc = decoded.fc
        if fc is None:
            return self.results.malformed(
                name, description, "Frame ends before the FC field."
            )
        if fc.nst > MAX_STREAMS:
            return self.results.violation(
                name,
                description,
                0.0,
                f"NST declares {fc.nst} streams; at most {MAX_STREAMS} are allowed.",
                "Reduce the number of sub-channels in the multiplex configuration.",
                {"nst": str(fc.nst)},
            )
        if len(decoded.streams) < fc.nst:
            return self.results.malformed(
                name,
                description,
                f"Only {len(decoded.streams)} of {fc.nst} stream descriptions fit "
                "in the buffer.",
            )
        return self.results.ok(
            name,
            description,
            f"{fc.nst} streams described, FICF={int(fc.ficf)}, FP={fc.fp}.",
            {"nst": str(fc.nst), "ficf": str(int(fc.ficf))},
        )

    def _frame_length(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "frame_length"
        description = "Declared frame length"
        fc = decoded.fc
        expected = expected_frame_length(fc, decoded.streams)
        metadata = {"fl": str(fc.fl), "expected_fl": str(expected)}
        if fc.fl != expected:
            return self.results.violation(
                name,
                description,
                40.0,
                f"FL is {fc.fl} words but the header and stream lengths add up to "
                f"{expected} words.",
                "Regenerate the frame header; FL must equal the STC, EOH, FIC and "
                "MST word count.",
                metadata,
            )
        required = FRAME_HEADER_SIZE + 4 * fc.fl + EOF_SIZE + TIST_SIZE
        if decoded.length < required:
            return self.results.malformed(
                name,
                description,
                f"FL {fc.fl} needs {required} bytes but the buffer holds "
                f"{decoded.length}.",
            )
        return self.results.ok(
            name, description, f"FL {fc.fl} is consistent with the frame.", metadata
        )

    def _crc(self, name: str, label: str, outcome: bool | None) -> ComplianceResult:
        description = f"{label} matches"
        if outcome is None:
            return self.results.malformed(
                name, description, f"{label} is missing from the truncated frame."
            )
        if outcome:
            return self.results.ok(name, description, f"{label} verified.")
        return self.results.violation(
            name,
            description,
            0.0,
            f"{label} does not match the frame content.",
            "Inspect the ETI link for bit errors or a misconfigured multiplexer.",
        )

    def _fib_crc(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "fib_crc"
        description = "FIB CRC-16 matches"
        total = len(decoded.fib_crc)
        if total == 0:
            return self.results.not_applicable(
                name, description, "Buffer carries no FIB-aligned FIC data."
            )
        good = sum(decoded.fib_crc)
        return self.results.ratio(
            name,
            description,
            good,
            total,
            f"{good} of {total} FIBs have a valid CRC.",
            "Receivers discard FIBs with CRC errors; check the FIC encoder.",
            {"fibs": str(total), "valid": str(good)},
        )

    def _fig_structure(self, decoded: DecodedBuffer) -> ComplianceResult:
        name = "fig_structure"
        description = "FIG headers within FIB bounds"
        if decoded.fig_errors:
            return self.results.malformed(
                name,
                description,
                "; ".join(decoded.fig_errors),
                score=100.0 - FIG_ERROR_PENALTY * len(decoded.fig_errors),
            )
        if decoded.kind == "figs" and not decoded.figs:
            return self.results.malformed(
                name, description, "No decodable FIG found in the buffer."
            )
        reserved = [fig for fig in decoded.figs if fig.fig_type in RESERVED_FIG_TYPES]
        if reserved:
            types = ", ".join(sorted({str(fig.fig_type) for fig in reserved}))
            return self.results.violation(
                name,
                description,
                80.0,
                f"{len(reserved)} FIGs use reserved types ({types}).",
                "Remove FIGs of reserved types from the FIC.",
                {"reserved": str(len(reserved))},
            )
        return self.results.ok(
            name,
            description,
            f"{len(decoded.figs)} FIGs decoded without structural errors.",
            {"figs": str(len(decoded.figs))},
        )
