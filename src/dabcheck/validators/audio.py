# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""TS 102 563 DAB+ audio sub-channel sanity checks."""

import logging

from dabcheck.eti import (
    AUDIO_TYPE_DAB_PLUS,
    FRAME_HEADER_SIZE,
    DecodedBuffer,
    StreamCharacterization,
    has_superframe_sync,
    parse_services,
)
from dabcheck.model import ComplianceResult
from dabcheck.validator import BufferValidator

logger = logging.getLogger(__name__)

# Sub-channel sizes are multiples of 24 bytes, i.e. three 64-bit STL words.
STL_WORDS_PER_UNIT = 3
SUPERFRAME_MISSING_SCORE = 85.0


def dab_plus_subchannels(decoded: DecodedBuffer) -> set[int] | None:
    """Return the sub-channel ids FIG 0/2 signals as DAB+ audio.

    Returns ``None`` when the buffer carries no FIG 0/2 at all, so callers can
    tell "no DAB+ services" apart from "not signalled here".
    """
    figs = decoded.figs_of(0, 2)
    if not figs:
        return None
    subchannels: set[int] = set()
    for fig in figs:
        services, _ = parse_services(fig)
        for service in services:
            for component in service.components:
                if (
                    component.tmid == 0
                    and component.component_type == AUDIO_TYPE_DAB_PLUS
                ):
                    subchannels.add(component.subchid)
    return subchannels


class AudioCodingValidator(BufferValidator):
    """Check DAB+ sub-channel sizing, superframe sync and payload activity.

    When the buffer signals service organisation, only sub-channels carrying
    DAB+ audio components are checked; otherwise every stream in the frame is
    treated as a DAB+ candidate.
    """

    standard = "TS_102_563"
    frame_minimum_length = FRAME_HEADER_SIZE

    def check(self, decoded: DecodedBuffer) -> list[ComplianceResult]:
        if not decoded.is_frame:
            return [
                self.results.not_applicable(
                    "audio_streams",
                    "DAB+ audio sub-channels",
                    "Buffer carries no main service channel.",
                )
            ]
        candidates = self._candidates(decoded)
        if not candidates:
            return [
                self.results.not_applicable(
                    "audio_streams",
                    "DAB+ audio sub-channels",
                    "Frame carries no DAB+ audio sub-channel.",
                )
            ]
        return [
            self._subchannel_size(candidates),
            self._superframe_sync(candidates),
            self._payload_activity(candidates),
        ]

    def _candidates(
        self, decoded: DecodedBuffer
    ) -> list[tuple[StreamCharacterization, bytes]]:
        signalled = dab_plus_subchannels(decoded)
        pairs = list(zip(decoded.streams, decoded.stream_data))
        if signalled is None:
            return pairs
        return [(stream, data) for stream, data in pairs if stream.scid in signalled]

    def _subchannel_size(
        self, candidates: list[tuple[StreamCharacterization, bytes]]
    ) -> ComplianceResult:
        invalid = [
            stream for stream, _ in candidates if stream.stl % STL_WORDS_PER_UNIT
        ]
        details = f"{len(candidates) - len(invalid)} of {len(candidates)} sub-channels "
        details += "are a multiple of 24 bytes."
        if invalid:
            ids = ", ".join(str(stream.scid) for stream in invalid)
            details += f" Invalid: {ids}."
        return self.results.ratio(
            "subchannel_size",
            "DAB+ sub-channel size is a multiple of 24 bytes",
            len(candidates) - len(invalid),
            len(candidates),
            details,
            "Configure DAB+ sub-channels in steps of 8 kbit/s.",
            {"checked": str(len(candidates))},
        )

    def _superframe_sync(
        self, candidates: list[tuple[StreamCharacterization, bytes]]
    ) -> ComplianceResult:
        name = "superframe_sync"
        description = "DAB+ superframe firecode"
        synced = [
            stream.scid for stream, data in candidates if has_superframe_sync(data)
        ]
        if synced:
            return self.results.ok(
                name,
                description,
                f"Superframe start found in sub-channels "
                f"{', '.join(str(scid) for scid in synced)}.",
                {"synced": str(len(synced))},
            )
        logger.info(
            f"No DAB+ superframe start in frame (candidates={len(candidates)})"
        )
        return self.results.result(
            name,
            description,
            passed=False,
            score=SUPERFRAME_MISSING_SCORE,
            details=(
                "No sub-channel starts an audio superframe in this frame; a "
                "superframe begins in one of every five frames."
            ),
            recommendation="Analyze five consecutive frames to confirm firecode sync.",
            category="insufficient_data",
        )

    def _payload_activity(
        self, candidates: list[tuple[StreamCharacterization, bytes]]
    ) -> ComplianceResult:
        idle = [
            stream.scid
            for stream, data in candidates
            if not data or data.count(data[0]) == len(data)
        ]
        details = f"{len(candidates) - len(idle)} of {len(candidates)} sub-channels "
        details += "carry audio payload."
        if idle:
            details += f" Idle: {', '.join(str(scid) for scid in idle)}."
        return self.results.ratio(
            "payload_activity",
            "Audio sub-channels carry payload",
            len(candidates) - len(idle),
            len(candidates),
            details,
            "Check the audio encoder feeding the idle sub-channels.",
            {"idle": str(len(idle))},
        )
