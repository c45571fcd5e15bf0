# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""ETI(NI) frame and Fast Information Group decoding.

Decoding never raises on malformed input. Every problem found while walking
the buffer is recorded as a message in ``DecodedBuffer.errors`` and the parser
keeps whatever structure it could recover.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

ETI_FRAME_SIZE = 6144
FSYNC_EVEN = 0x073AB6
FSYNC_ODD = 0xF8C549
SYNC_WORDS: frozenset[int] = frozenset({FSYNC_EVEN, FSYNC_ODD})

# ERR + FSYNC + FC
FRAME_HEADER_SIZE = 8
EOH_SIZE = 4
EOF_SIZE = 4
TIST_SIZE = 4

FIB_SIZE = 32
FIB_DATA_SIZE = 30
FIG_END_MARKER = 0xFF

MAX_STREAMS = 64
CU_ADDRESS_SPACE = 864

# MID value -> transmission mode and FIC length in bytes.
TRANSMISSION_MODES: dict[int, tuple[str, int]] = {
    1: ("I", 96),
    2: ("II", 96),
    3: ("III", 128),
    0: ("IV", 96),
}

# EN 300 401 table 8: UEP sub-channel size in capacity units per table index.
UEP_SUBCHANNEL_SIZES: tuple[int, ...] = (
    16, 21, 24, 29, 35, 24, 29, 35, 42, 52,
    29, 35, 42, 52, 32, 42, 48, 58, 70, 40,
    52, 58, 70, 84, 48, 58, 70, 84, 104, 58,
    70, 84, 104, 64, 84, 96, 116, 140, 80, 104,
    116, 140, 168, 96, 116, 140, 168, 208, 116, 140,
    168, 208, 232, 128, 168, 192, 232, 280, 160, 208,
    280, 192, 280, 416,
)

USER_APP_SLIDESHOW = 0x002
USER_APP_TPEG = 0x004
USER_APP_SPI = 0x007

AUDIO_TYPE_DAB_PLUS = 0x3F

BufferKind = Literal["empty", "eti", "fic", "figs"]


@dataclass(frozen=True)
class FrameCharacterization:
    """Represent the FC field of an ETI(NI) frame."""

    fct: int
    ficf: bool
    nst: int
    fp: int
    mid: int
    fl: int


@dataclass(frozen=True)
class StreamCharacterization:
    """Represent one STC entry: sub-channel id, start address and length."""

    scid: int
    sad: int
    tpl: int
    stl: int


@dataclass(frozen=True)
class Fig:
    """Represent one Fast Information Group.

    Attributes:
        fig_type: FIG type from the header (0-7).
        payload: FIG data field following the header byte.
        fib_index: Index of the carrying FIB, ``None`` for raw FIG buffers.
    """

    fig_type: int
    payload: bytes
    fib_index: int | None = None

    @property
    def extension(self) -> int | None:
        if not self.payload:
            return None
        if self.fig_type == 0:
            return self.payload[0] & 0x1F
        if self.fig_type in (1, 2):
            return self.payload[0] & 0x07
        return None

    @property
    def pd(self) -> bool:
        """Return the FIG 0 P/D flag (32-bit service identifiers)."""
        return self.fig_type == 0 and bool(self.payload and self.payload[0] & 0x20)

    @property
    def charset(self) -> int | None:
        if self.fig_type != 1 or not self.payload:
            return None
        return self.payload[0] >> 4

    @property
    def body(self) -> bytes:
        return self.payload[1:]


@dataclass(frozen=True)
class DecodedBuffer:
    """Represent everything recovered from one input buffer.

    Attributes:
        kind: ``eti`` for a framed ETI(NI) frame, ``fic`` for FIB-aligned FIC
            data, ``figs`` for a bare FIG sequence, ``empty`` for no data.
        length: Input buffer length in bytes.
        sync_word: FSYNC value for ETI frames.
        fc: Frame characterization for ETI frames.
        streams: Stream characterizations for ETI frames.
        header_crc_ok: Header CRC outcome, ``None`` when not checkable.
        mst_crc_ok: MST CRC outcome, ``None`` when not checkable.
        fib_crc: CRC outcome per FIB.
        figs: Decoded FIGs in buffer order.
        stream_data: Sub-channel payloads, aligned with ``streams``.
        errors: Structural problems found while decoding.
        fig_errors: The subset of ``errors`` found while walking FIGs.
    """

    kind: BufferKind
    length: int
    sync_word: int | None = None
    fc: FrameCharacterization | None = None
    streams: tuple[StreamCharacterization, ...] = ()
    header_crc_ok: bool | None = None
    mst_crc_ok: bool | None = None
    fib_crc: tuple[bool, ...] = ()
    figs: tuple[Fig, ...] = ()
    stream_data: tuple[bytes, ...] = ()
    errors: tuple[str, ...] = ()
    fig_errors: tuple[str, ...] = ()

    @property
    def is_frame(self) -> bool:
        return self.kind == "eti"

    def figs_of(self, fig_type: int, extension: int) -> list[Fig]:
        return [
            fig
            for fig in self.figs
            if fig.fig_type == fig_type and fig.extension == extension
        ]


def crc16(data: bytes) -> int:
    """Return the inverted CRC-16/CCITT used by ETI headers and FIBs."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else crc << 1
            crc &= 0xFFFF
    return crc ^ 0xFFFF


def firecode(data: bytes) -> int:
    """Return the DAB+ superframe firecode (TS 102 563 clause 6)."""
    crc = 0
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x782F) if crc & 0x8000 else crc << 1
            crc &= 0xFFFF
    return crc


def has_superframe_sync(stream: bytes) -> bool:
    """Return whether a sub-channel frame starts a DAB+ audio superframe."""
    if len(stream) < 11 or not any(stream[2:11]):
        return False
    return struct.unpack_from(">H", stream, 0)[0] == firecode(stream[2:11])


def decode_buffer(buffer: bytes) -> DecodedBuffer:
    """Decode an ETI(NI) frame, FIB-aligned FIC data or a bare FIG sequence.

    Args:
        buffer: Raw bytes of one extracted frame or FIG structure.

    Returns:
        The decoded structure with any problems recorded in ``errors``.
    """
    buffer = bytes(buffer)
    if not buffer:
        return DecodedBuffer(kind="empty", length=0)
    if len(buffer) >= 4 and int.from_bytes(buffer[1:4], "big") in SYNC_WORDS:
        return _decode_frame(buffer)
    if len(buffer) % FIB_SIZE == 0:
        fib_crc = _fib_crcs(buffer)
        if any(fib_crc):
            figs, errors = _parse_fibs(buffer)
            return DecodedBuffer(
                kind="fic",
                length=len(buffer),
                fib_crc=fib_crc,
                figs=tuple(figs),
                errors=tuple(errors),
                fig_errors=tuple(errors),
            )
    figs, errors = parse_figs(buffer)
    return DecodedBuffer(
        kind="figs",
        length=len(buffer),
        figs=tuple(figs),
        errors=tuple(errors),
        fig_errors=tuple(errors),
    )


def parse_figs(
    data: bytes, fib_index: int | None = None
) -> tuple[list[Fig], list[str]]:
    """Walk a FIG sequence until the end marker or the end of data.

    Args:
        data: FIB data field or bare FIG bytes.
        fib_index: Index of the carrying FIB, for error messages.

    Returns:
        The decoded FIGs and structural error messages.
    """
    figs: list[Fig] = []
    errors: list[str] = []
    where = f"FIB {fib_index}" if fib_index is not None else "FIG data"
    pos = 0
    while pos < len(data):
        header = data[pos]
        if header == FIG_END_MARKER:
            break
        fig_type = header >> 5
        length = header & 0x1F
        if length == 0:
            if not any(data[pos:]):
                break
            errors.append(f"{where}: zero-length FIG type {fig_type} at offset {pos}")
            break
        if pos + 1 + length > len(data):
            errors.append(
                f"{where}: FIG type {fig_type} at offset {pos} declares {length} bytes "
                f"but only {len(data) - pos - 1} remain"
            )
            break
        figs.append(
            Fig(
                fig_type=fig_type,
                payload=data[pos + 1 : pos + 1 + length],
                fib_index=fib_index,
            )
        )
        pos += 1 + length
    return figs, errors


def _fib_crcs(fic: bytes) -> tuple[bool, ...]:
    results: list[bool] = []
    for start in range(0, len(fic) - FIB_SIZE + 1, FIB_SIZE):
        fib = fic[start : start + FIB_SIZE]
        stored = struct.unpack_from(">H", fib, FIB_DATA_SIZE)[0]
        results.append(crc16(fib[:FIB_DATA_SIZE]) == stored)
    return tuple(results)


def _parse_fibs(fic: bytes) -> tuple[list[Fig], list[str]]:
    figs: list[Fig] = []
    errors: list[str] = []
    for index, start in enumerate(range(0, len(fic) - FIB_SIZE + 1, FIB_SIZE)):
        fib_figs, fib_errors = parse_figs(
            fic[start : start + FIB_DATA_SIZE], fib_index=index
        )
        figs.extend(fib_figs)
        errors.extend(fib_errors)
    return figs, errors


def _decode_frame(frame: bytes) -> DecodedBuffer:
    errors: list[str] = []
    sync_word = int.from_bytes(frame[1:4], "big")
    if len(frame) < FRAME_HEADER_SIZE:
        errors.append(
            f"frame truncated before frame characterization ({len(frame)} bytes)"
        )
        return DecodedBuffer(
            kind="eti", length=len(frame), sync_word=sync_word, errors=tuple(errors)
        )

    fct, flags, fp_mid_fl = struct.unpack_from(">BBH", frame, 4)
    fc = FrameCharacterization(
        fct=fct,
        ficf=bool(flags & 0x80),
        nst=flags & 0x7F,
        fp=fp_mid_fl >> 13,
        mid=(fp_mid_fl >> 11) & 0x03,
        fl=fp_mid_fl & 0x07FF,
    )

    streams: list[StreamCharacterization] = []
    stc_end = FRAME_HEADER_SIZE + 4 * fc.nst
    for offset in range(FRAME_HEADER_SIZE, min(stc_end, len(frame) - 3), 4):
        word = struct.unpack_from(">I", frame, offset)[0]
        streams.append(
            StreamCharacterization(
                scid=word >> 26,
                sad=(word >> 16) & 0x03FF,
                tpl=(word >> 10) & 0x3F,
                stl=word & 0x03FF,
            )
        )
    if len(streams) < fc.nst:
        errors.append(
            f"frame truncated inside STC ({len(streams)} of {fc.nst} streams present)"
        )

    eoh_end = stc_end + EOH_SIZE
    header_crc_ok: bool | None = None
    if len(frame) >= eoh_end:
        stored = struct.unpack_from(">H", frame, eoh_end - 2)[0]
        header_crc_ok = crc16(frame[4 : eoh_end - 2]) == stored
    else:
        errors.append("frame truncated before end of header")

    fic_length = TRANSMISSION_MODES[fc.mid][1] if fc.ficf else 0
    mst_length = fic_length + sum(stream.stl * 8 for stream in streams)
    mst_end = eoh_end + mst_length

    fic = frame[eoh_end : eoh_end + fic_length]
    fib_crc: tuple[bool, ...] = ()
    figs: list[Fig] = []
    fig_errors: list[str] = []
    if fc.ficf:
        if len(fic) < fic_length:
            errors.append(
                f"frame truncated inside FIC ({len(fic)} of {fic_length} bytes)"
            )
        fic = fic[: len(fic) - len(fic) % FIB_SIZE]
        fib_crc = _fib_crcs(fic)
        figs, fig_errors = _parse_fibs(fic)
        errors.extend(fig_errors)

    stream_data: list[bytes] = []
    offset = eoh_end + fic_length
    for stream in streams:
        size = stream.stl * 8
        stream_data.append(frame[offset : offset + size])
        offset += size

    mst_crc_ok: bool | None = None
    if len(frame) >= mst_end + 2:
        stored = struct.unpack_from(">H", frame, mst_end)[0]
        mst_crc_ok = crc16(frame[eoh_end:mst_end]) == stored
    elif len(frame) >= eoh_end:
        errors.append(
            f"frame truncated inside MST (declared end {mst_end + EOF_SIZE}, "
            f"got {len(frame)} bytes)"
        )

    if errors:
        logger.warning(
            f"ETI frame decoded with structural problems (length={len(frame)} "
            f"errors={len(errors)})"
        )
    return DecodedBuffer(
        kind="eti",
        length=len(frame),
        sync_word=sync_word,
        fc=fc,
        streams=tuple(streams),
        header_crc_ok=header_crc_ok,
        mst_crc_ok=mst_crc_ok,
        fib_crc=fib_crc,
        figs=tuple(figs),
        stream_data=tuple(stream_data),
        errors=tuple(errors),
        fig_errors=tuple(fig_errors),
    )


def expected_frame_length(
    fc: FrameCharacterization, streams: tuple[StreamCharacterization, ...]
) -> int:
    """Return the FL value implied by the FIC flag, mode and stream lengths."""
    fic_words = TRANSMISSION_MODES[fc.mid][1] // 4 if fc.ficf else 0
    return fc.nst + 1 + fic_words + sum(stream.stl * 2 for stream in streams)


# FIG type 0 field decoders ---------------------------------------------------


@dataclass(frozen=True)
class EnsembleInfo:
    """Represent FIG 0/0 ensemble information."""

    eid: int
    change_flags: int
    al_flag: bool
    cif_count_high: int
    cif_count_low: int


@dataclass(frozen=True)
class SubChannel:
    """Represent one FIG 0/1 sub-channel organisation entry."""

    subchid: int
    start_address: int
    size: int
    long_form: bool


@dataclass(frozen=True)
class ServiceComponent:
    tmid: int
    component_type: int
    subchid: int
    primary: bool


@dataclass(frozen=True)
class Service:
    """Represent one FIG 0/2 service with its components."""

    sid: int
    components: tuple[ServiceComponent, ...]


@dataclass(frozen=True)
class CountryInfo:
    """Represent FIG 0/9 country, LTO and international table."""

    lto_half_hours: int
    ecc: int
    inter_table_id: int


@dataclass(frozen=True)
class DateTime:
    """Represent FIG 0/10 date and time."""

    mjd: int
    lsi: bool
    utc_long: bool
    hours: int
    minutes: int
    seconds: int = 0
    milliseconds: int = 0


@dataclass(frozen=True)
class UserApplication:
    """Represent one FIG 0/13 user application entry."""

    sid: int
    scids: int
    app_type: int
    data: bytes


@dataclass(frozen=True)
class LabelFig:
    """Represent a FIG 1 label with its identifier and character flags.

    Attributes:
        extension: FIG 1 extension (0 ensemble, 1 service, 4 component,
            5 data service).
        charset: Character set field of the FIG 1 header.
        identifier: Ensemble, service or component identifier.
        label: Sixteen label bytes in the signalled character set.
        char_flags: Short-label character flag field.
    """

    extension: int
    charset: int
    identifier: int
    label: bytes
    char_flags: int


def parse_ensemble_info(fig: Fig) -> EnsembleInfo | None:
    body = fig.body
    if len(body) < 4:
        return None
    eid, flags, low = struct.unpack_from(">HBB", body, 0)
    return EnsembleInfo(
        eid=eid,
        change_flags=flags >> 6,
        al_flag=bool(flags & 0x20),
        cif_count_high=flags & 0x1F,
        cif_count_low=low,
    )


def parse_subchannels(fig: Fig) -> tuple[list[SubChannel], list[str]]:
    """Decode FIG 0/1 sub-channel entries, short and long form."""
    body = fig.body
    entries: list[SubChannel] = []
    errors: list[str] = []
    pos = 0
    while pos < len(body):
        if pos + 3 > len(body):
            errors.append(f"FIG 0/1 entry truncated at offset {pos}")
            break
        word = struct.unpack_from(">H", body, pos)[0]
        subchid = word >> 10
        start_address = word & 0x03FF
        form = body[pos + 2]
        if form & 0x80:
            if pos + 4 > len(body):
                errors.append(f"FIG 0/1 long-form entry truncated at offset {pos}")
                break
            size = struct.unpack_from(">H", body, pos + 2)[0] & 0x03FF
            entries.append(SubChannel(subchid, start_address, size, long_form=True))
            pos += 4
            continue
        index = form & 0x3F
        entries.append(
            SubChannel(
                subchid, start_address, UEP_SUBCHANNEL_SIZES[index], long_form=False
            )
        )
        pos += 3
    return entries, errors


def parse_services(fig: Fig) -> tuple[list[Service], list[str]]:
    """Decode FIG 0/2 services and their component descriptions."""
    body = fig.body
    sid_size = 4 if fig.pd else 2
    services: list[Service] = []
    errors: list[str] = []
    pos = 0
    while pos < len(body):
        if pos + sid_size + 1 > len(body):
            errors.append(f"FIG 0/2 service entry truncated at offset {pos}")
            break
        sid = int.from_bytes(body[pos : pos + sid_size], "big")
        count = body[pos + sid_size] & 0x0F
        pos += sid_size + 1
        if pos + 2 * count > len(body):
            errors.append(
                f"FIG 0/2 service 0x{sid:X} declares {count} components past end of FIG"
            )
            break
        components: list[ServiceComponent] = []
        for _ in range(count):
            word = struct.unpack_from(">H", body, pos)[0]
            components.append(
                ServiceComponent(
                    tmid=word >> 14,
                    component_type=(word >> 8) & 0x3F,
                    subchid=(word >> 2) & 0x3F,
                    primary=bool(word & 0x02),
                )
            )
            pos += 2
        services.append(Service(sid=sid, components=tuple(components)))
    return services, errors


def parse_country_info(fig: Fig) -> CountryInfo | None:
    body = fig.body
    if len(body) < 3:
        return None
    lto = body[0] & 0x1F
    if body[0] & 0x20:
        lto = -lto
    return CountryInfo(lto_half_hours=lto, ecc=body[1], inter_table_id=body[2])


def parse_date_time(fig: Fig) -> DateTime | None:
    body = fig.body
    if len(body) < 4:
        return None
    word = struct.unpack_from(">I", body, 0)[0]
    utc_long = bool(word & 0x0800)
    seconds = milliseconds = 0
    if utc_long:
        if len(body) < 6:
            return None
        tail = struct.unpack_from(">H", body, 4)[0]
        seconds = tail >> 10
        milliseconds = tail & 0x03FF
    return DateTime(
        mjd=(word >> 14) & 0x1FFFF,
        lsi=bool(word & 0x2000),
        utc_long=utc_long,
        hours=(word >> 6) & 0x1F,
        minutes=word & 0x3F,
        seconds=seconds,
        milliseconds=milliseconds,
    )


def parse_user_applications(fig: Fig) -> tuple[list[UserApplication], list[str]]:
    """Decode FIG 0/13 user application entries."""
    body = fig.body
    sid_size = 4 if fig.pd else 2
    apps: list[UserApplication] = []
    errors: list[str] = []
    pos = 0
    while pos < len(body):
        if pos + sid_size + 1 > len(body):
            errors.append(f"FIG 0/13 entry truncated at offset {pos}")
            break
        sid = int.from_bytes(body[pos : pos + sid_size], "big")
        scids = body[pos + sid_size] >> 4
        count = body[pos + sid_size] & 0x0F
        pos += sid_size + 1
        for _ in range(count):
            if pos + 2 > len(body):
                errors.append(
                    f"FIG 0/13 application header truncated for SId 0x{sid:X}"
                )
                return apps, errors
            word = struct.unpack_from(">H", body, pos)[0]
            app_type = word >> 5
            data_length = word & 0x1F
            pos += 2
            if pos + data_length > len(body):
                errors.append(
                    f"FIG 0/13 application 0x{app_type:03X} data exceeds FIG "
                    f"for SId 0x{sid:X}"
                )
                return apps, errors
            apps.append(
                UserApplication(
                    sid=sid,
                    scids=scids,
                    app_type=app_type,
                    data=body[pos : pos + data_length],
                )
            )
            pos += data_length
    return apps, errors


_LABEL_IDENTIFIER_SIZES: dict[int, int] = {0: 2, 1: 2, 4: 3, 5: 4}


def parse_label(fig: Fig) -> LabelFig | None:
    """Decode a FIG 1 label, or return ``None`` if its length is inconsistent."""
    if fig.fig_type != 1 or not fig.payload:
        return None
    extension = fig.extension
    id_size = _LABEL_IDENTIFIER_SIZES.get(extension or 0)
    if id_size is None:
        return None
    body = fig.body
    if extension == 4 and body and body[0] & 0x80:
        id_size = 5
    if len(body) != id_size + 18:
        return None
    return LabelFig(
        extension=extension or 0,
        charset=fig.charset or 0,
        identifier=int.from_bytes(body[:id_size], "big"),
        label=body[id_size : id_size + 16],
        char_flags=struct.unpack_from(">H", body, id_size + 16)[0],
    )
