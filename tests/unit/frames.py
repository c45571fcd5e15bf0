# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Builders for synthetic ETI(NI) frames, FIBs and FIGs used by unit tests."""

from datetime import date

from dabcheck.eti import (
    ETI_FRAME_SIZE,
    FIB_DATA_SIZE,
    FSYNC_EVEN,
    TRANSMISSION_MODES,
    crc16,
    firecode,
)

MJD_EPOCH = date(1858, 11, 17)


def mjd(day: date) -> int:
    return (day - MJD_EPOCH).days


def fig(fig_type: int, payload: bytes) -> bytes:
    return bytes([(fig_type << 5) | len(payload)]) + payload


def fig0(extension: int, body: bytes, pd: bool = False) -> bytes:
    return fig(0, bytes([(0x20 if pd else 0x00) | extension]) + body)


def fig0_0(
    eid: int, change_flags: int = 0, cif_high: int = 0, cif_low: int = 0
) -> bytes:
    return fig0(
        0,
        eid.to_bytes(2, "big") + bytes([(change_flags << 6) | cif_high, cif_low]),
    )


def subchannel_long(subchid: int, start: int, size: int) -> bytes:
    word = (subchid << 10) | start
    return word.to_bytes(2, "big") + (0x8000 | size).to_bytes(2, "big")


def subchannel_short(subchid: int, start: int, table_index: int) -> bytes:
    word = (subchid << 10) | start
    return word.to_bytes(2, "big") + bytes([table_index & 0x3F])


def fig0_1(*entries: bytes) -> bytes:
    return fig0(1, b"".join(entries))


def fig0_2(
    sid: int, components: list[tuple[int, int, int, bool]], pd: bool = False
) -> bytes:
    """Build FIG 0/2 for one service; components are (TMId, type, SubChId, P/S)."""
    body = sid.to_bytes(4 if pd else 2, "big") + bytes([len(components)])
    for tmid, component_type, subchid, primary in components:
        word = (tmid << 14) | (component_type << 8) | (subchid << 2)
        if primary:
            word |= 0x02
        body += word.to_bytes(2, "big")
    return fig0(2, body, pd=pd)


def fig0_9(lto_half_hours: int, ecc: int, inter_table_id: int = 0x01) -> bytes:
    sign = 0x20 if lto_half_hours < 0 else 0x00
    return fig0(9, bytes([sign | abs(lto_half_hours), ecc, inter_table_id]))


def fig0_10(
    mjd_value: int, hours: int, minutes: int, seconds: int | None = None
) -> bytes:
    word = (mjd_value << 14) | (hours << 6) | minutes
    tail = b""
    if seconds is not None:
        word |= 0x0800
        tail = (seconds << 10).to_bytes(2, "big")
    return fig0(10, word.to_bytes(4, "big") + tail)


def fig0_13(sid: int, apps: list[tuple[int, bytes]], scids: int = 0) -> bytes:
    body = sid.to_bytes(2, "big") + bytes([(scids << 4) | len(apps)])
    for app_type, data in apps:
        body += ((app_type << 5) | len(data)).to_bytes(2, "big") + data
    return fig0(13, body)


def fig1(
    extension: int,
    identifier: int,
    label: bytes,
    charset: int = 0x00,
    char_flags: int = 0xFF00,
) -> bytes:
    id_size = 4 if extension == 5 else 2
    padded = label[:16].ljust(16, b" ")
    body = identifier.to_bytes(id_size, "big") + padded + char_flags.to_bytes(2, "big")
    return fig(1, bytes([(charset << 4) | extension]) + body)


def fib(*figs: bytes, corrupt_crc: bool = False) -> bytes:
    data = b"".join(figs)
    if len(data) < FIB_DATA_SIZE:
        data += b"\xff"
    data = data.ljust(FIB_DATA_SIZE, b"\x00")
    assert len(data) == FIB_DATA_SIZE
    crc = crc16(data)
    if corrupt_crc:
        crc ^= 0xFFFF
    return data + crc.to_bytes(2, "big")


def fic(*fibs: bytes, mid: int = 1) -> bytes:
    count = TRANSMISSION_MODES[mid][1] // 32
    blocks = list(fibs) + [fib() for _ in range(count - len(fibs))]
    return b"".join(blocks[:count])


def superframe_start(size: int) -> bytes:
    """Return a sub-channel frame that opens a DAB+ audio superframe."""
    data = bytearray((index * 37 + 11) % 256 for index in range(size))
    data[2:11] = bytes([0x41, 0x12, 0x7E, 0x03, 0x99, 0x20, 0x5A, 0x10, 0x88])
    data[0:2] = firecode(bytes(data[2:11])).to_bytes(2, "big")
    return bytes(data)


def eti_frame(
    fic_data: bytes = b"",
    streams: list[tuple[int, bytes]] | None = None,
    mid: int = 1,
    fct: int = 0,
    fsync: int = FSYNC_EVEN,
    fl: int | None = None,
    corrupt_header_crc: bool = False,
    corrupt_mst_crc: bool = False,
) -> bytes:
    """Build one padded ETI(NI) frame.

    Args:
        fic_data: FIC bytes; empty clears FICF.
        streams: (SubChId, payload) pairs; payload lengths must be multiples of 8.
        mid: Mode identity.
        fct: Frame count.
        fsync: Sync word.
        fl: Frame length override.
        corrupt_header_crc: Store an inverted header CRC.
        corrupt_mst_crc: Store an inverted MST CRC.
    """
    streams = streams or []
    ficf = bool(fic_data)
    stc = b""
    sad = 0
    for scid, payload in streams:
        assert len(payload) % 8 == 0
        stl = len(payload) // 8
        stc += ((scid << 26) | (sad << 16) | stl).to_bytes(4, "big")
        sad += stl
    if fl is None:
        stream_words = sum(len(payload) // 4 for _, payload in streams)
        fl = len(streams) + 1 + len(fic_data) // 4 + stream_words
    fc = bytes([fct, (0x80 if ficf else 0x00) | len(streams)])
    fc += ((mid << 11) | fl).to_bytes(2, "big")
    mnsc = b"\x00\x00"
    header_crc = crc16(fc + stc + mnsc)
    if corrupt_header_crc:
        header_crc ^= 0xFFFF
    mst = fic_data + b"".join(payload for _, payload in streams)
    mst_crc = crc16(mst)
    if corrupt_mst_crc:
        mst_crc ^= 0xFFFF
    frame = (
        b"\xff"
        + fsync.to_bytes(3, "big")
        + fc
        + stc
        + mnsc
        + header_crc.to_bytes(2, "big")
        + mst
        + mst_crc.to_bytes(2, "big")
        + b"\xff\xff"
        + b"\xff\xff\xff\xff"
    )
    return frame.ljust(ETI_FRAME_SIZE, b"\x55")


SERVICE_ID = 0xE1C0
ENSEMBLE_ID = 0x4FFF


def compliant_fic(day: date = date(2026, 10, 18)) -> bytes:
    """Return a mode I FIC describing one DAB+ service with SlideShow."""
    return fic(
        fib(
            fig0_0(ENSEMBLE_ID),
            fig0_1(subchannel_long(1, 0, 72)),
            fig0_2(SERVICE_ID, [(0, 0x3F, 1, True)]),
        ),
        fib(fig1(1, SERVICE_ID, b"Thai Radio")),
        fib(
            fig0_13(SERVICE_ID, [(0x002, bytes([0x0C, 0x3C]))]),
            fig0_9(14, 0xE8),
            fig0_10(mjd(day), 9, 30),
        ),
    )


def compliant_frame(day: date = date(2026, 10, 18)) -> bytes:
    return eti_frame(compliant_fic(day), streams=[(1, superframe_start(144))])
