from __future__ import annotations

import secrets
import struct
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class RtpPacket:
    payload_type: int
    sequence: int
    timestamp: int
    ssrc: int
    marker: bool
    payload: bytes


@dataclass(frozen=True, slots=True)
class TelephoneEvent:
    event: int
    end: bool
    volume: int
    duration: int


def parse_rtp_packet(data: bytes) -> RtpPacket:
    """Parse a minimal RTP packet (no CSRC, no header extensions).

    Raises:
        ValueError: if packet is too short or uses unsupported header features.
    """

    if len(data) < 12:
        raise ValueError("RTP packet too short")

    b0 = data[0]
    version = b0 >> 6
    padding = (b0 >> 5) & 1
    extension = (b0 >> 4) & 1
    csrc_count = b0 & 0x0F

    if version != 2:
        raise ValueError(f"Unsupported RTP version: {version}")
    if padding or extension or csrc_count:
        raise ValueError("RTP features not supported (padding/extension/CSRC)")

    b1 = data[1]
    marker = bool((b1 >> 7) & 1)
    payload_type = b1 & 0x7F

    sequence, timestamp, ssrc = struct.unpack("!HII", data[2:12])

    return RtpPacket(
        payload_type=payload_type,
        sequence=sequence,
        timestamp=timestamp,
        ssrc=ssrc,
        marker=marker,
        payload=data[12:],
    )


def build_rtp_packet(
    *,
    payload_type: int,
    sequence: int,
    timestamp: int,
    ssrc: int,
    marker: bool,
    payload: bytes,
) -> bytes:
    """Build a minimal RTP packet (no CSRC, no extensions)."""

    b0 = 2 << 6  # V=2, P=0, X=0, CC=0
    b1 = ((1 if marker else 0) << 7) | (payload_type & 0x7F)

    header = struct.pack(
        "!BBHII",
        b0,
        b1,
        sequence & 0xFFFF,
        timestamp & 0xFFFFFFFF,
        ssrc & 0xFFFFFFFF,
    )
    return header + payload


def build_telephone_event(*, event: int, end: bool, volume: int, duration: int) -> bytes:
    """Build an RFC 4733 telephone-event payload (4 bytes)."""

    flags = ((1 if end else 0) << 7) | (volume & 0x3F)
    return struct.pack("!BBH", event & 0xFF, flags, duration & 0xFFFF)


def parse_telephone_event(payload: bytes) -> TelephoneEvent:
    """Read back an event payload written by :func:`build_telephone_event`."""

    if len(payload) < 4:
        raise ValueError("telephone-event payload too short")

    event, flags, duration = struct.unpack("!BBH", payload[:4])
    return TelephoneEvent(event=event, end=bool(flags >> 7), volume=flags & 0x3F, duration=duration)


@dataclass(slots=True)
class RtpStream:
    """Outbound RTP state for a single SSRC.

    ``sequence`` advances by one per packet and wraps at 16 bits, ``timestamp``
    advances by sample count and wraps at 32 bits.
    """

    ssrc: int = field(default_factory=lambda: secrets.randbits(32))
    sequence: int = field(default_factory=lambda: secrets.randbits(16))
    timestamp: int = field(default_factory=lambda: secrets.randbits(32))

    def packet(
        self,
        *,
        payload_type: int,
        payload: bytes,
        marker: bool = False,
        timestamp: int | None = None,
    ) -> bytes:
        raw = build_rtp_packet(
            payload_type=payload_type,
            sequence=self.sequence,
            timestamp=self.timestamp if timestamp is None else timestamp,
            ssrc=self.ssrc,
            marker=marker,
            payload=payload,
        )
        self.sequence = (self.sequence + 1) & 0xFFFF
        return raw

    def advance(self, samples: int) -> None:
        self.timestamp = (self.timestamp + samples) & 0xFFFFFFFF
