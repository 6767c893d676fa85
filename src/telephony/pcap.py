"""libpcap writer for the RTP media replayed by SIPp's ``play_pcap_audio``.

Silence is packetized as PCMU, DTMF as RFC 4733 telephone-events. Each RTP
packet is wrapped in Ethernet/IPv4/UDP frames addressed from the scenario's
source to its destination; SIPp rewrites the addresses at replay time, so only
the payloads and the capture timestamps matter to the call.
"""

from __future__ import annotations

import ipaddress
import logging
import struct
import time
from collections.abc import Iterable
from typing import Final

from scenario.timeline import Dtmf, MediaToken, Silence
from telephony.dtmf import DTMF_END_RETRANSMITS, MediaProfile, event_code
from telephony.g711 import ulaw_silence
from telephony.rtp import RtpStream, build_telephone_event

LOGGER = logging.getLogger(__name__)

PCAP_MAGIC: Final[int] = 0xA1B2C3D4
PCAP_SNAPLEN: Final[int] = 65535
LINKTYPE_ETHERNET: Final[int] = 1
ETHERTYPE_IPV4: Final[int] = 0x0800
IPPROTO_UDP: Final[int] = 17
FALLBACK_IPV4: Final[str] = "127.0.0.1"


def pcap_global_header(*, snaplen: int = PCAP_SNAPLEN, linktype: int = LINKTYPE_ETHERNET) -> bytes:
    return struct.pack("<IHHiIII", PCAP_MAGIC, 2, 4, 0, 0, snaplen, linktype)


def pcap_record(frame: bytes, ts_usec: int) -> bytes:
    sec, usec = divmod(ts_usec, 1_000_000)
    return struct.pack("<IIII", sec, usec, len(frame), len(frame)) + frame


def ipv4_checksum(header: bytes) -> int:
    total = sum(struct.unpack(f"!{len(header) // 2}H", header))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def ipv4_address(host: str) -> bytes:
    """Pack ``host`` as an IPv4 address, falling back to loopback for names and IPv6."""

    try:
        return ipaddress.IPv4Address(host).packed
    except ValueError:
        LOGGER.debug("Host %r is not an IPv4 literal; using %s in the capture", host, FALLBACK_IPV4)
        return ipaddress.IPv4Address(FALLBACK_IPV4).packed


def udp_frame(
    *,
    src: tuple[bytes, int],
    dst: tuple[bytes, int],
    payload: bytes,
    ident: int,
) -> bytes:
    """Wrap ``payload`` in Ethernet, IPv4 and UDP headers (UDP checksum left at zero)."""

    src_ip, src_port = src
    dst_ip, dst_port = dst

    udp = struct.pack("!HHHH", src_port, dst_port, 8 + len(payload), 0)
    total_length = 20 + len(udp) + len(payload)

    ip = struct.pack(
        "!BBHHHBBH4s4s",
        0x45,  # version 4, IHL 5
        0,
        total_length,
        ident & 0xFFFF,
        0x4000,  # don't fragment
        64,
        IPPROTO_UDP,
        0,
        src_ip,
        dst_ip,
    )
    ip = ip[:10] + struct.pack("!H", ipv4_checksum(ip)) + ip[12:]

    ethernet = b"\x00" * 12 + struct.pack("!H", ETHERTYPE_IPV4)
    return ethernet + ip + udp + payload


class PcapMediaEncoder:
    """Encode a media timeline into a libpcap capture."""

    def __init__(
        self,
        source: tuple[str, int],
        destination: tuple[str, int],
        profile: MediaProfile | None = None,
        *,
        ssrc: int | None = None,
        start_time: float | None = None,
    ) -> None:
        self.profile = profile or MediaProfile()
        self._src = (ipv4_address(source[0]), source[1])
        self._dst = (ipv4_address(destination[0]), destination[1])
        self._ssrc = ssrc
        self._start_time = start_time

    def encode(self, tokens: Iterable[MediaToken]) -> bytes:
        stream = RtpStream() if self._ssrc is None else RtpStream(ssrc=self._ssrc)
        start_time = self._start_time if self._start_time is not None else time.time()
        writer = _CaptureWriter(self.profile, self._src, self._dst, stream, start_time)
        for token in tokens:
            if isinstance(token, Silence):
                writer.silence(token.duration_ms)
            elif isinstance(token, Dtmf):
                writer.dtmf(token.digit)
            else:
                raise TypeError(f"Unsupported media token: {token!r}")

        LOGGER.debug(
            "Encoded %d RTP packets covering %d ms",
            writer.packets,
            writer.elapsed_samples * 1000 // self.profile.sample_rate,
        )
        return b"".join(writer.chunks)


class _CaptureWriter:
    def __init__(
        self,
        profile: MediaProfile,
        src: tuple[bytes, int],
        dst: tuple[bytes, int],
        stream: RtpStream,
        start_time: float,
    ) -> None:
        self.profile = profile
        self._src = src
        self._dst = dst
        self.stream = stream
        self.start_usec = int(start_time * 1_000_000)
        self.elapsed_samples = 0
        self.packets = 0
        self.talkspurt = True
        self.chunks: list[bytes] = [pcap_global_header()]

    def _ts_usec(self, samples: int) -> int:
        return self.start_usec + samples * 1_000_000 // self.profile.sample_rate

    def _emit(self, rtp: bytes, at_samples: int) -> None:
        frame = udp_frame(src=self._src, dst=self._dst, payload=rtp, ident=self.packets)
        self.chunks.append(pcap_record(frame, self._ts_usec(at_samples)))
        self.packets += 1

    def silence(self, duration_ms: int) -> None:
        remaining = self.profile.samples_for(duration_ms)
        frame_samples = self.profile.samples_for(self.profile.ptime_ms)

        while remaining > 0:
            samples = min(frame_samples, remaining)
            rtp = self.stream.packet(
                payload_type=self.profile.audio_payload_type,
                payload=ulaw_silence(samples),
                marker=self.talkspurt,
            )
            self._emit(rtp, self.elapsed_samples)
            self.talkspurt = False
            self.stream.advance(samples)
            self.elapsed_samples += samples
            remaining -= samples

    def dtmf(self, digit: str) -> None:
        code = event_code(digit)
        tone_samples = self.profile.samples_for(self.profile.dtmf_tone_ms)
        frame_samples = self.profile.samples_for(self.profile.ptime_ms)
        event_timestamp = self.stream.timestamp

        offset = 0
        first = True
        while offset < tone_samples:
            offset = min(offset + frame_samples, tone_samples)
            # Each event packet is sent once the duration it reports has elapsed.
            sent_at = self.elapsed_samples + offset
            end = offset == tone_samples
            payload = build_telephone_event(
                event=code,
                end=end,
                volume=self.profile.dtmf_volume,
                duration=offset,
            )
            for _ in range(DTMF_END_RETRANSMITS if end else 1):
                rtp = self.stream.packet(
                    payload_type=self.profile.dtmf_payload_type,
                    payload=payload,
                    marker=first,
                    timestamp=event_timestamp,
                )
                self._emit(rtp, sent_at)
                first = False

        self.stream.advance(tone_samples)
        self.elapsed_samples += tone_samples
        self.talkspurt = True
