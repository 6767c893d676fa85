from __future__ import annotations

from dataclasses import dataclass
from typing import Final

SAMPLE_RATE: Final[int] = 8000
MSEC: Final[int] = 1000

PCMU_PAYLOAD_TYPE: Final[int] = 0

# Advertised in the INVITE SDP and used by the encoder for telephone-event
# packets. Both sides must read this constant.
DTMF_PAYLOAD_TYPE: Final[int] = 101

DTMF_TONE_MS: Final[int] = 250
DTMF_END_RETRANSMITS: Final[int] = 3

VALID_DTMF: Final[frozenset[str]] = frozenset("0123456789*#ABCD")

# RFC 4733 section 3.2 event codes.
DTMF_EVENT_CODES: Final[dict[str, int]] = {
    **{str(d): d for d in range(10)},
    "*": 10,
    "#": 11,
    "A": 12,
    "B": 13,
    "C": 14,
    "D": 15,
}


@dataclass(frozen=True, slots=True)
class MediaProfile:
    """Fixed parameters shared by the scenario builder and the capture encoder."""

    sample_rate: int = SAMPLE_RATE
    ptime_ms: int = 20
    audio_payload_type: int = PCMU_PAYLOAD_TYPE
    dtmf_payload_type: int = DTMF_PAYLOAD_TYPE
    dtmf_tone_ms: int = DTMF_TONE_MS
    dtmf_volume: int = 10

    def samples_for(self, duration_ms: int) -> int:
        return self.sample_rate * duration_ms // MSEC


def invalid_digits(digits: str) -> list[str]:
    """Return the characters of ``digits`` that are not legal DTMF symbols, in order."""

    return [ch for ch in digits if ch not in VALID_DTMF]


def event_code(digit: str) -> int:
    try:
        return DTMF_EVENT_CODES[digit]
    except KeyError:
        raise ValueError(f"Invalid DTMF digit: {digit!r}") from None
