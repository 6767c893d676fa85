from __future__ import annotations

from typing import Final

import numpy as np

ULAW_BIAS: Final[int] = 0x84
ULAW_CLIP: Final[int] = 32635


def ulaw_decode(ulaw_bytes: bytes) -> np.ndarray:
    """Decode G.711 mu-law bytes to PCM16 int16 array (used to read written captures back)."""

    data = np.frombuffer(ulaw_bytes, dtype=np.uint8)

    mu = np.bitwise_not(data)
    sign = np.bitwise_and(mu, 0x80)
    exponent = np.right_shift(np.bitwise_and(mu, 0x70), 4)
    mantissa = np.bitwise_and(mu, 0x0F)

    magnitude = ((mantissa.astype(np.int32) << 3) + ULAW_BIAS) << exponent.astype(np.int32)
    pcm = magnitude.astype(np.int32) - ULAW_BIAS
    pcm = np.where(sign != 0, -pcm, pcm)

    return pcm.astype(np.int16)


def ulaw_encode(pcm16: np.ndarray) -> bytes:
    """Encode PCM16 int16 array to G.711 mu-law bytes.

    Vectorized so a whole packet (or a whole silence run) is encoded in one call.
    """

    if pcm16.size == 0:
        return b""

    x = pcm16.astype(np.int32)
    sign = (x < 0).astype(np.int32)
    x = np.abs(x)

    x = np.minimum(x, ULAW_CLIP)
    x = x + ULAW_BIAS

    exponent = np.zeros_like(x)
    for exp in range(8):
        exponent = np.where(x >= (1 << (exp + 7)), exp, exponent)

    mantissa = (x >> (exponent + 3)) & 0x0F

    ulaw = np.bitwise_not((sign << 7) | (exponent << 4) | mantissa).astype(np.uint8)
    return ulaw.tobytes()


def ulaw_silence(samples: int) -> bytes:
    """Return ``samples`` bytes of mu-law encoded digital silence (0xFF)."""

    return ulaw_encode(np.zeros(samples, dtype=np.int16))
