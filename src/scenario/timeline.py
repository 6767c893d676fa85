from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol

from scenario.errors import ValidationError
from telephony.dtmf import VALID_DTMF


@dataclass(frozen=True, slots=True)
class Silence:
    duration_ms: int

    def __post_init__(self) -> None:
        if isinstance(self.duration_ms, bool) or not isinstance(self.duration_ms, int):
            raise ValidationError(f"Silence duration must be whole milliseconds, got {self.duration_ms!r}")
        if self.duration_ms < 0:
            raise ValidationError(f"Silence duration cannot be negative, got {self.duration_ms}")


@dataclass(frozen=True, slots=True)
class Dtmf:
    digit: str

    def __post_init__(self) -> None:
        if not isinstance(self.digit, str) or self.digit not in VALID_DTMF:
            raise ValidationError(f"Unsupported DTMF digit {self.digit!r}")


MediaToken = Silence | Dtmf


class MediaEncoder(Protocol):
    def encode(self, tokens: Iterable[MediaToken]) -> bytes: ...


class MediaTimeline:
    """Ordered, append-only sequence of media tokens for one scenario.

    The timeline only records order and nominal durations. Turning tokens into
    packets is left to a :class:`MediaEncoder`.
    """

    def __init__(self) -> None:
        self._tokens: list[MediaToken] = []

    def append(self, token: MediaToken) -> None:
        self._tokens.append(token)

    def extend(self, tokens: Iterable[MediaToken]) -> None:
        self._tokens.extend(tokens)

    @property
    def tokens(self) -> tuple[MediaToken, ...]:
        return tuple(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[MediaToken]:
        return iter(self._tokens)

    def nominal_duration_ms(self, tone_ms: int) -> int:
        """Total duration, counting each DTMF token as ``tone_ms``."""

        total = 0
        for token in self._tokens:
            total += token.duration_ms if isinstance(token, Silence) else tone_ms
        return total

    def compile(self, encoder: MediaEncoder) -> bytes:
        return encoder.encode(self.tokens)
