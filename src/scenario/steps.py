from __future__ import annotations

from dataclasses import dataclass

from scenario.errors import ValidationError


@dataclass(frozen=True, slots=True)
class Send:
    message: str
    retrans: int | None = None


@dataclass(frozen=True, slots=True)
class Receive:
    """Expect either a response status code or a request method, never both."""

    response: int | None = None
    request: str | None = None
    optional: bool = False
    rrs: bool = False

    def __post_init__(self) -> None:
        if self.response is None and self.request is None:
            raise ValidationError("Receive must include either a response or a request")
        if self.response is not None and self.request is not None:
            raise ValidationError("Receive must not include both a response and a request")


@dataclass(frozen=True, slots=True)
class Pause:
    milliseconds: int

    def __post_init__(self) -> None:
        if self.milliseconds < 0:
            raise ValidationError(f"Pause must not be negative: {self.milliseconds} ms")


@dataclass(frozen=True, slots=True)
class Exec:
    play_pcap_audio: str


Step = Send | Receive | Pause | Exec
