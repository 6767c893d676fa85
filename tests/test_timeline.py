from __future__ import annotations

import pytest

from scenario.errors import ValidationError
from scenario.timeline import Dtmf, MediaTimeline, Silence


class RecordingEncoder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def encode(self, tokens) -> bytes:
        self.calls.append(tuple(tokens))
        return b"capture"


def test_timeline_preserves_append_order() -> None:
    timeline = MediaTimeline()
    timeline.append(Silence(100))
    timeline.extend([Dtmf("1"), Silence(250)])

    assert len(timeline) == 3
    assert list(timeline) == [Silence(100), Dtmf("1"), Silence(250)]
    assert timeline.tokens == (Silence(100), Dtmf("1"), Silence(250))


def test_tokens_snapshot_is_immutable() -> None:
    timeline = MediaTimeline()
    snapshot = timeline.tokens
    timeline.append(Silence(1))
    assert snapshot == ()


def test_nominal_duration_counts_tones() -> None:
    timeline = MediaTimeline()
    timeline.extend([Silence(1000), Dtmf("5"), Silence(250), Dtmf("#"), Silence(250)])
    assert timeline.nominal_duration_ms(tone_ms=250) == 2000


def test_compile_delegates_to_encoder_once() -> None:
    timeline = MediaTimeline()
    timeline.append(Dtmf("9"))
    encoder = RecordingEncoder()

    assert timeline.compile(encoder) == b"capture"
    assert encoder.calls == [(Dtmf("9"),)]


@pytest.mark.parametrize("digit", ["Z", "", "12", "a"])
def test_dtmf_token_rejects_unknown_digits(digit: str) -> None:
    with pytest.raises(ValidationError):
        Dtmf(digit)


@pytest.mark.parametrize("duration", [-40, 1.5, True])
def test_silence_token_rejects_bad_durations(duration) -> None:
    with pytest.raises(ValidationError):
        Silence(duration)


def test_invalid_tokens_never_reach_the_timeline() -> None:
    timeline = MediaTimeline()
    with pytest.raises(ValidationError):
        timeline.append(Dtmf("Z"))
    with pytest.raises(ValidationError):
        timeline.extend([Silence(20), Silence(-40)])

    assert len(timeline) == 0
    assert timeline.nominal_duration_ms(tone_ms=250) == 0
