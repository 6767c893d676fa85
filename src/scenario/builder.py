"""Scenario builder: the call-flow steps and the media timeline, kept in step."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Final

from config.settings import Settings, get_settings
from scenario import templates
from scenario.errors import ConfigError, ScenarioCompiledError, ValidationError
from scenario.serializer import CompiledArtifacts, render_document, write_artifacts
from scenario.steps import Exec, Pause, Receive, Send, Step
from scenario.timeline import Dtmf, MediaEncoder, MediaTimeline, Silence
from telephony.dtmf import MSEC, invalid_digits
from telephony.pcap import PcapMediaEncoder

LOGGER = logging.getLogger(__name__)

INVITE_RETRANS_MS: Final[int] = 500

_NON_WORD = re.compile(r"\W+", re.ASCII)


def base_name_for(name: str) -> str:
    """Filesystem-safe base name: lower-cased, non-word runs collapsed to ``_``."""

    return _NON_WORD.sub("_", name.lower())


def parse_endpoint(value: str | None, label: str) -> tuple[str, int]:
    """Parse ``host:port`` (``[v6addr]:port`` for IPv6) into a ``(host, port)`` pair."""

    if not value:
        raise ConfigError(f"Must include {label} IP:PORT")

    host, sep, port = str(value).rpartition(":")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not sep or not host:
        raise ConfigError(f"{label.capitalize()} must be HOST:PORT, got {value!r}")

    try:
        port_number = int(port)
    except ValueError:
        raise ConfigError(f"{label.capitalize()} port must be an integer, got {port!r}") from None
    if not 0 < port_number < 65536:
        raise ConfigError(f"{label.capitalize()} port out of range: {port_number}")

    return host, port_number


def _milliseconds(seconds: float, what: str) -> int:
    if seconds < 0:
        raise ValidationError(f"{what} must not be negative: {seconds}")
    return round(seconds * MSEC)


class Scenario:
    """Build a SIPp scenario one call-flow action at a time.

    Every action appends to the step list. Actions that take wall-clock time
    (``sleep`` and ``send_digits``) also append media tokens of the same total
    duration, so the script and the pcap it plays stay aligned. ``compile``
    is terminal; the scenario rejects further calls once it has succeeded.
    """

    def __init__(
        self,
        name: str,
        source: str | None = None,
        destination: str | None = None,
        from_user: str | None = None,
        *,
        settings: Settings | None = None,
        encoder: MediaEncoder | None = None,
    ) -> None:
        self.settings = settings or get_settings()

        self.source = parse_endpoint(source, "source")
        self.destination = parse_endpoint(destination, "destination")

        self.name = name
        self.base_name = base_name_for(name or "")
        if not self.base_name.strip("_"):
            raise ConfigError(f"Scenario name {name!r} does not yield a usable file name")

        self.from_user = from_user or self.settings.default_from_user
        self.media_profile = self.settings.media_profile()
        self.encoder = encoder or PcapMediaEncoder(self.source, self.destination, self.media_profile)

        self.media = MediaTimeline()
        self._steps: list[Step] = []
        self._compiled = False

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def scenario_filename(self) -> str:
        return f"{self.base_name}.{self.settings.scenario_extension}"

    @property
    def media_filename(self) -> str:
        return f"{self.base_name}.{self.settings.media_extension}"

    def _ensure_open(self) -> None:
        if self._compiled:
            raise ScenarioCompiledError(f"Scenario {self.name!r} has already been compiled")

    def _append(self, step: Step) -> None:
        self._ensure_open()
        self._steps.append(step)
        LOGGER.debug("%s: appended %r", self.base_name, step)

    # Signaling

    def invite(self) -> None:
        self._append(Send(templates.invite_message(self.from_user), retrans=INVITE_RETRANS_MS))

    def receive(
        self,
        *,
        response: int | None = None,
        request: str | None = None,
        optional: bool = False,
        rrs: bool = False,
    ) -> None:
        self._append(Receive(response=response, request=request, optional=optional, rrs=rrs))

    def receive_trying(self, optional: bool = True) -> None:
        self.receive(response=100, optional=optional)

    def receive_ringing(self, optional: bool = True) -> None:
        self.receive(response=180, optional=optional)

    def receive_progress(self, optional: bool = True) -> None:
        self.receive(response=183, optional=optional)

    def receive_answer(self) -> None:
        # rrs makes the Record-Route set available to later messages as [routes].
        self.receive(response=200, optional=False, rrs=True)

    receive_100 = receive_trying
    receive_180 = receive_ringing
    receive_183 = receive_progress
    receive_200 = receive_answer

    def ack_answer(self) -> None:
        self._append(Send(templates.ack_message(self.from_user)))
        self.start_media()

    def start_media(self) -> None:
        self._append(Exec(play_pcap_audio=self.media_filename))

    def send_bye(self) -> None:
        self._append(Send(templates.bye_message()))

    def receive_bye(self) -> None:
        self.receive(request="BYE", optional=False)

    def ack_bye(self) -> None:
        self._append(Send(templates.ok_to_bye_message()))

    # Timed actions

    def sleep(self, seconds: float) -> None:
        self._ensure_open()
        duration_ms = _milliseconds(seconds, "Sleep duration")
        self._append(Pause(duration_ms))
        self.media.append(Silence(duration_ms))

    def send_digits(self, digits: str, delay: float | None = None) -> None:
        """Send DTMF ``digits`` (0-9, *, #, A-D), each followed by ``delay`` seconds of silence.

        The script pauses twice the delay per digit: one delay for the tone and
        one for the gap, which matches the capture only while the encoder's
        tone length equals the delay.
        """

        self._ensure_open()
        digits = str(digits)
        bad = invalid_digits(digits)
        if bad:
            raise ValidationError(f"Invalid DTMF digit requested: {bad[0]!r}")

        if delay is None:
            delay = self.settings.default_digit_delay
        delay_ms = _milliseconds(delay, "Inter-digit delay")
        if delay_ms != self.media_profile.dtmf_tone_ms:
            LOGGER.warning(
                "%s: inter-digit delay %d ms differs from the %d ms DTMF tone; "
                "script and media timing will drift",
                self.base_name,
                delay_ms,
                self.media_profile.dtmf_tone_ms,
            )

        for digit in digits:
            self.media.append(Dtmf(digit))
            self.media.append(Silence(delay_ms))
            self._append(Pause(delay_ms * 2))

    # Output

    def to_xml(self) -> str:
        return render_document(self.name, self._steps)

    def compile(self, output_dir: str | Path | None = None) -> CompiledArtifacts:
        """Write ``<base_name>.xml`` and ``<base_name>.pcap`` into ``output_dir``.

        Both artifacts are produced in memory before either is written.
        """

        self._ensure_open()
        directory = Path(output_dir) if output_dir is not None else self.settings.output_dir

        document = self.to_xml()
        media = self.media.compile(self.encoder)

        artifacts = write_artifacts(
            document,
            media,
            scenario_path=directory / self.scenario_filename,
            media_path=directory / self.media_filename,
        )
        self._compiled = True
        return artifacts
