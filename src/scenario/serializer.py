"""Render scenario steps as a SIPp XML script and write compiled artifacts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from xml.sax.saxutils import escape

from scenario.errors import ScenarioIOError
from scenario.steps import Exec, Pause, Receive, Send, Step

LOGGER = logging.getLogger(__name__)

INDENT = "  "


@dataclass(frozen=True, slots=True)
class CompiledArtifacts:
    scenario_path: Path
    media_path: Path


def _attr(value: object) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return escape(str(value), {'"': "&quot;"})


def _attrs(pairs: Iterable[tuple[str, object]]) -> str:
    return "".join(f' {key}="{_attr(value)}"' for key, value in pairs if value is not None)


def _cdata(text: str) -> str:
    # "]]>" cannot appear inside a CDATA section; split it across two sections.
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def render_step(step: Step) -> str:
    if isinstance(step, Send):
        # SIPp needs the CDATA block on its own lines to parse the message.
        return (
            f"{INDENT}<send{_attrs([('retrans', step.retrans)])}>\n"
            f"{_cdata(step.message)}\n"
            f"{INDENT}</send>"
        )
    if isinstance(step, Receive):
        attrs = [
            ("request", step.request),
            ("response", step.response),
            ("optional", step.optional),
            ("rrs", True if step.rrs else None),
        ]
        return f"{INDENT}<recv{_attrs(attrs)}/>"
    if isinstance(step, Pause):
        return f"{INDENT}<pause{_attrs([('milliseconds', step.milliseconds)])}/>"
    if isinstance(step, Exec):
        return (
            f"{INDENT}<nop>\n"
            f"{INDENT * 2}<action>\n"
            f"{INDENT * 3}<exec{_attrs([('play_pcap_audio', step.play_pcap_audio)])}/>\n"
            f"{INDENT * 2}</action>\n"
            f"{INDENT}</nop>"
        )
    raise TypeError(f"Unsupported scenario step: {step!r}")


def render_document(name: str, steps: Iterable[Step]) -> str:
    """Render ``steps`` in order as a complete SIPp scenario document."""

    lines = ['<?xml version="1.0"?>', f"<scenario{_attrs([('name', name)])}>"]
    lines.extend(render_step(step) for step in steps)
    lines.append("</scenario>")
    return "\n".join(lines) + "\n"


def write_artifacts(
    document: str,
    media: bytes,
    *,
    scenario_path: Path,
    media_path: Path,
) -> CompiledArtifacts:
    """Write the script and the capture.

    If the capture cannot be written, the script written just before it is
    removed so a half-compiled scenario is never left on disk.
    """

    try:
        scenario_path.parent.mkdir(parents=True, exist_ok=True)
        scenario_path.write_text(document, encoding="utf-8")
    except OSError as exc:
        raise ScenarioIOError(f"Failed to write scenario script {scenario_path}: {exc}") from exc

    try:
        media_path.parent.mkdir(parents=True, exist_ok=True)
        media_path.write_bytes(media)
    except OSError as exc:
        scenario_path.unlink(missing_ok=True)
        if not media_path.is_dir():
            media_path.unlink(missing_ok=True)
        raise ScenarioIOError(f"Failed to write media capture {media_path}: {exc}") from exc

    LOGGER.info("Wrote scenario script %s", scenario_path)
    LOGGER.info("Wrote media capture %s (%d bytes)", media_path, len(media))
    return CompiledArtifacts(scenario_path=scenario_path, media_path=media_path)
