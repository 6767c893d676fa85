from __future__ import annotations

import errno
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from scenario.errors import ScenarioIOError
from scenario.serializer import render_document, render_step, write_artifacts
from scenario.steps import Exec, Pause, Receive, Send


def test_document_root_and_step_order() -> None:
    steps = [
        Send("\nINVITE x\n", retrans=500),
        Receive(response=100, optional=True),
        Pause(1500),
        Exec(play_pcap_audio="basic_call.pcap"),
        Receive(request="BYE"),
    ]
    doc = render_document("Basic Call", steps)

    assert doc.startswith('<?xml version="1.0"?>\n<scenario name="Basic Call">')
    root = ET.fromstring(doc)
    assert root.tag == "scenario"
    assert root.attrib == {"name": "Basic Call"}
    assert [child.tag for child in root] == ["send", "recv", "pause", "nop", "recv"]


def test_send_body_is_cdata_with_surrounding_newlines() -> None:
    body = "\nBYE sip:[service]@[remote_ip] SIP/2.0\nContent-Length: 0\n"
    rendered = render_step(Send(body))

    assert rendered == f"  <send>\n<![CDATA[{body}]]>\n  </send>"
    assert ET.fromstring(rendered.strip()).text.strip("\n ") == body.strip("\n")


def test_send_body_containing_cdata_terminator_survives() -> None:
    body = "a]]>b <c> & d"
    element = ET.fromstring(render_step(Send(body)).strip())
    assert element.text == f"\n{body}\n  "


def test_recv_attributes() -> None:
    assert render_step(Receive(response=180, optional=True)) == '  <recv response="180" optional="true"/>'
    assert (
        render_step(Receive(response=200, optional=False, rrs=True))
        == '  <recv response="200" optional="false" rrs="true"/>'
    )
    assert render_step(Receive(request="BYE")) == '  <recv request="BYE" optional="false"/>'


def test_pause_and_exec_markup() -> None:
    assert render_step(Pause(250)) == '  <pause milliseconds="250"/>'

    nop = ET.fromstring(render_step(Exec(play_pcap_audio="a_b.pcap")).strip())
    exec_el = nop.find("./action/exec")
    assert exec_el is not None
    assert exec_el.attrib == {"play_pcap_audio": "a_b.pcap"}


def test_attribute_values_are_escaped() -> None:
    doc = render_document('Tom & "Jerry" <1>', [])
    assert ET.fromstring(doc).attrib["name"] == 'Tom & "Jerry" <1>'


def test_unknown_step_type_rejected() -> None:
    with pytest.raises(TypeError):
        render_step("pause")  # type: ignore[arg-type]


def test_write_artifacts_writes_both_files(tmp_path: Path) -> None:
    artifacts = write_artifacts(
        "<scenario/>\n",
        b"\xd4\xc3\xb2\xa1",
        scenario_path=tmp_path / "out" / "x.xml",
        media_path=tmp_path / "out" / "x.pcap",
    )
    assert artifacts.scenario_path.read_text() == "<scenario/>\n"
    assert artifacts.media_path.read_bytes() == b"\xd4\xc3\xb2\xa1"


def test_media_write_failure_removes_script(tmp_path: Path) -> None:
    media_path = tmp_path / "taken.pcap"
    media_path.mkdir()  # writing bytes to a directory fails

    with pytest.raises(ScenarioIOError) as excinfo:
        write_artifacts(
            "<scenario/>\n",
            b"",
            scenario_path=tmp_path / "taken.xml",
            media_path=media_path,
        )

    assert isinstance(excinfo.value, OSError)
    assert isinstance(excinfo.value.__cause__, OSError)
    assert not (tmp_path / "taken.xml").exists()
    assert media_path.is_dir()


def test_truncated_capture_is_removed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def write_then_fail(self: Path, data: bytes) -> int:
        with self.open("wb") as handle:
            handle.write(data[:4])
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(Path, "write_bytes", write_then_fail)

    with pytest.raises(ScenarioIOError, match="media capture"):
        write_artifacts(
            "<scenario/>\n",
            b"\xd4\xc3\xb2\xa1" * 8,
            scenario_path=tmp_path / "full.xml",
            media_path=tmp_path / "full.pcap",
        )

    assert not (tmp_path / "full.xml").exists()
    assert not (tmp_path / "full.pcap").exists()


def test_script_write_failure_is_reported(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    with pytest.raises(ScenarioIOError, match="scenario script"):
        write_artifacts(
            "<scenario/>",
            b"",
            scenario_path=blocker / "x.xml",
            media_path=tmp_path / "x.pcap",
        )
    assert not (tmp_path / "x.pcap").exists()
