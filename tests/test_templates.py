from __future__ import annotations

import re

import pytest

from scenario import templates

PLACEHOLDER = re.compile(r"\[[^\]]+\]")


def _placeholders(text: str) -> list[str]:
    return PLACEHOLDER.findall(text)


def test_invite_substitutes_identity_only() -> None:
    msg = templates.invite_message("alice")

    assert "From: sipp <sip:alice@[local_ip]>;tag=[call_number]" in msg
    assert "Contact: sip:alice@[local_ip]:[local_port]" in msg
    assert "{" not in msg and "}" not in msg
    assert _placeholders(msg) == _placeholders(templates.INVITE_TEMPLATE)


def test_invite_sdp_advertises_pcmu_and_telephone_event_101() -> None:
    msg = templates.invite_message("sipp")

    assert "m=audio [media_port] RTP/AVP 0\n" in msg
    assert "a=rtpmap:0 PCMU/8000\n" in msg
    assert "a=rtpmap:101 telephone-event/8000\n" in msg
    assert "a=fmtp:101 0-15\n" in msg
    # Blank line separates SIP headers from the SDP body.
    assert "Content-Length: [len]\n\nv=0\n" in msg


def test_ack_keeps_route_placeholders() -> None:
    msg = templates.ack_message("bob")

    assert msg.splitlines()[1] == "ACK [next_url] SIP/2.0"
    assert "[last_To:]\n[routes]\n" in msg
    assert "From: <sip:bob@[local_ip]>;tag=[call_number]" in msg


@pytest.mark.parametrize(
    ("render", "first_line"),
    [
        (templates.bye_message, "BYE sip:[service]@[remote_ip]:[remote_port] SIP/2.0"),
        (templates.ok_to_bye_message, "SIP/2.0 200 OK"),
    ],
)
def test_dialog_templates_are_emitted_verbatim(render, first_line: str) -> None:
    msg = render()
    assert msg.startswith("\n")
    assert msg.endswith("Content-Length: 0\n")
    assert msg.splitlines()[1] == first_line


def test_identity_with_braces_is_not_reinterpreted() -> None:
    msg = templates.ack_message("{from_user}")
    assert "sip:{from_user}@[local_ip]" in msg
