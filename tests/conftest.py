from __future__ import annotations

import os
import struct
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    # Keep a developer's .env or CALLFLOW_* variables out of the tests.
    from config.settings import get_settings

    for key in list(os.environ):
        if key.upper().startswith("CALLFLOW_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def scenario():
    from scenario.builder import Scenario

    return Scenario("Basic Call", "192.0.2.10:5060", "192.0.2.20:5080")


def read_pcap(data: bytes) -> list[tuple[int, bytes]]:
    """Split a libpcap capture into (timestamp_usec, frame) records."""

    magic, major, minor, _zone, _sigfigs, _snaplen, linktype = struct.unpack("<IHHiIII", data[:24])
    assert magic == 0xA1B2C3D4
    assert (major, minor, linktype) == (2, 4, 1)

    records = []
    offset = 24
    while offset < len(data):
        sec, usec, caplen, origlen = struct.unpack("<IIII", data[offset : offset + 16])
        assert caplen == origlen
        offset += 16
        records.append((sec * 1_000_000 + usec, data[offset : offset + caplen]))
        offset += caplen
    return records


def rtp_payload(frame: bytes) -> bytes:
    """Strip Ethernet (14), IPv4 (20) and UDP (8) headers from a captured frame."""

    return frame[42:]
