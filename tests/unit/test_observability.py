"""Unit tests for structured events and StatsD counters."""

from __future__ import annotations

import json
import logging
import socket
from types import SimpleNamespace

import pytest

from casegen.observability import Observability, StatsdClient, get_observability, reset_observability_cache


def _settings(*, structured_logging: bool = True, statsd_host: str | None = None, statsd_port: int = 8125):
    return SimpleNamespace(
        observability=SimpleNamespace(
            structured_logging=structured_logging,
            statsd_host=statsd_host,
            statsd_port=statsd_port,
            statsd_prefix="casegen",
        )
    )


@pytest.fixture
def udp_listener():
    listener = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    listener.bind(("127.0.0.1", 0))
    listener.settimeout(2.0)
    yield listener
    listener.close()


@pytest.fixture(autouse=True)
def _reset_shared_client():
    reset_observability_cache()
    yield
    reset_observability_cache()


def test_structured_event_is_json(caplog):
    observability = Observability(settings=_settings(), component="quality")

    with caplog.at_level(logging.INFO, logger="casegen.observability"):
        observability.emit_event("quality.repair", case_id="CASE-1", success=True, paths=("a", "b"))

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "quality.repair"
    assert payload["component"] == "quality"
    assert payload["case_id"] == "CASE-1"
    assert payload["success"] is True
    assert payload["paths"] == ["a", "b"]
    assert "timestamp" in payload


def test_plain_event_when_structured_logging_is_off(caplog):
    observability = Observability(settings=_settings(structured_logging=False), component="store")

    with caplog.at_level(logging.INFO, logger="casegen.observability"):
        observability.emit_event("store.save", path="manifest.json")

    message = caplog.records[-1].getMessage()
    assert message.startswith("store.save | ")
    assert "manifest.json" in message


def test_statsd_counter_payload(udp_listener):
    port = udp_listener.getsockname()[1]
    client = StatsdClient("127.0.0.1", port, "casegen")

    client.increment("quality.repair", tags={"success": "false", "skip": None})

    data, _ = udp_listener.recvfrom(1024)
    assert data.decode("utf-8") == "casegen.quality.repair:1|c|#success:false"


def test_increment_without_statsd_host_is_noop():
    observability = get_observability(component="core", settings=_settings())

    observability.increment("normalize.entities", value=2.5)


def test_get_observability_shares_statsd_client(udp_listener):
    port = udp_listener.getsockname()[1]
    settings = _settings(statsd_host="127.0.0.1", statsd_port=port)

    first = get_observability(component="store", settings=settings)
    second = get_observability(component="quality", settings=settings)
    second.increment("quality.verify", value=2.5)

    assert first._statsd is second._statsd
    data, _ = udp_listener.recvfrom(1024)
    assert data.decode("utf-8") == "casegen.quality.verify:2.5|c"
