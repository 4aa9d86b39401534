"""Structured event logging and optional StatsD counters."""

from __future__ import annotations

import json
import logging
import socket
import threading
from datetime import datetime, timezone
from typing import Any, Mapping

from casegen.settings import Settings, get_settings

_LOGGER = logging.getLogger("casegen.observability")
_STATSD_LOCK = threading.Lock()
_SHARED_STATSD: "StatsdClient | None" = None


class StatsdClient:
    """Fire-and-forget StatsD counters over UDP."""

    def __init__(self, host: str, port: int, prefix: str = "") -> None:
        self.address = (host, port)
        self.prefix = prefix
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def increment(self, metric: str, *, value: float = 1.0, tags: Mapping[str, Any] | None = None) -> None:
        scoped = f"{self.prefix}.{metric}" if self.prefix else metric
        payload = f"{scoped}:{_format_number(value)}|c"
        tag_block = ",".join(f"{key}:{val}" for key, val in sorted((tags or {}).items()) if val is not None)
        if tag_block:
            payload = f"{payload}|#{tag_block}"
        try:
            self._socket.sendto(payload.encode("utf-8"), self.address)
        except OSError:
            _LOGGER.debug("StatsD send failed for metric %s", metric, exc_info=True)


class Observability:
    """Emit structured logs and StatsD-compatible metrics."""

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        statsd: StatsdClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.component = component or "core"
        self._logger = logger or _LOGGER
        self._structured_logging = bool(settings.observability.structured_logging)
        self._statsd = statsd

    def emit_event(self, event: str, **fields: Any) -> None:
        """Log ``event`` with ``fields``, as one JSON line when structured logging is on."""

        payload = {
            "event": event,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        if self._structured_logging:
            self._logger.info(json.dumps(payload, default=_serialize))
        else:
            self._logger.info("%s | %s", event, payload)

    def increment(self, metric: str, *, value: float = 1.0, tags: Mapping[str, Any] | None = None) -> None:
        """Increment a counter; a no-op unless a StatsD host is configured."""

        if self._statsd is None:
            return
        self._statsd.increment(metric, value=value, tags=tags)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    """Return an :class:`Observability` instance for the requested component."""

    resolved = settings or get_settings()
    return Observability(settings=resolved, component=component, statsd=_shared_statsd(resolved))


def reset_observability_cache() -> None:
    """Drop the shared StatsD client (used in tests)."""

    global _SHARED_STATSD
    with _STATSD_LOCK:
        _SHARED_STATSD = None


def _shared_statsd(settings: Settings) -> StatsdClient | None:
    global _SHARED_STATSD
    with _STATSD_LOCK:
        if _SHARED_STATSD is None and settings.observability.statsd_host:
            _SHARED_STATSD = StatsdClient(
                settings.observability.statsd_host,
                settings.observability.statsd_port,
                settings.observability.statsd_prefix,
            )
        return _SHARED_STATSD


def _serialize(value: Any) -> Any:
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    return str(value)


def _format_number(value: float) -> str:
    formatted = f"{value:.6f}".rstrip("0").rstrip(".")
    return formatted or "0"


__all__ = ["Observability", "StatsdClient", "get_observability", "reset_observability_cache"]
