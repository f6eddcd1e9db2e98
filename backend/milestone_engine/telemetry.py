"""Structured telemetry for milestone crossings and notification outcomes."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, List

logger = logging.getLogger("milestone_engine.telemetry")

MILESTONE_CROSSED = "milestone_crossed"
MILESTONE_DISPATCHED = "milestone_dispatched"
MILESTONE_DISPATCH_FAILED = "milestone_dispatch_failed"
MILESTONE_FEATURE_UNLOCKED = "milestone_feature_unlocked"
MILESTONE_STORE_CONFLICT = "milestone_store_conflict"


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[TelemetryEvent], None]

_listeners: List[Listener] = []
_lock = RLock()


def register_listener(listener: Listener) -> None:
    """Register an in-process listener, e.g. a downstream interview scheduler."""
    with _lock:
        _listeners.append(listener)


def unregister_listener(listener: Listener) -> None:
    with _lock:
        if listener in _listeners:
            _listeners.remove(listener)


def clear_listeners() -> None:
    """Remove all registered listeners. Mainly used to reset test state."""
    with _lock:
        _listeners.clear()


def emit_event(name: str, **fields: Any) -> TelemetryEvent:
    """Emit a structured telemetry event and fan it out to listeners.

    Listener failures are logged and swallowed so that instrumentation never
    changes the outcome of the operation being observed.
    """
    event = TelemetryEvent(name=name, payload=_sanitize(fields))

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    structured = {"event": name, "emitted_at": event.emitted_at.isoformat(), **event.payload}
    logger.info("TELEMETRY %s", json.dumps(structured, default=_json_default))
    return event


def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            sanitized[key] = value.isoformat()
        elif isinstance(value, (set, frozenset)):
            sanitized[key] = sorted(value)
        else:
            sanitized[key] = value
    return sanitized


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


__all__ = [
    "MILESTONE_CROSSED",
    "MILESTONE_DISPATCHED",
    "MILESTONE_DISPATCH_FAILED",
    "MILESTONE_FEATURE_UNLOCKED",
    "MILESTONE_STORE_CONFLICT",
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "register_listener",
    "unregister_listener",
]
