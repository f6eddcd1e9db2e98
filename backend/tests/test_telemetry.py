from __future__ import annotations

from datetime import datetime, timezone

from milestone_engine.telemetry import (
    clear_listeners,
    emit_event,
    register_listener,
    unregister_listener,
)


def test_emit_event_sanitizes_payload_and_fans_out() -> None:
    received = []
    register_listener(received.append)
    try:
        stamp = datetime(2026, 1, 2, tzinfo=timezone.utc)
        event = emit_event("milestone_crossed", thresholds={80, 25}, at=stamp)
    finally:
        clear_listeners()

    assert received == [event]
    assert event.payload["thresholds"] == [25, 80]
    assert event.payload["at"] == stamp.isoformat()


def test_failing_listener_does_not_break_emission(caplog) -> None:
    calls = []

    def broken(_event) -> None:
        raise RuntimeError("listener down")

    register_listener(broken)
    register_listener(calls.append)
    try:
        emit_event("milestone_dispatched", plan_id=1)
    finally:
        clear_listeners()

    assert len(calls) == 1
    assert "Telemetry listener failed" in caplog.text


def test_unregister_listener() -> None:
    calls = []
    register_listener(calls.append)
    unregister_listener(calls.append)
    emit_event("milestone_crossed", plan_id=1)
    assert calls == []
