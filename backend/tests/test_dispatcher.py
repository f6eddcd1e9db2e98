from __future__ import annotations

from milestone_engine.catalog import definition_for
from milestone_engine.dispatcher import NotificationDispatcher
from milestone_engine.domain import MilestoneEvent, User
from milestone_engine.telemetry import MILESTONE_DISPATCHED, MILESTONE_DISPATCH_FAILED

from conftest import RecordingNotifier

RECIPIENT = User(user_id=1, email="learner@example.com", name="Learner")


def _events(*thresholds: int) -> list[MilestoneEvent]:
    return [
        MilestoneEvent.from_definition(definition_for(threshold), user_id=1, plan_id=3, progress=85)
        for threshold in thresholds
    ]


def test_dispatch_sends_rendered_notification(notifier: RecordingNotifier, telemetry_events) -> None:
    dispatcher = NotificationDispatcher(notifier, frontend_url="http://localhost:3000")
    outcome = dispatcher.dispatch(_events(25)[0], RECIPIENT)

    assert outcome.status == "sent"
    assert outcome.reason is None
    recipient, subject, body = notifier.sent[0]
    assert recipient == "learner@example.com"
    assert "Quarter Complete" in subject
    assert "<!DOCTYPE html>" in body
    assert [event.name for event in telemetry_events] == [MILESTONE_DISPATCHED]


def test_dispatch_failure_is_reported_not_raised(telemetry_events) -> None:
    dispatcher = NotificationDispatcher(
        RecordingNotifier(fail_for=("Quarter Complete",)),
        frontend_url="http://localhost:3000",
    )
    outcome = dispatcher.dispatch(_events(25)[0], RECIPIENT)

    assert outcome.status == "failed"
    assert "relay rejected" in outcome.reason
    assert telemetry_events[-1].name == MILESTONE_DISPATCH_FAILED
    assert telemetry_events[-1].payload["threshold"] == 25


def test_dispatch_without_recipient_address_fails(notifier: RecordingNotifier) -> None:
    dispatcher = NotificationDispatcher(notifier, frontend_url="http://localhost:3000")

    assert dispatcher.dispatch(_events(25)[0], None).status == "failed"
    assert dispatcher.dispatch(_events(25)[0], User(user_id=1, email=None)).status == "failed"
    assert notifier.sent == []


def test_dispatch_all_is_independent_per_event() -> None:
    notifier = RecordingNotifier(fail_for=("Halfway Point",))
    dispatcher = NotificationDispatcher(notifier, frontend_url="http://localhost:3000")

    outcomes = dispatcher.dispatch_all(_events(25, 50, 75), RECIPIENT)

    assert [outcome.status for outcome in outcomes] == ["sent", "failed", "sent"]
    assert len(notifier.sent) == 2


def test_dispatch_all_on_thread_pool_keeps_input_order() -> None:
    notifier = RecordingNotifier(fail_for=("Three Quarters",))
    dispatcher = NotificationDispatcher(notifier, frontend_url="http://localhost:3000", max_workers=4)

    outcomes = dispatcher.dispatch_all(_events(25, 50, 75, 80), RECIPIENT)

    assert [outcome.status for outcome in outcomes] == ["sent", "sent", "failed", "sent"]
    assert len(notifier.sent) == 3
