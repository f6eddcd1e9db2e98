"""Best-effort delivery of milestone notifications."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from .collaborators import Notifier
from .content import render_notification
from .domain import DispatchOutcome, MilestoneEvent, User
from .telemetry import MILESTONE_DISPATCHED, MILESTONE_DISPATCH_FAILED, emit_event

logger = logging.getLogger(__name__)

NO_EMAIL_REASON = "recipient has no email address"


class NotificationDispatcher:
    """Render and send one notification per milestone event.

    Failures never propagate: they are logged, emitted as telemetry and
    returned as ``DispatchOutcome.failed``. Nothing is retried here, so a
    milestone is notified at most once.
    """

    def __init__(self, notifier: Notifier, *, frontend_url: str, max_workers: int = 1) -> None:
        self._notifier = notifier
        self._frontend_url = frontend_url
        self._max_workers = max(1, max_workers)

    def dispatch(
        self,
        event: MilestoneEvent,
        recipient: Optional[User],
        *,
        missing_reason: str = NO_EMAIL_REASON,
    ) -> DispatchOutcome:
        if recipient is None or not recipient.email:
            return self._failed(event, missing_reason)

        try:
            rendered = render_notification(event, frontend_url=self._frontend_url)
            self._notifier.send(recipient.email, rendered.subject, rendered.body)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Failed to send milestone %s notification for plan %s",
                event.threshold_reached,
                event.plan_id,
            )
            return self._failed(event, str(exc) or exc.__class__.__name__)

        emit_event(
            MILESTONE_DISPATCHED,
            user_id=event.user_id,
            plan_id=event.plan_id,
            threshold=event.threshold_reached,
        )
        return DispatchOutcome.sent()

    def dispatch_all(
        self,
        events: Sequence[MilestoneEvent],
        recipient: Optional[User],
        *,
        missing_reason: str = NO_EMAIL_REASON,
    ) -> List[DispatchOutcome]:
        """Dispatch every event independently; outcomes keep input order."""
        if self._max_workers == 1 or len(events) < 2:
            return [self.dispatch(event, recipient, missing_reason=missing_reason) for event in events]
        workers = min(self._max_workers, len(events))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="milestone-dispatch") as pool:
            return list(pool.map(lambda event: self.dispatch(event, recipient, missing_reason=missing_reason), events))

    def _failed(self, event: MilestoneEvent, reason: str) -> DispatchOutcome:
        emit_event(
            MILESTONE_DISPATCH_FAILED,
            user_id=event.user_id,
            plan_id=event.plan_id,
            threshold=event.threshold_reached,
            reason=reason,
        )
        return DispatchOutcome.failed(reason)


__all__ = ["NO_EMAIL_REASON", "NotificationDispatcher"]
