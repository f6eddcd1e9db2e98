"""Milestone service: records progress updates and reports milestone history."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .achievements import AchievementStore
from .catalog import definition_for
from .collaborators import Notifier, PlanStore, UserDirectory
from .config import Settings, get_settings
from .dispatcher import NO_EMAIL_REASON, NotificationDispatcher
from .domain import MilestoneEvent, Plan, User
from .eligibility import is_feature_unlocked
from .evaluator import evaluate
from .exceptions import PlanNotFound
from .notifiers import build_notifier
from .stores import DatabasePlanStore, DatabaseUserDirectory
from .telemetry import MILESTONE_CROSSED, MILESTONE_FEATURE_UNLOCKED, emit_event

logger = logging.getLogger(__name__)

LOOKUP_FAILED_REASON = "recipient lookup failed"
USER_NOT_FOUND_REASON = "recipient not found"


def _clamp_progress(progress: int) -> int:
    return max(0, min(100, progress))


class MilestoneService:
    def __init__(
        self,
        plans: PlanStore,
        users: UserDirectory,
        notifier: Notifier,
        *,
        dispatcher: Optional[NotificationDispatcher] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._plans = plans
        self._users = users
        self._achievements = AchievementStore(plans)
        self._dispatcher = dispatcher or NotificationDispatcher(
            notifier,
            frontend_url=settings.frontend_url,
            max_workers=settings.dispatch_workers,
        )

    @property
    def achievements(self) -> AchievementStore:
        return self._achievements

    def record_progress(self, user_id: int, plan_id: int, new_progress: int) -> List[MilestoneEvent]:
        """Process a progress update and return the milestones it crossed.

        The achieved set is persisted before any notification is attempted, so
        a crash between the two steps can lose a notification but never send
        one twice. Only thresholds this call managed to record are returned and
        notified; ones recorded by a concurrent update are skipped.
        """
        plan = self._load_owned_plan(user_id, plan_id)

        if new_progress < plan.progress:
            logger.info(
                "Progress %s for plan %s is below stored %s; stored progress kept",
                new_progress,
                plan_id,
                plan.progress,
            )

        crossed = evaluate(plan.achieved_milestones, new_progress)
        stored_progress = _clamp_progress(new_progress)

        if not crossed:
            if stored_progress > plan.progress:
                self._achievements.mark_achieved(plan_id, (), progress=stored_progress)
            return []

        claimed = self._achievements.mark_achieved(
            plan_id,
            (definition.threshold for definition in crossed),
            progress=stored_progress,
        )
        events = [
            MilestoneEvent.from_definition(definition, user_id=user_id, plan_id=plan_id, progress=new_progress)
            for definition in crossed
            if definition.threshold in claimed
        ]
        if not events:
            return []

        for event in events:
            emit_event(
                MILESTONE_CROSSED,
                user_id=user_id,
                plan_id=plan_id,
                threshold=event.threshold_reached,
                progress=new_progress,
            )

        recipient, missing_reason = self._resolve_recipient(user_id)
        outcomes = self._dispatcher.dispatch_all(events, recipient, missing_reason=missing_reason)
        results = [event.with_outcome(outcome) for event, outcome in zip(events, outcomes)]

        for result in results:
            if result.unlocks_feature:
                emit_event(
                    MILESTONE_FEATURE_UNLOCKED,
                    user_id=user_id,
                    plan_id=plan_id,
                    threshold=result.threshold_reached,
                    role=plan.role,
                    notified=result.outcome.ok if result.outcome else False,
                )

        failed = [result.threshold_reached for result in results if result.outcome and not result.outcome.ok]
        logger.info(
            "Plan %s crossed milestones %s at %s%% (notification failures: %s)",
            plan_id,
            [result.threshold_reached for result in results],
            new_progress,
            failed or "none",
        )
        return results

    def is_eligible(self, progress: int) -> bool:
        return is_feature_unlocked(progress)

    def get_history(self, user_id: int, plan_id: Optional[int] = None) -> List[MilestoneEvent]:
        """Rebuild achieved milestones from persisted ledgers, highest threshold first."""
        if plan_id is not None:
            plan = self._plans.get(plan_id)
            plans = [plan] if plan is not None and plan.user_id == user_id else []
        else:
            plans = self._plans.list_for_user(user_id)

        history: List[MilestoneEvent] = []
        for plan in plans:
            for threshold in plan.achieved_milestones:
                definition = definition_for(threshold)
                if definition is None:
                    logger.warning("Plan %s has unknown achieved threshold %s", plan.plan_id, threshold)
                    continue
                history.append(
                    MilestoneEvent.from_definition(
                        definition,
                        user_id=user_id,
                        plan_id=plan.plan_id,
                        progress=threshold,
                    )
                )
        history.sort(key=lambda event: (-event.threshold_reached, event.plan_id))
        return history

    def _load_owned_plan(self, user_id: int, plan_id: int) -> Plan:
        plan = self._achievements.load_plan(plan_id)
        if plan.user_id != user_id:
            logger.warning("Plan %s does not belong to user %s", plan_id, user_id)
            raise PlanNotFound(plan_id)
        return plan

    def _resolve_recipient(self, user_id: int) -> Tuple[Optional[User], str]:
        """Return the recipient and the failure reason to report if it cannot be mailed."""
        try:
            user = self._users.get(user_id)
        except Exception:  # noqa: BLE001
            logger.exception("User lookup failed for %s; milestone notifications will be skipped", user_id)
            return None, LOOKUP_FAILED_REASON
        if user is None:
            logger.warning("User %s not found; milestone notifications will be skipped", user_id)
            return None, USER_NOT_FOUND_REASON
        return user, NO_EMAIL_REASON


def create_milestone_service(settings: Optional[Settings] = None) -> MilestoneService:
    """Wire the service against the configured database and notifier."""
    settings = settings or get_settings()
    return MilestoneService(
        DatabasePlanStore(),
        DatabaseUserDirectory(),
        build_notifier(settings),
        settings=settings,
    )


__all__ = ["MilestoneService", "create_milestone_service"]
