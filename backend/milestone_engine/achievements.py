"""Accessor for the per-plan achieved-milestone ledger."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, Optional

from .collaborators import PlanStore
from .domain import Plan
from .exceptions import PlanNotFound

logger = logging.getLogger(__name__)


class AchievementStore:
    """Single idempotency boundary between the engine and the PlanStore.

    A threshold returned by ``mark_achieved`` belongs to exactly one caller;
    every later call for the same plan sees it in ``load_achieved``.
    """

    def __init__(self, plans: PlanStore) -> None:
        self._plans = plans

    def load_plan(self, plan_id: int) -> Plan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def load_achieved(self, plan_id: int) -> frozenset[int]:
        return self.load_plan(plan_id).achieved_milestones

    def mark_achieved(
        self,
        plan_id: int,
        thresholds: Iterable[int],
        *,
        progress: Optional[int] = None,
    ) -> frozenset[int]:
        requested: AbstractSet[int] = frozenset(thresholds)
        claimed = self._plans.save_achieved(plan_id, requested, progress=progress)
        lost = requested - claimed
        if lost:
            logger.info(
                "Thresholds %s for plan %s were already recorded by another update",
                sorted(lost),
                plan_id,
            )
        return frozenset(claimed)


__all__ = ["AchievementStore"]
