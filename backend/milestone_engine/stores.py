"""PlanStore and UserDirectory implementations."""

from __future__ import annotations

import logging
import threading
import time
from typing import AbstractSet, Dict, List, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings
from .db.session import session_scope
from .domain import Plan, User
from .exceptions import PlanNotFound, StoreWriteConflict
from .repositories.plans import PlanRepository, plan_repository
from .telemetry import MILESTONE_STORE_CONFLICT, emit_event

logger = logging.getLogger(__name__)


class DatabasePlanStore:
    """SQL-backed plan store.

    Each ``save_achieved`` call runs in its own transaction. Transient
    ``OperationalError`` failures (lock timeouts, serialization failures) are
    retried with a linear backoff before surfacing as ``StoreWriteConflict``.
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker[Session]] = None,
        *,
        repository: Optional[PlanRepository] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self._factory = session_factory
        self._repo = repository or plan_repository
        self._max_retries = settings.store_max_retries if max_retries is None else max_retries
        self._retry_backoff = settings.store_retry_backoff if retry_backoff is None else retry_backoff

    def get(self, plan_id: int) -> Optional[Plan]:
        with session_scope(commit=False, factory=self._factory) as session:
            return self._repo.get(session, plan_id)

    def list_for_user(self, user_id: int) -> List[Plan]:
        with session_scope(commit=False, factory=self._factory) as session:
            return self._repo.list_for_user(session, user_id)

    def save_achieved(
        self,
        plan_id: int,
        thresholds: AbstractSet[int],
        *,
        progress: Optional[int] = None,
    ) -> frozenset[int]:
        attempt = 0
        while True:
            attempt += 1
            try:
                with session_scope(factory=self._factory) as session:
                    return self._repo.save_achieved(session, plan_id, thresholds, progress=progress)
            except OperationalError as exc:
                emit_event(
                    MILESTONE_STORE_CONFLICT,
                    plan_id=plan_id,
                    attempt=attempt,
                    thresholds=set(thresholds),
                    error=str(exc.orig if exc.orig is not None else exc),
                )
                if attempt > self._max_retries:
                    raise StoreWriteConflict(plan_id, attempt, exc) from exc
                logger.warning(
                    "Achievement write for plan %s conflicted (attempt %d/%d); retrying: %s",
                    plan_id,
                    attempt,
                    self._max_retries + 1,
                    exc,
                )
                time.sleep(self._retry_backoff * attempt)

    def create_user(self, *, email: Optional[str], name: Optional[str] = None) -> User:
        with session_scope(factory=self._factory) as session:
            return self._repo.create_user(session, email=email, name=name)

    def create_plan(self, user_id: int, **kwargs) -> Plan:
        with session_scope(factory=self._factory) as session:
            return self._repo.create_plan(session, user_id, **kwargs)


class DatabaseUserDirectory:
    def __init__(
        self,
        session_factory: Optional[sessionmaker[Session]] = None,
        *,
        repository: Optional[PlanRepository] = None,
    ) -> None:
        self._factory = session_factory
        self._repo = repository or plan_repository

    def get(self, user_id: int) -> Optional[User]:
        with session_scope(commit=False, factory=self._factory) as session:
            return self._repo.get_user(session, user_id)


class InMemoryPlanStore:
    """Process-local plan store guarded by a single lock."""

    def __init__(self, plans: Optional[List[Plan]] = None) -> None:
        self._plans: Dict[int, Plan] = {}
        self._lock = threading.RLock()
        for plan in plans or []:
            self.add(plan)

    def add(self, plan: Plan) -> Plan:
        with self._lock:
            self._plans[plan.plan_id] = plan
        return plan

    def get(self, plan_id: int) -> Optional[Plan]:
        with self._lock:
            return self._plans.get(plan_id)

    def list_for_user(self, user_id: int) -> List[Plan]:
        with self._lock:
            return [plan for _, plan in sorted(self._plans.items()) if plan.user_id == user_id]

    def save_achieved(
        self,
        plan_id: int,
        thresholds: AbstractSet[int],
        *,
        progress: Optional[int] = None,
    ) -> frozenset[int]:
        with self._lock:
            plan = self._plans.get(plan_id)
            if plan is None:
                raise PlanNotFound(plan_id)
            claimed = frozenset(thresholds) - plan.achieved_milestones
            update: Dict[str, object] = {}
            if claimed:
                update["achieved_milestones"] = plan.achieved_milestones | claimed
            if progress is not None and progress > plan.progress:
                update["progress"] = progress
            if update:
                self._plans[plan_id] = plan.model_copy(update=update)
            return claimed


class InMemoryUserDirectory:
    def __init__(self, users: Optional[List[User]] = None) -> None:
        self._users: Dict[int, User] = {user.user_id: user for user in users or []}

    def add(self, user: User) -> User:
        self._users[user.user_id] = user
        return user

    def get(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)


__all__ = [
    "DatabasePlanStore",
    "DatabaseUserDirectory",
    "InMemoryPlanStore",
    "InMemoryUserDirectory",
]
