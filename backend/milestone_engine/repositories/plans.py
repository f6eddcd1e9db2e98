"""Database-backed plan and achievement repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import (
    PersistenceAuditEventModel,
    PlanMilestoneAchievementModel,
    PlanModel,
    UserModel,
)
from ..domain import Plan, User
from ..exceptions import PlanNotFound


class PlanRepository:
    """Session-scoped persistence helpers for plans and their achieved milestones."""

    def get(self, session: Session, plan_id: int) -> Plan | None:
        model = session.get(PlanModel, plan_id)
        if model is None:
            return None
        return self._to_domain(session, model)

    def list_for_user(self, session: Session, user_id: int) -> List[Plan]:
        stmt = select(PlanModel).where(PlanModel.user_id == user_id).order_by(PlanModel.id.asc())
        models = session.execute(stmt).scalars().all()
        return [self._to_domain(session, model) for model in models]

    def get_user(self, session: Session, user_id: int) -> User | None:
        model = session.get(UserModel, user_id)
        if model is None:
            return None
        return User(user_id=model.id, email=model.email, name=model.name or "User")

    def create_user(self, session: Session, *, email: Optional[str], name: Optional[str] = None) -> User:
        model = UserModel(email=email, name=name)
        session.add(model)
        session.flush()
        return User(user_id=model.id, email=model.email, name=model.name or "User")

    def create_plan(
        self,
        session: Session,
        user_id: int,
        *,
        role: str = "",
        progress: int = 0,
        started_at: Optional[datetime] = None,
    ) -> Plan:
        model = PlanModel(user_id=user_id, role=role, progress_percent=progress, started_at=started_at)
        session.add(model)
        session.flush()
        self._record_audit(session, model.id, "plan_create", {"user_id": user_id})
        return self._to_domain(session, model)

    def save_achieved(
        self,
        session: Session,
        plan_id: int,
        thresholds: Iterable[int],
        *,
        progress: Optional[int] = None,
    ) -> frozenset[int]:
        """Union ``thresholds`` into the plan's achieved set.

        Returns only the thresholds inserted by this call. Rows already present,
        including ones written by a concurrent transaction, are left untouched
        and excluded from the result.
        """
        if session.get(PlanModel, plan_id) is None:
            raise PlanNotFound(plan_id)

        if progress is not None:
            session.execute(
                update(PlanModel)
                .where(PlanModel.id == plan_id, PlanModel.progress_percent < progress)
                .values(progress_percent=progress, updated_at=datetime.now(timezone.utc))
            )

        claimed: set[int] = set()
        for threshold in sorted(set(thresholds)):
            if self._insert_achievement(session, plan_id, threshold):
                claimed.add(threshold)

        session.flush()
        if claimed:
            self._record_audit(
                session,
                plan_id,
                "milestones_achieved",
                {"thresholds": sorted(claimed), "progress": progress},
            )
        return frozenset(claimed)

    def load_achieved(self, session: Session, plan_id: int) -> frozenset[int]:
        stmt = select(PlanMilestoneAchievementModel.threshold).where(
            PlanMilestoneAchievementModel.plan_id == plan_id
        )
        return frozenset(session.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _insert_achievement(self, session: Session, plan_id: int, threshold: int) -> bool:
        values = {
            "plan_id": plan_id,
            "threshold": threshold,
            "achieved_at": datetime.now(timezone.utc),
        }
        dialect = session.get_bind().dialect.name
        if dialect in {"sqlite", "postgresql"}:
            if dialect == "sqlite":
                from sqlalchemy.dialects.sqlite import insert
            else:
                from sqlalchemy.dialects.postgresql import insert
            stmt = (
                insert(PlanMilestoneAchievementModel)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["plan_id", "threshold"])
                .returning(PlanMilestoneAchievementModel.threshold)
            )
            return session.execute(stmt).scalar_one_or_none() is not None

        savepoint = session.begin_nested()
        try:
            session.add(PlanMilestoneAchievementModel(**values))
            session.flush()
        except IntegrityError:
            savepoint.rollback()
            return False
        savepoint.commit()
        return True

    def _to_domain(self, session: Session, model: PlanModel) -> Plan:
        payload: Dict[str, Any] = {
            "plan_id": model.id,
            "user_id": model.user_id,
            "role": model.role or "",
            "progress": max(0, min(100, int(model.progress_percent or 0))),
            "achieved_milestones": self.load_achieved(session, model.id),
            "started_at": model.started_at,
        }
        return Plan.model_validate(payload)

    def _record_audit(self, session: Session, plan_id: int, event_type: str, payload: Dict[str, Any]) -> None:
        event = PersistenceAuditEventModel(
            plan_id=plan_id,
            event_type=event_type,
            payload=payload,
            actor="system",
        )
        session.add(event)


plan_repository = PlanRepository()

__all__ = ["PlanRepository", "plan_repository"]
