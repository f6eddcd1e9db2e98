"""Domain models shared by the milestone engine and its collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .catalog import MilestoneDefinition


class Plan(BaseModel):
    """Learning plan snapshot as seen by the engine."""

    model_config = ConfigDict(frozen=True)

    plan_id: int
    user_id: int
    role: str = ""
    progress: int = Field(default=0, ge=0, le=100)
    achieved_milestones: FrozenSet[int] = Field(default_factory=frozenset)
    started_at: Optional[datetime] = None


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    email: Optional[str] = None
    name: str = "User"


class DispatchOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["sent", "failed"]
    reason: Optional[str] = None

    @classmethod
    def sent(cls) -> "DispatchOutcome":
        return cls(status="sent")

    @classmethod
    def failed(cls, reason: str) -> "DispatchOutcome":
        return cls(status="failed", reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "sent"


class MilestoneEvent(BaseModel):
    """A crossed milestone for one plan.

    ``outcome`` is set by the service after dispatch; events rebuilt for
    history carry no outcome.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    plan_id: int
    threshold_reached: int
    name: str
    message: str
    unlocks_feature: bool = False
    progress: int
    outcome: Optional[DispatchOutcome] = None

    @classmethod
    def from_definition(
        cls,
        definition: MilestoneDefinition,
        *,
        user_id: int,
        plan_id: int,
        progress: int,
    ) -> "MilestoneEvent":
        return cls(
            user_id=user_id,
            plan_id=plan_id,
            threshold_reached=definition.threshold,
            name=definition.name,
            message=definition.message,
            unlocks_feature=definition.unlocks_feature,
            progress=progress,
        )

    def with_outcome(self, outcome: DispatchOutcome) -> "MilestoneEvent":
        return self.model_copy(update={"outcome": outcome})


__all__ = [
    "DispatchOutcome",
    "MilestoneEvent",
    "Plan",
    "User",
]
