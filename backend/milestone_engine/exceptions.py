"""Error taxonomy for the milestone engine."""

from __future__ import annotations

from typing import Optional


class MilestoneEngineError(Exception):
    """Base class for errors raised by the milestone engine."""


class PlanNotFound(MilestoneEngineError, LookupError):
    """Raised when a progress update or lookup references an unknown plan."""

    def __init__(self, plan_id: object) -> None:
        super().__init__(f"Plan '{plan_id}' does not exist.")
        self.plan_id = plan_id


class StoreWriteConflict(MilestoneEngineError):
    """Raised when an achievement write kept conflicting after all retries."""

    def __init__(self, plan_id: object, attempts: int, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Achievement write for plan '{plan_id}' conflicted {attempts} time(s).")
        self.plan_id = plan_id
        self.attempts = attempts
        self.cause = cause


class NotificationError(MilestoneEngineError):
    """Raised by notifiers when a message could not be handed to the transport."""


__all__ = [
    "MilestoneEngineError",
    "NotificationError",
    "PlanNotFound",
    "StoreWriteConflict",
]
