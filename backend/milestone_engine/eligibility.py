"""Interview eligibility derived from learning plan progress."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from .catalog import unlock_threshold

REQUIRED_PROGRESS = unlock_threshold()


class EligibilityResult(BaseModel):
    is_eligible: bool
    current_progress: int
    required_progress: int = REQUIRED_PROGRESS
    days_until_eligible: Optional[int] = Field(default=None, ge=0)
    message: str


def is_feature_unlocked(progress: int) -> bool:
    return progress >= REQUIRED_PROGRESS


def check_eligibility(
    progress: int,
    *,
    started_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> EligibilityResult:
    """Describe eligibility for UI badges without touching any milestone state.

    When the plan start date is known and the learner is not yet eligible, the
    remaining days are estimated from the average daily pace so far.
    """
    if is_feature_unlocked(progress):
        return EligibilityResult(
            is_eligible=True,
            current_progress=progress,
            message="Congratulations! You are eligible for a mock interview.",
        )

    days_until: Optional[int] = None
    if started_at is not None:
        reference = now or datetime.now(timezone.utc)
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        elapsed_days = math.ceil((reference - started_at).total_seconds() / 86400)
        progress_per_day = max(progress, 0) / max(1, elapsed_days)
        days_until = max(0, math.ceil((REQUIRED_PROGRESS - progress) / max(1.0, progress_per_day)))

    return EligibilityResult(
        is_eligible=False,
        current_progress=progress,
        days_until_eligible=days_until,
        message=f"Complete {REQUIRED_PROGRESS - progress}% more to unlock interview",
    )


__all__ = [
    "REQUIRED_PROGRESS",
    "EligibilityResult",
    "check_eligibility",
    "is_feature_unlocked",
]
