"""Static catalog of learning plan progress milestones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class MilestoneDefinition:
    threshold: int
    name: str
    message: str
    unlocks_feature: bool = False


MILESTONE_CATALOG: tuple[MilestoneDefinition, ...] = (
    MilestoneDefinition(
        threshold=25,
        name="Quarter Complete",
        message="Great start! You're 25% through your learning journey.",
    ),
    MilestoneDefinition(
        threshold=50,
        name="Halfway Point",
        message="Excellent progress! You've completed half of your learning plan.",
    ),
    MilestoneDefinition(
        threshold=75,
        name="Three Quarters",
        message="Outstanding! You're 75% through your learning journey.",
    ),
    MilestoneDefinition(
        threshold=80,
        name="Interview Unlocked",
        message="Congratulations! You've unlocked the mock interview feature.",
        unlocks_feature=True,
    ),
    MilestoneDefinition(
        threshold=90,
        name="Almost There",
        message="Fantastic! You're 90% complete. Keep up the great work!",
    ),
    MilestoneDefinition(
        threshold=100,
        name="Complete",
        message="Amazing! You've completed your entire learning journey!",
    ),
)


def validate_catalog(catalog: Sequence[MilestoneDefinition]) -> None:
    """Raise ``ValueError`` unless thresholds are unique, in range and ascending."""
    previous: Optional[int] = None
    for definition in catalog:
        if not 0 <= definition.threshold <= 100:
            raise ValueError(f"Milestone threshold {definition.threshold} is outside 0-100.")
        if previous is not None and definition.threshold <= previous:
            raise ValueError(
                f"Milestone catalog must be strictly ascending; {definition.threshold} follows {previous}."
            )
        previous = definition.threshold


def definition_for(threshold: int) -> Optional[MilestoneDefinition]:
    for definition in MILESTONE_CATALOG:
        if definition.threshold == threshold:
            return definition
    return None


def unlock_threshold() -> int:
    """Threshold of the single catalog entry that unlocks the interview feature."""
    for definition in MILESTONE_CATALOG:
        if definition.unlocks_feature:
            return definition.threshold
    raise LookupError("Milestone catalog has no feature-unlocking entry.")


validate_catalog(MILESTONE_CATALOG)

__all__ = [
    "MILESTONE_CATALOG",
    "MilestoneDefinition",
    "definition_for",
    "unlock_threshold",
    "validate_catalog",
]
