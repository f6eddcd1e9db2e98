"""Pure evaluation of newly crossed milestones."""

from __future__ import annotations

from typing import AbstractSet, List, Sequence

from .catalog import MILESTONE_CATALOG, MilestoneDefinition


def evaluate(
    achieved: AbstractSet[int],
    new_progress: int,
    catalog: Sequence[MilestoneDefinition] = MILESTONE_CATALOG,
) -> List[MilestoneDefinition]:
    """Return catalog entries reached by ``new_progress`` that are not yet achieved.

    The result keeps catalog (ascending threshold) order. A regressed or
    negative progress value simply yields nothing new; achieved thresholds are
    never removed.
    """
    return [
        definition
        for definition in catalog
        if definition.threshold <= new_progress and definition.threshold not in achieved
    ]


__all__ = ["evaluate"]
