"""Progress milestone detection and dispatch engine."""

from .catalog import MILESTONE_CATALOG, MilestoneDefinition
from .domain import DispatchOutcome, MilestoneEvent, Plan, User
from .eligibility import check_eligibility, is_feature_unlocked
from .evaluator import evaluate
from .exceptions import MilestoneEngineError, NotificationError, PlanNotFound, StoreWriteConflict
from .service import MilestoneService, create_milestone_service

__all__ = [
    "MILESTONE_CATALOG",
    "DispatchOutcome",
    "MilestoneDefinition",
    "MilestoneEngineError",
    "MilestoneEvent",
    "MilestoneService",
    "NotificationError",
    "Plan",
    "PlanNotFound",
    "StoreWriteConflict",
    "User",
    "check_eligibility",
    "create_milestone_service",
    "evaluate",
    "is_feature_unlocked",
]
