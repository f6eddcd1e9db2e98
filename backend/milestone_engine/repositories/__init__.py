"""Repository helpers for the milestone engine persistence layer."""

from .plans import PlanRepository, plan_repository

__all__ = ["PlanRepository", "plan_repository"]
