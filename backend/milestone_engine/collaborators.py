"""Interfaces of the external collaborators the engine depends on."""

from __future__ import annotations

from typing import AbstractSet, List, Optional, Protocol

from .domain import Plan, User


class PlanStore(Protocol):
    """Owner of plan records and their achieved-milestone ledger."""

    def get(self, plan_id: int) -> Optional[Plan]:  # pragma: no cover - protocol definition
        ...

    def list_for_user(self, user_id: int) -> List[Plan]:  # pragma: no cover - protocol definition
        ...

    def save_achieved(
        self,
        plan_id: int,
        thresholds: AbstractSet[int],
        *,
        progress: Optional[int] = None,
    ) -> frozenset[int]:  # pragma: no cover - protocol definition
        """Atomically union ``thresholds`` into the ledger; return the newly added ones."""
        ...


class UserDirectory(Protocol):
    def get(self, user_id: int) -> Optional[User]:  # pragma: no cover - protocol definition
        ...


class Notifier(Protocol):
    """Transport for milestone notifications (email today, any channel tomorrow)."""

    def send(self, recipient: str, subject: str, body: str) -> None:  # pragma: no cover - protocol definition
        """Deliver the message or raise ``NotificationError``."""
        ...


__all__ = ["Notifier", "PlanStore", "UserDirectory"]
