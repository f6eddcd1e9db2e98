"""Import legacy planner exports into the typed achievement ledger.

The previous application kept achieved thresholds as an untyped
``planJson.milestones`` list on each planner row. This script reads a JSON
export of those rows (a list, or a mapping keyed by planner id) and merges the
thresholds into ``plan_milestone_achievements``. Re-running it is safe: the
merge is a union, so already imported thresholds are left alone.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from milestone_engine.catalog import definition_for
from milestone_engine.db.base import Base
from milestone_engine.db.session import get_engine, session_scope
from milestone_engine.exceptions import PlanNotFound
from milestone_engine.logging_config import configure_logging
from milestone_engine.repositories.plans import plan_repository

logger = logging.getLogger("milestone_engine.backfill")


class LegacyPlanner(BaseModel):
    id: int
    progress_percent: Optional[float] = Field(default=None, alias="progressPercent")
    plan_json: Optional[dict] = Field(default=None, alias="planJson")

    @field_validator("plan_json", mode="before")
    @classmethod
    def _decode_plan_json(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value) if value.strip() else None
        return value

    def achieved_thresholds(self) -> List[int]:
        raw = (self.plan_json or {}).get("milestones") or []
        thresholds: List[int] = []
        for entry in raw:
            try:
                threshold = int(entry)
            except (TypeError, ValueError):
                logger.warning("Planner %s has non-numeric milestone %r; skipping", self.id, entry)
                continue
            if definition_for(threshold) is None:
                logger.warning("Planner %s has unknown milestone %s; skipping", self.id, threshold)
                continue
            thresholds.append(threshold)
        return thresholds


def _load_records(path: Path) -> Iterable[Any]:
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    return payload.values() if isinstance(payload, dict) else payload


def backfill(path: Path, *, create_schema: bool = False) -> int:
    if not path.exists():
        logger.info("No legacy planner export found at %s", path)
        return 0
    if create_schema:
        Base.metadata.create_all(get_engine())

    imported = 0
    with session_scope() as session:
        for entry in _load_records(path):
            try:
                planner = LegacyPlanner.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Skipping invalid planner payload: %s", exc)
                continue
            progress = None
            if planner.progress_percent is not None:
                progress = max(0, min(100, int(planner.progress_percent)))
            try:
                claimed = plan_repository.save_achieved(
                    session,
                    planner.id,
                    planner.achieved_thresholds(),
                    progress=progress,
                )
            except PlanNotFound:
                logger.warning("Skipping milestones for planner %s; plan not found", planner.id)
                continue
            imported += len(claimed)
    logger.info("Imported %d milestone achievements", imported)
    return imported


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill legacy planJson milestones into the achievement ledger.")
    parser.add_argument("export", type=Path, help="JSON export of legacy planner rows.")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before importing (development databases only).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging()
    args = parse_args(argv)
    try:
        backfill(args.export, create_schema=args.create_schema)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Backfill failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
