from __future__ import annotations

import json
from pathlib import Path

from scripts import backfill_plan_milestones as backfill_script
from milestone_engine.stores import DatabasePlanStore


def _export(tmp_path: Path, payload) -> Path:
    path = tmp_path / "planners.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_legacy_planner_filters_unknown_thresholds() -> None:
    planner = backfill_script.LegacyPlanner.model_validate(
        {"id": 3, "progressPercent": 52.5, "planJson": json.dumps({"milestones": [25, "50", 60, "soon"]})}
    )

    assert planner.achieved_thresholds() == [25, 50]
    assert planner.progress_percent == 52.5


def test_backfill_merges_legacy_milestones(sqlite_database: str, tmp_path: Path) -> None:
    store = DatabasePlanStore()
    user = store.create_user(email="learner@example.com")
    plan = store.create_plan(user.user_id, progress=10)
    store.save_achieved(plan.plan_id, {25})
    export = _export(
        tmp_path,
        {
            str(plan.plan_id): {"id": plan.plan_id, "progressPercent": 78, "planJson": {"milestones": [25, 50, 75]}},
            "999": {"id": 999, "planJson": {"milestones": [25]}},
            "broken": {"planJson": {"milestones": [25]}},
        },
    )

    assert backfill_script.backfill(export) == 2
    assert backfill_script.backfill(export) == 0

    stored = store.get(plan.plan_id)
    assert stored.achieved_milestones == {25, 50, 75}
    assert stored.progress == 78


def test_backfill_missing_export_is_a_no_op(tmp_path: Path) -> None:
    assert backfill_script.backfill(tmp_path / "absent.json") == 0


def test_main_reports_failure(sqlite_database: str, tmp_path: Path) -> None:
    path = tmp_path / "planners.json"
    path.write_text("not json", encoding="utf-8")

    assert backfill_script.main([str(path)]) == 1
