from __future__ import annotations

import logging
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from scripts import run_migrations as runner


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


def test_build_config_reads_url_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("MILESTONE_DATABASE_URL", "sqlite://")

    config = runner.build_config()

    assert config.get_main_option("sqlalchemy.url") == "sqlite://"
    assert config.get_main_option("script_location") == str(runner.BACKEND_ROOT / "alembic")


def test_build_config_keeps_percent_in_password(monkeypatch) -> None:
    url = "postgresql://coach:p%40ss@db/milestones"
    monkeypatch.setenv("MILESTONE_DATABASE_URL", url)

    assert runner.build_config().get_main_option("sqlalchemy.url") == url


def test_build_config_prefers_url_from_ini(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MILESTONE_DATABASE_URL", raising=False)
    ini = tmp_path / "alembic.ini"
    ini.write_text("[alembic]\nscript_location = alembic\nsqlalchemy.url = sqlite:///explicit.db\n", encoding="utf-8")

    assert runner.build_config(ini).get_main_option("sqlalchemy.url") == "sqlite:///explicit.db"


def test_build_config_requires_database_url(monkeypatch) -> None:
    monkeypatch.delenv("MILESTONE_DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="MILESTONE_DATABASE_URL"):
        runner.build_config()


def test_wait_for_database_succeeds_with_sqlite(tmp_path: Path) -> None:
    runner.wait_for_database(f"sqlite:///{tmp_path / 'probe.sqlite'}", timeout=2, poll_interval=0.1)


def test_wait_for_database_times_out(monkeypatch) -> None:
    class UnreachableEngine:
        def connect(self):
            raise runner.OperationalError("SELECT 1", {}, Exception("connection refused"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: UnreachableEngine())

    with pytest.raises(RuntimeError, match="not reachable"):
        runner.wait_for_database("postgresql://db/milestones", timeout=0, poll_interval=0)


def test_upgrade_waits_then_runs_alembic(monkeypatch) -> None:
    monkeypatch.setenv("MILESTONE_DATABASE_URL", "sqlite://")
    calls: list[tuple] = []
    monkeypatch.setattr(runner, "wait_for_database", lambda url, **kwargs: calls.append(("wait", url, kwargs)))
    monkeypatch.setattr(runner.command, "upgrade", lambda cfg, revision: calls.append(("upgrade", revision)))

    runner.upgrade(runner.build_config(), "head", timeout=5, poll_interval=0.1)

    assert calls == [
        ("wait", "sqlite://", {"timeout": 5, "poll_interval": 0.1}),
        ("upgrade", "head"),
    ]


def test_main_reports_missing_configuration(monkeypatch, restore_root_logger) -> None:
    monkeypatch.delenv("MILESTONE_DATABASE_URL", raising=False)

    assert runner.main([]) == 1


def test_main_creates_achievement_ledger(tmp_path: Path, monkeypatch, restore_root_logger) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    monkeypatch.setenv("MILESTONE_DATABASE_URL", url)

    assert runner.main(["--timeout", "2", "--poll-interval", "0.1"]) == 0

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert {"users", "plans", "plan_milestone_achievements", "persistence_audit_events"} <= set(
            inspector.get_table_names()
        )
        constraints = inspector.get_unique_constraints("plan_milestone_achievements")
        assert [constraint["column_names"] for constraint in constraints] == [["plan_id", "threshold"]]
    finally:
        engine.dispose()
