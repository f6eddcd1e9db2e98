"""Upgrade the achievement ledger schema once the database is reachable.

Usage: ``python scripts/run_migrations.py [--revision head] [--timeout 60]``.
The database URL comes from ``MILESTONE_DATABASE_URL`` unless ``alembic.ini``
sets ``sqlalchemy.url``.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

LOGGER = logging.getLogger("milestone_engine.migrations")
BACKEND_ROOT = Path(__file__).resolve().parent.parent
ALEMBIC_INI = BACKEND_ROOT / "alembic.ini"


def build_config(config_path: Path = ALEMBIC_INI) -> Config:
    """Load alembic.ini with the script location pinned and the database URL filled in."""
    config = Config(str(config_path))
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    if not config.get_main_option("sqlalchemy.url"):
        url = os.getenv("MILESTONE_DATABASE_URL")
        if not url:
            raise RuntimeError("MILESTONE_DATABASE_URL must be set before running migrations.")
        config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def wait_for_database(database_url: str, *, timeout: float, poll_interval: float) -> None:
    """Probe with ``SELECT 1`` until it succeeds; at least one probe always runs."""
    engine = create_engine(database_url, pool_pre_ping=True)
    deadline = time.monotonic() + timeout
    try:
        while True:
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                return
            except OperationalError as exc:
                if time.monotonic() >= deadline:
                    raise RuntimeError(f"Database not reachable after {timeout}s") from exc
                LOGGER.warning("Database not ready: %s", exc)
                time.sleep(poll_interval)
    finally:
        engine.dispose()


def upgrade(config: Config, revision: str = "head", *, timeout: float = 60, poll_interval: float = 3) -> None:
    wait_for_database(config.get_main_option("sqlalchemy.url"), timeout=timeout, poll_interval=poll_interval)
    LOGGER.info("Upgrading schema to %s", revision)
    command.upgrade(config, revision)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--revision", default="head")
    parser.add_argument("--timeout", type=float, default=60)
    parser.add_argument("--poll-interval", type=float, default=3)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    try:
        upgrade(build_config(), args.revision, timeout=args.timeout, poll_interval=args.poll_interval)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Migration run failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
