from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterator, List, Tuple

import pytest

from milestone_engine.config import get_settings
from milestone_engine.db.base import Base
from milestone_engine.db.session import dispose_engine, get_engine
from milestone_engine.exceptions import NotificationError
from milestone_engine.telemetry import TelemetryEvent, clear_listeners, register_listener


class RecordingNotifier:
    """Notifier double that records sends and fails for chosen milestone names."""

    def __init__(self, fail_for: Tuple[str, ...] = ()) -> None:
        self.fail_for = fail_for
        self.sent: List[Tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def send(self, recipient: str, subject: str, body: str) -> None:
        for name in self.fail_for:
            if name in subject:
                raise NotificationError(f"relay rejected {name}")
        with self._lock:
            self.sent.append((recipient, subject, body))

    def subjects(self) -> List[str]:
        return [subject for _, subject, _ in self.sent]


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def telemetry_events() -> Iterator[List[TelemetryEvent]]:
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    yield events
    clear_listeners()


@pytest.fixture()
def sqlite_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    url = f"sqlite:///{tmp_path / 'milestones.db'}"
    monkeypatch.setenv("MILESTONE_DATABASE_URL", url)
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield url
    dispose_engine()
    get_settings.cache_clear()
