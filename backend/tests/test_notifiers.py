from __future__ import annotations

import smtplib
from typing import List

import pytest

from milestone_engine import notifiers
from milestone_engine.config import Settings
from milestone_engine.exceptions import NotificationError
from milestone_engine.notifiers import LoggingNotifier, SmtpNotifier, build_notifier


class FakeSMTP:
    instances: List["FakeSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: List[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self) -> "FakeSMTP":
        return self

    def __exit__(self, *exc_info) -> None:
        self.calls.append("quit")

    def set_debuglevel(self, level: int) -> None:
        self.calls.append(f"debug:{level}")

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login:{username}")

    def send_message(self, message) -> None:
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.messages.append(message)


@pytest.fixture()
def fake_smtp(monkeypatch: pytest.MonkeyPatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(notifiers.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(notifiers.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def _notifier(**overrides) -> SmtpNotifier:
    options = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "coach",
        "password": "secret",
        "sender": "coach@example.com",
        "sender_name": "Career Coach",
        "timeout": 5.0,
    }
    options.update(overrides)
    return SmtpNotifier(**options)


def test_smtp_notifier_sends_html_message(fake_smtp) -> None:
    _notifier().send("learner@example.com", "Halfway Point - 50% Complete!", "<p>Keep going</p>")

    (server,) = fake_smtp.instances
    assert (server.host, server.port, server.timeout) == ("smtp.example.com", 587, 5.0)
    assert server.calls == ["starttls", "login:coach", "quit"]
    (message,) = server.messages
    assert message["To"] == "learner@example.com"
    assert message["From"] == "Career Coach <coach@example.com>"
    assert message.get_content_subtype() == "html"
    assert "<p>Keep going</p>" in message.get_content()


def test_implicit_tls_port_skips_starttls(fake_smtp) -> None:
    _notifier(port=465, username=None, password=None).send("learner@example.com", "subject", "body")

    assert fake_smtp.instances[0].calls == ["quit"]


@pytest.mark.parametrize(
    "error",
    [
        smtplib.SMTPRecipientsRefused({"learner@example.com": (550, b"no such user")}),
        smtplib.SMTPAuthenticationError(535, b"bad credentials"),
        ConnectionRefusedError("connection refused"),
    ],
)
def test_transport_errors_become_notification_errors(fake_smtp, error: Exception) -> None:
    fake_smtp.fail_with = error

    with pytest.raises(NotificationError):
        _notifier().send("learner@example.com", "subject", "body")


def test_build_notifier_defaults_to_logging() -> None:
    notifier = build_notifier(Settings())
    assert isinstance(notifier, LoggingNotifier)

    notifier.send("learner@example.com", "subject", "body")
    assert notifier.sent == [("learner@example.com", "subject")]


def test_build_notifier_requires_smtp_host() -> None:
    with pytest.raises(RuntimeError, match="MILESTONE_SMTP_HOST"):
        build_notifier(Settings(MILESTONE_NOTIFIER="smtp"))


def test_smtp_notifier_from_settings_falls_back_to_username() -> None:
    settings = Settings(
        MILESTONE_NOTIFIER="smtp",
        MILESTONE_SMTP_HOST="smtp.example.com",
        MILESTONE_SMTP_USERNAME="coach@example.com",
        MILESTONE_SMTP_FROM_NAME="",
    )

    notifier = build_notifier(settings)

    assert isinstance(notifier, SmtpNotifier)
    message = notifier.build_message("learner@example.com", "subject", "body")
    assert message["From"] == "coach@example.com"
