from typing import List

import pytest
from flask import Flask
from jinja2 import TemplateNotFound

import sacrud.mail as mail_mod
from sacrud.mail import Mailer


class _FakeSMTP:
    instances: List["_FakeSMTP"] = []

    def __init__(self, host: str, port: int, timeout: int) -> None:
        self.host, self.port, self.timeout = host, port, timeout
        self.calls: List[str] = []
        self.messages = []
        _FakeSMTP.instances.append(self)

    def __enter__(self) -> "_FakeSMTP":
        return self

    def __exit__(self, *exc_info) -> None:
        self.calls.append("quit")

    def starttls(self, context=None) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login {username}")

    def send_message(self, msg) -> None:
        self.messages.append(msg)


@pytest.fixture(autouse=True)
def _fake_smtp(monkeypatch: pytest.MonkeyPatch) -> None:
    _FakeSMTP.instances = []
    monkeypatch.setattr(mail_mod.smtplib, "SMTP", _FakeSMTP)


def test_render_password_reset() -> None:
    html = Mailer().render("mail/password_reset.html", {"name": "<Ann>", "reset_link": "http://x/reset/abc", "app_name": "demo", "valid_hours": 24})

    assert 'href="http://x/reset/abc"' in html
    assert "&lt;Ann&gt;" in html
    assert "24 hours" in html


def test_render_unknown_template() -> None:
    with pytest.raises(TemplateNotFound):
        Mailer().render("mail/missing.html", {})


def test_send_without_server_only_logs() -> None:
    Mailer(server=None).send("ann@example.com", "subject", "<p>hi</p>")

    assert _FakeSMTP.instances == []


def test_send_over_smtp() -> None:
    Mailer(server="smtp.local", port=587, sender="app@local", use_tls=True, username="app", password="pw", timeout=3).send("ann@example.com", "Reset", "<p>hi</p>")

    smtp = _FakeSMTP.instances[0]
    assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.local", 587, 3)
    assert smtp.calls == ["starttls", "login app", "quit"]
    msg = smtp.messages[0]
    assert msg["To"] == "ann@example.com"
    assert msg["From"] == "app@local"
    assert msg["Subject"] == "Reset"


def test_from_config(app: Flask) -> None:
    app.config.update(MAIL_SERVER="smtp.example.com", MAIL_PORT="2525", MAIL_USE_TLS="true", MAIL_TIMEOUT=5)

    mailer = Mailer.from_config()

    assert mailer.server == "smtp.example.com"
    assert mailer.port == 2525
    assert mailer.use_tls is True
    assert mailer.timeout == 5
