# tests/test_mailer.py

from __future__ import annotations

import smtplib

import pytest

from taskbell.errors import DeliveryError
from taskbell.notifications import mailer as mailer_mod
from taskbell.notifications.mailer import OfflineMailChannel, SmtpMailChannel, split_recipients


class FakeSMTP:
    """Records the SMTP conversation instead of opening a socket."""

    instances: list[FakeSMTP] = []
    fail_on_send: Exception | None = None

    def __init__(self, host, port, timeout=None) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self) -> FakeSMTP:
        return self

    def __exit__(self, *exc) -> None:
        self.calls.append("quit")

    def starttls(self, context=None) -> None:
        self.calls.append("starttls")

    def login(self, user, password) -> None:
        self.calls.append(f"login:{user}")

    def send_message(self, msg) -> None:
        if FakeSMTP.fail_on_send is not None:
            raise FakeSMTP.fail_on_send
        self.calls.append("send")
        self.messages.append(msg)


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_on_send = None
    monkeypatch.setattr(mailer_mod.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _channel(**kw) -> SmtpMailChannel:
    params = {"host": "smtp.example.com", "sender": "noreply@example.com", "username": "bot", "password": "pw"}
    params.update(kw)
    return SmtpMailChannel(**params)


def test_split_recipients() -> None:
    assert split_recipients(" a@x.org, ,b@y.org ") == ["a@x.org", "b@y.org"]
    assert split_recipients("") == []


def test_smtp_send_uses_starttls_and_login(fake_smtp) -> None:
    _channel(timeout_seconds=7).send_mail("laura@example.com", "Hi", "Body text")

    (smtp,) = fake_smtp.instances
    assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.example.com", 587, 7.0)
    assert smtp.calls == ["starttls", "login:bot", "send", "quit"]
    msg = smtp.messages[0]
    assert msg["From"] == "noreply@example.com"
    assert msg["To"] == "laura@example.com"
    assert msg["Subject"] == "Hi"
    assert "Body text" in msg.get_content()


def test_smtp_without_tls_or_login(fake_smtp) -> None:
    _channel(username="", starttls=False, port=25).send_mail("a@x.org", "s", "b")
    assert fake_smtp.instances[0].calls == ["send", "quit"]


def test_smtp_failure_is_raised_as_delivery_error(fake_smtp) -> None:
    fake_smtp.fail_on_send = smtplib.SMTPRecipientsRefused({"a@x.org": (550, b"no such user")})
    with pytest.raises(DeliveryError):
        _channel().send_mail("a@x.org", "s", "b")


def test_smtp_connection_error_is_raised_as_delivery_error(monkeypatch) -> None:
    def refuse(*_a, **_kw):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(mailer_mod.smtplib, "SMTP", refuse)
    with pytest.raises(DeliveryError):
        _channel().send_mail("a@x.org", "s", "b")


def test_smtp_requires_host_and_sender() -> None:
    with pytest.raises(ValueError):
        SmtpMailChannel(host="", sender="a@x.org")
    with pytest.raises(ValueError):
        SmtpMailChannel(host="smtp.example.com", sender="")


def test_blank_recipient_is_rejected(fake_smtp) -> None:
    with pytest.raises(DeliveryError):
        _channel().send_mail("  ", "s", "b")
    assert fake_smtp.instances == []
    with pytest.raises(DeliveryError):
        OfflineMailChannel().send_mail("", "s", "b")


def test_offline_channel_keeps_last_messages() -> None:
    ch = OfflineMailChannel(keep_last=2)
    for i in range(3):
        ch.send_mail(f"u{i}@x.org", f"subject {i}", "body")
    assert [m.recipient for m in ch.sent] == ["u1@x.org", "u2@x.org"]
