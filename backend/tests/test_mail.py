"""
Mail dispatcher tests.

smtplib is replaced with a recording fake; nothing leaves the process.
"""

import smtplib

import pytest

from tourops.services import mail_service
from tourops.services.mail_service import MailSettings


class FakeSMTP:
    """Records the conversation instead of talking to a server."""

    instances = []

    def __init__(self, host, port, context=None, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user))

    def send_message(self, msg):
        self.sent.append(msg)


class RefusingSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"no such user")})


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mail_service.smtplib, "SMTP_SSL", FakeSMTP)
    monkeypatch.setattr(mail_service.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


SETTINGS = MailSettings(
    host="smtp.test",
    port=465,
    secure=True,
    username="ops@tourops.test",
    password="secret",
    sender="ops@tourops.test",
    recipient="desk@tourops.test",
)


class TestSend:

    def test_ssl_send(self):
        result = mail_service.send_notification_email("[CLIENT_CREATED] New Client", "body", SETTINGS)

        assert result == {"success": True, "error": None}
        server = FakeSMTP.instances[0]
        assert (server.host, server.port) == ("smtp.test", 465)
        assert server.calls == [("login", "ops@tourops.test"), "quit"]
        msg = server.sent[0]
        assert msg["Subject"] == "[CLIENT_CREATED] New Client"
        assert msg["To"] == "desk@tourops.test"
        assert "Tour Operations Notifications" in msg["From"]
        assert msg.get_content().strip() == "body"

    def test_starttls_send(self):
        settings = MailSettings(host="smtp.test", port=587, secure=False, sender="a@b.test", recipient="c@d.test")

        result = mail_service.send_notification_email("subject", "body", settings)

        assert result["success"] is True
        assert FakeSMTP.instances[0].calls == ["ehlo", "starttls", "ehlo", "quit"]

    def test_failure_is_reported_not_raised(self, monkeypatch, caplog):
        monkeypatch.setattr(mail_service.smtplib, "SMTP_SSL", RefusingSMTP)

        result = mail_service.send_notification_email("subject", "body", SETTINGS)

        assert result["success"] is False
        assert result["error"]
        assert "Email sending failed" in caplog.text

    def test_connection_error(self, monkeypatch):
        def unreachable(*args, **kwargs):
            raise ConnectionRefusedError("refused")

        monkeypatch.setattr(mail_service.smtplib, "SMTP_SSL", unreachable)

        assert mail_service.send_notification_email("s", "b", SETTINGS)["success"] is False

    def test_message_build_error_is_logged(self, monkeypatch, caplog):
        def broken_build(subject, text, settings):
            raise TypeError("set_content() got an unexpected body")

        monkeypatch.setattr(mail_service, "_build_message", broken_build)

        result = mail_service.send_notification_email("subject", "body", SETTINGS)

        assert result["success"] is False
        assert "Unexpected error sending notification email" in caplog.text
        assert FakeSMTP.instances == []

    def test_non_text_body(self, caplog):
        result = mail_service.send_notification_email("subject", 42, SETTINGS)

        assert result["success"] is False
        assert "Unexpected error sending notification email" in caplog.text

    def test_missing_recipient(self):
        settings = MailSettings(host="smtp.test")

        result = mail_service.send_notification_email("s", "b", settings)

        assert result["success"] is False
        assert FakeSMTP.instances == []


class TestSettings:

    def test_disabled(self):
        assert MailSettings.from_config({"NOTIFICATION_EMAILS_ENABLED": False, "SMTP_HOST": "smtp.test"}) is None

    def test_no_host(self):
        assert MailSettings.from_config({"NOTIFICATION_EMAILS_ENABLED": True, "SMTP_HOST": None}) is None

    def test_addresses_fall_back_to_user(self):
        settings = MailSettings.from_config({
            "SMTP_HOST": "smtp.test",
            "SMTP_PORT": "587",
            "SMTP_SECURE": False,
            "SMTP_USER": "ops@tourops.test",
        })

        assert settings.port == 587
        assert settings.secure is False
        assert settings.sender == settings.recipient == "ops@tourops.test"


class TestDispatch:

    def test_disabled_returns_none(self, app):
        assert mail_service.dispatch_notification_email("s", "b") is None

    def test_queues_send(self, app):
        app.config.update(NOTIFICATION_EMAILS_ENABLED=True, SMTP_HOST="smtp.test", SMTP_USER="ops@tourops.test")

        future = mail_service.dispatch_notification_email("subject", "body")

        assert future.result(timeout=5) == {"success": True, "error": None}
        assert FakeSMTP.instances[0].sent[0]["To"] == "ops@tourops.test"
