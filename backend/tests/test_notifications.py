"""
Notification tests.

Verifies:
- Every notification kind has a template that renders with its own fields
- Missing payload fields and unknown kinds are rejected
- notify() persists before mailing, and a mail failure never undoes it
- Inbox endpoints: list, mark read, delete, read-all, ad-hoc e-mail
"""

import pytest

from conftest import make_reservation
from tourops.errors import ValidationError
from tourops.extensions import db
from tourops.models import ActivityLogEntry, Notification
from tourops.models.notifications import NOTIFICATION_TYPES
from tourops.services import notification_service


SAMPLE_VALUES = {
    "name": "Smith",
    "old_status": "planning",
    "new_status": "confirmed",
    "invoice_id": "INV-007",
    "client_name": "Smith",
    "amount": "1250.5",
    "title": "Book flight",
    "days": 3,
}


def sample_payload(kind):
    fields = notification_service.template_fields(kind) - {"client_suffix"}
    return {field: SAMPLE_VALUES[field] for field in fields}


# =============================================================================
# TEMPLATES
# =============================================================================


class TestTemplates:

    def test_every_kind_has_a_template(self):
        assert set(notification_service.TEMPLATES) == set(NOTIFICATION_TYPES)

    @pytest.mark.parametrize("kind", NOTIFICATION_TYPES)
    def test_renders_with_its_own_fields(self, kind):
        title, message = notification_service.render(kind, sample_payload(kind))

        assert title
        assert "{" not in message and "}" not in message
        for field in notification_service.template_fields(kind) - {"client_suffix", "amount"}:
            assert str(SAMPLE_VALUES[field]) in message

    @pytest.mark.parametrize("kind", NOTIFICATION_TYPES)
    def test_missing_field_is_named(self, kind):
        fields = sorted(notification_service.template_fields(kind) - {"client_suffix"})
        payload = sample_payload(kind)
        missing = fields[0]
        del payload[missing]

        with pytest.raises(ValidationError) as exc:
            notification_service.render(kind, payload)
        assert missing in exc.value.message

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            notification_service.render("BIRTHDAY", {})

    def test_task_client_suffix(self):
        _, linked = notification_service.render("TASK_CREATED", {"title": "Book flight", "client_name": "Smith"})
        _, loose = notification_service.render("TASK_CREATED", {"title": "Book flight", "client_name": None})

        assert linked == 'New task "Book flight" for Smith has been created.'
        assert loose == 'New task "Book flight" has been created.'

    def test_status_change_message(self):
        _, message = notification_service.render(
            "CLIENT_STATUS_CHANGED",
            {"name": "Smith", "old_status": "planning", "new_status": "booked"},
        )
        assert message == 'Client "Smith" status changed from planning to booked.'

    @pytest.mark.parametrize("amount,expected", [
        ("1500", "1500"),
        ("1500.00", "1500"),
        ("99.5", "99.50"),
        (12.3, "12.30"),
    ])
    def test_amount_format(self, amount, expected):
        assert notification_service.format_amount(amount) == expected

    def test_email_subject(self):
        assert notification_service.email_subject("task_completed", "Task Completed") == "[TASK_COMPLETED] Task Completed"


# =============================================================================
# EMITTER
# =============================================================================


class TestNotify:

    def test_persists_then_mails(self, db_session, monkeypatch):
        sent = []

        def fake_dispatch(subject, text):
            assert db.session.query(Notification).count() == 1
            sent.append((subject, text))

        monkeypatch.setattr(notification_service, "dispatch_notification_email", fake_dispatch)

        notification = notification_service.notify("ARRIVAL_SOON", {"name": "Smith", "days": 2}, client_id=4)

        assert notification.id is not None
        assert notification.read is False
        assert notification.client_id == 4
        assert sent == [("[ARRIVAL_SOON] Client Arrival Soon", "Smith is arriving in 2 days.")]

    def test_mail_failure_keeps_notification(self, db_session, monkeypatch):
        def broken_dispatch(subject, text):
            raise RuntimeError("smtp down")

        monkeypatch.setattr(notification_service, "dispatch_notification_email", broken_dispatch)

        notification = notification_service.notify("CLIENT_CREATED", {"name": "Smith"})

        assert db.session.get(Notification, notification.id) is not None

    def test_notify_safely_swallows_render_errors(self, db_session):
        assert notification_service.notify_safely("CLIENT_CREATED", {}) is None
        assert db.session.query(Notification).count() == 0


# =============================================================================
# INBOX ENDPOINTS
# =============================================================================


def _notification(title="Heads up", read=False, client_id=None):
    notification = Notification(type="CLIENT_CREATED", title=title, message="msg", read=read, client_id=client_id)
    db.session.add(notification)
    db.session.commit()
    return notification


class TestInboxEndpoints:

    def test_list_newest_first_with_client_name(self, client, admin_headers):
        reservation = make_reservation(name="Smith")
        _notification(title="older", client_id=reservation.id)
        _notification(title="newer", client_id=9999)

        resp = client.get("/api/notifications", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert [n["title"] for n in body] == ["newer", "older"]
        assert body[0]["clientName"] is None
        assert body[1]["clientName"] == "Smith"

    def test_list_is_capped(self, client, admin_headers):
        for n in range(105):
            db.session.add(Notification(type="CLIENT_CREATED", title=f"n{n}", message="m", read=False))
        db.session.commit()

        resp = client.get("/api/notifications", headers=admin_headers)

        assert len(resp.get_json()) == 100

    def test_mark_read_and_audit(self, client, admin_headers, admin_user):
        notification = _notification()

        resp = client.patch("/api/notifications", headers=admin_headers, json={"id": notification.id, "read": True})

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True}
        assert db.session.get(Notification, notification.id).read is True
        entry = db.session.query(ActivityLogEntry).one()
        assert (entry.action_type, entry.entity_type, entry.entity_id) == ("UPDATE", "NOTIFICATION", str(notification.id))
        assert entry.user_id == admin_user.id

    @pytest.mark.parametrize("body", [
        {},
        {"id": 1},
        {"read": True},
        {"id": 1, "read": "yes"},
        {"id": "one", "read": True},
        {"id": True, "read": True},
    ])
    def test_mark_read_rejects_bad_input(self, client, admin_headers, body):
        _notification()
        resp = client.patch("/api/notifications", headers=admin_headers, json=body)
        assert resp.status_code == 400

    def test_mark_read_unknown_id(self, client, admin_headers):
        resp = client.patch("/api/notifications", headers=admin_headers, json={"id": 999, "read": True})
        assert resp.status_code == 404

    def test_delete_by_body(self, client, admin_headers):
        notification = _notification(title="bye")

        resp = client.delete("/api/notifications", headers=admin_headers, json={"id": notification.id})

        assert resp.status_code == 200
        assert db.session.query(Notification).count() == 0
        entry = db.session.query(ActivityLogEntry).one()
        assert (entry.action_type, entry.entity_type) == ("DELETE", "NOTIFICATION")
        assert "bye" in entry.action_description

    def test_delete_by_query(self, client, admin_headers):
        notification = _notification()

        resp = client.delete(f"/api/notifications?id={notification.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert db.session.query(Notification).count() == 0

    def test_delete_without_id(self, client, admin_headers):
        assert client.delete("/api/notifications", headers=admin_headers).status_code == 400

    def test_read_all(self, client, admin_headers):
        _notification()
        _notification()
        _notification(read=True)

        resp = client.post("/api/notifications/read-all", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["updated"] == 2
        assert notification_service.unread_count() == 0
        unread = client.get("/api/notifications/unread-count", headers=admin_headers).get_json()
        assert unread == {"unread": 0}

    def test_requires_auth(self, client):
        assert client.get("/api/notifications").status_code == 401
        assert client.patch("/api/notifications", json={"id": 1, "read": True}).status_code == 401


class TestAdHocEmail:

    PAYLOAD = {"title": "Lodge closed", "message": "The lodge is closed.", "type": "client_created", "clientName": "Smith"}

    def test_unconfigured(self, client, admin_headers):
        resp = client.post("/api/notifications/email", headers=admin_headers, json=self.PAYLOAD)
        assert resp.status_code == 503

    def test_sends_with_subject(self, app, client, admin_headers, monkeypatch):
        app.config.update(NOTIFICATION_EMAILS_ENABLED=True, SMTP_HOST="smtp.test", SMTP_USER="ops@tourops.test")
        calls = []

        def fake_send(subject, text, settings):
            calls.append((subject, text, settings.recipient))
            return {"success": True, "error": None}

        monkeypatch.setattr("tourops.routes.notifications.send_notification_email", fake_send)

        resp = client.post("/api/notifications/email", headers=admin_headers, json=self.PAYLOAD)

        assert resp.status_code == 200
        assert calls == [(
            "[CLIENT_CREATED] Lodge closed",
            "The lodge is closed.\n\nClient: Smith",
            "ops@tourops.test",
        )]

    def test_send_failure(self, app, client, admin_headers, monkeypatch):
        app.config.update(NOTIFICATION_EMAILS_ENABLED=True, SMTP_HOST="smtp.test", SMTP_USER="ops@tourops.test")
        monkeypatch.setattr(
            "tourops.routes.notifications.send_notification_email",
            lambda subject, text, settings: {"success": False, "error": "refused"},
        )

        resp = client.post("/api/notifications/email", headers=admin_headers, json=self.PAYLOAD)

        assert resp.status_code == 500
        assert resp.get_json()["code"] == "MAIL_ERROR"

    def test_non_string_message(self, client, admin_headers):
        resp = client.post("/api/notifications/email", headers=admin_headers, json=dict(self.PAYLOAD, message=42))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "message must be a string"

    def test_missing_fields(self, client, admin_headers):
        resp = client.post("/api/notifications/email", headers=admin_headers, json={"title": "x"})
        assert resp.status_code == 400
