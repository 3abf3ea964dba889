"""
Note tests.

Verifies:
- Tags are trimmed and de-duplicated, and replaced as a set on update
- Notes filter by client and by tag
- Every mutation is audited under entity type NOTE
"""

from conftest import make_reservation
from tourops.extensions import db
from tourops.models import ActivityLogEntry, Note, NoteTag


def create(client, headers, **fields):
    payload = {"title": "Dietary", "content": "Vegetarian meals", **fields}
    return client.post("/api/notes", headers=headers, json=payload)


class TestNotes:

    def test_create_with_tags(self, client, staff_headers):
        reservation = make_reservation(name="Smith")

        resp = create(client, staff_headers, clientId=reservation.id, tags=[" food ", "vip", "food", ""])

        assert resp.status_code == 201
        note = resp.get_json()["note"]
        assert note["tags"] == ["food", "vip"]
        assert note["clientName"] == "Smith"
        entry = db.session.query(ActivityLogEntry).one()
        assert (entry.action_type, entry.entity_type, entry.entity_id) == ("CREATE", "NOTE", str(note["id"]))

    def test_create_validation(self, client, staff_headers):
        assert client.post("/api/notes", headers=staff_headers, json={"title": "x"}).status_code == 400
        assert create(client, staff_headers, tags="food").status_code == 400
        assert create(client, staff_headers, tags=["x" * 65]).status_code == 400
        assert create(client, staff_headers, clientId=999).status_code == 404
        assert db.session.query(Note).count() == 0

    def test_non_string_fields_are_400(self, client, staff_headers):
        title = client.post("/api/notes", headers=staff_headers, json={"title": 123, "content": "x"})
        content = client.post("/api/notes", headers=staff_headers, json={"title": "x", "content": {"text": "x"}})

        assert (title.status_code, title.get_json()["error"]) == (400, "title must be a string")
        assert (content.status_code, content.get_json()["error"]) == (400, "content must be a string")
        assert db.session.query(Note).count() == 0

    def test_update_replaces_tags(self, client, staff_headers):
        note_id = create(client, staff_headers, tags=["food", "vip"]).get_json()["id"]

        resp = client.put(f"/api/notes/{note_id}", headers=staff_headers, json={"tags": ["vip", "allergy"]})

        assert resp.status_code == 200
        assert resp.get_json()["note"]["tags"] == ["vip", "allergy"]
        assert sorted(t.tag_name for t in db.session.query(NoteTag).all()) == ["allergy", "vip"]

    def test_update_without_tags_keeps_them(self, client, staff_headers):
        note_id = create(client, staff_headers, tags=["food"]).get_json()["id"]

        resp = client.put(f"/api/notes/{note_id}", headers=staff_headers, json={"title": "Diet"})

        assert resp.get_json()["note"]["title"] == "Diet"
        assert resp.get_json()["note"]["tags"] == ["food"]

    def test_empty_update_rejected(self, client, staff_headers):
        note_id = create(client, staff_headers).get_json()["id"]
        assert client.put(f"/api/notes/{note_id}", headers=staff_headers, json={}).status_code == 400

    def test_filters(self, client, staff_headers):
        smith = make_reservation(name="Smith")
        jones = make_reservation(name="Jones")
        create(client, staff_headers, title="A", clientId=smith.id, tags=["vip"])
        create(client, staff_headers, title="B", clientId=jones.id, tags=["food"])
        create(client, staff_headers, title="C", clientId=jones.id, tags=["vip"])

        by_client = client.get(f"/api/notes?clientId={jones.id}", headers=staff_headers).get_json()
        by_tag = client.get("/api/notes?tag=vip", headers=staff_headers).get_json()

        assert sorted(n["title"] for n in by_client) == ["B", "C"]
        assert sorted(n["title"] for n in by_tag) == ["A", "C"]

    def test_delete_removes_tags(self, client, staff_headers):
        note_id = create(client, staff_headers, tags=["food"]).get_json()["id"]

        resp = client.delete(f"/api/notes/{note_id}", headers=staff_headers)

        assert resp.status_code == 200
        assert db.session.query(NoteTag).count() == 0
        assert client.get(f"/api/notes/{note_id}", headers=staff_headers).status_code == 404
        actions = [e.action_type for e in db.session.query(ActivityLogEntry).order_by(ActivityLogEntry.id)]
        assert actions == ["CREATE", "DELETE"]
