"""
Isolation tests: one user's notes are invisible and immutable to everyone else.

These tests ensure that:
1. Users cannot read other users' notes
2. Users cannot modify or delete other users' notes
3. Editing sessions only ever see their own user's snapshot
4. Requests without credentials are rejected
"""


def _create(client, user, **fields):
    r = client.post("/notes", headers={"X-User-Id": user}, json=fields)
    assert r.status_code == 201
    return r.json()["id"]


def test_unauthorized_note_access(client):
    note_id = _create(client, "userB", title="Private Note", content="Secret content")

    response = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userA"})
    assert response.status_code == 404


def test_unauthorized_note_modification(client):
    note_id = _create(client, "userB", title="Original Title", content="Original content")

    response = client.put(
        f"/notes/{note_id}",
        headers={"X-User-Id": "userA"},
        json={"title": "Hacked Title", "content": "Hacked content"},
    )
    assert response.status_code == 404

    # the note was not modified
    r = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userB"})
    assert r.status_code == 200
    assert r.json()["title"] == "Original Title"
    assert r.json()["content"] == "Original content"


def test_unauthorized_note_deletion(client):
    note_id = _create(client, "userB", title="Keep me")

    assert client.delete(f"/notes/{note_id}", headers={"X-User-Id": "userA"}).status_code == 404
    assert client.get(f"/notes/{note_id}", headers={"X-User-Id": "userB"}).status_code == 200


def test_missing_credentials(client):
    note_id = _create(client, "userB", title="Secure Note", content="Protected")

    assert client.get(f"/notes/{note_id}").status_code == 401
    assert client.get("/session").status_code == 401


def test_tampering_with_user_id_header(client):
    note_id = _create(client, "userB", title="Secret", content="Only for B")

    response = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userA; userB"})
    assert response.status_code == 404

    # path traversal in the header is refused outright
    response = client.get("/notes", headers={"X-User-Id": "../userB"})
    assert response.status_code == 400

    response = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userB"})
    assert response.status_code == 200


def test_note_list_isolation(client):
    b_ids = [_create(client, "userB", title=f"Note {i}", content=f"Content {i}") for i in range(3)]
    a_id = _create(client, "userA", title="User A Note", content="A's content")

    r = client.get("/notes", headers={"X-User-Id": "userA"})
    assert r.status_code == 200
    a_note_ids = [n["id"] for n in r.json()]
    assert a_note_ids == [a_id]
    for note_id in b_ids:
        assert note_id not in a_note_ids


def test_session_cannot_select_foreign_note(client):
    note_id = _create(client, "userB", title="B only")

    r = client.post(f"/session/select/{note_id}", headers={"X-User-Id": "userA"})
    assert r.status_code == 404

    r = client.get("/session", headers={"X-User-Id": "userA"})
    assert r.json()["open_note_id"] is None
    assert r.json()["notes"] == []
