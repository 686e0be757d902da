from smartnotes.storage.event_log import EventLog


def test_event_log_emitted_on_create_update_delete(client, app_env):
    user = "userA"
    headers = {"X-User-Id": user}

    r = client.post("/notes", headers=headers, json={"title": "t", "content": "c"})
    assert r.status_code == 201
    note_id = r.json()["id"]

    r = client.put(f"/notes/{note_id}", headers=headers, json={"content": "c2"})
    assert r.status_code == 200

    r = client.delete(f"/notes/{note_id}", headers=headers)
    assert r.status_code == 204

    # <APP_DATA_DIR>/users/userA/events/events.log
    p = app_env / "users" / user / "events" / "events.log"
    assert p.exists()

    events = EventLog(app_env).read(user)
    assert [e["event_type"] for e in events] == ["NOTE_CREATED", "NOTE_UPDATED", "NOTE_DELETED"]
    assert all(e["note_id"] == note_id for e in events)
    assert events[1]["meta"] == {"fields": ["content"]}


def test_session_lifecycle_is_audited(client, app_env):
    client.post("/auth/register", json={"user_id": "userA", "password": "StrongPassw0rd!"})
    token = client.post("/auth/login", json={"user_id": "userA", "password": "StrongPassw0rd!"}).json()["access_token"]
    client.post("/auth/logout", headers={"Authorization": f"Bearer {token}"})

    types = [e["event_type"] for e in EventLog(app_env).read("userA")]
    assert types == ["SESSION_OPENED", "SESSION_CLOSED"]


def test_failed_update_is_not_logged(client, app_env):
    r = client.put(
        "/notes/00000000-0000-0000-0000-000000000000",
        headers={"X-User-Id": "userA"},
        json={"content": "x"},
    )
    assert r.status_code == 404
    assert EventLog(app_env).read("userA") == []
