import asyncio

from smartnotes.storage.notes_store import NotesStore
from smartnotes.sync.identity import IdentityProvider, User
from smartnotes.sync.manager import SessionManager, SessionRegistry
from smartnotes.sync.remote import RemoteNoteStore


def test_session_change_listeners(tmp_path):
    identity = IdentityProvider()
    seen = []

    async def async_listener(user):
        seen.append(("async", user))

    async def scenario():
        identity.on_session_change(lambda user: seen.append(("sync", user)))
        sub = identity.on_session_change(async_listener)
        await identity.sign_in(User(id="u1", email="u1@example.com"))
        # same user again is not a change
        await identity.sign_in(User(id="u1", email="u1@example.com"))
        sub.cancel()
        await identity.sign_out()

    asyncio.run(scenario())
    u1 = User(id="u1", email="u1@example.com")
    assert seen == [("sync", u1), ("async", u1), ("sync", None)]
    assert identity.current_user is None


def test_manager_builds_and_tears_down_sessions(tmp_path):
    remote = RemoteNoteStore(NotesStore(tmp_path))
    identity = IdentityProvider()
    manager = SessionManager(identity, remote, debounce_seconds=10)

    async def scenario():
        await identity.sign_in(User(id="alice"))
        first = manager.session
        assert first.user_id == "alice"
        note_id = await first.create()
        first.edit("content", "alice's draft")

        # switching account flushes and closes the previous session
        await identity.sign_in(User(id="bob"))
        assert first.closed
        assert manager.session.user_id == "bob"
        assert manager.session.snapshot == []
        assert remote.store.get_note("alice", note_id).content == "alice's draft"

        await identity.sign_out()
        assert manager.session is None
        assert remote.subscriber_count("bob") == 0

    asyncio.run(scenario())


def test_registry_reuses_session_per_user(tmp_path):
    registry = SessionRegistry(RemoteNoteStore(NotesStore(tmp_path)), debounce_seconds=10)

    async def scenario():
        s1 = await registry.open("u1")
        s2 = await registry.open("u1")
        other = await registry.open("u2")
        assert s1 is s2
        assert other is not s1

        assert await registry.logout("u1") is True
        assert s1.closed
        assert await registry.logout("u1") is False

        await registry.close_all()
        assert other.closed
        assert "u2" not in registry

    asyncio.run(scenario())


def test_registry_logs_out_idle_sessions(tmp_path):
    now = [0.0]
    remote = RemoteNoteStore(NotesStore(tmp_path))
    registry = SessionRegistry(remote, debounce_seconds=10, idle_seconds=60, clock=lambda: now[0])

    async def scenario():
        stale = await registry.open("idle-user")
        note_id = await stale.create()
        stale.edit("content", "left open")

        now[0] = 30.0
        await registry.open("active")
        assert "idle-user" in registry

        now[0] = 61.0
        await registry.open("active")
        assert stale.closed
        assert "idle-user" not in registry
        assert remote.subscriber_count("idle-user") == 0
        # evicted sessions are flushed like a logout
        assert remote.store.get_note("idle-user", note_id).content == "left open"
        assert "active" in registry
        assert len(registry) == 1

        await registry.close_all()

    asyncio.run(scenario())
