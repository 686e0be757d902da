import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from smartnotes.config import log_event, session_idle_seconds
from smartnotes.storage.event_log import SESSION_CLOSED, SESSION_OPENED, Event
from smartnotes.sync.identity import IdentityProvider, User
from smartnotes.sync.remote import RemoteNoteStore
from smartnotes.sync.session import SyncSession

logger = logging.getLogger("smartnotes.sync.manager")


class SessionManager:
    """
    Ties one identity to the lifetime of its SyncSession.

    Signing in builds and starts a session for the user; signing out (or
    signing in as someone else) flushes and tears the previous one down.
    """

    def __init__(self, identity: IdentityProvider, store: RemoteNoteStore, debounce_seconds: Optional[float] = None):
        self.identity = identity
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.session: Optional[SyncSession] = None
        self._subscription = identity.on_session_change(self._on_session_change)

    async def _on_session_change(self, user: Optional[User]) -> None:
        if self.session is not None and (user is None or user.id != self.session.user_id):
            await self._close()
        if user is not None and self.session is None:
            session = SyncSession(self.store, user.id, debounce_seconds=self.debounce_seconds)
            await session.start()
            self.session = session
            self._emit(SESSION_OPENED, user.id)

    async def _close(self) -> None:
        session, self.session = self.session, None
        await session.shutdown()
        self._emit(SESSION_CLOSED, session.user_id)

    def _emit(self, event_type: str, user_id: str) -> None:
        if self.store.event_log is not None:
            self.store.event_log.emit(Event(event_type=event_type, user_id=user_id))

    async def close(self) -> None:
        self._subscription.cancel()
        if self.session is not None:
            await self._close()


class SessionRegistry:
    """
    One SessionManager per authenticated user, for the HTTP layer.

    Sessions unused for `idle_seconds` are logged out (flushed and closed)
    the next time any user opens one.
    """

    def __init__(
        self,
        store: RemoteNoteStore,
        debounce_seconds: Optional[float] = None,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.idle_seconds = session_idle_seconds() if idle_seconds is None else idle_seconds
        self._clock = clock
        self._managers: Dict[str, SessionManager] = {}
        self._last_used: Dict[str, float] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._managers

    def __len__(self) -> int:
        return len(self._managers)

    async def open(self, user_id: str) -> SyncSession:
        async with self._lock:
            await self._evict_idle(keep=user_id)
            self._last_used[user_id] = self._clock()
            manager = self._managers.get(user_id)
            if manager is None:
                manager = SessionManager(IdentityProvider(), self.store, self.debounce_seconds)
                self._managers[user_id] = manager
            if manager.session is None:
                # a previous sign-in may have failed before its session started
                await manager.identity.sign_out()
                await manager.identity.sign_in(User(id=user_id))
            return manager.session

    async def _evict_idle(self, keep: Optional[str] = None) -> None:
        cutoff = self._clock() - self.idle_seconds
        idle = [uid for uid, used in self._last_used.items() if used <= cutoff and uid != keep]
        for user_id in idle:
            log_event(logging.INFO, "session_idle_evicted", logger, user=user_id)
            await self.logout(user_id)

    async def logout(self, user_id: str) -> bool:
        self._last_used.pop(user_id, None)
        manager = self._managers.pop(user_id, None)
        if manager is None:
            return False
        await manager.identity.sign_out()
        await manager.close()
        return True

    async def close_all(self) -> None:
        for user_id in list(self._managers):
            await self.logout(user_id)
        log_event(logging.INFO, "sessions_closed", logger)
