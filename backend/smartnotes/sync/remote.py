"""
Async adapter over the file-backed NotesStore with per-user snapshot push.

Blocking file I/O runs in the threadpool; subscriber callbacks run on the
event loop that performed the write, before the write call returns.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from smartnotes.config import log_event
from smartnotes.errors import NotFound, StoreError
from smartnotes.storage.event_log import NOTE_CREATED, NOTE_DELETED, NOTE_UPDATED, Event, EventLog
from smartnotes.storage.notes_store import Note, NotesStore

logger = logging.getLogger("smartnotes.sync.remote")

SnapshotCallback = Callable[[List[Note]], None]


class Subscription:
    """Cancellable handle returned by `subscribe`."""

    def __init__(self, on_cancel: Callable[[], None]):
        self._on_cancel = on_cancel
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._on_cancel()


class RemoteNoteStore:
    def __init__(self, store: NotesStore, event_log: Optional[EventLog] = None):
        self.store = store
        self.event_log = event_log
        # user_id -> callbacks, in subscription order
        self._subs: Dict[str, List[SnapshotCallback]] = {}

    async def _call(self, fn, *args):
        try:
            return await run_in_threadpool(fn, *args)
        except (OSError, ValueError) as exc:
            log_event(logging.ERROR, "store_error", logger, op=fn.__name__, error=exc)
            raise StoreError(f"Note store failed: {exc}") from exc

    def _emit(self, event: Event) -> None:
        if self.event_log is None:
            return
        try:
            self.event_log.emit(event)
        except OSError as exc:
            # the audit trail is best effort; the note write already landed
            log_event(logging.WARNING, "event_log_failed", logger, event=event.event_type, error=exc)

    # --- SUBSCRIPTION ---

    async def subscribe(self, user_id: str, on_change: SnapshotCallback) -> Subscription:
        room = self._subs.setdefault(user_id, [])
        room.append(on_change)

        def _remove() -> None:
            callbacks = self._subs.get(user_id, [])
            if on_change in callbacks:
                callbacks.remove(on_change)
            if not callbacks:
                self._subs.pop(user_id, None)

        sub = Subscription(_remove)
        notes = await self._call(self.store.list_notes, user_id)
        if sub.active:
            self._dispatch(on_change, notes)
        return sub

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subs.get(user_id, []))

    def _dispatch(self, callback: SnapshotCallback, notes: List[Note]) -> None:
        try:
            callback(list(notes))
        except Exception as exc:
            # one broken listener must not starve the others
            logger.exception("snapshot listener failed: %s", exc)

    async def _publish(self, user_id: str) -> None:
        if not self._subs.get(user_id):
            return
        try:
            notes = await self._call(self.store.list_notes, user_id)
        except StoreError as exc:
            # the write already landed; subscribers catch up on the next change
            log_event(logging.WARNING, "snapshot_publish_failed", logger, user=user_id, error=exc)
            return
        for callback in list(self._subs.get(user_id, [])):
            self._dispatch(callback, notes)

    # --- READS ---

    async def list_notes(self, user_id: str) -> List[Note]:
        return await self._call(self.store.list_notes, user_id)

    async def get(self, user_id: str, note_id: str) -> Note:
        note = await self._call(self.store.get_note, user_id, note_id)
        if note is None:
            raise NotFound(note_id)
        return note

    # --- WRITES ---

    async def create(self, user_id: str, fields: Optional[Mapping[str, Any]] = None) -> str:
        note = await self._call(self.store.create_note, user_id, dict(fields or {}))
        log_event(logging.INFO, "note_created", logger, user=user_id, note=note.id)
        self._emit(Event(event_type=NOTE_CREATED, user_id=user_id, note_id=note.id))
        await self._publish(user_id)
        return note.id

    async def update(self, user_id: str, note_id: str, fields: Mapping[str, Any]) -> Note:
        note = await self._call(self.store.update_note, user_id, note_id, dict(fields))
        if note is None:
            log_event(logging.WARNING, "note_update_missing", logger, user=user_id, note=note_id)
            raise NotFound(note_id)
        log_event(logging.DEBUG, "note_updated", logger, user=user_id, note=note_id)
        self._emit(Event(
            event_type=NOTE_UPDATED,
            user_id=user_id,
            note_id=note_id,
            meta={"fields": sorted(fields)},
        ))
        await self._publish(user_id)
        return note

    async def delete(self, user_id: str, note_id: str) -> None:
        deleted = await self._call(self.store.delete_note, user_id, note_id)
        if not deleted:
            raise NotFound(note_id)
        log_event(logging.INFO, "note_deleted", logger, user=user_id, note=note_id)
        self._emit(Event(event_type=NOTE_DELETED, user_id=user_id, note_id=note_id))
        await self._publish(user_id)
