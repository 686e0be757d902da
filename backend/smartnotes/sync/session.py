"""
Per-user editing session: edit buffer, debounced autosave and snapshot
reconciliation.

All state transitions happen on the event loop. The only suspension points
are store round trips (`flush`, `create`, `delete`, `select` when it has to
flush first); writes issued by one session are serialized in caller order.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from smartnotes.config import autosave_debounce_seconds, log_event
from smartnotes.errors import NotFound, SessionClosedError, StoreError
from smartnotes.storage.notes_store import DEFAULT_SUBJECT, DEFAULT_TITLE, NOTE_FIELDS, Note, matches
from smartnotes.sync.debounce import Debouncer
from smartnotes.sync.remote import RemoteNoteStore, Subscription

logger = logging.getLogger("smartnotes.sync.session")

DEFAULT_NOTE = {"title": DEFAULT_TITLE, "content": "", "subject": DEFAULT_SUBJECT}
ASSISTANT_SEPARATOR = "\n\n--- AI Assistant ---\n"

STATUS_SAVING = "Saving..."
STATUS_SAVED = "Saved"


@dataclass(frozen=True)
class SyncEvent:
    kind: str  # snapshot | saved | error | closed
    note_id: Optional[str] = None
    message: str = ""
    error: Optional[Exception] = None


Listener = Callable[[SyncEvent], None]


class SyncSession:
    def __init__(self, store: RemoteNoteStore, user_id: str, debounce_seconds: Optional[float] = None):
        self.store = store
        self.user_id = user_id
        if debounce_seconds is None:
            debounce_seconds = autosave_debounce_seconds()
        self._timer = Debouncer(debounce_seconds, self._autosave)
        self._write_lock = asyncio.Lock()
        self._subscription: Optional[Subscription] = None
        self._listeners: List[Listener] = []

        self._snapshot: List[Note] = []
        self._open_note_id: Optional[str] = None
        self._pending: Dict[str, str] = {}
        self._dirty = False
        self._saving = False
        # bumped on every buffer change so an in-flight flush knows if it is stale
        self._generation = 0
        # set once shutdown starts; edits are refused from then on
        self._closing = False
        self.closed = False

    # --- READ ACCESS ---

    @property
    def snapshot(self) -> List[Note]:
        return list(self._snapshot)

    @property
    def open_note_id(self) -> Optional[str]:
        return self._open_note_id

    @property
    def pending_edit(self) -> Dict[str, str]:
        return dict(self._pending)

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def status(self) -> str:
        if self._open_note_id is None:
            return ""
        if self._dirty or self._saving:
            return STATUS_SAVING
        return STATUS_SAVED

    def search(self, query: str) -> List[Note]:
        return [n for n in self._snapshot if matches(n, query)]

    # --- LISTENERS ---

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _notify(self, event: SyncEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("session listener failed on %s", event.kind)

    # --- LIFECYCLE ---

    def _ensure_open(self) -> None:
        if self.closed or self._closing:
            raise SessionClosedError(f"Session for {self.user_id} is closed")

    async def start(self) -> None:
        self._ensure_open()
        if self._subscription is None:
            self._subscription = await self.store.subscribe(self.user_id, self.on_remote_snapshot)
            log_event(logging.INFO, "session_started", logger, user=self.user_id)

    async def shutdown(self) -> None:
        """Flush pending edits, then drop the timer and the subscription."""
        if self.closed or self._closing:
            return
        self._closing = True
        try:
            await self.flush()
        except StoreError as exc:
            log_event(logging.WARNING, "shutdown_flush_failed", logger, user=self.user_id, error=exc)
        finally:
            self._timer.cancel()
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None
            self.closed = True
            log_event(logging.INFO, "session_closed", logger, user=self.user_id)
            self._notify(SyncEvent("closed"))

    def _clear(self) -> None:
        self._timer.cancel()
        self._open_note_id = None
        self._pending = {}
        self._dirty = False
        self._generation += 1

    def _find(self, note_id: str) -> Optional[Note]:
        for note in self._snapshot:
            if note.id == note_id:
                return note
        return None

    # --- OPERATIONS ---

    async def select(self, note_id: str) -> bool:
        """Bind the editor to `note_id`, flushing the previous note first if dirty."""
        self._ensure_open()
        if note_id == self._open_note_id:
            return True
        previous = self._open_note_id
        # edits may land on the previous note while its flush is in flight
        while previous is not None and self._open_note_id == previous and self._dirty:
            await self.flush()

        note = self._find(note_id)
        if note is None:
            log_event(logging.DEBUG, "select_unknown_note", logger, user=self.user_id, note=note_id)
            return False

        self._timer.cancel()
        self._open_note_id = note.id
        self._pending = note.fields()
        self._dirty = False
        self._generation += 1
        return True

    def edit(self, field: str, value: str) -> bool:
        self._ensure_open()
        if field not in NOTE_FIELDS:
            raise ValueError(f"Unknown note field: {field}")
        if self._open_note_id is None:
            return False
        self._pending[field] = value
        self._dirty = True
        self._generation += 1
        self._timer.start()
        return True

    def append_to_content(self, text: str) -> bool:
        """Append assistant output below the note body; saved like any other edit."""
        if self._open_note_id is None:
            return False
        current = self._pending.get("content", "")
        return self.edit("content", current + ASSISTANT_SEPARATOR + text)

    async def flush(self) -> bool:
        """Write the buffer if dirty. Returns True when a write was issued and landed."""
        if not self._dirty or self._open_note_id is None:
            return False
        self._timer.cancel()

        async with self._write_lock:
            # a queued flush may find the buffer already written by the one before it
            if not self._dirty or self._open_note_id is None:
                return False
            note_id = self._open_note_id
            generation = self._generation
            fields = dict(self._pending)

            self._saving = True
            try:
                saved = await self.store.update(self.user_id, note_id, fields)
            except NotFound as exc:
                log_event(logging.WARNING, "flush_target_gone", logger, user=self.user_id, note=note_id)
                if self._open_note_id == note_id:
                    self._clear()
                self._notify(SyncEvent("error", note_id, str(exc), exc))
                return False
            except StoreError as exc:
                log_event(logging.ERROR, "flush_failed", logger, user=self.user_id, note=note_id, error=exc)
                self._notify(SyncEvent("error", note_id, str(exc), exc))
                raise
            finally:
                self._saving = False

            if self._open_note_id == note_id and self._generation == generation:
                # the store may normalise values (empty subject -> General)
                self._pending = saved.fields()
                self._dirty = False
            self._notify(SyncEvent("saved", note_id))
            return True

    async def _autosave(self) -> None:
        try:
            await self.flush()
        except StoreError:
            # reported to listeners by flush; dirty stays set until the next trigger
            log_event(logging.DEBUG, "autosave_deferred", logger, user=self.user_id)

    async def create(self, initial: Optional[Mapping[str, Any]] = None) -> str:
        self._ensure_open()
        fields = dict(DEFAULT_NOTE)
        fields.update(initial or {})
        try:
            note_id = await self.store.create(self.user_id, fields)
        except StoreError as exc:
            self._notify(SyncEvent("error", None, str(exc), exc))
            raise
        await self.select(note_id)
        return note_id

    async def delete(self, note_id: str) -> None:
        """Delete a note; the open note's buffer is discarded, never flushed."""
        self._ensure_open()
        deleting_open = note_id == self._open_note_id
        if deleting_open:
            self._timer.cancel()

        async with self._write_lock:
            try:
                await self.store.delete(self.user_id, note_id)
            except NotFound:
                log_event(logging.INFO, "delete_already_gone", logger, user=self.user_id, note=note_id)
            except StoreError as exc:
                self._notify(SyncEvent("error", note_id, str(exc), exc))
                if deleting_open and self._open_note_id == note_id and self._dirty:
                    self._timer.start()
                raise

        if self._open_note_id == note_id:
            self._clear()

    def on_remote_snapshot(self, notes: List[Note]) -> None:
        self._snapshot = list(notes)
        if self._open_note_id is not None:
            note = self._find(self._open_note_id)
            if note is None:
                log_event(logging.INFO, "open_note_removed", logger, user=self.user_id, note=self._open_note_id)
                self._clear()
            elif not self._dirty:
                # local edits win until flushed
                self._pending = note.fields()
        self._notify(SyncEvent("snapshot", self._open_note_id))
