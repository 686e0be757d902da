"""
Process-wide services shared by the routers.

Built at import time from the environment; tests point APP_DATA_DIR at a
temporary directory and reload this module.
"""

from fastapi import Depends, HTTPException

from smartnotes.ai.assistant import StudyAssistant
from smartnotes.ai.gateway import AIGateway
from smartnotes.config import autosave_debounce_seconds, data_dir
from smartnotes.errors import SessionClosedError
from smartnotes.storage.event_log import EventLog
from smartnotes.storage.notes_store import NotesStore
from smartnotes.storage.users_store import UsersStore
from smartnotes.sync.manager import SessionRegistry
from smartnotes.sync.remote import RemoteNoteStore
from smartnotes.sync.session import SyncSession
from smartnotes.utils.jwt_auth import get_current_user

DATA_DIR = data_dir()

notes_store = NotesStore(DATA_DIR)
users = UsersStore(DATA_DIR)
event_log = EventLog(DATA_DIR)
remote = RemoteNoteStore(notes_store, event_log)
sessions = SessionRegistry(remote, debounce_seconds=autosave_debounce_seconds())

gateway = AIGateway.from_env()
assistant = StudyAssistant(gateway)


def get_assistant() -> StudyAssistant:
    return assistant


async def get_session(user_id: str = Depends(get_current_user)) -> SyncSession:
    try:
        return await sessions.open(user_id)
    except SessionClosedError:
        raise HTTPException(status_code=409, detail="Session is closing, retry")
