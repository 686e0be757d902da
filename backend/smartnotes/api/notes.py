import asyncio
import json
from typing import AsyncIterator, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from smartnotes.api import deps
from smartnotes.models.notes import NoteCreate, NoteOut, NoteUpdate
from smartnotes.storage.notes_store import Note, matches
from smartnotes.sync.remote import RemoteNoteStore
from smartnotes.utils.jwt_auth import get_current_user

router = APIRouter(prefix="/notes", tags=["notes"])


def _out(note: Note) -> NoteOut:
    return NoteOut(**note.to_dict())


async def snapshot_stream(remote: RemoteNoteStore, user_id: str) -> AsyncIterator[bytes]:
    """
    Server-Sent Events: one `snapshot` event with the full ordered note list
    right away and after every change to the user's notes.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue(maxsize=16)

    def _offer(notes: List[Note]) -> None:
        if queue.full():
            # a newer snapshot supersedes anything the client has not read yet
            queue.get_nowait()
        queue.put_nowait(notes)

    def _push(notes: List[Note]) -> None:
        loop.call_soon_threadsafe(_offer, notes)

    sub = await remote.subscribe(user_id, _push)
    try:
        yield b": connected\n\n"
        while True:
            notes = await queue.get()
            data = json.dumps([n.to_dict() for n in notes], ensure_ascii=False)
            yield f"event: snapshot\ndata: {data}\n\n".encode("utf-8")
    finally:
        sub.cancel()


@router.post("", response_model=NoteOut, status_code=201)
async def create_note(payload: NoteCreate, user_id: str = Depends(get_current_user)) -> NoteOut:
    note_id = await deps.remote.create(user_id, payload.model_dump())
    return _out(await deps.remote.get(user_id, note_id))


@router.get("", response_model=list[NoteOut])
async def list_notes(q: Optional[str] = None, user_id: str = Depends(get_current_user)) -> list[NoteOut]:
    notes = await deps.remote.list_notes(user_id)
    return [_out(n) for n in notes if matches(n, q or "")]


@router.get("/stream")
async def stream_notes(user_id: str = Depends(get_current_user)) -> StreamingResponse:
    return StreamingResponse(snapshot_stream(deps.remote, user_id), media_type="text/event-stream")


@router.get("/{note_id}", response_model=NoteOut)
async def get_note(note_id: UUID, user_id: str = Depends(get_current_user)) -> NoteOut:
    return _out(await deps.remote.get(user_id, str(note_id)))


@router.put("/{note_id}", response_model=NoteOut)
async def update_note(note_id: UUID, payload: NoteUpdate, user_id: str = Depends(get_current_user)) -> NoteOut:
    fields = payload.model_dump(exclude_none=True)
    nid = str(note_id)
    if not fields:
        return _out(await deps.remote.get(user_id, nid))
    return _out(await deps.remote.update(user_id, nid, fields))


@router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: UUID, user_id: str = Depends(get_current_user)) -> None:
    await deps.remote.delete(user_id, str(note_id))
    return None
