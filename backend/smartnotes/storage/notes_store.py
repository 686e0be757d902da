import json
import logging
import os
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from smartnotes.config import log_event

logger = logging.getLogger("smartnotes.storage")

NOTE_FIELDS = ("title", "content", "subject")
DEFAULT_TITLE = "Untitled"
DEFAULT_SUBJECT = "General"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _safe_user_dir(base_dir: Path, user_id: str) -> Path:
    # user_id comes from a token or header; keep it strict to avoid path issues
    if not user_id or any(ch in user_id for ch in ["/", "\\"]) or ".." in user_id:
        raise ValueError("Invalid user_id")
    return base_dir / "users" / user_id / "notes"


def _note_path(base_dir: Path, user_id: str, note_id: str) -> Path:
    # ids are store-assigned uuid4 strings; reject anything else before touching disk
    try:
        nid = uuid.UUID(str(note_id))
    except ValueError:
        raise ValueError("Invalid note_id")
    return _safe_user_dir(base_dir, user_id) / f"{nid}.json"


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


def _sort_key(note: "Note") -> datetime:
    return datetime.fromisoformat(note.updated_at)


@dataclass(frozen=True)
class Note:
    id: str
    owner_user_id: str
    title: str
    content: str
    subject: str
    created_at: str
    updated_at: str

    def fields(self) -> dict[str, str]:
        return {"title": self.title, "content": self.content, "subject": self.subject}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "title": self.title,
            "content": self.content,
            "subject": self.subject,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Note":
        return cls(
            id=str(raw["id"]),
            owner_user_id=raw["owner_user_id"],
            title=DEFAULT_TITLE if raw.get("title") is None else raw["title"],
            content=raw.get("content") or "",
            subject=raw.get("subject") or DEFAULT_SUBJECT,
            created_at=raw["created_at"],
            updated_at=raw["updated_at"],
        )


def clean_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    """Keep only the editable note fields, coerced to str."""
    out = {}
    for key, value in fields.items():
        if key not in NOTE_FIELDS:
            raise ValueError(f"Unknown note field: {key}")
        out[key] = "" if value is None else str(value)
    return out


def matches(note: Note, query: str) -> bool:
    term = (query or "").strip().lower()
    if not term:
        return True
    return any(term in value.lower() for value in note.fields().values())


class NotesStore:
    """Per-user JSON files under `<base>/users/<user_id>/notes/`."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def create_note(self, user_id: str, fields: Mapping[str, Any] | None = None) -> Note:
        values = clean_fields(fields or {})
        now = _utc_now_iso()
        note = Note(
            id=str(uuid.uuid4()),
            owner_user_id=user_id,
            title=values.get("title") or DEFAULT_TITLE,
            content=values.get("content", ""),
            subject=values.get("subject") or DEFAULT_SUBJECT,
            created_at=now,
            updated_at=now,
        )
        _atomic_write_json(_note_path(self.base_dir, user_id, note.id), note.to_dict())
        return note

    def list_notes(self, user_id: str) -> list[Note]:
        """All notes of the user, most recently updated first."""
        notes_dir = _safe_user_dir(self.base_dir, user_id)
        if not notes_dir.exists():
            return []
        out: list[Note] = []
        for p in notes_dir.glob("*.json"):
            try:
                out.append(Note.from_dict(json.loads(p.read_text(encoding="utf-8"))))
            except (OSError, ValueError, KeyError) as exc:
                log_event(logging.WARNING, "note_file_unreadable", logger, path=p.name, error=exc)
                continue
        out.sort(key=_sort_key, reverse=True)
        return out

    def get_note(self, user_id: str, note_id: str) -> Note | None:
        path = _note_path(self.base_dir, user_id, note_id)
        if not path.exists():
            return None
        return Note.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def update_note(self, user_id: str, note_id: str, fields: Mapping[str, Any]) -> Note | None:
        """Partial update; returns None when the note does not exist."""
        existing = self.get_note(user_id, note_id)
        if existing is None:
            return None
        values = clean_fields(fields)
        if "subject" in values and not values["subject"]:
            values["subject"] = DEFAULT_SUBJECT
        updated = replace(existing, **values, updated_at=_utc_now_iso())
        _atomic_write_json(_note_path(self.base_dir, user_id, note_id), updated.to_dict())
        return updated

    def delete_note(self, user_id: str, note_id: str) -> bool:
        path = _note_path(self.base_dir, user_id, note_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
