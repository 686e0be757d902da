class SmartNotesError(Exception):
    """Base class for errors surfaced to the user as notifications."""


class StoreError(SmartNotesError):
    """Network, permission or I/O failure on the note store."""


class NotFound(StoreError):
    """The target note vanished before the write landed."""

    def __init__(self, note_id: str, message: str = "Note not found"):
        super().__init__(message)
        self.note_id = note_id


class GatewayError(SmartNotesError):
    """AI completion failed: missing credential, non-2xx status or malformed body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SessionClosedError(SmartNotesError):
    """Operation attempted on a session that was already shut down."""
