import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from notekeeper.api.auth import Identity
from notekeeper.api.database import get_db
from notekeeper.api.errors import Forbidden, NotFound
from notekeeper.api.models import Note
from notekeeper.api.notes import NoteFilter, NoteRepository

logger = logging.getLogger(__name__)


class NoteService:
    """
    Ownership-enforcing access to notes.

    Per-note operations load the note first (404 when absent), then compare its
    owner with the caller (403 on mismatch), and only then touch the repository.
    Create and list are scoped to the caller by construction.
    """

    def __init__(self, repository: NoteRepository):
        self.repository = repository

    def create(self, caller: Identity, fields: Dict[str, Any]) -> Note:
        return self.repository.create(caller.id, fields)

    def list(self, caller: Identity, note_filter: Optional[NoteFilter] = None) -> List[Note]:
        return self.repository.list(caller.id, note_filter)

    def get(self, caller: Identity, note_id) -> Note:
        return self._load_owned(caller, note_id, "access")

    def update(self, caller: Identity, note_id, fields: Dict[str, Any]) -> Note:
        note = self._load_owned(caller, note_id, "update")
        return self.repository.update(note.id, fields)

    def delete(self, caller: Identity, note_id) -> None:
        note = self._load_owned(caller, note_id, "delete")
        self.repository.delete(note.id)

    def _load_owned(self, caller: Identity, note_id, action: str) -> Note:
        note = self.repository.get_by_id(note_id)
        if note is None:
            raise NotFound("Note not found")
        if str(note.owner_id) != str(caller.id):
            logger.warning("User %s denied %s on note %s", caller.id, action, note_id)
            raise Forbidden(f"Not authorized to {action} this note")
        return note


# PUBLIC_INTERFACE
def get_note_service(db: Session = Depends(get_db)) -> NoteService:
    """Dependency providing a note service bound to the request session."""
    return NoteService(NoteRepository(db))
