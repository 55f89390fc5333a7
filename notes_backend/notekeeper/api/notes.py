from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from notekeeper.api.errors import NotFound, ValidationError
from notekeeper.api.models import Note, NoteTag, utcnow
from notekeeper.api.validation import (
    DEFAULT_COLOR,
    MAX_ID,
    normalize_tags,
    validate_color,
    validate_content,
    validate_title,
)

UPDATABLE_FIELDS = ("title", "content", "tags", "color")

_validators = {
    "title": validate_title,
    "content": validate_content,
    "tags": normalize_tags,
    "color": validate_color,
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class NoteFilter:
    """
    Options for listing notes.

    search: case-insensitive substring matched against title OR content.
    tags: keep notes sharing at least one tag with this set.
    Both options combine with AND; empty values are ignored.
    """
    search: Optional[str] = None
    tags: Optional[Iterable[str]] = None

    @classmethod
    def from_query(cls, search: Optional[str] = None, tags: Optional[str] = None) -> "NoteFilter":
        """Build a filter from query-string values; tags are comma separated."""
        tag_set = None
        if tags:
            tag_set = {tag.strip() for tag in tags.split(",") if tag.strip()}
        return cls(search=search, tags=tag_set)


class NoteRepository:
    """Persists notes. Performs no ownership checks: callers scope by owner."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, owner_id, fields: Dict[str, Any]) -> Note:
        """
        Validate and store a note for owner_id.

        Raises:
            ValidationError on missing or out-of-bounds fields.
        """
        self._reject_unknown(fields)
        color = fields.get("color")
        note = Note(
            title=validate_title(fields.get("title")),
            content=validate_content(fields.get("content")),
            color=DEFAULT_COLOR if color is None else validate_color(color),
            owner_id=int(owner_id),
        )
        note.tag_rows = [NoteTag(name=name) for name in normalize_tags(fields.get("tags"))]
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)
        return note

    def list(self, owner_id, note_filter: Optional[NoteFilter] = None) -> List[Note]:
        """Notes of owner_id matching the filter, newest first."""
        query = self.db.query(Note).filter(Note.owner_id == int(owner_id))
        note_filter = note_filter or NoteFilter()
        search = (note_filter.search or "").strip()
        if search:
            query = query.filter(self._search_clause(search))
        tags = [tag for tag in (note_filter.tags or ()) if tag]
        if tags:
            query = query.filter(Note.tag_rows.any(NoteTag.name.in_(tags)))
        return query.order_by(Note.created_at.desc(), Note.id.desc()).all()

    def get_by_id(self, note_id) -> Optional[Note]:
        try:
            note_id = int(note_id)
        except (TypeError, ValueError):
            return None
        if not 1 <= note_id <= MAX_ID:
            return None
        return self.db.get(Note, note_id)

    def update(self, note_id, fields: Dict[str, Any]) -> Note:
        """
        Apply a partial update. Every supplied field is validated as on create;
        the owner can never change.

        Raises:
            ValidationError, NotFound.
        """
        self._reject_unknown(fields)
        cleaned = {name: _validators[name](value) for name, value in fields.items()}
        note = self.get_by_id(note_id)
        if note is None:
            raise NotFound("Note not found")
        for name, value in cleaned.items():
            if name == "tags":
                self._replace_tags(note, value)
            else:
                setattr(note, name, value)
        note.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(note)
        return note

    def delete(self, note_id) -> None:
        note = self.get_by_id(note_id)
        if note is None:
            raise NotFound("Note not found")
        self.db.delete(note)
        self.db.commit()

    def _search_clause(self, search: str):
        """Title OR content contains search, ignoring case (Unicode-aware on SQLite)."""
        if self.db.get_bind().dialect.name == "sqlite":
            like = f"%{_escape_like(search.casefold())}%"
            return or_(
                func.casefold(Note.title).like(like, escape="\\"),
                func.casefold(Note.content).like(like, escape="\\"),
            )
        like = f"%{_escape_like(search)}%"
        return or_(Note.title.ilike(like, escape="\\"), Note.content.ilike(like, escape="\\"))

    def _replace_tags(self, note: Note, names: List[str]) -> None:
        current = {row.name: row for row in note.tag_rows}
        note.tag_rows = [current.get(name) or NoteTag(name=name) for name in names]

    @staticmethod
    def _reject_unknown(fields: Dict[str, Any]) -> None:
        if "owner_id" in fields:
            raise ValidationError("The owner of a note cannot be changed")
        unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown note field: {unknown[0]}")
