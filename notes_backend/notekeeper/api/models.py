from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base, deferred, relationship

from notekeeper.api.validation import DEFAULT_COLOR, TAG_MAX_LENGTH

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite does not keep tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """
    User entity with unique (lower-cased) email and a salted password hash.

    The hash is a deferred column: it is only loaded when a query asks for it.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = deferred(Column(String(255), nullable=False))
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Note(Base):
    """
    Note entity owned by exactly one user, with tags and timestamps.
    """
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    content = Column(Text, nullable=False)
    color = Column(String(7), default=DEFAULT_COLOR, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tag_rows = relationship(
        "NoteTag", back_populates="note", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_notes_owner_created", "owner_id", "created_at"),
    )

    @property
    def tags(self):
        return sorted(row.name for row in self.tag_rows)


class NoteTag(Base):
    """One row per distinct tag on a note."""
    __tablename__ = "note_tags"

    id = Column(Integer, primary_key=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(TAG_MAX_LENGTH), nullable=False, index=True)

    note = relationship("Note", back_populates="tag_rows")

    __table_args__ = (
        UniqueConstraint("note_id", "name", name="uq_note_tags_note_name"),
    )
