"""Task ORM — a card on a board list.

Invariants:
    - Always belongs to exactly one list (list_id FK)
    - position is unique within its list; gaps are allowed after deletions
    - list_id/position are written only by the ordering engine

Design Decisions:
    - No UNIQUE(list_id, position) constraint: a shifting UPDATE moves rows one by one
      and would trip a non-deferred constraint mid-statement; the engine checks
      for duplicates after each move instead
    - Composite index (list_id, position) serves both the shift ranges and ordered reads
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabspace.db.base import Base


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_list_position", "list_id", "position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    list_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_to: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    board_list: Mapped["BoardList"] = relationship(
        "BoardList", back_populates="tasks", lazy="raise",
    )
    assignee: Mapped["User"] = relationship(
        "User", foreign_keys=[assigned_to], lazy="raise",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "list_id": self.list_id,
            "title": self.title,
            "description": self.description,
            "assigned_to": self.assigned_to,
            "position": self.position,
            "due_date": self.due_date,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
