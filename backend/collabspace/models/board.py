"""Board & List ORM — kanban boards and their columns.

Invariants:
    - A board belongs to exactly one workspace
    - List positions are assigned once, in creation order, and never reordered
    - Deleting a board cascades to its lists, deleting a list cascades to its tasks

Design Decisions:
    - Relationships are lazy="raise": the board view loads lists/tasks explicitly
      with selectinload, anything else touching them is a bug
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabspace.db.base import Base


class Board(Base):
    __tablename__ = "boards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    workspace_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
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

    lists: Mapped[list["BoardList"]] = relationship(
        "BoardList", back_populates="board",
        order_by="BoardList.position", lazy="raise",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class BoardList(Base):
    """A named column of a board."""
    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    board: Mapped["Board"] = relationship(
        "Board", back_populates="lists", lazy="raise",
    )
    tasks: Mapped[list["Task"]] = relationship(
        "Task", back_populates="board_list",
        order_by="Task.position", lazy="raise",
        cascade="all, delete-orphan", passive_deletes=True,
    )
