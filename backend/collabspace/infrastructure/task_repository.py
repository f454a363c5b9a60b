"""SQL Task Repository — TaskRepository and UnitOfWork over an AsyncSession.

Invariants:
    - One SqlUnitOfWork call = one transaction: commit on clean exit, rollback otherwise
    - Shifts run as single UPDATE statements (no per-row Python loop)
    - relocate() is conditional on the read placement: a concurrent writer that moved
      the task makes it return False instead of overwriting
    - Rows are locked FOR UPDATE on backends that support it (SQLite ignores the clause)

Design Decisions:
    - synchronize_session=False on bulk updates + populate_existing on reads: the
      identity map is never trusted for positions after a shift
    - Wraps the request's session instead of opening its own: the membership check
      and the move share one transaction
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collabspace.core.domain_types import BoardId, ListId, Position, TaskId
from collabspace.core.task_ordering import PositionShift, TaskPlacement
from collabspace.infrastructure.database import map_db_error
from collabspace.models.board import BoardList
from collabspace.models.task import Task

logger = logging.getLogger(__name__)


class SqlTaskRepository:
    """TaskRepository backed by the relational store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_board_id(self, list_id: ListId) -> BoardId | None:
        result = await self.db.execute(
            select(BoardList.board_id).where(BoardList.id == list_id),
        )
        return result.scalar_one_or_none()

    async def task_board_id(self, task_id: TaskId) -> BoardId | None:
        result = await self.db.execute(
            select(BoardList.board_id)
            .join(Task, Task.list_id == BoardList.id)
            .where(Task.id == task_id),
        )
        return result.scalar_one_or_none()

    async def max_position(
        self, list_id: ListId, exclude_task_id: TaskId | None = None,
    ) -> int | None:
        query = select(func.max(Task.position)).where(Task.list_id == list_id)
        if exclude_task_id is not None:
            query = query.where(Task.id != exclude_task_id)
        result = await self.db.execute(query)
        return result.scalar()

    async def get_placement(
        self, task_id: TaskId, lock: bool = False,
    ) -> TaskPlacement | None:
        query = select(Task.id, Task.list_id, Task.position).where(
            Task.id == task_id,
        )
        if lock:
            query = query.with_for_update()
        row = (await self.db.execute(query)).one_or_none()
        if row is None:
            return None
        return TaskPlacement(
            task_id=TaskId(row.id),
            list_id=ListId(row.list_id),
            position=Position(row.position),
        )

    async def lock_lists(self, list_ids: tuple[ListId, ...]) -> None:
        """Lock every task row of the given lists. Callers pass ids ascending."""
        for list_id in list_ids:
            await self.db.execute(
                select(Task.id)
                .where(Task.list_id == list_id)
                .order_by(Task.id)
                .with_for_update(),
            )

    async def shift_positions(self, shift: PositionShift) -> int:
        stmt = update(Task).where(Task.list_id == shift.list_id)
        if shift.lower is not None:
            stmt = stmt.where(Task.position >= shift.lower)
        if shift.upper is not None:
            stmt = stmt.where(Task.position <= shift.upper)
        stmt = stmt.values(position=Task.position + shift.delta).execution_options(
            synchronize_session=False,
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def relocate(
        self, expected: TaskPlacement, list_id: ListId, position: int,
    ) -> bool:
        result = await self.db.execute(
            update(Task)
            .where(
                Task.id == expected.task_id,
                Task.list_id == expected.list_id,
                Task.position == expected.position,
            )
            .values(list_id=list_id, position=position)
            .execution_options(synchronize_session=False),
        )
        return result.rowcount == 1

    async def positions_in_list(self, list_id: ListId) -> list[int]:
        result = await self.db.execute(
            select(Task.position).where(Task.list_id == list_id),
        )
        return list(result.scalars().all())

    async def insert_task(
        self, list_id: ListId, position: int, fields: dict,
    ) -> dict:
        task = Task(list_id=list_id, position=position, **fields)
        self.db.add(task)
        await self.db.flush()
        return task.to_dict()

    async def update_fields(self, task_id: TaskId, fields: dict) -> None:
        if not fields:
            return
        await self.db.execute(
            update(Task)
            .where(Task.id == task_id)
            .values(**fields)
            .execution_options(synchronize_session=False),
        )

    async def get_task(self, task_id: TaskId) -> dict | None:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True),
        )
        task = result.scalar_one_or_none()
        return task.to_dict() if task else None

    async def delete_task(self, task_id: TaskId) -> bool:
        result = await self.db.execute(
            delete(Task)
            .where(Task.id == task_id)
            .execution_options(synchronize_session=False),
        )
        return result.rowcount == 1


class SqlUnitOfWork:
    """UnitOfWork over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def __call__(self) -> AsyncGenerator[SqlTaskRepository, None]:
        try:
            yield SqlTaskRepository(self.db)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e) from e
        except BaseException:
            await self.db.rollback()
            raise
