"""Task Routes — create, update, delete and move tasks on a board.

Invariants:
    - Every handler authorizes the principal against the owning workspace first
    - Positions are never written here; all placement goes through TaskOrderingEngine
    - PUT with listId/position performs a move, not a raw field write
    - A move targeting another workspace's list is denied like any non-member access

Design Decisions:
    - Paths without a workspace segment: the guard derives the workspace from the
      board/task/list reference (task → list → board → workspace)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabspace.api.dependencies import get_current_user, get_ordering_engine
from collabspace.core.errors import ErrorContext, ValidationError
from collabspace.infrastructure.database import get_db
from collabspace.models.board import BoardList
from collabspace.models.user import User
from collabspace.schemas.task import TaskCreate, TaskMove, TaskResponse, TaskUpdate
from collabspace.services.membership_guard import (
    BoardRef, ListRef, TaskRef, authorize,
)
from collabspace.services.task_ordering_engine import TaskOrderingEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["tasks"])


async def _ensure_list_on_board(
    db: AsyncSession, list_id: int, board_id: int,
) -> None:
    result = await db.execute(
        select(BoardList.board_id).where(BoardList.id == list_id),
    )
    if result.scalar_one_or_none() != board_id:
        raise ValidationError(
            "listId must be a list of this board", field="listId",
            context=ErrorContext(list_id=list_id),
        )


@router.post(
    "/boards/{board_id}/tasks", response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    board_id: int,
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    engine: TaskOrderingEngine = Depends(get_ordering_engine),
):
    """Append a task to one of the board's lists."""
    await authorize(db, user.id, BoardRef(board_id))
    await _ensure_list_on_board(db, body.list_id, board_id)
    task = await engine.create_task(
        body.list_id,
        body.model_dump(include={"title", "description", "assigned_to", "due_date"}),
        user.id,
    )
    return TaskResponse(**task)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    engine: TaskOrderingEngine = Depends(get_ordering_engine),
):
    """Partial update. listId/position changes are executed as a move."""
    await authorize(db, user.id, TaskRef(task_id))
    if body.list_id is not None:
        await authorize(db, user.id, ListRef(body.list_id))
    task = await engine.update_task(
        task_id,
        body.payload_fields(),
        target_list_id=body.list_id,
        target_position=body.position,
    )
    return TaskResponse(**task)


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    engine: TaskOrderingEngine = Depends(get_ordering_engine),
):
    await authorize(db, user.id, TaskRef(task_id))
    await engine.delete_task(task_id)
    return {"message": "Task deleted successfully"}


@router.post("/tasks/move", response_model=TaskResponse)
async def move_task(
    body: TaskMove,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    engine: TaskOrderingEngine = Depends(get_ordering_engine),
):
    """Move a task to targetPosition in targetListId (position clamped to the list)."""
    await authorize(db, user.id, TaskRef(body.task_id))
    await authorize(db, user.id, ListRef(body.target_list_id))
    task = await engine.move_task(
        body.task_id, body.target_list_id, body.target_position,
    )
    return TaskResponse(**task)
