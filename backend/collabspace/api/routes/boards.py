"""Board Routes — create/list boards in a workspace and read a board with its lists and tasks.

Invariants:
    - A new board always gets the default lists, committed in the same transaction
    - The board view orders lists by list position and tasks by task position

Design Decisions:
    - selectinload for lists/tasks/assignees: relationships are lazy="raise", so the
      view states exactly what it loads
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from collabspace.api.dependencies import get_current_user
from collabspace.core.domain_types import DEFAULT_LIST_NAMES
from collabspace.core.errors import NotFoundError
from collabspace.infrastructure.database import commit_or_raise, get_db
from collabspace.models.board import Board, BoardList
from collabspace.models.task import Task
from collabspace.models.user import User
from collabspace.schemas.board import (
    BoardCreate, BoardDetailResponse, BoardListResponse, BoardResponse,
    BoardTaskResponse,
)
from collabspace.services.membership_guard import BoardRef, WorkspaceRef, authorize

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["boards"])


@router.post(
    "/workspaces/{workspace_id}/boards", response_model=BoardResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_board(
    workspace_id: int,
    body: BoardCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a board together with its default lists."""
    await authorize(db, user.id, WorkspaceRef(workspace_id))
    board = Board(
        workspace_id=workspace_id, name=body.name,
        description=body.description, created_by=user.id,
    )
    db.add(board)
    await db.flush()
    for index, name in enumerate(DEFAULT_LIST_NAMES):
        db.add(BoardList(board_id=board.id, name=name, position=index))
    await commit_or_raise(db)
    logger.info(
        f"Board {board.id} created",
        extra={"board_id": board.id, "workspace_id": workspace_id},
    )
    return BoardResponse.model_validate(board)


@router.get(
    "/workspaces/{workspace_id}/boards", response_model=list[BoardResponse],
)
async def list_boards(
    workspace_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await authorize(db, user.id, WorkspaceRef(workspace_id))
    result = await db.execute(
        select(Board)
        .where(Board.workspace_id == workspace_id)
        .order_by(Board.created_at.desc(), Board.id.desc()),
    )
    return [BoardResponse.model_validate(b) for b in result.scalars().all()]


@router.get("/boards/{board_id}", response_model=BoardDetailResponse)
async def get_board(
    board_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Board with lists and their tasks, both in position order."""
    await authorize(db, user.id, BoardRef(board_id))
    result = await db.execute(
        select(Board)
        .where(Board.id == board_id)
        .options(
            selectinload(Board.lists)
            .selectinload(BoardList.tasks)
            .selectinload(Task.assignee),
        )
        .execution_options(populate_existing=True),
    )
    board = result.scalar_one_or_none()
    if board is None:
        raise NotFoundError("Board", board_id)

    return BoardDetailResponse(
        **BoardResponse.model_validate(board).model_dump(),
        lists=[
            BoardListResponse(
                id=board_list.id,
                board_id=board_list.board_id,
                name=board_list.name,
                position=board_list.position,
                tasks=[
                    BoardTaskResponse(
                        **task.to_dict(),
                        assigned_to_name=task.assignee.name if task.assignee else None,
                    )
                    for task in board_list.tasks
                ],
            )
            for board_list in board.lists
        ],
    )
