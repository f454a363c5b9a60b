"""Membership Guard — capability check (principal, resource reference) → workspace access.

Invariants:
    - Every workspace-scoped route calls authorize() before touching data
    - A missing resource and a non-member principal raise the SAME AuthorizationError
      (no disclosure of whether the resource exists)
    - Role checks happen only after membership is established

Design Decisions:
    - Typed references (WorkspaceRef/BoardRef/ListRef/TaskRef) instead of a lookup
      chain inlined in every handler: the join task → list → board → workspace
      lives here once
    - Kept out of the ordering engine: ordering logic has no notion of principals
"""

import logging
from dataclasses import dataclass
from typing import Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabspace.core.domain_types import (
    BoardId, ListId, MemberRole, TaskId, UserId, WorkspaceId,
)
from collabspace.core.errors import AuthorizationError, ErrorContext
from collabspace.models.board import Board, BoardList
from collabspace.models.task import Task
from collabspace.models.workspace import WorkspaceMember

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceRef:
    workspace_id: WorkspaceId


@dataclass(frozen=True)
class BoardRef:
    board_id: BoardId


@dataclass(frozen=True)
class ListRef:
    list_id: ListId


@dataclass(frozen=True)
class TaskRef:
    task_id: TaskId


ResourceRef = Union[WorkspaceRef, BoardRef, ListRef, TaskRef]


@dataclass(frozen=True)
class Access:
    """Result of a successful check."""
    workspace_id: WorkspaceId
    role: MemberRole


async def resolve_workspace_id(
    db: AsyncSession, ref: ResourceRef,
) -> WorkspaceId | None:
    """Owning workspace of ref, or None if ref points at nothing."""
    if isinstance(ref, WorkspaceRef):
        return ref.workspace_id
    if isinstance(ref, BoardRef):
        query = select(Board.workspace_id).where(Board.id == ref.board_id)
    elif isinstance(ref, ListRef):
        query = (
            select(Board.workspace_id)
            .join(BoardList, BoardList.board_id == Board.id)
            .where(BoardList.id == ref.list_id)
        )
    elif isinstance(ref, TaskRef):
        query = (
            select(Board.workspace_id)
            .join(BoardList, BoardList.board_id == Board.id)
            .join(Task, Task.list_id == BoardList.id)
            .where(Task.id == ref.task_id)
        )
    else:
        raise TypeError(f"Unsupported resource reference: {ref!r}")
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_member_role(
    db: AsyncSession, user_id: UserId, workspace_id: WorkspaceId,
) -> MemberRole | None:
    result = await db.execute(
        select(WorkspaceMember.role).where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == user_id,
        ),
    )
    role = result.scalar_one_or_none()
    return MemberRole(role) if role else None


async def authorize(
    db: AsyncSession,
    user_id: UserId,
    ref: ResourceRef,
    roles: frozenset[MemberRole] | None = None,
) -> Access:
    """Grant access to ref for user_id, optionally requiring one of roles."""
    workspace_id = await resolve_workspace_id(db, ref)
    role = (
        await get_member_role(db, user_id, workspace_id)
        if workspace_id is not None else None
    )
    if role is None:
        logger.info(
            f"Access denied to {ref!r}",
            extra={"user_id": user_id, "error_code": "NOT_A_MEMBER"},
        )
        raise AuthorizationError()
    if roles is not None and role not in roles:
        raise AuthorizationError(
            "Insufficient permissions", "INSUFFICIENT_PERMISSIONS",
            ErrorContext(workspace_id=workspace_id),
        )
    return Access(workspace_id=workspace_id, role=role)
