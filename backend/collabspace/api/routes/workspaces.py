"""Workspace Routes — workspaces and their membership.

Invariants:
    - Only system admins create workspaces; the creator becomes owner
    - Updating a workspace requires owner/admin; deleting it requires owner
    - Adding members requires owner/admin in the workspace
    - Removing members requires owner/admin in the workspace or the system admin role
    - An owner cannot remove themselves; system admins cannot be removed by others

Design Decisions:
    - Membership checks through authorize(): non-members and unknown workspaces get
      the same 403
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from collabspace.api.dependencies import get_current_user
from collabspace.core.domain_types import MANAGER_ROLES, MemberRole, SystemRole
from collabspace.core.errors import (
    AuthorizationError, ConflictError, ErrorContext, NotFoundError, ValidationError,
)
from collabspace.infrastructure.database import commit_or_raise, get_db
from collabspace.models.board import Board, BoardList
from collabspace.models.task import Task
from collabspace.models.user import User
from collabspace.models.workspace import Workspace, WorkspaceMember
from collabspace.schemas.workspace import (
    MemberAdd, MemberResponse, WorkspaceCreate, WorkspaceResponse, WorkspaceUpdate,
)
from collabspace.services.membership_guard import WorkspaceRef, authorize

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/workspaces", tags=["workspaces"])


def _workspace_response(workspace: Workspace, role: str) -> WorkspaceResponse:
    return WorkspaceResponse(
        id=workspace.id,
        name=workspace.name,
        description=workspace.description,
        created_by=workspace.created_by,
        created_at=workspace.created_at,
        user_role=role,
    )


@router.post(
    "", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED,
)
async def create_workspace(
    body: WorkspaceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a workspace. Restricted to system administrators."""
    if user.role != SystemRole.ADMIN.value:
        raise AuthorizationError(
            "Only administrators can create workspaces",
            "INSUFFICIENT_PERMISSIONS",
        )
    workspace = Workspace(
        name=body.name, description=body.description, created_by=user.id,
    )
    db.add(workspace)
    await db.flush()
    db.add(WorkspaceMember(
        workspace_id=workspace.id, user_id=user.id, role=MemberRole.OWNER.value,
    ))
    await commit_or_raise(db)
    logger.info(
        f"Workspace {workspace.id} created",
        extra={"workspace_id": workspace.id, "user_id": user.id},
    )
    return _workspace_response(workspace, MemberRole.OWNER.value)


@router.get("", response_model=list[WorkspaceResponse])
async def list_workspaces(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Workspaces the principal belongs to, newest first."""
    result = await db.execute(
        select(Workspace, WorkspaceMember.role)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .where(WorkspaceMember.user_id == user.id)
        .order_by(Workspace.created_at.desc(), Workspace.id.desc()),
    )
    return [_workspace_response(w, role) for w, role in result.all()]


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(
    workspace_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    access = await authorize(db, user.id, WorkspaceRef(workspace_id))
    result = await db.execute(
        select(Workspace).where(Workspace.id == workspace_id),
    )
    workspace = result.scalar_one()
    return _workspace_response(workspace, access.role.value)


@router.put("/{workspace_id}", response_model=WorkspaceResponse)
async def update_workspace(
    workspace_id: int,
    body: WorkspaceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename or re-describe a workspace. Owners and admins only."""
    access = await authorize(
        db, user.id, WorkspaceRef(workspace_id), roles=MANAGER_ROLES,
    )
    result = await db.execute(
        select(Workspace).where(Workspace.id == workspace_id),
    )
    workspace = result.scalar_one()
    for name in body.model_fields_set:
        setattr(workspace, name, getattr(body, name))
    await commit_or_raise(db)
    logger.info(
        f"Workspace {workspace_id} updated ({', '.join(sorted(body.model_fields_set)) or 'no fields'})",
        extra={"workspace_id": workspace_id, "user_id": user.id},
    )
    return _workspace_response(workspace, access.role.value)


@router.delete("/{workspace_id}")
async def delete_workspace(
    workspace_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a workspace with its boards, lists, tasks and memberships. Owner only."""
    await authorize(
        db, user.id, WorkspaceRef(workspace_id), roles=frozenset({MemberRole.OWNER}),
    )
    board_ids = select(Board.id).where(Board.workspace_id == workspace_id)
    list_ids = select(BoardList.id).where(BoardList.board_id.in_(board_ids))
    # Explicit order: SQLite does not enforce ON DELETE CASCADE by default
    await db.execute(delete(Task).where(Task.list_id.in_(list_ids)))
    await db.execute(delete(BoardList).where(BoardList.board_id.in_(board_ids)))
    await db.execute(delete(Board).where(Board.workspace_id == workspace_id))
    await db.execute(
        delete(WorkspaceMember).where(WorkspaceMember.workspace_id == workspace_id),
    )
    await db.execute(delete(Workspace).where(Workspace.id == workspace_id))
    await commit_or_raise(db)
    logger.info(
        f"Workspace {workspace_id} deleted",
        extra={"workspace_id": workspace_id, "user_id": user.id},
    )
    return {"message": "Workspace deleted successfully"}


@router.post("/{workspace_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    workspace_id: int,
    body: MemberAdd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await authorize(db, user.id, WorkspaceRef(workspace_id), roles=MANAGER_ROLES)

    target = await db.execute(select(User.id).where(User.id == body.user_id))
    if target.scalar_one_or_none() is None:
        raise NotFoundError("User", body.user_id)

    existing = await db.execute(
        select(WorkspaceMember.id).where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == body.user_id,
        ),
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(
            "User is already a member", ErrorContext(workspace_id=workspace_id),
        )

    db.add(WorkspaceMember(
        workspace_id=workspace_id, user_id=body.user_id, role=body.role,
    ))
    await commit_or_raise(db)
    logger.info(
        f"User {body.user_id} added to workspace {workspace_id} as {body.role}",
        extra={"workspace_id": workspace_id, "user_id": body.user_id},
    )
    return {"message": "Member added successfully"}


@router.get("/{workspace_id}/members", response_model=list[MemberResponse])
async def list_members(
    workspace_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await authorize(db, user.id, WorkspaceRef(workspace_id))
    result = await db.execute(
        select(User, WorkspaceMember)
        .join(WorkspaceMember, WorkspaceMember.user_id == User.id)
        .where(WorkspaceMember.workspace_id == workspace_id)
        .order_by(WorkspaceMember.joined_at, WorkspaceMember.id),
    )
    return [
        MemberResponse(
            id=member_user.id,
            email=member_user.email,
            name=member_user.name,
            role=member.role,
            joined_at=member.joined_at,
        )
        for member_user, member in result.all()
    ]


@router.delete("/{workspace_id}/members/{user_id}")
async def remove_member(
    workspace_id: int,
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    access = await authorize(db, user.id, WorkspaceRef(workspace_id))
    requester_is_admin = user.role == SystemRole.ADMIN.value
    if not requester_is_admin and access.role not in MANAGER_ROLES:
        raise AuthorizationError(
            "Insufficient permissions", "INSUFFICIENT_PERMISSIONS",
            ErrorContext(workspace_id=workspace_id),
        )

    target = await db.execute(select(User.role).where(User.id == user_id))
    target_role = target.scalar_one_or_none()
    if target_role == SystemRole.ADMIN.value and not requester_is_admin:
        raise AuthorizationError(
            "System administrators cannot be removed from workspaces",
            "INSUFFICIENT_PERMISSIONS",
        )
    if user_id == user.id and access.role == MemberRole.OWNER:
        raise ValidationError("Owner cannot remove themselves", field="userId")
    if user_id == user.id and target_role == SystemRole.ADMIN.value:
        raise ValidationError(
            "System administrators cannot remove themselves from workspaces",
            field="userId",
        )

    result = await db.execute(
        delete(WorkspaceMember).where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == user_id,
        ),
    )
    if result.rowcount == 0:
        raise NotFoundError("Member", user_id)
    await commit_or_raise(db)
    logger.info(
        f"User {user_id} removed from workspace {workspace_id}",
        extra={"workspace_id": workspace_id, "user_id": user_id},
    )
    return {"message": "Member removed successfully"}
