"""Request Dependencies — principal resolution and per-request engine wiring.

Invariants:
    - Authentication happens upstream; X-User-Id carries the verified principal id
    - A missing or unknown principal raises AuthenticationError (401)
    - get_db is cached per request by FastAPI: the guard, the routes and the
      ordering engine all share one AsyncSession

Design Decisions:
    - Engine built per request around SqlUnitOfWork: no module-level store handle
"""

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabspace.core.errors import AuthenticationError
from collabspace.infrastructure.database import get_db
from collabspace.infrastructure.task_repository import SqlUnitOfWork
from collabspace.models.user import User
from collabspace.services.task_ordering_engine import TaskOrderingEngine


async def get_current_user(
    x_user_id: int | None = Header(None, alias="X-User-Id"),
    db: AsyncSession = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise AuthenticationError()
    result = await db.execute(select(User).where(User.id == x_user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError()
    return user


def get_ordering_engine(
    db: AsyncSession = Depends(get_db),
) -> TaskOrderingEngine:
    return TaskOrderingEngine(SqlUnitOfWork(db))
