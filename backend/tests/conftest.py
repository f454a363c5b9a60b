"""Root conftest — shared test configuration, async DB and seed data.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Environment defaults set before any collabspace import reads settings
    - Seed: alice (system admin, owner), bob (member), carol (outside the workspace),
      one workspace with one board holding To Do / In Progress / Done

Design Decisions:
    - SQLite in-memory: fast, no external dependency; row locks and isolation levels
      are not exercised here (the conditional relocate and duplicate check are)
    - Isolation level blanked: SQLite does not accept SERIALIZABLE through aiosqlite
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_ISOLATION_LEVEL", "")

from dataclasses import dataclass  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, async_sessionmaker, create_async_engine,
)

from collabspace.db.base import Base  # noqa: E402
from collabspace.models.board import Board, BoardList  # noqa: E402
from collabspace.models.task import Task  # noqa: E402
from collabspace.models.user import User  # noqa: E402
from collabspace.models.workspace import Workspace, WorkspaceMember  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@dataclass
class Seed:
    alice: User
    bob: User
    carol: User
    workspace: Workspace
    board: Board
    todo: BoardList
    doing: BoardList
    done: BoardList


@pytest.fixture
async def seed(test_db) -> Seed:
    alice = User(email="alice@example.com", name="Alice", role="admin")
    bob = User(email="bob@example.com", name="Bob")
    carol = User(email="carol@example.com", name="Carol")
    test_db.add_all([alice, bob, carol])
    await test_db.flush()

    workspace = Workspace(name="Product", created_by=alice.id)
    test_db.add(workspace)
    await test_db.flush()
    test_db.add_all([
        WorkspaceMember(workspace_id=workspace.id, user_id=alice.id, role="owner"),
        WorkspaceMember(workspace_id=workspace.id, user_id=bob.id, role="member"),
    ])

    board = Board(workspace_id=workspace.id, name="Roadmap", created_by=alice.id)
    test_db.add(board)
    await test_db.flush()
    lists = [
        BoardList(board_id=board.id, name=name, position=i)
        for i, name in enumerate(("To Do", "In Progress", "Done"))
    ]
    test_db.add_all(lists)
    await test_db.commit()
    return Seed(alice, bob, carol, workspace, board, *lists)


@pytest.fixture
def add_tasks(test_db, seed):
    """Insert tasks with explicit positions: await add_tasks(list, ("A", 1), ...)."""

    async def _add(board_list: BoardList, *titled_positions) -> dict[str, int]:
        tasks = [
            Task(
                list_id=board_list.id, title=title, position=position,
                created_by=seed.alice.id,
            )
            for title, position in titled_positions
        ]
        test_db.add_all(tasks)
        await test_db.commit()
        return {t.title: t.id for t in tasks}

    return _add


@pytest.fixture
def layout(test_db):
    """(title, position) pairs of a list in display order, read fresh."""

    async def _layout(list_id: int) -> list[tuple[str, int]]:
        result = await test_db.execute(
            select(Task.title, Task.position)
            .where(Task.list_id == list_id)
            .order_by(Task.position, Task.id)
            .execution_options(populate_existing=True),
        )
        await test_db.commit()
        return [(title, position) for title, position in result.all()]

    return _layout
