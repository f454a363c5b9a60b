"""SqlTaskRepository + SqlUnitOfWork — the ordering engine against a real SQL store.

Invariants:
    - Same behaviour as the in-memory runs: shifts, clamping, gaps, append
    - A failure inside the unit of work rolls back every shift already executed
    - relocate() refuses to overwrite a placement that no longer matches
"""

import pytest
from sqlalchemy.exc import OperationalError

from collabspace.core.errors import ConflictError, NotFoundError, ValidationError
from collabspace.core.task_ordering import TaskPlacement
from collabspace.infrastructure.task_repository import (
    SqlTaskRepository, SqlUnitOfWork,
)
from collabspace.models.board import Board, BoardList
from collabspace.services.task_ordering_engine import TaskOrderingEngine


@pytest.fixture
def engine(test_db):
    return TaskOrderingEngine(SqlUnitOfWork(test_db))


async def test_create_appends_in_sql_store(engine, seed, add_tasks, layout):
    await add_tasks(seed.todo, ("A", 1), ("B", 4))
    task = await engine.create_task(seed.todo.id, {"title": "C"}, seed.bob.id)
    assert task["position"] == 5
    assert task["created_by"] == seed.bob.id
    assert await layout(seed.todo.id) == [("A", 1), ("B", 4), ("C", 5)]


async def test_create_in_empty_list(engine, seed, layout):
    task = await engine.create_task(seed.done.id, {"title": "X"}, seed.alice.id)
    assert task["position"] == 1


async def test_move_within_list_in_sql_store(engine, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    await engine.move_task(ids["A"], seed.todo.id, 3)
    assert await layout(seed.todo.id) == [("B", 1), ("C", 2), ("A", 3)]


async def test_move_across_lists_in_sql_store(engine, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2))
    await add_tasks(seed.doing, ("C", 1))
    task = await engine.move_task(ids["A"], seed.doing.id, 1)
    assert (task["list_id"], task["position"]) == (seed.doing.id, 1)
    assert await layout(seed.todo.id) == [("B", 1)]
    assert await layout(seed.doing.id) == [("A", 1), ("C", 2)]


async def test_move_past_end_is_clamped(engine, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1))
    await add_tasks(seed.doing, ("B", 1), ("C", 2))
    task = await engine.move_task(ids["A"], seed.doing.id, 99)
    assert task["position"] == 3


async def test_move_to_other_board_rejected(
    engine, seed, add_tasks, layout, test_db,
):
    other = Board(workspace_id=seed.workspace.id, name="Other", created_by=seed.alice.id)
    test_db.add(other)
    await test_db.flush()
    foreign = BoardList(board_id=other.id, name="To Do", position=0)
    test_db.add(foreign)
    await test_db.commit()

    ids = await add_tasks(seed.todo, ("A", 1))
    with pytest.raises(ValidationError):
        await engine.move_task(ids["A"], foreign.id, 1)
    assert await layout(seed.todo.id) == [("A", 1)]


async def test_failure_after_shift_rolls_back(
    engine, seed, add_tasks, layout, monkeypatch,
):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2))
    await add_tasks(seed.doing, ("C", 1), ("D", 2))

    async def refuse(self, expected, list_id, position):
        return False

    monkeypatch.setattr(SqlTaskRepository, "relocate", refuse)
    with pytest.raises(ConflictError):
        await engine.move_task(ids["A"], seed.doing.id, 1)

    assert await layout(seed.todo.id) == [("A", 1), ("B", 2)]
    assert await layout(seed.doing.id) == [("C", 1), ("D", 2)]


async def test_relocate_checks_expected_placement(test_db, seed, add_tasks):
    ids = await add_tasks(seed.todo, ("A", 1))
    repo = SqlTaskRepository(test_db)
    stale = TaskPlacement(ids["A"], seed.todo.id, 7)
    assert await repo.relocate(stale, seed.doing.id, 1) is False
    fresh = TaskPlacement(ids["A"], seed.todo.id, 1)
    assert await repo.relocate(fresh, seed.doing.id, 1) is True
    await test_db.rollback()


async def test_update_payload_and_position(engine, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    task = await engine.update_task(
        ids["C"], {"title": "C2", "description": "details"}, target_position=1,
    )
    assert task["title"] == "C2"
    assert task["description"] == "details"
    assert await layout(seed.todo.id) == [("C2", 1), ("A", 2), ("B", 3)]


async def test_delete_keeps_gap_in_sql_store(engine, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    await engine.delete_task(ids["B"])
    assert await layout(seed.todo.id) == [("A", 1), ("C", 3)]
    with pytest.raises(NotFoundError):
        await engine.delete_task(ids["B"])


class _SerializationFailure(Exception):
    sqlstate = "40001"


async def test_serialization_failure_mid_move_is_conflict(
    engine, seed, add_tasks, layout, monkeypatch,
):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    await add_tasks(seed.doing, ("D", 1))

    async def lose_race(self, expected, list_id, position):
        raise OperationalError("UPDATE tasks", {}, _SerializationFailure())

    monkeypatch.setattr(SqlTaskRepository, "relocate", lose_race)
    with pytest.raises(ConflictError) as exc:
        await engine.move_task(ids["C"], seed.doing.id, 1)

    assert exc.value.http_status == 409
    assert await layout(seed.todo.id) == [("A", 1), ("B", 2), ("C", 3)]
    assert await layout(seed.doing.id) == [("D", 1)]


async def test_serialization_failure_on_create_is_conflict(
    engine, seed, add_tasks, layout, monkeypatch,
):
    await add_tasks(seed.todo, ("A", 1))

    async def lose_race(self, list_ids):
        raise OperationalError("SELECT ... FOR UPDATE", {}, _SerializationFailure())

    monkeypatch.setattr(SqlTaskRepository, "lock_lists", lose_race)
    with pytest.raises(ConflictError):
        await engine.create_task(seed.todo.id, {"title": "B"}, seed.bob.id)
    assert await layout(seed.todo.id) == [("A", 1)]
