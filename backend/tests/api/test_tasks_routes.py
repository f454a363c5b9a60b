"""Task routes — create/update/delete/move over HTTP with membership checks.

Invariants:
    - Members can create, move, update and delete; outsiders get 403 NOT_A_MEMBER
    - A missing task and a foreign task answer the same 403
    - Request bodies accept camelCase; responses are snake_case
    - PUT with listId/position reorders siblings instead of writing the raw position
"""

from collabspace.models.board import Board, BoardList
from collabspace.models.workspace import Workspace, WorkspaceMember
from tests.api.conftest import as_user


async def test_create_task_appends(client, seed, add_tasks):
    await add_tasks(seed.todo, ("A", 1), ("B", 2))
    res = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"listId": seed.todo.id, "title": "  Write docs  "},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 201
    body = res.json()
    assert body["position"] == 3
    assert body["title"] == "Write docs"
    assert body["list_id"] == seed.todo.id
    assert body["created_by"] == seed.bob.id


async def test_create_task_requires_title(client, seed):
    res = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"listId": seed.todo.id, "title": "   "},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_task_requires_list(client, seed):
    res = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"title": "No list"},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 400


async def test_create_task_in_list_of_other_board(client, seed, test_db):
    other = Board(workspace_id=seed.workspace.id, name="Other", created_by=seed.alice.id)
    test_db.add(other)
    await test_db.flush()
    foreign = BoardList(board_id=other.id, name="To Do", position=0)
    test_db.add(foreign)
    await test_db.commit()

    res = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"listId": foreign.id, "title": "Misplaced"},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "listId"
    assert error["status"] == 400


async def test_create_task_as_outsider_forbidden(client, seed):
    res = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"listId": seed.todo.id, "title": "Sneaky"},
        headers=as_user(seed.carol),
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "NOT_A_MEMBER"


async def test_missing_principal_is_unauthenticated(client, seed):
    res = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"listId": seed.todo.id, "title": "Anon"},
    )
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_unknown_principal_is_unauthenticated(client, seed):
    res = await client.get(
        f"/api/v1/boards/{seed.board.id}", headers={"X-User-Id": "9999"},
    )
    assert res.status_code == 401


async def test_move_task_across_lists(client, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2))
    await add_tasks(seed.doing, ("C", 1))
    res = await client.post(
        "/api/v1/tasks/move",
        json={"taskId": ids["A"], "targetListId": seed.doing.id, "targetPosition": 1},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    assert res.json()["list_id"] == seed.doing.id
    assert res.json()["position"] == 1
    assert await layout(seed.todo.id) == [("B", 1)]
    assert await layout(seed.doing.id) == [("A", 1), ("C", 2)]


async def test_move_task_clamps_position(client, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    res = await client.post(
        "/api/v1/tasks/move",
        json={"taskId": ids["A"], "targetListId": seed.todo.id, "targetPosition": 40},
        headers=as_user(seed.bob),
    )
    assert res.json()["position"] == 3
    assert await layout(seed.todo.id) == [("B", 1), ("C", 2), ("A", 3)]


async def test_move_missing_task_is_forbidden(client, seed):
    res = await client.post(
        "/api/v1/tasks/move",
        json={"taskId": 9999, "targetListId": seed.todo.id, "targetPosition": 1},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 403
    assert res.json()["error"]["message"] == "Not a member of this workspace"


async def test_move_into_foreign_workspace_is_forbidden(
    client, seed, add_tasks, layout, test_db,
):
    foreign_ws = Workspace(name="Elsewhere", created_by=seed.carol.id)
    test_db.add(foreign_ws)
    await test_db.flush()
    test_db.add(WorkspaceMember(
        workspace_id=foreign_ws.id, user_id=seed.carol.id, role="owner",
    ))
    board = Board(workspace_id=foreign_ws.id, name="Theirs", created_by=seed.carol.id)
    test_db.add(board)
    await test_db.flush()
    foreign_list = BoardList(board_id=board.id, name="To Do", position=0)
    test_db.add(foreign_list)
    await test_db.commit()

    ids = await add_tasks(seed.todo, ("A", 1))
    res = await client.post(
        "/api/v1/tasks/move",
        json={"taskId": ids["A"], "targetListId": foreign_list.id, "targetPosition": 1},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 403
    assert await layout(seed.todo.id) == [("A", 1)]


async def test_move_requires_all_fields(client, seed, add_tasks):
    ids = await add_tasks(seed.todo, ("A", 1))
    res = await client.post(
        "/api/v1/tasks/move",
        json={"taskId": ids["A"], "targetListId": seed.todo.id},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 400


async def test_update_fields_keeps_position(client, seed, add_tasks):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2))
    res = await client.put(
        f"/api/v1/tasks/{ids['B']}",
        json={"title": "B renamed", "assignedTo": seed.bob.id},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "B renamed"
    assert body["assigned_to"] == seed.bob.id
    assert body["position"] == 2


async def test_update_position_reorders_siblings(client, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    res = await client.put(
        f"/api/v1/tasks/{ids['C']}",
        json={"position": 1},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    assert await layout(seed.todo.id) == [("C", 1), ("A", 2), ("B", 3)]


async def test_update_list_appends_to_target(client, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2))
    await add_tasks(seed.done, ("D", 1))
    res = await client.put(
        f"/api/v1/tasks/{ids['A']}",
        json={"listId": seed.done.id},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    assert await layout(seed.done.id) == [("D", 1), ("A", 2)]
    assert await layout(seed.todo.id) == [("B", 1)]


async def test_update_as_outsider_forbidden(client, seed, add_tasks):
    ids = await add_tasks(seed.todo, ("A", 1))
    res = await client.put(
        f"/api/v1/tasks/{ids['A']}",
        json={"title": "Hijacked"},
        headers=as_user(seed.carol),
    )
    assert res.status_code == 403


async def test_delete_task_leaves_gap(client, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    res = await client.delete(
        f"/api/v1/tasks/{ids['B']}", headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    assert res.json() == {"message": "Task deleted successfully"}
    assert await layout(seed.todo.id) == [("A", 1), ("C", 3)]


async def test_delete_missing_task_is_forbidden(client, seed):
    res = await client.delete("/api/v1/tasks/9999", headers=as_user(seed.bob))
    assert res.status_code == 403


async def test_update_echoing_current_list_keeps_order(client, seed, add_tasks, layout):
    ids = await add_tasks(seed.todo, ("A", 1), ("B", 2), ("C", 3))
    res = await client.put(
        f"/api/v1/tasks/{ids['A']}",
        json={"title": "A2", "listId": seed.todo.id},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    assert res.json()["position"] == 1
    assert await layout(seed.todo.id) == [("A2", 1), ("B", 2), ("C", 3)]
