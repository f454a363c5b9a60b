"""Board routes — default lists on create, ordered board view, membership checks."""

from tests.api.conftest import as_user


async def test_create_board_gets_default_lists(client, seed):
    res = await client.post(
        f"/api/v1/workspaces/{seed.workspace.id}/boards",
        json={"name": "Sprint 12"},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 201
    board_id = res.json()["id"]
    assert res.json()["workspace_id"] == seed.workspace.id

    detail = await client.get(f"/api/v1/boards/{board_id}", headers=as_user(seed.bob))
    lists = detail.json()["lists"]
    assert [lst["name"] for lst in lists] == ["To Do", "In Progress", "Done"]
    assert [lst["position"] for lst in lists] == [0, 1, 2]
    assert all(lst["tasks"] == [] for lst in lists)


async def test_create_board_rejects_blank_name(client, seed):
    res = await client.post(
        f"/api/v1/workspaces/{seed.workspace.id}/boards",
        json={"name": "  "},
        headers=as_user(seed.bob),
    )
    assert res.status_code == 400


async def test_create_board_as_outsider_forbidden(client, seed):
    res = await client.post(
        f"/api/v1/workspaces/{seed.workspace.id}/boards",
        json={"name": "Intrusion"},
        headers=as_user(seed.carol),
    )
    assert res.status_code == 403


async def test_list_boards(client, seed):
    res = await client.get(
        f"/api/v1/workspaces/{seed.workspace.id}/boards", headers=as_user(seed.bob),
    )
    assert res.status_code == 200
    assert [b["name"] for b in res.json()] == ["Roadmap"]


async def test_board_view_orders_tasks_by_position(client, seed, add_tasks):
    await add_tasks(seed.todo, ("C", 5), ("A", 1), ("B", 3))
    await add_tasks(seed.doing, ("D", 1))
    res = await client.get(f"/api/v1/boards/{seed.board.id}", headers=as_user(seed.bob))
    assert res.status_code == 200
    lists = {lst["name"]: lst for lst in res.json()["lists"]}
    assert [t["title"] for t in lists["To Do"]["tasks"]] == ["A", "B", "C"]
    assert [t["position"] for t in lists["To Do"]["tasks"]] == [1, 3, 5]
    assert [t["title"] for t in lists["In Progress"]["tasks"]] == ["D"]


async def test_board_view_includes_assignee_name(client, seed):
    created = await client.post(
        f"/api/v1/boards/{seed.board.id}/tasks",
        json={"listId": seed.todo.id, "title": "Review", "assignedTo": seed.bob.id},
        headers=as_user(seed.alice),
    )
    assert created.status_code == 201
    res = await client.get(f"/api/v1/boards/{seed.board.id}", headers=as_user(seed.bob))
    task = res.json()["lists"][0]["tasks"][0]
    assert task["assigned_to_name"] == "Bob"


async def test_board_view_outsider_and_missing_look_alike(client, seed):
    outsider = await client.get(
        f"/api/v1/boards/{seed.board.id}", headers=as_user(seed.carol),
    )
    missing = await client.get("/api/v1/boards/9999", headers=as_user(seed.bob))
    assert outsider.status_code == missing.status_code == 403
    assert outsider.json()["error"]["code"] == missing.json()["error"]["code"]
