from datetime import date


def _create(client, **body):
    resp = client.post("/api/tasks", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


def test_create_title_only(client) -> None:
    resp = client.post("/api/tasks", json={"title": "Buy milk"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    task = body["task"]
    assert task["id"]
    assert task["title"] == "Buy milk"
    assert task["priority"] == "medium"
    assert task["status"] == "backlog"
    assert task["startDate"] == date.today().isoformat()
    assert task["dueDate"] is None
    assert task["dueTime"] is None
    assert task["subTasks"] == []


def test_round_trip(client) -> None:
    created = _create(client, title="Report", priority="high", status="active",
                      startDate="2024-01-15", dueDate="2024-01-20", dueTime="17:45",
                      description="quarterly")

    resp = client.get(f"/api/tasks/{created['id']}")

    assert resp.status_code == 200
    assert resp.json() == created


def test_list_returns_top_level_with_subtrees(client) -> None:
    parent = _create(client, title="parent")
    child = client.post(f"/api/tasks/{parent['id']}/subtasks", json={"title": "child"}).json()
    client.post(f"/api/tasks/{child['id']}/subtasks", json={"title": "grandchild"})

    resp = client.get("/api/tasks")

    assert resp.status_code == 200
    tasks = resp.json()
    assert [t["id"] for t in tasks] == [parent["id"]]
    assert tasks[0]["subTasks"][0]["subTasks"][0]["title"] == "grandchild"


def test_list_empty(client) -> None:
    resp = client.get("/api/tasks")
    assert resp.status_code == 200
    assert resp.json() == []


def test_list_store_failure_is_500(client, repo) -> None:
    repo.fail_list = True
    resp = client.get("/api/tasks")
    assert resp.status_code == 500
    assert "error querying tasks" in resp.json()["error"]


def test_get_missing(client) -> None:
    resp = client.get("/api/tasks/missing")
    assert resp.status_code == 404
    assert resp.json() == {"error": "task not found"}


def test_validation_errors_are_400(client) -> None:
    cases = [
        ({"title": ""}, "task title is required"),
        ({"title": "x", "priority": "urgent"}, "invalid priority value"),
        ({"title": "x", "status": "done"}, "invalid status value"),
        ({"title": "x", "startDate": "15-01-2024"}, "invalid start date format"),
        ({"title": "x", "dueTime": "25:99"}, "invalid due time format"),
    ]
    for body, message in cases:
        resp = client.post("/api/tasks", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": message}


def test_missing_title_is_validation_error(client) -> None:
    resp = client.post("/api/tasks", json={"description": "no title"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "task title is required"}


def test_malformed_body_is_400(client) -> None:
    resp = client.post(
        "/api/tasks", content="{not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert "error" in resp.json()

    resp = client.post("/api/tasks", json={"title": ["not", "a", "string"]})
    assert resp.status_code == 400
    assert "title" in resp.json()["error"]


def test_update_uses_path_id(client) -> None:
    created = _create(client, title="draft")

    resp = client.put(
        f"/api/tasks/{created['id']}",
        json={"id": "something-else", "title": "final", "priority": "low",
              "status": "finished", "startDate": "2024-02-02"},
    )

    assert resp.status_code == 200
    task = resp.json()
    assert task["id"] == created["id"]
    assert task["title"] == "final"
    assert task["status"] == "finished"
    assert client.get("/api/tasks/something-else").status_code == 404


def test_update_invalid_is_400(client) -> None:
    created = _create(client, title="draft")
    resp = client.put(f"/api/tasks/{created['id']}", json={"title": "x", "dueDate": "2024/01/01"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid due date format"}


def test_update_missing_is_404(client) -> None:
    resp = client.put("/api/tasks/missing", json={"title": "x"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "task not found"}


def test_delete_cascades(client) -> None:
    parent = _create(client, title="parent")
    child = client.post(f"/api/tasks/{parent['id']}/subtasks", json={"title": "child"}).json()
    grandchild = client.post(f"/api/tasks/{child['id']}/subtasks", json={"title": "gc"}).json()

    resp = client.delete(f"/api/tasks/{parent['id']}")

    assert resp.status_code == 204
    assert resp.content == b""
    for task in (parent, child, grandchild):
        assert client.get(f"/api/tasks/{task['id']}").status_code == 404


def test_delete_missing_is_404(client) -> None:
    resp = client.delete("/api/tasks/missing")
    assert resp.status_code == 404
    assert resp.json() == {"error": "task not found"}


def test_subtasks_listing(client) -> None:
    parent = _create(client, title="parent")
    resp = client.post(f"/api/tasks/{parent['id']}/subtasks",
                       json={"title": "child", "priority": "high"})

    assert resp.status_code == 201
    child = resp.json()
    assert child["priority"] == "high"
    assert child["status"] == "backlog"
    assert child["subTasks"] == []

    listed = client.get(f"/api/tasks/{parent['id']}/subtasks")
    assert listed.status_code == 200
    assert [t["id"] for t in listed.json()] == [child["id"]]


def test_subtasks_of_missing_parent(client) -> None:
    assert client.get("/api/tasks/missing/subtasks").status_code == 404

    resp = client.post("/api/tasks/missing/subtasks", json={"title": "orphan"})
    assert resp.status_code == 400
    assert "error creating subtask" in resp.json()["error"]


def test_create_subtask_invalid(client) -> None:
    parent = _create(client, title="parent")
    resp = client.post(f"/api/tasks/{parent['id']}/subtasks", json={"title": "x", "status": "done"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid status value"}


def test_cors_preflight(client) -> None:
    allowed = client.options(
        "/api/tasks",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert allowed.status_code == 200
    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert allowed.headers["access-control-allow-credentials"] == "true"

    denied = client.options(
        "/api/tasks",
        headers={"Origin": "http://evil.example", "Access-Control-Request-Method": "POST"},
    )
    assert "access-control-allow-origin" not in denied.headers

    patch = client.options(
        "/api/tasks",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "PATCH"},
    )
    assert patch.status_code == 400


def test_health_without_database(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
