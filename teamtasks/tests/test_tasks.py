"""HTTP tests for auth, task CRUD, sharing, teams and stats."""

import pytest
from fastapi.testclient import TestClient

from teamtasks.deps import get_clock, get_storage
from teamtasks.main import app


@pytest.fixture(name="client")
def client_fixture(storage, clock):
    """Create a test client with overridden storage and clock."""
    def get_storage_override():
        yield storage

    app.dependency_overrides[get_storage] = get_storage_override
    app.dependency_overrides[get_clock] = lambda: clock
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _auth(name: str) -> dict:
    return {"Authorization": f"Bearer uid-{name}"}


def _sign_in(client: TestClient, name: str) -> dict:
    response = client.post("/api/auth/signin", json={
        "external_id": f"uid-{name}",
        "email": f"{name}@example.com",
        "display_name": name.capitalize(),
    })
    assert response.status_code == 200
    return response.json()["user"]


@pytest.fixture(name="users")
def users_fixture(client):
    return {name: _sign_in(client, name) for name in ("alice", "bob", "carol")}


def _create(client, name="alice", **body):
    body.setdefault("title", "A task")
    response = client.post("/api/tasks", json=body, headers=_auth(name))
    assert response.status_code == 201, response.text
    return response.json()["task"]


class TestAuth:
    def test_sign_in_and_me(self, client):
        user = _sign_in(client, "alice")
        assert user["email"] == "alice@example.com"
        assert "external_id" not in user

        response = client.get("/api/auth/me", headers=_auth("alice"))
        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]

    def test_missing_token(self, client):
        response = client.get("/api/tasks")
        assert response.status_code == 401
        assert response.json() == {"message": "No authentication token"}

    def test_unknown_identity(self, client):
        response = client.get("/api/tasks", headers=_auth("nobody"))
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_sign_in_requires_fields(self, client):
        response = client.post("/api/auth/signin", json={"external_id": "uid-x"})
        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"email", "display_name"} <= fields


class TestTaskCrud:
    def test_create_returns_enriched_task(self, client, users):
        task = _create(client, title="Write report", shared_emails=["bob@example.com"])
        assert task["status"] == "todo"
        assert task["priority"] == "medium"
        assert task["completed_at"] is None
        assert task["created_by_user"]["display_name"] == "Alice"
        assert [u["email"] for u in task["shared_with"]] == ["bob@example.com"]
        assert task["shared_with"][0]["permission"] == "edit"
        assert task["team"] is None

    def test_create_rejects_blank_title(self, client, users):
        response = client.post("/api/tasks", json={"title": "  "}, headers=_auth("alice"))
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "title"

    def test_get_task(self, client, users):
        task = _create(client)
        response = client.get(f"/api/tasks/{task['id']}", headers=_auth("alice"))
        assert response.status_code == 200
        assert response.json()["task"]["title"] == "A task"

        response = client.get(f"/api/tasks/{task['id']}", headers=_auth("bob"))
        assert response.status_code == 404

    def test_update_marks_completion(self, client, users):
        task = _create(client)
        response = client.put(
            f"/api/tasks/{task['id']}",
            json={"status": "completed"},
            headers=_auth("alice"),
        )
        assert response.status_code == 200
        updated = response.json()["task"]
        assert updated["status"] == "completed"
        assert updated["completed_at"] is not None
        assert updated["title"] == "A task"  # Other fields unchanged

        response = client.put(
            f"/api/tasks/{task['id']}", json={"status": "todo"}, headers=_auth("alice")
        )
        assert response.json()["task"]["completed_at"] is None

    def test_update_by_stranger_is_not_found(self, client, users):
        task = _create(client)
        response = client.put(
            f"/api/tasks/{task['id']}", json={"title": "mine now"}, headers=_auth("bob")
        )
        assert response.status_code == 404

    def test_delete(self, client, users):
        task = _create(client, shared_emails=["bob@example.com"])

        response = client.delete(f"/api/tasks/{task['id']}", headers=_auth("bob"))
        assert response.status_code == 404

        response = client.delete(f"/api/tasks/{task['id']}", headers=_auth("alice"))
        assert response.status_code == 200
        assert response.json() == {"success": True}

        for name in ("alice", "bob"):
            response = client.get(f"/api/tasks/{task['id']}", headers=_auth(name))
            assert response.status_code == 404


class TestListTasks:
    def test_filters_and_sort(self, client, users):
        _create(client, title="b low", priority="low")
        _create(client, title="a high", priority="high")
        _create(client, title="c done", status="completed")

        response = client.get(
            "/api/tasks",
            params={"status": "todo", "sort": "alphabetical"},
            headers=_auth("alice"),
        )
        assert response.status_code == 200
        assert [t["title"] for t in response.json()["tasks"]] == ["a high", "b low"]

        response = client.get(
            "/api/tasks", params={"status": "all", "sort": "priority"}, headers=_auth("alice")
        )
        assert [t["title"] for t in response.json()["tasks"]] == ["a high", "c done", "b low"]

    def test_due_today(self, client, users):
        _create(client, title="yesterday", due_date="2024-01-01T23:00:00")
        _create(client, title="today", due_date="2024-01-02T01:00:00")
        response = client.get("/api/tasks", params={"due_date": "today"}, headers=_auth("alice"))
        assert [t["title"] for t in response.json()["tasks"]] == ["today"]

    def test_bad_filter_value(self, client, users):
        response = client.get("/api/tasks", params={"priority": "urgent"}, headers=_auth("alice"))
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "priority"


class TestSharingRoutes:
    def test_share_view_then_edit(self, client, users):
        task = _create(client)
        url = f"/api/tasks/{task['id']}"

        response = client.post(
            f"{url}/share",
            json={"email": "bob@example.com", "permission": "view"},
            headers=_auth("alice"),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Task shared with bob@example.com"

        assert client.get(url, headers=_auth("bob")).status_code == 200
        assert client.put(url, json={"title": "x"}, headers=_auth("bob")).status_code == 404

        client.post(f"{url}/share", json={"email": "bob@example.com"}, headers=_auth("alice"))
        response = client.put(url, json={"title": "x"}, headers=_auth("bob"))
        assert response.status_code == 200
        assert response.json()["task"]["created_by"] == users["alice"]["id"]

    def test_share_errors(self, client, users):
        task = _create(client)
        url = f"/api/tasks/{task['id']}/share"

        response = client.post(url, json={"email": "alice@example.com"}, headers=_auth("alice"))
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot share with yourself"

        response = client.post(url, json={"email": "ghost@example.com"}, headers=_auth("alice"))
        assert response.status_code == 404
        assert response.json()["message"] == "User not found with this email"

        response = client.post(url, json={"email": "carol@example.com"}, headers=_auth("bob"))
        assert response.status_code == 404
        assert response.json()["message"] == "Task not found"

    def test_list_and_revoke_shares(self, client, users):
        task = _create(client, shared_emails=["bob@example.com", "carol@example.com"])
        url = f"/api/tasks/{task['id']}/shares"

        response = client.get(url, headers=_auth("bob"))
        assert response.status_code == 200
        assert len(response.json()["shares"]) == 2

        carol_id = users["carol"]["id"]
        assert client.delete(f"{url}/{carol_id}", headers=_auth("bob")).status_code == 404
        assert client.delete(f"{url}/{carol_id}", headers=_auth("alice")).status_code == 200
        assert client.delete(f"{url}/{carol_id}", headers=_auth("alice")).status_code == 404

        assert client.get(url, headers=_auth("carol")).status_code == 404


class TestTeamsAndStats:
    def test_teams(self, client, users):
        response = client.post(
            "/api/teams", json={"name": "Design", "color": "#8b5cf6"}, headers=_auth("alice")
        )
        assert response.status_code == 201
        team = response.json()["team"]

        task = _create(client, team_id=team["id"])
        assert task["team"] == {"name": "Design", "color": "#8b5cf6"}

        response = client.get("/api/teams", headers=_auth("bob"))
        assert [t["name"] for t in response.json()["teams"]] == ["Design"]

    def test_stats(self, client, users):
        _create(client, title="due today", due_date="2024-01-02T18:00:00")
        _create(client, title="late", due_date="2023-12-30T09:00:00")
        _create(client, title="done", status="completed")

        response = client.get("/api/user/stats", headers=_auth("alice"))
        assert response.status_code == 200
        assert response.json()["stats"] == {
            "active_tasks": 2,
            "completed_tasks": 1,
            "due_today_tasks": 1,
            "overdue_tasks": 1,
        }


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
