import httpx
import pytest
from typer.testing import CliRunner

from todoview import cli
from todoview.api_client import TodoApiClient

runner = CliRunner()

TASKS = [
    {"id": 1, "title": "Buy milk", "completed": False, "priority": 1},
    {"id": 2, "title": "Write report", "completed": True, "priority": 3, "category_id": 1},
]
CATEGORIES = [{"id": 1, "name": "Work", "color": "#007bff"}]


@pytest.fixture()
def patched_client(fake_api, monkeypatch):
    def factory(base_url: str, timeout: float = 30.0) -> TodoApiClient:
        return TodoApiClient(base_url, timeout=timeout, transport=httpx.MockTransport(fake_api.handler))

    monkeypatch.setattr(cli, "TodoApiClient", factory)
    monkeypatch.setenv("TODOVIEW_API_URL", "http://todo.test/api")
    return fake_api


def test_list_renders_filtered_tasks(patched_client):
    patched_client.route("GET", "/tasks", body=TASKS)
    patched_client.route("GET", "/categories", body=CATEGORIES)

    result = runner.invoke(cli.app, ["list", "--status", "incomplete"])

    assert result.exit_code == 0, result.output
    assert "Buy milk" in result.output
    assert "Write report" not in result.output
    assert "Progress by category" in result.output


def test_list_reports_fetch_error(patched_client):
    patched_client.route("GET", "/tasks", status=500, body="Internal server error")

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 1
    assert "Internal server error" in result.output


def test_list_rejects_unknown_due_bucket(patched_client):
    result = runner.invoke(cli.app, ["list", "--due", "someday"])

    assert result.exit_code != 0
    assert patched_client.requests == []


def test_add_sends_parsed_fields(patched_client):
    patched_client.route("POST", "/tasks", status=201, body=TASKS[0])

    result = runner.invoke(cli.app, ["add", "Buy milk", "--priority", "high", "--due", "2026-10-20T18:30"])

    assert result.exit_code == 0, result.output
    body = patched_client.json_body(patched_client.calls("POST", "/tasks")[0])
    assert body["title"] == "Buy milk"
    assert body["priority"] == 3
    assert body["due_date"].startswith("2026-10-20T18:30")


def test_delete_category_in_use_exits_with_error(patched_client):
    patched_client.route("DELETE", "/categories/1", status=409, body="category is in use by 1 todos")

    result = runner.invoke(cli.app, ["category", "delete", "1", "--yes"])

    assert result.exit_code == 1
    assert "category is in use" in result.output


EDITABLE = {
    "id": 5,
    "title": "Plan trip",
    "description": "Book flights",
    "completed": False,
    "priority": 2,
    "category_id": 1,
    "due_date": "2026-10-25T09:00:00Z",
}


def test_edit_keeps_fields_that_are_not_given(patched_client):
    patched_client.route("GET", "/tasks", body=[EDITABLE])
    patched_client.route("GET", "/categories", body=CATEGORIES)
    patched_client.route("PUT", "/tasks/5", body={**EDITABLE, "title": "Plan holiday"})

    result = runner.invoke(cli.app, ["edit", "5", "--title", "Plan holiday"])

    assert result.exit_code == 0, result.output
    body = patched_client.json_body(patched_client.calls("PUT", "/tasks/5")[0])
    assert body["title"] == "Plan holiday"
    assert body["description"] == "Book flights"
    assert body["category_id"] == 1
    assert body["priority"] == 2
    assert "due_date" in body


def test_edit_can_clear_category_and_due_date(patched_client):
    patched_client.route("GET", "/tasks", body=[EDITABLE])
    cleared = {**EDITABLE, "category_id": None, "due_date": None}
    patched_client.route("PUT", "/tasks/5", body=cleared)

    result = runner.invoke(cli.app, ["edit", "5", "--no-category", "--no-due"])

    assert result.exit_code == 0, result.output
    body = patched_client.json_body(patched_client.calls("PUT", "/tasks/5")[0])
    assert "category_id" not in body
    assert "due_date" not in body
    assert body["title"] == "Plan trip"
    assert "(due none)" in result.output


def test_edit_unknown_task_fails(patched_client):
    result = runner.invoke(cli.app, ["edit", "42", "--title", "x"])

    assert result.exit_code == 1
    assert patched_client.calls("PUT", "/tasks/42") == []


def test_toggle_reports_new_state(patched_client):
    patched_client.route("PUT", "/tasks/5/toggle", body={**EDITABLE, "completed": True})

    result = runner.invoke(cli.app, ["toggle", "5"])

    assert result.exit_code == 0, result.output
    assert "Task 5 is now completed" in result.output
