"""
Browser -> session bridge -> backend API -> database, with the backend app
mounted behind the web front over httpx.ASGITransport.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from tasklist.web.main import create_app as create_web_app

from conftest import BACKEND_URL, make_session, session_cookie


@pytest.fixture
def browser_for(settings, identity, backend_app):
    def _browser(user_id: str) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=backend_app), base_url=BACKEND_URL)
        app = create_web_app(settings, identity=identity, http_client=http_client)
        return TestClient(app, cookies=session_cookie(settings, make_session(user_id)))

    return _browser


def test_create_list_delete_through_proxy(browser_for):
    browser = browser_for("alice")
    browser.post("/api/proxy/api/todos", json={"text": "older task"})

    created = browser.post("/api/proxy/api/todos", json={"text": "buy milk"})
    assert created.status_code == 201
    task = created.json()
    assert task["completed"] is False
    assert task["ownerId"] == "alice"

    listed = browser.get("/api/proxy/api/todos")
    assert listed.status_code == 200
    assert [t["text"] for t in listed.json()] == ["buy milk", "older task"]

    deleted = browser.delete(f"/api/proxy/api/todos/{task['id']}")
    assert deleted.status_code == 204
    assert deleted.content == b""

    remaining = browser.get("/api/proxy/api/todos").json()
    assert task["id"] not in [t["id"] for t in remaining]


def test_empty_text_rejected_through_proxy(browser_for, store):
    response = browser_for("alice").post("/api/proxy/api/todos", json={"text": ""})

    assert response.status_code == 400
    assert store.list_tasks("alice") == []


def test_no_cross_tenant_deletion(browser_for, store):
    alice, mallory = browser_for("alice"), browser_for("mallory")
    task = alice.post("/api/proxy/api/todos", json={"text": "buy milk"}).json()

    response = mallory.delete(f"/api/proxy/api/todos/{task['id']}")

    assert response.status_code == 204
    assert [t["id"] for t in alice.get("/api/proxy/api/todos").json()] == [task["id"]]
    assert mallory.get("/api/proxy/api/todos").json() == []


def test_pages_drive_the_backend(browser_for):
    browser = browser_for("alice")

    browser.post("/todos", data={"text": "buy milk"})
    page = browser.get("/")
    assert "buy milk" in page.text

    task_id = browser.get("/api/proxy/api/todos").json()[0]["id"]
    browser.post(f"/todos/{task_id}/delete")
    assert "No todos yet!" in browser.get("/").text
