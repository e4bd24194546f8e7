"""Tests for the notification feed endpoints."""
from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.messages import diagnostic_content
from app.services.container import ServiceContainer
from app.services.notifications import NOTIFICATIONS
from tests.conftest import auth_headers


def seed_feed(container: ServiceContainer, user_id: str, count: int) -> None:
    for index in range(count):
        container.feed.create_records(diagnostic_content(f"Titre {index}", "Corps", now_ms=index), [user_id])


def test_list_returns_own_records(client: TestClient, container: ServiceContainer) -> None:
    seed_feed(container, "alice", 2)
    seed_feed(container, "bob", 1)

    response = client.get("/notifications", headers=auth_headers("alice"))

    assert response.status_code == 200
    body = response.json()
    assert body["unread"] == 2
    assert len(body["items"]) == 2
    assert {item["userId"] for item in body["items"]} == {"alice"}
    assert all(item["read"] is False for item in body["items"])


def test_list_respects_limit(client: TestClient, container: ServiceContainer) -> None:
    seed_feed(container, "alice", 3)

    response = client.get("/notifications", params={"limit": 2}, headers=auth_headers("alice"))

    assert len(response.json()["items"]) == 2


def test_mark_read(client: TestClient, container: ServiceContainer) -> None:
    seed_feed(container, "alice", 1)
    [record] = container.store.list(NOTIFICATIONS)
    headers = auth_headers("alice")

    response = client.post(f"/notifications/{record.id}/read", headers=headers)

    assert response.status_code == 200
    assert container.store.get(NOTIFICATIONS, record.id)["readBy"] == ["alice"]
    feed = client.get("/notifications", headers=headers).json()
    assert feed["unread"] == 0
    assert feed["items"][0]["read"] is True


def test_mark_read_twice_keeps_single_entry(client: TestClient, container: ServiceContainer) -> None:
    seed_feed(container, "alice", 1)
    [record] = container.store.list(NOTIFICATIONS)
    headers = auth_headers("alice")

    client.post(f"/notifications/{record.id}/read", headers=headers)
    client.post(f"/notifications/{record.id}/read", headers=headers)

    assert container.store.get(NOTIFICATIONS, record.id)["readBy"] == ["alice"]


def test_cannot_mark_someone_elses_record(client: TestClient, container: ServiceContainer) -> None:
    seed_feed(container, "bob", 1)
    [record] = container.store.list(NOTIFICATIONS)

    response = client.post(f"/notifications/{record.id}/read", headers=auth_headers("alice"))

    assert response.status_code == 404
    assert response.json() == {"error": "Notification not found"}


def test_mark_all_read(client: TestClient, container: ServiceContainer) -> None:
    seed_feed(container, "alice", 3)
    seed_feed(container, "bob", 1)
    headers = auth_headers("alice")

    response = client.post("/notifications/read-all", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"ok": True, "updated": 3}
    assert client.post("/notifications/read-all", headers=headers).json()["updated"] == 0
    assert client.get("/notifications", headers=auth_headers("bob")).json()["unread"] == 1
