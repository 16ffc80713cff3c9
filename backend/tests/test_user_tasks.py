# tests/test_user_tasks.py — Plain users working on tasks assigned to them
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers, future


@pytest.mark.asyncio
async def test_list_assigned_tasks_with_creator_and_company(client: AsyncClient, member, second_member, company_task):
    resp = await client.get("/api/v1/user/tasks", headers=get_auth_headers(member))
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    task = data["data"][0]
    assert task["id"] == company_task.id
    assert task["creator"]["email"] == "boss@acme.com"
    assert task["company"]["name"] == "Acme"

    resp = await client.get("/api/v1/user/tasks", headers=get_auth_headers(second_member))
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
async def test_create_self_assigned_task(client: AsyncClient, acme, member):
    resp = await client.post(
        "/api/v1/user/tasks",
        json={"title": "Read the handbook", "due_date": future(), "priority": "low"},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 201
    task = resp.json()["task"]
    assert task["assigned_to"] == member.id
    assert task["user_id"] == member.id
    assert task["company_id"] == acme.id
    assert task["status"] == "pending"
    assert task["priority"] == "low"


@pytest.mark.asyncio
async def test_create_cannot_set_status(client: AsyncClient, member):
    resp = await client.post(
        "/api/v1/user/tasks",
        json={"title": "Already done?", "status": "completed"},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 201
    assert resp.json()["task"]["status"] == "pending"
    assert resp.json()["task"]["completed_at"] is None


@pytest.mark.asyncio
async def test_other_users_task_is_denied(client: AsyncClient, company_task, second_member):
    resp = await client.get(f"/api/v1/user/tasks/{company_task.id}", headers=get_auth_headers(second_member))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "This action is unauthorized."


@pytest.mark.asyncio
async def test_completed_at_set_once(client: AsyncClient, member, company_task):
    headers = get_auth_headers(member)
    url = f"/api/v1/user/tasks/{company_task.id}/status"

    first = await client.patch(url, json={"status": "completed"}, headers=headers)
    assert first.status_code == 200
    task = first.json()["task"]
    assert task["status"] == "completed"
    stamped = task["completed_at"]
    assert stamped is not None
    assert datetime.fromisoformat(stamped) >= datetime.fromisoformat(task["created_at"])

    second = await client.patch(url, json={"status": "completed"}, headers=headers)
    assert second.json()["task"]["completed_at"] == stamped


@pytest.mark.asyncio
async def test_reopen_keeps_completed_at(client: AsyncClient, member, company_task):
    headers = get_auth_headers(member)
    url = f"/api/v1/user/tasks/{company_task.id}/status"

    stamped = (await client.patch(url, json={"status": "completed"}, headers=headers)).json()["task"]["completed_at"]
    reopened = await client.patch(url, json={"status": "in-progress"}, headers=headers)
    assert reopened.json()["task"]["status"] == "in-progress"
    assert reopened.json()["task"]["completed_at"] == stamped


@pytest.mark.asyncio
async def test_invalid_status_rejected(client: AsyncClient, member, company_task):
    resp = await client.patch(
        f"/api/v1/user/tasks/{company_task.id}/status",
        json={"status": "done"},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_full_update_applies_lifecycle(client: AsyncClient, member, company_task):
    resp = await client.put(
        f"/api/v1/user/tasks/{company_task.id}",
        json={"title": "Report v2", "status": "completed", "notes": "Sent to finance", "priority": "high"},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 200
    task = resp.json()["task"]
    assert task["title"] == "Report v2"
    assert task["status"] == "completed"
    assert task["completed_at"] is not None
    assert task["notes"] == "Sent to finance"
    assert task["priority"] == "high"


@pytest.mark.asyncio
async def test_full_update_requires_status(client: AsyncClient, member, company_task):
    resp = await client.put(
        f"/api/v1/user/tasks/{company_task.id}",
        json={"title": "No status"},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_notes_are_replaced(client: AsyncClient, member, company_task):
    headers = get_auth_headers(member)
    url = f"/api/v1/user/tasks/{company_task.id}/notes"

    await client.post(url, json={"notes": "first"}, headers=headers)
    resp = await client.post(url, json={"notes": "second"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["task"]["notes"] == "second"


@pytest.mark.asyncio
async def test_notes_required(client: AsyncClient, member, company_task):
    resp = await client.post(
        f"/api/v1/user/tasks/{company_task.id}/notes", json={}, headers=get_auth_headers(member),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_delete_assigned_task(client: AsyncClient, member, second_member, company_task):
    resp = await client.delete(f"/api/v1/user/tasks/{company_task.id}", headers=get_auth_headers(second_member))
    assert resp.status_code == 403

    resp = await client.delete(f"/api/v1/user/tasks/{company_task.id}", headers=get_auth_headers(member))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_create_rejects_past_due_date(client: AsyncClient, member):
    resp = await client.post(
        "/api/v1/user/tasks",
        json={"title": "Too late", "due_date": "2020-01-01T00:00:00"},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 422
    assert "due_date" in resp.json()["errors"]


@pytest.mark.asyncio
async def test_create_rejects_due_date_of_now(client: AsyncClient, member):
    # By the time the request is handled this instant is no longer in the future
    resp = await client.post(
        "/api/v1/user/tasks",
        json={"title": "Right now", "due_date": datetime.now(timezone.utc).isoformat()},
        headers=get_auth_headers(member),
    )
    assert resp.status_code == 422
    assert "due_date" in resp.json()["errors"]
