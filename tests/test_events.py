"""
Tests for event endpoints: admin creation and lifecycle, student browsing.
"""

import pytest
from datetime import date, timedelta
from httpx import AsyncClient

from seatsync.models.event import EventStatus

from conftest import EVENT_DAY, make_headers


def event_payload(**overrides) -> dict:
    payload = {
        "title": "Cloud Native Workshop",
        "kind": "Workshop",
        "date": EVENT_DAY.isoformat(),
        "start_time": "14:00:00",
        "end_time": "16:00:00",
        "total_seats": 40,
        "is_mandatory": False,
        "target_branches": [],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_admin_creates_event(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/admin/events", json=event_payload(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Cloud Native Workshop"
    assert data["total_seats"] == 40
    assert data["available_seats"] == 40  # All seats available initially
    assert data["status"] == "Upcoming"


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/admin/events", json=event_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_requires_admin(client: AsyncClient, student_headers):
    response = await client.post("/api/v1/admin/events", json=event_payload(), headers=student_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_event_past_date(client: AsyncClient, admin_headers):
    past = (date.today() - timedelta(days=1)).isoformat()
    response = await client.post("/api/v1/admin/events", json=event_payload(date=past), headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"total_seats": 0},
        {"title": ""},
        {"kind": "Hackathon"},
        {"start_time": "16:00:00", "end_time": "15:00:00"},
        {"target_branches": ["ASTROLOGY"]},
    ],
)
async def test_create_event_validation(client: AsyncClient, admin_headers, overrides):
    response = await client.post(
        "/api/v1/admin/events", json=event_payload(**overrides), headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.get("/api/v1/events/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_students_see_only_their_branches(client: AsyncClient, make_event):
    await make_event(title="Open To All")
    await make_event(title="ECE Only", target_branches=["ECE"])
    await make_event(title="CSE and IT", target_branches=["CSE", "IT"])

    response = await client.get("/api/v1/events/", headers=make_headers("s1", "CSE"))

    assert response.status_code == 200
    data = response.json()
    assert {e["title"] for e in data["events"]} == {"Open To All", "CSE and IT"}
    assert data["total"] == 2
    assert data["cached"] is False


@pytest.mark.asyncio
async def test_admin_sees_every_event(client: AsyncClient, admin_headers, make_event):
    await make_event(title="Open To All")
    await make_event(title="ECE Only", target_branches=["ECE"])

    response = await client.get("/api/v1/events/", headers=admin_headers)

    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_list_events_ordered_and_paginated(client: AsyncClient, student_headers, make_event):
    for offset in (3, 1, 2):
        await make_event(title=f"Day {offset}", event_date=EVENT_DAY + timedelta(days=offset))

    response = await client.get(
        "/api/v1/events/", params={"page": 1, "page_size": 2}, headers=student_headers
    )

    data = response.json()
    assert [e["title"] for e in data["events"]] == ["Day 1", "Day 2"]
    assert data["total"] == 3


@pytest.mark.asyncio
async def test_list_hides_closed_events_by_default(client: AsyncClient, student_headers, make_event):
    await make_event(title="Open")
    await make_event(title="Shut", status=EventStatus.CLOSED)

    upcoming = await client.get("/api/v1/events/", headers=student_headers)
    everything = await client.get(
        "/api/v1/events/", params={"upcoming_only": "false"}, headers=student_headers
    )

    assert [e["title"] for e in upcoming.json()["events"]] == ["Open"]
    assert everything.json()["total"] == 2


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, student_headers, make_event):
    event = await make_event(total_seats=7)

    response = await client.get(f"/api/v1/events/{event.id}", headers=student_headers)

    assert response.status_code == 200
    assert response.json()["available_seats"] == 7


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient, student_headers):
    response = await client.get("/api/v1/events/99999", headers=student_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_close_and_reopen_event(client: AsyncClient, admin_headers, headers_for, make_event):
    event = await make_event()

    closed = await client.post(f"/api/v1/admin/events/{event.id}/close", headers=admin_headers)
    assert closed.status_code == 200
    assert closed.json()["status"] == "Closed"

    rejected = await client.post(
        "/api/v1/registrations/", json={"event_id": event.id}, headers=headers_for("s1")
    )
    assert rejected.status_code == 409
    assert rejected.json()["code"] == "event_closed"

    reopened = await client.post(f"/api/v1/admin/events/{event.id}/reopen", headers=admin_headers)
    assert reopened.json()["status"] == "Upcoming"

    accepted = await client.post(
        "/api/v1/registrations/", json={"event_id": event.id}, headers=headers_for("s1")
    )
    assert accepted.status_code == 201


@pytest.mark.asyncio
async def test_close_unknown_event(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/admin/events/4242/close", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["cache"] == {"status": "disabled"}

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "seatsync_allocation_outcomes_total" in metrics.text


@pytest.mark.asyncio
async def test_admin_listing_pages_in_order(client: AsyncClient, admin_headers, make_event):
    for offset in (4, 2, 3, 1, 5):
        await make_event(
            title=f"Day {offset}",
            event_date=EVENT_DAY + timedelta(days=offset),
            target_branches=["ECE"] if offset % 2 else [],
        )
    await make_event(title="Shut", status=EventStatus.CLOSED)

    response = await client.get(
        "/api/v1/events/", params={"page": 2, "page_size": 2}, headers=admin_headers
    )

    data = response.json()
    assert [e["title"] for e in data["events"]] == ["Day 3", "Day 4"]
    assert data["total"] == 5
