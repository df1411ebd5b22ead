"""
Tests for registration endpoints.
"""

import pytest
from datetime import time
from httpx import AsyncClient

from conftest import EVENT_DAY, make_headers


async def register(client: AsyncClient, event_id: int, user_id: str, department: str = "CSE"):
    return await client.post(
        "/api/v1/registrations/",
        json={"event_id": event_id},
        headers=make_headers(user_id, department),
    )


@pytest.mark.asyncio
async def test_register_success(client: AsyncClient, make_event):
    event = await make_event(total_seats=2)

    response = await register(client, event.id, "alice")

    assert response.status_code == 201
    data = response.json()
    assert data == {
        "status": "registered",
        "event_id": event.id,
        "position": None,
        "message": "Successfully registered!",
    }


@pytest.mark.asyncio
async def test_register_full_event_waitlists(client: AsyncClient, make_event):
    event = await make_event(total_seats=1)
    await register(client, event.id, "alice")

    response = await register(client, event.id, "bob")

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "waitlisted"
    assert data["position"] == 1
    assert data["message"] == "Added to waitlist!"


@pytest.mark.asyncio
async def test_register_requires_token(client: AsyncClient, make_event):
    event = await make_event()
    response = await client.post("/api/v1/registrations/", json={"event_id": event.id})
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"event_id": "abc"}])
async def test_register_validation(client: AsyncClient, student_headers, body):
    response = await client.post("/api/v1/registrations/", json=body, headers=student_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_error_codes(client: AsyncClient, make_event):
    event = await make_event(title="Morning Lab", target_branches=["CSE"])
    clash = await make_event(title="Clash", start_time=time(10, 30), end_time=time(11, 30))
    await register(client, event.id, "alice")

    duplicate = await register(client, event.id, "alice")
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "already_registered"

    wrong_branch = await register(client, event.id, "bob", department="ECE")
    assert wrong_branch.status_code == 403
    assert wrong_branch.json()["code"] == "branch_ineligible"

    conflict = await register(client, clash.id, "alice")
    assert conflict.status_code == 409
    assert conflict.json() == {"detail": "Time conflict with: Morning Lab", "code": "schedule_conflict"}

    missing = await register(client, 99999, "alice")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_cancel_promotes_next_in_line(client: AsyncClient, make_event, ledger_snapshot):
    event = await make_event(total_seats=1)
    await register(client, event.id, "alice")
    await register(client, event.id, "bob")

    response = await client.delete(
        f"/api/v1/registrations/{event.id}", headers=make_headers("alice")
    )

    assert response.status_code == 200
    assert response.json() == {
        "status": "cancelled_and_promoted",
        "event_id": event.id,
        "promoted_user_id": "bob",
    }
    state = await client.get(f"/api/v1/events/{event.id}/booking", headers=make_headers("bob"))
    assert state.json() == {"event_id": event.id, "state": "confirmed", "position": None}
    available, total, confirmed, waitlist = await ledger_snapshot(event.id)
    assert (available, confirmed, waitlist) == (0, 1, [])


@pytest.mark.asyncio
async def test_cancel_frees_seat(client: AsyncClient, make_event):
    event = await make_event(total_seats=3)
    await register(client, event.id, "alice")

    response = await client.delete(
        f"/api/v1/registrations/{event.id}", headers=make_headers("alice")
    )

    assert response.json()["status"] == "cancelled"
    detail = await client.get(f"/api/v1/events/{event.id}", headers=make_headers("alice"))
    assert detail.json()["available_seats"] == 3


@pytest.mark.asyncio
async def test_cancel_without_booking(client: AsyncClient, student_headers, make_event):
    event = await make_event()

    response = await client.delete(f"/api/v1/registrations/{event.id}", headers=student_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "registration_not_found"


@pytest.mark.asyncio
async def test_booking_state_waitlisted(client: AsyncClient, make_event):
    event = await make_event(total_seats=1)
    await register(client, event.id, "alice")
    await register(client, event.id, "bob")

    response = await client.get(f"/api/v1/events/{event.id}/booking", headers=make_headers("bob"))

    assert response.json() == {"event_id": event.id, "state": "waitlisted", "position": 1}


@pytest.mark.asyncio
async def test_event_conflict_check(client: AsyncClient, make_event):
    booked = await make_event(title="Event X")
    candidate = await make_event(title="Event Y", start_time=time(10, 30), end_time=time(11, 30))
    later = await make_event(title="Event Z", start_time=time(11, 0), end_time=time(12, 0))
    await register(client, booked.id, "alice")
    headers = make_headers("alice")

    clash = await client.post(f"/api/v1/events/{candidate.id}/conflicts", headers=headers)
    free = await client.post(f"/api/v1/events/{later.id}/conflicts", headers=headers)
    own = await client.post(f"/api/v1/events/{booked.id}/conflicts", headers=headers)

    assert clash.json() == {"conflict": True, "with_title": "Event X", "with_event_id": booked.id}
    assert free.json()["conflict"] is False
    assert own.json()["conflict"] is False


@pytest.mark.asyncio
async def test_slot_conflict_check(client: AsyncClient, make_event):
    booked = await make_event(title="Event X")
    await register(client, booked.id, "alice")

    response = await client.post(
        "/api/v1/events/conflicts",
        json={"date": EVENT_DAY.isoformat(), "start_time": "09:30:00", "end_time": "10:15:00"},
        headers=make_headers("alice"),
    )

    assert response.json()["with_title"] == "Event X"


@pytest.mark.asyncio
async def test_my_bookings(client: AsyncClient, make_event):
    roomy = await make_event(title="Roomy", start_time=time(9, 0), end_time=time(10, 0))
    full = await make_event(title="Full", total_seats=1, start_time=time(13, 0), end_time=time(14, 0))
    await register(client, full.id, "bob")
    await register(client, roomy.id, "alice")
    await register(client, full.id, "alice")

    response = await client.get("/api/v1/registrations/me", headers=make_headers("alice"))

    assert response.status_code == 200
    data = response.json()
    assert [r["event_id"] for r in data["registrations"]] == [roomy.id]
    assert data["registrations"][0]["promoted_from_waitlist"] is False
    assert [(w["event_id"], w["position"]) for w in data["waitlist"]] == [(full.id, 1)]


@pytest.mark.asyncio
async def test_my_compliance(client: AsyncClient, make_event):
    done = await make_event(title="Safety Induction", is_mandatory=True, start_time=time(9, 0), end_time=time(10, 0))
    await make_event(title="Ethics Seminar", is_mandatory=True, start_time=time(13, 0), end_time=time(14, 0))
    await make_event(title="ECE Lab Safety", is_mandatory=True, target_branches=["ECE"])
    await register(client, done.id, "alice")

    response = await client.get("/api/v1/registrations/me/compliance", headers=make_headers("alice"))

    data = response.json()
    assert data["total_mandatory"] == 2
    assert data["completed_mandatory"] == 1
    assert data["compliance_percent"] == 50
    assert data["is_compliant"] is False
    assert data["pending_events"] == ["Ethics Seminar"]


@pytest.mark.asyncio
async def test_slot_conflict_rejects_inverted_slot(client: AsyncClient, student_headers):
    response = await client.post(
        "/api/v1/events/conflicts",
        json={"date": EVENT_DAY.isoformat(), "start_time": "12:00:00", "end_time": "10:00:00"},
        headers=student_headers,
    )

    assert response.status_code == 422
