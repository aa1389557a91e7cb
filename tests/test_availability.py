"""Tests for doctor availability window endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.helpers import MONDAY, add_window, booking_payload, get_slots


def window_body(**overrides) -> dict:
    body = {"day_of_week": 1, "start_time": "09:00", "end_time": "17:00", "slot_duration": 30}
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_doctor_adds_own_window(client: AsyncClient, doctor):
    """The signed-in doctor adds a window to their own schedule."""
    response = await client.post(
        "/api/v1/doctors/me/availability",
        json=window_body(),
        headers=doctor["headers"],
    )

    assert response.status_code == 201
    data = response.json()
    assert data["doctor_id"] == str(doctor["id"])
    assert data["day_of_week"] == 1
    assert data["start_time"] == "09:00"
    assert data["end_time"] == "17:00"
    assert data["slot_duration"] == 30
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_slot_duration_defaults_to_thirty(client: AsyncClient, doctor):
    body = window_body()
    del body["slot_duration"]

    response = await client.post("/api/v1/doctors/me/availability", json=body, headers=doctor["headers"])

    assert response.status_code == 201
    assert response.json()["slot_duration"] == 30


@pytest.mark.asyncio
async def test_weekday_name_accepted(client: AsyncClient, doctor):
    """Weekday names map onto the Sunday-first numbering."""
    assert (await add_window(client, doctor, day_of_week="SUNDAY"))["day_of_week"] == 0
    assert (await add_window(client, doctor, day_of_week="monday"))["day_of_week"] == 1
    assert (await add_window(client, doctor, day_of_week="Saturday"))["day_of_week"] == 6


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"day_of_week": 7},
        {"day_of_week": -1},
        {"day_of_week": "Funday"},
        {"start_time": "17:00", "end_time": "09:00"},
        {"start_time": "09:00", "end_time": "09:00"},
        {"start_time": "9:00"},
        {"end_time": "24:00"},
        {"slot_duration": 4},
        {"slot_duration": 121},
    ],
)
async def test_invalid_window_rejected(client: AsyncClient, doctor, overrides):
    response = await client.post(
        "/api/v1/doctors/me/availability",
        json=window_body(**overrides),
        headers=doctor["headers"],
    )

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "ValidationError"
    assert data["details"]


@pytest.mark.asyncio
async def test_slot_duration_bounds_inclusive(client: AsyncClient, doctor):
    assert (await add_window(client, doctor, slot_duration=5))["slot_duration"] == 5
    assert (await add_window(client, doctor, slot_duration=120))["slot_duration"] == 120


@pytest.mark.asyncio
async def test_patient_cannot_use_me_routes(client: AsyncClient, patient):
    response = await client.post(
        "/api/v1/doctors/me/availability",
        json=window_body(),
        headers=patient["headers"],
    )
    assert response.status_code == 403

    response = await client.get("/api/v1/doctors/me/availability", headers=patient["headers"])
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_windows_ordered(client: AsyncClient, doctor):
    """Windows come back by weekday then start time."""
    await add_window(client, doctor, day_of_week=3, start_time="13:00", end_time="15:00")
    await add_window(client, doctor, day_of_week=1, start_time="14:00", end_time="18:00")
    await add_window(client, doctor, day_of_week=1, start_time="08:00", end_time="12:00")

    response = await client.get("/api/v1/doctors/me/availability", headers=doctor["headers"])

    assert response.status_code == 200
    data = response.json()
    assert data["doctor_id"] == str(doctor["id"])
    assert [(w["day_of_week"], w["start_time"]) for w in data["items"]] == [
        (1, "08:00"),
        (1, "14:00"),
        (3, "13:00"),
    ]


@pytest.mark.asyncio
async def test_public_list_needs_no_auth(client: AsyncClient, doctor):
    await add_window(client, doctor)

    response = await client.get(f"/api/v1/doctors/{doctor['id']}/availability")

    assert response.status_code == 200
    assert len(response.json()["items"]) == 1


@pytest.mark.asyncio
async def test_admin_manages_any_doctor(client: AsyncClient, doctor, admin):
    response = await client.post(
        f"/api/v1/doctors/{doctor['id']}/availability",
        json=window_body(day_of_week="FRIDAY"),
        headers=admin["headers"],
    )

    assert response.status_code == 201
    assert response.json()["doctor_id"] == str(doctor["id"])
    assert response.json()["day_of_week"] == 5


@pytest.mark.asyncio
async def test_other_doctor_cannot_manage(client: AsyncClient, doctor, other_doctor, patient):
    """Only the owning doctor or an admin may change a schedule."""
    window = await add_window(client, doctor)

    response = await client.post(
        f"/api/v1/doctors/{doctor['id']}/availability",
        json=window_body(),
        headers=other_doctor["headers"],
    )
    assert response.status_code == 403
    assert response.json()["error"] == "ForbiddenException"

    response = await client.patch(
        f"/api/v1/doctors/{doctor['id']}/availability/{window['id']}",
        json={"is_active": False},
        headers=patient["headers"],
    )
    assert response.status_code == 403

    response = await client.delete(
        f"/api/v1/doctors/{doctor['id']}/availability/{window['id']}",
        headers=other_doctor["headers"],
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_doctor(client: AsyncClient, admin):
    response = await client.post(
        f"/api/v1/doctors/{uuid4()}/availability",
        json=window_body(),
        headers=admin["headers"],
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Doctor not found"


@pytest.mark.asyncio
async def test_deactivate_and_reactivate_window(client: AsyncClient, doctor, patient):
    """An inactive window stops producing slots."""
    window = await add_window(client, doctor, start_time="09:00", end_time="10:00")
    url = f"/api/v1/doctors/{doctor['id']}/availability/{window['id']}"

    response = await client.patch(url, json={"is_active": False}, headers=doctor["headers"])
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert await get_slots(client, doctor, MONDAY, patient["headers"]) == []

    response = await client.patch(url, json={"is_active": True}, headers=doctor["headers"])
    assert response.status_code == 200
    assert len(await get_slots(client, doctor, MONDAY, patient["headers"])) == 2


@pytest.mark.asyncio
async def test_delete_window(client: AsyncClient, doctor):
    window = await add_window(client, doctor)
    url = f"/api/v1/doctors/{doctor['id']}/availability/{window['id']}"

    response = await client.delete(url, headers=doctor["headers"])
    assert response.status_code == 204

    response = await client.delete(url, headers=doctor["headers"])
    assert response.status_code == 404
    assert response.json()["message"] == "Availability window not found"

    listing = await client.get("/api/v1/doctors/me/availability", headers=doctor["headers"])
    assert listing.json()["items"] == []


@pytest.mark.asyncio
async def test_window_must_belong_to_doctor_in_path(client: AsyncClient, doctor, other_doctor, admin):
    """A window id under the wrong doctor is not found."""
    window = await add_window(client, doctor)

    response = await client.patch(
        f"/api/v1/doctors/{other_doctor['id']}/availability/{window['id']}",
        json={"is_active": False},
        headers=admin["headers"],
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deleting_window_keeps_appointments(client: AsyncClient, doctor, patient):
    """Existing bookings outlive the window they were made in."""
    window = await add_window(client, doctor)
    booked = await client.post(
        "/api/v1/appointments/",
        json=booking_payload(doctor),
        headers=patient["headers"],
    )

    await client.delete(
        f"/api/v1/doctors/{doctor['id']}/availability/{window['id']}",
        headers=doctor["headers"],
    )

    response = await client.get(f"/api/v1/appointments/{booked.json()['id']}", headers=patient["headers"])
    assert response.status_code == 200
    assert response.json()["status"] == "scheduled"


@pytest.mark.asyncio
async def test_doctor_toggles_and_deletes_own_window(client: AsyncClient, doctor, patient):
    """The /me routes manage the signed-in doctor's windows without a doctor id."""
    window = await add_window(client, doctor, start_time="09:00", end_time="10:00")
    url = f"/api/v1/doctors/me/availability/{window['id']}"

    response = await client.patch(url, json={"is_active": False}, headers=doctor["headers"])
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert await get_slots(client, doctor, MONDAY, patient["headers"]) == []

    response = await client.delete(url, headers=doctor["headers"])
    assert response.status_code == 204

    listing = await client.get("/api/v1/doctors/me/availability", headers=doctor["headers"])
    assert listing.json()["items"] == []


@pytest.mark.asyncio
async def test_me_routes_only_reach_own_windows(client: AsyncClient, doctor, other_doctor, patient):
    """Another doctor's window is not found through /me; patients are refused."""
    window = await add_window(client, doctor)
    url = f"/api/v1/doctors/me/availability/{window['id']}"

    response = await client.patch(url, json={"is_active": False}, headers=other_doctor["headers"])
    assert response.status_code == 404

    response = await client.delete(url, headers=other_doctor["headers"])
    assert response.status_code == 404

    response = await client.delete(url, headers=patient["headers"])
    assert response.status_code == 403

    listing = await client.get(f"/api/v1/doctors/{doctor['id']}/availability")
    assert listing.json()["items"][0]["is_active"] is True
