"""Tests for the available-slots endpoint."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.helpers import MONDAY, add_window, booking_payload, get_slots


def at(hhmm: str, on_date: str = MONDAY) -> str:
    return f"{on_date}T{hhmm}:00"


@pytest.mark.asyncio
async def test_full_day_slots(client: AsyncClient, doctor, patient):
    """A 09:00-17:00 Monday window with 30 minute slots offers 16 slots."""
    await add_window(client, doctor)

    slots = await get_slots(client, doctor, MONDAY, patient["headers"])

    assert len(slots) == 16
    assert slots[0] == at("09:00")
    assert slots[-1] == at("16:30")


@pytest.mark.asyncio
async def test_booked_slot_is_excluded(client: AsyncClient, doctor, patient):
    """A scheduled appointment removes its start time from the list."""
    await add_window(client, doctor, start_time="09:00", end_time="12:00")
    response = await client.post(
        "/api/v1/appointments/",
        json=booking_payload(doctor, "10:00", "10:30"),
        headers=patient["headers"],
    )
    assert response.status_code == 201

    slots = await get_slots(client, doctor, MONDAY, patient["headers"])

    assert slots == [at("09:00"), at("09:30"), at("10:30"), at("11:00"), at("11:30")]


@pytest.mark.asyncio
async def test_cancelled_slot_is_offered_again(client: AsyncClient, doctor, patient):
    """Cancelling an appointment frees its slot."""
    await add_window(client, doctor, start_time="09:00", end_time="10:00")
    booked = await client.post(
        "/api/v1/appointments/",
        json=booking_payload(doctor, "09:00", "09:30"),
        headers=patient["headers"],
    )
    assert await get_slots(client, doctor, MONDAY, patient["headers"]) == [at("09:30")]

    response = await client.patch(
        f"/api/v1/appointments/{booked.json()['id']}/status",
        json={"status": "cancelled"},
        headers=patient["headers"],
    )
    assert response.status_code == 200

    assert await get_slots(client, doctor, MONDAY, patient["headers"]) == [at("09:00"), at("09:30")]


@pytest.mark.asyncio
async def test_completed_appointment_still_blocks_slot(client: AsyncClient, doctor, patient):
    """Only cancellation frees a slot."""
    await add_window(client, doctor, start_time="09:00", end_time="10:00")
    booked = await client.post(
        "/api/v1/appointments/",
        json=booking_payload(doctor, "09:00", "09:30"),
        headers=patient["headers"],
    )
    await client.patch(
        f"/api/v1/appointments/{booked.json()['id']}/status",
        json={"status": "completed"},
        headers=doctor["headers"],
    )

    assert await get_slots(client, doctor, MONDAY, patient["headers"]) == [at("09:30")]


@pytest.mark.asyncio
async def test_other_weekday_has_no_slots(client: AsyncClient, doctor, patient):
    """Monday windows do not apply to Tuesday."""
    await add_window(client, doctor, day_of_week=1)

    assert await get_slots(client, doctor, "2025-06-03", patient["headers"]) == []


@pytest.mark.asyncio
async def test_inactive_window_contributes_nothing(client: AsyncClient, doctor, patient):
    """Inactive windows are skipped."""
    await add_window(client, doctor, is_active=False)

    assert await get_slots(client, doctor, MONDAY, patient["headers"]) == []


@pytest.mark.asyncio
async def test_doctor_without_windows(client: AsyncClient, doctor, patient):
    """No windows means an empty list, not an error."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"doctor_id": str(doctor["id"]), "date": MONDAY},
        headers=patient["headers"],
    )

    assert response.status_code == 200
    data = response.json()
    assert data["doctor_id"] == str(doctor["id"])
    assert data["date"] == MONDAY
    assert data["slots"] == []


@pytest.mark.asyncio
async def test_unknown_doctor_has_no_slots(client: AsyncClient, patient):
    """An unknown doctor is treated like one without windows."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"doctor_id": str(uuid4()), "date": MONDAY},
        headers=patient["headers"],
    )

    assert response.status_code == 200
    assert response.json()["slots"] == []


@pytest.mark.asyncio
async def test_overlapping_windows_are_deduplicated(client: AsyncClient, doctor, patient):
    """Overlapping windows yield each start time once, in order."""
    await add_window(client, doctor, start_time="10:00", end_time="11:00")
    await add_window(client, doctor, start_time="09:00", end_time="10:30")

    slots = await get_slots(client, doctor, MONDAY, patient["headers"])

    assert slots == [at("09:00"), at("09:30"), at("10:00"), at("10:30")]


@pytest.mark.asyncio
async def test_invalid_date_rejected(client: AsyncClient, doctor, patient):
    """A malformed date is a client error."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"doctor_id": str(doctor["id"]), "date": "02/06/2025"},
        headers=patient["headers"],
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "BadRequestException"
    assert "YYYY-MM-DD" in data["message"]


@pytest.mark.asyncio
async def test_missing_date_rejected(client: AsyncClient, doctor, patient):
    """The date parameter is required."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"doctor_id": str(doctor["id"])},
        headers=patient["headers"],
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_available_slots_requires_auth(client: AsyncClient, doctor):
    """Anonymous callers are turned away."""
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"doctor_id": str(doctor["id"]), "date": MONDAY},
    )

    assert response.status_code in (401, 403)
