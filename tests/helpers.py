"""Shared helpers for API tests."""

from datetime import timedelta
from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token
from app.models.doctors import doctors
from app.models.patients import patients
from app.models.users import users

# 2025-06-02 is a Monday (day_of_week 1)
MONDAY = "2025-06-02"


def make_headers(user_id) -> dict:
    """Bearer headers for a user, as issued by the identity service."""
    token = create_access_token(data={"sub": str(user_id)}, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


async def create_user(db: AsyncSession, role: str, name: str) -> dict:
    """Insert a user and, for doctors and patients, their profile row."""
    user_id = uuid4()
    await db.execute(
        insert(users).values(
            id=user_id,
            email=f"{role}.{user_id.hex[:8]}@example.com",
            full_name=name,
            role=role,
            is_active=True,
        )
    )

    profile_id = None
    if role == "doctor":
        profile_id = uuid4()
        await db.execute(
            insert(doctors).values(id=profile_id, user_id=user_id, specialization="Cardiology")
        )
    elif role == "patient":
        profile_id = uuid4()
        await db.execute(insert(patients).values(id=profile_id, user_id=user_id))
    await db.commit()

    return {
        "user_id": user_id,
        "id": profile_id,
        "role": role,
        "name": name,
        "headers": make_headers(user_id),
    }


async def add_window(
    client: AsyncClient,
    doctor: dict,
    day_of_week: int | str = 1,
    start_time: str = "09:00",
    end_time: str = "17:00",
    slot_duration: int = 30,
    is_active: bool = True,
) -> dict:
    """Create an availability window as the doctor."""
    response = await client.post(
        "/api/v1/doctors/me/availability",
        json={
            "day_of_week": day_of_week,
            "start_time": start_time,
            "end_time": end_time,
            "slot_duration": slot_duration,
            "is_active": is_active,
        },
        headers=doctor["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


async def get_slots(client: AsyncClient, doctor: dict, on_date: str, headers: dict) -> list[str]:
    response = await client.get(
        "/api/v1/appointments/available-slots",
        params={"doctor_id": str(doctor["id"]), "date": on_date},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["slots"]


def booking_payload(doctor: dict, start_time: str = "09:00", end_time: str = "09:30", **extra) -> dict:
    return {
        "doctor_id": str(doctor["id"]),
        "appointment_date": MONDAY,
        "start_time": start_time,
        "end_time": end_time,
        "reason": "Follow-up",
        **extra,
    }
