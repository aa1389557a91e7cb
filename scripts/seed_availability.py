"""Give every doctor without availability a default weekly schedule.

Usage: python scripts/seed_availability.py [--days 1,2,3,4,5] [--start 09:00] [--end 17:00] [--slot 30]
"""

import argparse
import asyncio

from sqlalchemy import insert, select

from app.database import AsyncSessionLocal, engine
from app.models.availability import doctor_availability
from app.models.doctors import doctors
from app.schemas.availability import AvailabilityWindowCreate


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--days", default="1,2,3,4,5", help="Weekdays, 0=Sunday .. 6=Saturday")
    parser.add_argument("--start", default="09:00")
    parser.add_argument("--end", default="17:00")
    parser.add_argument("--slot", type=int, default=30, help="Slot duration in minutes")
    return parser.parse_args()


async def seed(args: argparse.Namespace) -> int:
    """Insert windows for doctors that have none; returns how many doctors were seeded."""
    windows = [
        AvailabilityWindowCreate(
            day_of_week=int(day),
            start_time=args.start,
            end_time=args.end,
            slot_duration=args.slot,
        )
        for day in args.days.split(",")
    ]

    async with AsyncSessionLocal() as session:
        has_windows = select(doctor_availability.c.doctor_id).distinct()
        result = await session.execute(
            select(doctors.c.id).where(doctors.c.id.not_in(has_windows))
        )
        doctor_ids = list(result.scalars().all())

        for doctor_id in doctor_ids:
            await session.execute(
                insert(doctor_availability),
                [{"doctor_id": doctor_id, **window.model_dump()} for window in windows],
            )
        await session.commit()

    await engine.dispose()
    return len(doctor_ids)


if __name__ == "__main__":
    seeded = asyncio.run(seed(parse_args()))
    print(f"✓ Seeded availability for {seeded} doctor(s)")
