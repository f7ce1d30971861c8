"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 passengers and 4 drivers (password for all: ``password123``)
  - 8 sample rides (mix of requested, accepted, in_progress, completed,
    cancelled) respecting the one-active-ride-per-party rule
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from ridehail.domain.enums import Role, RideStatus, RideType
from ridehail.infrastructure.database import async_session_factory, engine
from ridehail.infrastructure.models import RideModel, UserModel
from ridehail.infrastructure.security import hash_password

SEED_PASSWORD = "password123"

PASSENGERS = [
    {"name": "Aarav Sharma", "email": "aarav@example.com", "phone": "+923001110001"},
    {"name": "Priya Patel", "email": "priya@example.com", "phone": "+923001110002"},
    {"name": "Rohan Mehta", "email": "rohan@example.com", "phone": "+923001110003"},
    {"name": "Sneha Gupta", "email": "sneha@example.com", "phone": "+923001110004"},
    {"name": "Vikram Singh", "email": "vikram@example.com", "phone": "+923001110005"},
    {"name": "Ananya Reddy", "email": "ananya@example.com", "phone": "+923001110006"},
]

DRIVERS = [
    {"name": "Karan Joshi", "email": "karan@example.com", "phone": "+923002220001"},
    {"name": "Meera Nair", "email": "meera@example.com", "phone": "+923002220002"},
    {"name": "Arjun Kumar", "email": "arjun@example.com", "phone": "+923002220003"},
    {"name": "Diya Iyer", "email": "diya@example.com", "phone": "+923002220004"},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        password_hash = hash_password(SEED_PASSWORD)
        passengers, drivers = [], []
        for role, rows, bucket in (
            (Role.PASSENGER, PASSENGERS, passengers),
            (Role.DRIVER, DRIVERS, drivers),
        ):
            for u in rows:
                m = UserModel(password_hash=password_hash, role=role, **u)
                session.add(m)
                bucket.append(m)
        await session.flush()
        print(f"  Created {len(passengers)} passengers and {len(drivers)} drivers")

        # ── Rides ─────────────────────────────────────────────────────
        now = datetime.now(timezone.utc)
        rides_data = [
            # Open requests (visible on /rides/available)
            {
                "passenger": passengers[0], "driver": None,
                "pickup": "Jinnah Airport", "drop": "Clifton Block 5",
                "type": RideType.CAR, "km": 18.4, "fare": 1450.0,
                "status": RideStatus.REQUESTED, "ago": timedelta(minutes=3),
            },
            {
                "passenger": passengers[1], "driver": None,
                "pickup": "Saddar", "drop": "Tariq Road",
                "type": RideType.RICKSHAW, "km": 6.2, "fare": 380.0,
                "status": RideStatus.REQUESTED, "ago": timedelta(minutes=1),
            },
            # In flight
            {
                "passenger": passengers[2], "driver": drivers[0],
                "pickup": "Gulshan Chowrangi", "drop": "University Road",
                "type": RideType.BIKE, "km": 4.1, "fare": 210.0,
                "status": RideStatus.ACCEPTED, "ago": timedelta(minutes=12),
            },
            {
                "passenger": passengers[3], "driver": drivers[1],
                "pickup": "DHA Phase 6", "drop": "Boat Basin",
                "type": RideType.CAR, "km": 7.9, "fare": 690.0,
                "status": RideStatus.IN_PROGRESS, "ago": timedelta(minutes=25),
            },
            # History
            {
                "passenger": passengers[4], "driver": drivers[2],
                "pickup": "North Nazimabad", "drop": "Nipa",
                "type": RideType.CAR, "km": 9.5, "fare": 820.0,
                "discount": 700.0, "rating": 4.5,
                "status": RideStatus.COMPLETED, "ago": timedelta(hours=2),
            },
            {
                "passenger": passengers[5], "driver": drivers[2],
                "pickup": "Korangi", "drop": "Shahrah-e-Faisal",
                "type": RideType.RICKSHAW, "km": 11.0, "fare": 560.0,
                "rating": 4.0,
                "status": RideStatus.COMPLETED, "ago": timedelta(days=1),
            },
            {
                "passenger": passengers[4], "driver": drivers[3],
                "pickup": "Malir Cantt", "drop": "Airport",
                "type": RideType.BIKE, "km": 5.3, "fare": 260.0,
                "status": RideStatus.CANCELLED, "cancelled_by": Role.PASSENGER,
                "ago": timedelta(days=2),
            },
            {
                "passenger": passengers[5], "driver": None,
                "pickup": "Lyari", "drop": "Keamari",
                "type": RideType.CAR, "km": 6.8, "fare": 600.0,
                "status": RideStatus.CANCELLED, "cancelled_by": Role.PASSENGER,
                "ago": timedelta(days=3),
            },
        ]

        for r in rides_data:
            ride = RideModel(
                passenger_id=r["passenger"].id,
                driver_id=r["driver"].id if r["driver"] else None,
                pickup_location=r["pickup"],
                drop_location=r["drop"],
                ride_type=r["type"],
                distance_km=r["km"],
                fare=r["fare"],
                discounted_fare=r.get("discount"),
                status=r["status"],
                cancelled_by=r.get("cancelled_by"),
                rating=r.get("rating"),
                requested_at=now - r["ago"],
            )
            session.add(ride)
        await session.flush()
        print(f"  Created {len(rides_data)} rides")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
