"""
Shared fixtures: an isolated database per test and a small garage world.
"""
import unittest
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import garage_api.models  # noqa: F401
from garage_api.auth import Principal, create_access_token
from garage_api.database import AsyncSessionLocal, Base
from garage_api.main import app
from garage_api.models import Booking, BookingStatus, Organization, ServiceType, User, Vehicle
from garage_api.parties import EmbeddedOwner, RegisteredOwner
from garage_api.services.image_generator import get_image_generator


class FakeImageGenerator:
    """Stands in for the OpenAI client."""

    provider_tag = "openai-dalle"

    def __init__(self, url="https://images.example.com/car.png", error=None):
        self.url = url
        self.error = error
        self.calls = []

    async def generate(self, make, model, year, color):
        self.calls.append({"make": make, "model": model, "year": year, "color": color})
        if self.error is not None:
            raise self.error
        return self.url


async def seed_world(db) -> dict:
    """
    Two garages, their staff, two private customers and a handful of cars.

    Returns the ids of everything created.
    """
    garage = Organization(name="Main Street Garage")
    other_garage = Organization(name="Harbour Motors")
    db.add_all([garage, other_garage])
    await db.flush()

    staff = User(email="staff@mainstreet.test", name="Sam Staff", phone="555-0100", org_id=garage.id)
    other_staff = User(email="staff@harbour.test", name="Hana Harbour", org_id=other_garage.id)
    alice = User(email="alice@example.com", name="Alice Driver", phone="555-0101")
    bob = User(email="bob@example.com", name=None, phone="555-0102", is_active=False)
    db.add_all([staff, other_staff, alice, bob])
    await db.flush()

    alice_car = Vehicle(make="Toyota", model="Corolla", year=2019, plate="ABC-123", color="blue",
                        org_id=garage.id, owner=RegisteredOwner(user_id=alice.id))
    alice_second = Vehicle(make="Honda", model="Civic", year=2021, plate="XYZ-987",
                           org_id=garage.id, owner=RegisteredOwner(user_id=alice.id))
    bob_car = Vehicle(make="Ford", model="Focus", year=2015, plate="BOB-001",
                      org_id=garage.id, owner=RegisteredOwner(user_id=bob.id))
    walk_in_car = Vehicle(make="Volkswagen", model="Golf", year=2012, plate="WLK-555", org_id=garage.id,
                          owner=EmbeddedOwner(name="Walter Walkin", phone="555-0199", email="walter@example.com"))
    walk_in_again = Vehicle(make="Volkswagen", model="Polo", year=2014, plate="WLK-556", org_id=garage.id,
                            owner=EmbeddedOwner(name="Walter W.", phone="555-0199"))
    retired_car = Vehicle(make="Saab", model="900", year=1990, plate="OLD-900", org_id=garage.id,
                          owner=RegisteredOwner(user_id=alice.id), is_active=False)
    private_car = Vehicle(make="Tesla", model="Model 3", year=2022, plate="PRV-333",
                          owner=RegisteredOwner(user_id=alice.id))
    foreign_car = Vehicle(make="BMW", model="320d", year=2018, plate="HRB-320", org_id=other_garage.id)
    db.add_all([alice_car, alice_second, bob_car, walk_in_car, walk_in_again,
                retired_car, private_car, foreign_car])
    await db.commit()

    return {
        "garage": garage.id,
        "other_garage": other_garage.id,
        "staff": staff.id,
        "other_staff": other_staff.id,
        "alice": alice.id,
        "bob": bob.id,
        "alice_car": alice_car.id,
        "alice_second": alice_second.id,
        "bob_car": bob_car.id,
        "walk_in_car": walk_in_car.id,
        "walk_in_again": walk_in_again.id,
        "retired_car": retired_car.id,
        "private_car": private_car.id,
        "foreign_car": foreign_car.id,
    }


async def add_booking(db, garage_id, days_ahead=3, status=BookingStatus.PENDING, **kwargs) -> int:
    booking = Booking(
        garage_id=garage_id,
        service_type=kwargs.pop("service_type", ServiceType.MAINTENANCE),
        scheduled_date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
        status=status,
        **kwargs,
    )
    db.add(booking)
    await db.commit()
    return booking.id


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Each test gets a fresh in-memory database and the seeded world."""

    async def asyncSetUp(self):
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, autoflush=False)
        self.db = self.session_factory()
        self.ids = await seed_world(self.db)

        self.staff = Principal(user_id=self.ids["staff"], org_id=self.ids["garage"])
        self.other_staff = Principal(user_id=self.ids["other_staff"], org_id=self.ids["other_garage"])
        self.alice = Principal(user_id=self.ids["alice"])
        self.bob = Principal(user_id=self.ids["bob"])

    async def asyncTearDown(self):
        await self.db.close()
        await self.engine.dispose()

    async def reload(self, model, pk):
        """Fetch a row through a fresh session so nothing is served from the identity map."""
        async with self.session_factory() as session:
            return await session.get(model, pk)


class APITestCase(unittest.TestCase):
    """
    Runs the real application against the in-memory database.

    The app's lifespan creates the schema on entry and drops the
    in-memory database on exit, so every test starts empty.
    """

    def setUp(self):
        self.app = app
        self.generator = FakeImageGenerator()
        app.dependency_overrides[get_image_generator] = lambda: self.generator
        self.addCleanup(app.dependency_overrides.clear)

        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)
        self.ids = self.run_db(seed_world)

    def run_db(self, func, *args, **kwargs):
        """Run ``func(session, ...)`` on the app's event loop."""
        async def _call():
            async with AsyncSessionLocal() as session:
                return await func(session, *args, **kwargs)

        return self.client.portal.call(_call)

    def auth(self, user_key: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(self.ids[user_key])}"}
