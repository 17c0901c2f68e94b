"""
Centralized Test Configuration.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from pricing_backend.app.main import app
from pricing_backend.app.db.session import get_db, init_models
from pricing_backend.app.core.reliability import CircuitBreaker
from pricing_backend.app.models.poi import POI
from pricing_backend.app.models.rate import Rate
from pricing_backend.app.models.vehicle_type import VehicleType
from pricing_backend.app.models.service import Service
from pricing_backend.app.models.rate_price import RatePrice

# In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints for SQLite."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Async HTTP client with the app bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


@pytest.fixture
def circuit_breaker():
    """Isolated breaker so failure tests never trip the shared one."""
    return CircuitBreaker(failure_threshold=5, reset_timeout=30)


@pytest.fixture
async def catalog(db_session):
    """
    Seed a small catalog.

    Airport -> Hotel Zone service with two rates and two vehicle types:
        Economico / Sedan     1000.00
        Economico / Suburban  1500.00
        First Class / Sedan   1800.00
    First Class / Suburban has no base price.
    """
    airport = POI(name="Aeropuerto")
    hotel_zone = POI(name="Zona Hotelera")
    economico = Rate(name="Economico")
    first_class = Rate(name="First Class")
    sedan = VehicleType(name="Sedan", code="SEDAN", default_capacity=4, trunk_capacity=2)
    suburban = VehicleType(name="Suburban", code="SUBURBAN", default_capacity=6, trunk_capacity=4)
    db_session.add_all([airport, hotel_zone, economico, first_class, sedan, suburban])
    await db_session.flush()

    service = Service(origin_poi_id=airport.id, destination_poi_id=hotel_zone.id, rate_id=economico.id)
    db_session.add(service)
    await db_session.flush()

    db_session.add_all([
        RatePrice(service_id=service.id, rate_id=economico.id, vehicle_type_id=sedan.id, price=Decimal("1000.00")),
        RatePrice(service_id=service.id, rate_id=economico.id, vehicle_type_id=suburban.id, price=Decimal("1500.00")),
        RatePrice(service_id=service.id, rate_id=first_class.id, vehicle_type_id=sedan.id, price=Decimal("1800.00")),
    ])
    await db_session.commit()

    return {
        "service": service,
        "economico": economico,
        "first_class": first_class,
        "sedan": sedan,
        "suburban": suburban,
        "airport": airport,
        "hotel_zone": hotel_zone,
    }
