"""Shared fixtures: in-memory SQLite, a pinned clock and a recording notifier."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALERT_SCHEDULER_ENABLED"] = "false"
os.environ["NOTIFIER"] = "log"
os.environ.pop("REDIS_URL", None)

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

import fleetops.models  # noqa: F401
from fleetops.core.clock import FixedClock
from fleetops.core.database import Base, SessionLocal, engine
from fleetops.core.security import get_password_hash
from fleetops.models.enums import IntervalKind, UserRole, VehicleStatus
from fleetops.models.part import Part
from fleetops.models.preventive_plan import PreventivePlan
from fleetops.models.user import User
from fleetops.models.vehicle import Vehicle
from fleetops.services.notifications import Notifier


class RecordingNotifier(Notifier):
    """Keeps every batch in memory; raises instead when ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, recipient, subject, alerts):
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append((recipient, subject, list(alerts)))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 3, 10, 6, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_vehicle(db):
    def _make(plate="ABCD12", make="Mercedes", model="Sprinter", odometer_km=10000, **kwargs):
        vehicle = Vehicle(
            plate=plate,
            make=make,
            model=model,
            year=kwargs.pop("year", 2020),
            odometer_km=odometer_km,
            status=kwargs.pop("status", VehicleStatus.ACTIVE),
            **kwargs,
        )
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def make_user(db):
    def _make(username="tech1", role=UserRole.TECHNICIAN, password="password123", is_active=True):
        user = User(
            username=username,
            full_name=username.title(),
            role=role,
            hashed_password=get_password_hash(password),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_part(db):
    def _make(code="FLT-001", name="Oil filter", unit_price="12.50", stock_quantity=10):
        part = Part(code=code, name=name, unit_price=Decimal(unit_price), stock_quantity=stock_quantity)
        db.add(part)
        db.commit()
        db.refresh(part)
        return part

    return _make


@pytest.fixture
def make_plan(db):
    def _make(vehicle, kind=IntervalKind.DISTANCE, interval=10000, next_due_km=None, next_due_date=None, is_active=True):
        plan = PreventivePlan(
            vehicle_id=vehicle.id,
            maintenance_type="Oil change",
            interval_kind=kind,
            interval_value=interval,
            next_due_km=next_due_km,
            next_due_date=next_due_date,
            is_active=is_active,
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan

    return _make


@pytest.fixture
def technician(make_user):
    return make_user("tech1", UserRole.TECHNICIAN)


@pytest.fixture
def manager(make_user):
    return make_user("manager", UserRole.MAINTENANCE_MANAGER)


@pytest.fixture
def admin(make_user):
    return make_user("admin", UserRole.ADMINISTRATOR)


@pytest.fixture
def today(clock) -> date:
    return clock.today()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)
