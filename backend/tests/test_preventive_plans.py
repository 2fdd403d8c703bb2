"""Tests for preventive plans and next-due recalculation."""
import pytest
from datetime import date, timedelta
from types import SimpleNamespace

from fleetops.core.exceptions import BadRequestError, ConflictError, NotFoundError
from fleetops.models.enums import IntervalKind
from fleetops.schemas.preventive_plan import PlanCreate, PlanUpdate
from fleetops.services.preventive_plans import PreventivePlanService, recalculate


def plan(kind, interval, is_active=True):
    return SimpleNamespace(
        id=1,
        interval_kind=kind,
        interval_value=interval,
        next_due_km=None,
        next_due_date=None,
        is_active=is_active,
    )


class TestRecalculate:
    """Tests for recalculate."""

    def test_distance_counts_from_odometer(self):
        vehicle = SimpleNamespace(plate="ABCD12", odometer_km=60000)
        p = plan(IntervalKind.DISTANCE, 10000)
        recalculate(vehicle, p, date(2025, 3, 10))
        assert p.next_due_km == 70000
        assert p.next_due_date is None

    def test_time_counts_from_today(self):
        vehicle = SimpleNamespace(plate="ABCD12", odometer_km=60000)
        p = plan(IntervalKind.TIME, 180)
        recalculate(vehicle, p, date(2025, 3, 10))
        assert p.next_due_date == date(2025, 3, 10) + timedelta(days=180)
        assert p.next_due_km is None

    def test_inactive_plan_untouched(self):
        vehicle = SimpleNamespace(plate="ABCD12", odometer_km=60000)
        p = plan(IntervalKind.DISTANCE, 10000, is_active=False)
        recalculate(vehicle, p, date(2025, 3, 10))
        assert p.next_due_km is None

    def test_no_plan(self):
        recalculate(SimpleNamespace(plate="ABCD12", odometer_km=1), None, date(2025, 3, 10))


class TestPreventivePlanService:
    """Tests for PreventivePlanService."""

    def test_create_derives_distance_threshold(self, db, clock, make_vehicle):
        vehicle = make_vehicle(odometer_km=42000)
        created = PreventivePlanService(db, clock).create(
            PlanCreate(vehicle_id=vehicle.id, maintenance_type="Oil change", interval_kind=IntervalKind.DISTANCE, interval_value=5000)
        )
        assert created.next_due_km == 47000
        assert created.next_due_date is None

    def test_create_derives_time_threshold(self, db, clock, make_vehicle):
        vehicle = make_vehicle()
        created = PreventivePlanService(db, clock).create(
            PlanCreate(vehicle_id=vehicle.id, maintenance_type="Inspection", interval_kind=IntervalKind.TIME, interval_value=90)
        )
        assert created.next_due_date == clock.today() + timedelta(days=90)

    def test_explicit_threshold_kept(self, db, clock, make_vehicle):
        vehicle = make_vehicle(odometer_km=42000)
        created = PreventivePlanService(db, clock).create(
            PlanCreate(
                vehicle_id=vehicle.id,
                maintenance_type="Oil change",
                interval_kind=IntervalKind.DISTANCE,
                interval_value=5000,
                next_due_km=45000,
            )
        )
        assert created.next_due_km == 45000

    def test_mismatched_threshold(self, db, clock, make_vehicle):
        vehicle = make_vehicle()
        with pytest.raises(BadRequestError):
            PreventivePlanService(db, clock).create(
                PlanCreate(
                    vehicle_id=vehicle.id,
                    maintenance_type="Oil change",
                    interval_kind=IntervalKind.DISTANCE,
                    interval_value=5000,
                    next_due_date=date(2025, 6, 1),
                )
            )

    def test_one_plan_per_vehicle(self, db, clock, make_vehicle, make_plan):
        vehicle = make_vehicle()
        make_plan(vehicle)
        with pytest.raises(ConflictError):
            PreventivePlanService(db, clock).create(
                PlanCreate(vehicle_id=vehicle.id, maintenance_type="Again", interval_kind=IntervalKind.TIME, interval_value=30)
            )

    def test_archived_vehicle(self, db, clock, make_vehicle):
        vehicle = make_vehicle(is_archived=True)
        with pytest.raises(NotFoundError):
            PreventivePlanService(db, clock).create(
                PlanCreate(vehicle_id=vehicle.id, maintenance_type="Oil", interval_kind=IntervalKind.TIME, interval_value=30)
            )

    def test_switching_kind_rederives_threshold(self, db, clock, make_vehicle, make_plan):
        vehicle = make_vehicle(odometer_km=10000)
        existing = make_plan(vehicle, next_due_km=20000)
        updated = PreventivePlanService(db, clock).update(
            existing.id, PlanUpdate(interval_kind=IntervalKind.TIME, interval_value=30)
        )
        assert updated.next_due_km is None
        assert updated.next_due_date == clock.today() + timedelta(days=30)

    def test_deactivate_hides_from_vehicle_lookup(self, db, clock, make_vehicle, make_plan):
        vehicle = make_vehicle()
        existing = make_plan(vehicle, next_due_km=20000)
        service = PreventivePlanService(db, clock)
        service.deactivate(existing.id)
        assert service.find_by_vehicle(vehicle.id) is None
        assert service.get(existing.id).is_active is False
