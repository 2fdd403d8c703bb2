"""Tests for the work order lifecycle."""
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from fleetops.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from fleetops.models.enums import IntervalKind, UserRole, VehicleStatus, WorkOrderState, WorkOrderType
from fleetops.models.part import Part
from fleetops.models.vehicle import Vehicle
from fleetops.models.work_order import PartUsage, WorkOrder
from fleetops.schemas.work_order import (
    PartUsed,
    RecordWork,
    TaskComplete,
    TaskCreate,
    WorkOrderCreate,
    WorkOrderFilter,
    WorkOrderUpdate,
)
from fleetops.services.work_orders import WorkOrderService, format_number, parse_sequence


@pytest.fixture
def service(db, clock):
    return WorkOrderService(db, clock)


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle(odometer_km=19500)


def new_order(service, vehicle, order_type=WorkOrderType.CORRECTIVE):
    return service.create(WorkOrderCreate(vehicle_id=vehicle.id, order_type=order_type, description="Brake noise"))


def started_order(service, vehicle, technician, order_type=WorkOrderType.CORRECTIVE):
    """Order that is InProgress with one open task."""
    order = new_order(service, vehicle, order_type)
    service.assign(order.id, technician.id)
    task = service.add_task(order.id, TaskCreate(description="Replace pads"))
    service.record_work(order.id, technician, RecordWork())
    return service.get(order.id), task


def insert_order(db, vehicle, number):
    db.add(
        WorkOrder(
            number=number,
            vehicle_id=vehicle.id,
            order_type=WorkOrderType.CORRECTIVE,
            description="Imported",
            state=WorkOrderState.CLOSED,
            created_at=datetime(2025, 1, 5, tzinfo=timezone.utc),
        )
    )
    db.commit()


class TestNumbering:
    """Tests for work order number allocation."""

    def test_format(self):
        assert format_number(2025, 1) == "OT-2025-00001"
        assert format_number(2025, 123456) == "OT-2025-123456"

    def test_parse(self):
        assert parse_sequence("OT-2025-00042") == 42
        assert parse_sequence("garbage") is None

    def test_first_of_year(self, service, vehicle):
        assert new_order(service, vehicle).number == "OT-2025-00001"

    def test_continues_after_highest(self, db, service, vehicle):
        insert_order(db, vehicle, "OT-2025-00041")
        insert_order(db, vehicle, "OT-2025-00042")
        assert new_order(service, vehicle).number == "OT-2025-00043"

    def test_other_years_ignored(self, db, service, vehicle):
        insert_order(db, vehicle, "OT-2024-00099")
        assert new_order(service, vehicle).number == "OT-2025-00001"

    def test_sequential(self, service, vehicle):
        numbers = [new_order(service, vehicle).number for _ in range(3)]
        assert numbers == ["OT-2025-00001", "OT-2025-00002", "OT-2025-00003"]


class TestCreateAndUpdate:
    def test_created_pending(self, service, vehicle, clock):
        order = new_order(service, vehicle)
        assert order.state == WorkOrderState.PENDING
        assert order.technician_id is None
        assert order.total_cost == Decimal("0")
        assert order.created_at.replace(tzinfo=timezone.utc) == clock.now()

    def test_missing_vehicle(self, service):
        with pytest.raises(NotFoundError):
            service.create(WorkOrderCreate(vehicle_id=999, order_type=WorkOrderType.CORRECTIVE, description="x"))

    def test_archived_vehicle(self, service, make_vehicle):
        archived = make_vehicle(plate="ZZZZ99", is_archived=True)
        with pytest.raises(NotFoundError):
            new_order(service, archived)

    def test_update_pending(self, service, vehicle):
        order = new_order(service, vehicle)
        updated = service.update(order.id, WorkOrderUpdate(description="Brake noise, front axle"))
        assert updated.description == "Brake noise, front axle"

    def test_update_after_assignment_rejected(self, service, vehicle, technician):
        order = new_order(service, vehicle)
        service.assign(order.id, technician.id)
        with pytest.raises(BadRequestError):
            service.update(order.id, WorkOrderUpdate(description="changed"))


class TestAssign:
    """Tests for WorkOrderService.assign."""

    def test_moves_to_assigned(self, service, vehicle, technician):
        order = service.assign(new_order(service, vehicle).id, technician.id)
        assert order.state == WorkOrderState.ASSIGNED
        assert order.technician_id == technician.id

    def test_manager_can_be_assigned(self, service, vehicle, manager):
        order = service.assign(new_order(service, vehicle).id, manager.id)
        assert order.technician_id == manager.id

    def test_administrator_not_assignable(self, service, vehicle, admin):
        order = new_order(service, vehicle)
        with pytest.raises(BadRequestError):
            service.assign(order.id, admin.id)
        assert service.get(order.id).state == WorkOrderState.PENDING

    def test_inactive_technician(self, service, vehicle, make_user):
        retired = make_user("retired", UserRole.TECHNICIAN, is_active=False)
        with pytest.raises(BadRequestError):
            service.assign(new_order(service, vehicle).id, retired.id)

    def test_unknown_technician(self, service, vehicle):
        with pytest.raises(NotFoundError):
            service.assign(new_order(service, vehicle).id, 999)

    def test_cannot_reassign(self, service, vehicle, technician, make_user):
        other = make_user("tech2")
        order = service.assign(new_order(service, vehicle).id, technician.id)
        with pytest.raises(BadRequestError):
            service.assign(order.id, other.id)


class TestForwardOnly:
    """States only ever move one step forward."""

    def test_close_pending_rejected(self, service, vehicle):
        order = new_order(service, vehicle)
        with pytest.raises(BadRequestError):
            service.close(order.id)
        assert service.get(order.id).state == WorkOrderState.PENDING

    def test_record_work_on_pending_rejected(self, service, vehicle, admin):
        order = new_order(service, vehicle)
        with pytest.raises(BadRequestError):
            service.record_work(order.id, admin, RecordWork(notes="too early"))

    def test_closed_is_terminal(self, service, vehicle, technician):
        order, task = started_order(service, vehicle, technician)
        service.complete_task(order.id, task.id, technician, TaskComplete())
        service.close(order.id)
        with pytest.raises(BadRequestError):
            service.close(order.id)
        with pytest.raises(BadRequestError):
            service.record_work(order.id, technician, RecordWork(notes="late"))
        with pytest.raises(BadRequestError):
            service.add_task(order.id, TaskCreate(description="more"))


class TestRecordWork:
    """Tests for WorkOrderService.record_work."""

    def test_first_call_starts_order(self, db, service, vehicle, technician):
        order = service.assign(new_order(service, vehicle).id, technician.id)
        order = service.record_work(order.id, technician, RecordWork(notes="Started"))
        assert order.state == WorkOrderState.IN_PROGRESS
        assert db.get(Vehicle, vehicle.id).status == VehicleStatus.UNDER_MAINTENANCE

    def test_parts_deducted_at_frozen_price(self, db, service, vehicle, technician, make_part):
        part = make_part(unit_price="12.50", stock_quantity=10)
        order, task = started_order(service, vehicle, technician)

        service.record_work(order.id, technician, RecordWork(parts=[PartUsed(part_id=part.id, task_id=task.id, quantity=2)]))

        assert db.get(Part, part.id).stock_quantity == 8
        usage = db.query(PartUsage).one()
        assert usage.unit_price == Decimal("12.50")

        # Later catalog changes do not touch the recorded usage
        db.get(Part, part.id).unit_price = Decimal("20.00")
        db.commit()
        assert db.query(PartUsage).one().unit_price == Decimal("12.50")

    def test_failed_entry_rolls_back_every_deduction(self, db, service, vehicle, technician, make_part):
        filters = make_part(code="FLT-001", stock_quantity=5)
        pads = make_part(code="BRK-010", stock_quantity=2)
        order = service.assign(new_order(service, vehicle).id, technician.id)
        task = service.add_task(order.id, TaskCreate(description="Service"))

        with pytest.raises(BadRequestError, match="Insufficient stock"):
            service.record_work(
                order.id,
                technician,
                RecordWork(
                    parts=[
                        PartUsed(part_id=filters.id, task_id=task.id, quantity=1),
                        PartUsed(part_id=pads.id, task_id=task.id, quantity=10),
                    ],
                    odometer_km=20000,
                ),
            )

        db.expire_all()
        assert db.get(Part, filters.id).stock_quantity == 5
        assert db.get(Part, pads.id).stock_quantity == 2
        assert db.query(PartUsage).count() == 0
        assert service.get(order.id).state == WorkOrderState.ASSIGNED
        assert db.get(Vehicle, vehicle.id).odometer_km == 19500

    def test_other_technician_forbidden(self, service, vehicle, technician, make_user):
        intruder = make_user("tech2")
        order = service.assign(new_order(service, vehicle).id, technician.id)
        with pytest.raises(ForbiddenError):
            service.record_work(order.id, intruder, RecordWork(notes="not mine"))

    def test_supervisor_may_record(self, service, vehicle, technician, manager):
        order = service.assign(new_order(service, vehicle).id, technician.id)
        order = service.record_work(order.id, manager, RecordWork(notes="covering"))
        assert order.state == WorkOrderState.IN_PROGRESS

    def test_odometer_cannot_decrease(self, service, vehicle, technician):
        order, _ = started_order(service, vehicle, technician)
        with pytest.raises(BadRequestError, match="Odometer"):
            service.record_work(order.id, technician, RecordWork(odometer_km=19000))

    def test_notes_appended(self, service, vehicle, technician):
        order, _ = started_order(service, vehicle, technician)
        service.record_work(order.id, technician, RecordWork(notes="Pads worn"))
        order = service.record_work(order.id, technician, RecordWork(notes="Rotors ok"))
        assert order.notes == "Pads worn\nRotors ok"

    def test_task_from_another_order(self, service, vehicle, technician, make_part):
        part = make_part()
        _, foreign_task = started_order(service, vehicle, technician)
        order, _ = started_order(service, vehicle, technician)
        with pytest.raises(NotFoundError):
            service.record_work(order.id, technician, RecordWork(parts=[PartUsed(part_id=part.id, task_id=foreign_task.id, quantity=1)]))

    def test_completed_task_takes_no_parts(self, service, vehicle, technician, make_part):
        part = make_part()
        order, task = started_order(service, vehicle, technician)
        service.complete_task(order.id, task.id, technician, TaskComplete())
        with pytest.raises(BadRequestError, match="completed task"):
            service.record_work(order.id, technician, RecordWork(parts=[PartUsed(part_id=part.id, task_id=task.id, quantity=1)]))


class TestTasks:
    """Tests for add_task and complete_task."""

    def test_defaults_to_order_technician(self, service, vehicle, technician):
        order = service.assign(new_order(service, vehicle).id, technician.id)
        task = service.add_task(order.id, TaskCreate(description="Inspect"))
        assert task.technician_id == technician.id
        assert task.is_completed is False

    def test_complete_with_notes(self, service, vehicle, technician):
        order, task = started_order(service, vehicle, technician)
        done = service.complete_task(order.id, task.id, technician, TaskComplete(hours_worked=Decimal("1.5"), notes="Pads replaced"))
        assert done.is_completed is True
        assert done.hours_worked == Decimal("1.5")
        assert done.notes == "[DONE] Pads replaced"

    def test_complete_twice(self, service, vehicle, technician):
        order, task = started_order(service, vehicle, technician)
        service.complete_task(order.id, task.id, technician, TaskComplete())
        with pytest.raises(BadRequestError):
            service.complete_task(order.id, task.id, technician, TaskComplete())

    def test_other_technician_cannot_complete(self, service, vehicle, technician, make_user):
        intruder = make_user("tech2")
        order, task = started_order(service, vehicle, technician)
        with pytest.raises(ForbiddenError):
            service.complete_task(order.id, task.id, intruder, TaskComplete())


class TestClose:
    """Tests for WorkOrderService.close."""

    def test_incomplete_task_blocks_close(self, service, vehicle, technician):
        order, _ = started_order(service, vehicle, technician)
        with pytest.raises(BadRequestError, match="incomplete"):
            service.close(order.id)
        assert service.get(order.id).state == WorkOrderState.IN_PROGRESS

    def test_cost_and_release(self, db, service, clock, vehicle, technician, make_part):
        filters = make_part(code="FLT-001", unit_price="12.50")
        pump = make_part(code="PMP-002", unit_price="40.00")
        order, task = started_order(service, vehicle, technician)
        service.record_work(
            order.id,
            technician,
            RecordWork(parts=[
                PartUsed(part_id=filters.id, task_id=task.id, quantity=2),
                PartUsed(part_id=pump.id, task_id=task.id, quantity=1),
            ]),
        )
        service.complete_task(order.id, task.id, technician, TaskComplete(hours_worked=Decimal("3")))

        closed = service.close(order.id)

        assert closed.state == WorkOrderState.CLOSED
        assert closed.parts_cost == Decimal("65.00")
        assert closed.labor_cost == Decimal("0")
        assert closed.total_cost == Decimal("65.00")
        assert closed.closed_at is not None
        released = db.get(Vehicle, vehicle.id)
        assert released.status == VehicleStatus.ACTIVE
        assert released.last_service_date == clock.today()

    def test_preventive_close_recalculates_plan(self, db, service, vehicle, technician, make_plan):
        plan = make_plan(vehicle, kind=IntervalKind.DISTANCE, interval=10000, next_due_km=20000)
        order, task = started_order(service, vehicle, technician, WorkOrderType.PREVENTIVE)
        service.record_work(order.id, technician, RecordWork(odometer_km=20500))
        service.complete_task(order.id, task.id, technician, TaskComplete())

        service.close(order.id)

        db.refresh(plan)
        assert plan.next_due_km == 30500

    def test_corrective_close_leaves_plan(self, db, service, vehicle, technician, make_plan):
        plan = make_plan(vehicle, next_due_km=20000)
        order, task = started_order(service, vehicle, technician, WorkOrderType.CORRECTIVE)
        service.complete_task(order.id, task.id, technician, TaskComplete())
        service.close(order.id)
        db.refresh(plan)
        assert plan.next_due_km == 20000


class TestList:
    def test_filter_by_state(self, service, vehicle, technician):
        first = new_order(service, vehicle)
        new_order(service, vehicle)
        service.assign(first.id, technician.id)

        pending = service.list(WorkOrderFilter(state=WorkOrderState.PENDING))
        assigned = service.list(WorkOrderFilter(state=WorkOrderState.ASSIGNED))

        assert len(pending) == 1
        assert [o.id for o in assigned] == [first.id]

    def test_filter_by_technician(self, service, vehicle, technician):
        order = service.assign(new_order(service, vehicle).id, technician.id)
        new_order(service, vehicle)
        assert [o.id for o in service.list(WorkOrderFilter(technician_id=technician.id))] == [order.id]
