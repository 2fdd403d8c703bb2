"""Work order lifecycle.

Orders move strictly forward through ``Pending -> Assigned -> InProgress ->
Closed``. Recording work deducts parts from inventory at their current price,
closing an order finalizes its cost, releases the vehicle and, for preventive
orders, pushes the vehicle's plan threshold one interval ahead.

Every write runs inside one database transaction: if any step fails (for
instance the third of three part deductions) nothing from the call persists.
"""
import logging
import re
from datetime import datetime, time, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetops.core.clock import Clock, system_clock
from fleetops.core.database import transaction
from fleetops.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from fleetops.models.enums import (
    ASSIGNABLE_ROLES,
    SUPERVISORY_ROLES,
    VehicleStatus,
    WorkOrderState,
    WorkOrderType,
)
from fleetops.models.user import User
from fleetops.models.vehicle import Vehicle
from fleetops.models.work_order import PartUsage, Task, WorkOrder
from fleetops.schemas.work_order import (
    PartUsed,
    RecordWork,
    TaskComplete,
    TaskCreate,
    WorkOrderCreate,
    WorkOrderFilter,
    WorkOrderUpdate,
)
from fleetops.services.costing import compute_cost
from fleetops.services.inventory import InventoryLedger
from fleetops.services.preventive_plans import recalculate
from fleetops.services.vehicles import update_odometer

logger = logging.getLogger(__name__)

# The only legal move out of each state
NEXT_STATE = {
    WorkOrderState.PENDING: WorkOrderState.ASSIGNED,
    WorkOrderState.ASSIGNED: WorkOrderState.IN_PROGRESS,
    WorkOrderState.IN_PROGRESS: WorkOrderState.CLOSED,
}

NUMBER_PATTERN = re.compile(r"^OT-(\d{4})-(\d+)$")
MAX_NUMBER_ATTEMPTS = 5


def format_number(year: int, sequence: int) -> str:
    """OT-2025-00001"""
    return f"OT-{year}-{sequence:05d}"


def parse_sequence(number: str) -> Optional[int]:
    match = NUMBER_PATTERN.match(number or "")
    return int(match.group(2)) if match else None


def advance(order: WorkOrder, target: WorkOrderState) -> None:
    if NEXT_STATE.get(order.state) != target:
        raise BadRequestError(
            f"Cannot move work order {order.number} from {order.state.value} to {target.value}"
        )
    order.state = target


class WorkOrderService:
    def __init__(
        self,
        db: Session,
        clock: Clock = system_clock,
        inventory: Optional[InventoryLedger] = None,
    ):
        self.db = db
        self.clock = clock
        self.inventory = inventory or InventoryLedger(db)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, order_id: int) -> WorkOrder:
        order = self.db.query(WorkOrder).filter(WorkOrder.id == order_id).first()
        if not order:
            raise NotFoundError(f"Work order {order_id} not found")
        return order

    def get_by_number(self, number: str) -> WorkOrder:
        order = self.db.query(WorkOrder).filter(WorkOrder.number == number).first()
        if not order:
            raise NotFoundError(f"Work order {number} not found")
        return order

    def list(self, filters: WorkOrderFilter) -> List[WorkOrder]:
        query = self.db.query(WorkOrder)
        if filters.vehicle_id:
            query = query.filter(WorkOrder.vehicle_id == filters.vehicle_id)
        if filters.state:
            query = query.filter(WorkOrder.state == filters.state)
        if filters.order_type:
            query = query.filter(WorkOrder.order_type == filters.order_type)
        if filters.technician_id:
            query = query.filter(WorkOrder.technician_id == filters.technician_id)
        if filters.created_from:
            query = query.filter(
                WorkOrder.created_at >= datetime.combine(filters.created_from, time.min, tzinfo=timezone.utc)
            )
        if filters.created_to:
            query = query.filter(
                WorkOrder.created_at <= datetime.combine(filters.created_to, time.max, tzinfo=timezone.utc)
            )
        return (
            query.order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc())
            .offset(filters.skip)
            .limit(filters.limit)
            .all()
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, data: WorkOrderCreate) -> WorkOrder:
        vehicle = self._get_vehicle(data.vehicle_id)
        year = self.clock.now().year

        # The unique index on number rejects a concurrent duplicate; retry with a fresh sequence
        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            order = WorkOrder(
                number=self._next_number(year),
                vehicle_id=vehicle.id,
                order_type=data.order_type,
                description=data.description,
                state=WorkOrderState.PENDING,
                parts_cost=0,
                labor_cost=0,
                total_cost=0,
                created_at=self.clock.now(),
            )
            try:
                with transaction(self.db):
                    self.db.add(order)
            except IntegrityError:
                logger.warning(f"Work order number {order.number} taken, retrying ({attempt}/{MAX_NUMBER_ATTEMPTS})")
                continue

            self.db.refresh(order)
            logger.info(f"Work order created: {order.number} for vehicle {vehicle.plate} - Type: {order.order_type.value}")
            return order

        raise ConflictError("Could not allocate a work order number, try again")

    def update(self, order_id: int, data: WorkOrderUpdate) -> WorkOrder:
        """Edit an order that nobody has been assigned to yet."""
        order = self.get(order_id)
        if order.state != WorkOrderState.PENDING:
            raise BadRequestError(
                f"Cannot modify a work order in state {order.state.value}. Only Pending orders can be modified."
            )

        update_data = data.model_dump(exclude_unset=True)
        with transaction(self.db):
            if update_data.get("vehicle_id") and update_data["vehicle_id"] != order.vehicle_id:
                order.vehicle_id = self._get_vehicle(update_data["vehicle_id"]).id
            if update_data.get("order_type") is not None:
                order.order_type = update_data["order_type"]
            if update_data.get("description") is not None:
                order.description = update_data["description"]
        self.db.refresh(order)
        logger.info(f"Work order updated: {order.number}")
        return order

    def assign(self, order_id: int, technician_id: int) -> WorkOrder:
        order = self.get(order_id)

        technician = self.db.query(User).filter(User.id == technician_id).first()
        if not technician:
            raise NotFoundError(f"Technician {technician_id} not found")
        if technician.role not in ASSIGNABLE_ROLES or not technician.is_active:
            raise BadRequestError("The user must be an active technician or maintenance manager")

        if order.state != WorkOrderState.PENDING:
            raise BadRequestError(f"Cannot assign a work order in state {order.state.value}")

        with transaction(self.db):
            order.technician_id = technician.id
            advance(order, WorkOrderState.ASSIGNED)
        self.db.refresh(order)
        logger.info(f"Work order {order.number} assigned to {technician.username}")
        return order

    def record_work(self, order_id: int, caller: User, data: RecordWork) -> WorkOrder:
        """Consume parts, update the odometer and append notes.

        The first call on an Assigned order starts it (InProgress) and puts
        the vehicle under maintenance.
        """
        order = self.get(order_id)
        self._check_can_work(order, caller)

        if order.state not in (WorkOrderState.ASSIGNED, WorkOrderState.IN_PROGRESS):
            raise BadRequestError(f"Cannot record work on a work order in state {order.state.value}")

        with transaction(self.db):
            if order.state == WorkOrderState.ASSIGNED:
                advance(order, WorkOrderState.IN_PROGRESS)
                order.vehicle.status = VehicleStatus.UNDER_MAINTENANCE

            for entry in data.parts:
                self._use_part(order, entry)

            if data.odometer_km is not None:
                update_odometer(order.vehicle, data.odometer_km)

            if data.notes:
                order.notes = f"{order.notes}\n{data.notes}" if order.notes else data.notes

        self.db.refresh(order)
        logger.info(
            f"Work recorded on {order.number} by {caller.username}: {len(data.parts)} part entries"
        )
        return order

    def close(self, order_id: int) -> WorkOrder:
        order = self.get(order_id)

        if order.state != WorkOrderState.IN_PROGRESS:
            raise BadRequestError("Only in-progress work orders can be closed")

        incomplete = [t for t in order.tasks if not t.is_completed]
        if incomplete:
            raise BadRequestError(f"Cannot close the work order with {len(incomplete)} incomplete task(s)")

        cost = compute_cost(order.tasks)
        vehicle = order.vehicle
        now = self.clock.now()

        with transaction(self.db):
            order.parts_cost = cost.parts
            order.labor_cost = cost.labor
            order.total_cost = cost.total
            order.closed_at = now
            advance(order, WorkOrderState.CLOSED)

            vehicle.status = VehicleStatus.ACTIVE
            vehicle.last_service_date = now.date()

            if order.order_type == WorkOrderType.PREVENTIVE:
                recalculate(vehicle, vehicle.preventive_plan, self.clock.today())

        self.db.refresh(order)
        logger.info(
            f"Work order closed: {order.number} for vehicle {vehicle.plate} - Type: {order.order_type.value}, "
            f"Parts: {cost.parts}, Labor: {cost.labor} ({cost.hours}h), Total: {cost.total}"
        )
        return order

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, order_id: int, data: TaskCreate) -> Task:
        order = self.get(order_id)
        if order.state == WorkOrderState.CLOSED:
            raise BadRequestError("Cannot add tasks to a closed work order")

        technician_id = data.technician_id or order.technician_id
        if technician_id is not None:
            technician = self.db.query(User).filter(User.id == technician_id).first()
            if not technician:
                raise NotFoundError(f"Technician {technician_id} not found")
            if technician.role not in ASSIGNABLE_ROLES:
                raise BadRequestError("The user must be a technician or maintenance manager")

        task = Task(
            description=data.description,
            technician_id=technician_id,
            hours_worked=data.hours_worked,
            is_completed=False,
            position=len(order.tasks),
        )
        with transaction(self.db):
            order.tasks.append(task)
        self.db.refresh(task)
        return task

    def complete_task(self, order_id: int, task_id: int, caller: User, data: TaskComplete) -> Task:
        order = self.get(order_id)
        task = self._get_task(order, task_id)

        if order.state == WorkOrderState.CLOSED:
            raise BadRequestError("Cannot complete tasks of a closed work order")
        if task.is_completed:
            raise BadRequestError("Task is already completed")
        if caller.role not in SUPERVISORY_ROLES and caller.id not in (task.technician_id, order.technician_id):
            raise ForbiddenError("Only the assigned technician can complete this task")

        with transaction(self.db):
            task.is_completed = True
            if data.hours_worked is not None:
                task.hours_worked = data.hours_worked
            if data.notes:
                task.notes = f"{task.notes}\n[DONE] {data.notes}" if task.notes else f"[DONE] {data.notes}"
        self.db.refresh(task)
        return task

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _next_number(self, year: int) -> str:
        prefix = f"OT-{year}-"
        # Longest then lexically greatest, so sequences past 99999 still sort last
        last = (
            self.db.query(WorkOrder.number)
            .filter(WorkOrder.number.like(f"{prefix}%"))
            .order_by(func.length(WorkOrder.number).desc(), WorkOrder.number.desc())
            .first()
        )
        sequence = 1
        if last:
            previous = parse_sequence(last[0])
            if previous is not None:
                sequence = previous + 1
        return format_number(year, sequence)

    def _get_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = (
            self.db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.is_archived == False)  # noqa: E712
            .first()
        )
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

    def _get_task(self, order: WorkOrder, task_id: int) -> Task:
        for task in order.tasks:
            if task.id == task_id:
                return task
        raise NotFoundError(f"Task {task_id} not found on work order {order.number}")

    def _check_can_work(self, order: WorkOrder, caller: User) -> None:
        if caller.role in SUPERVISORY_ROLES:
            return
        if order.technician_id is not None and caller.id == order.technician_id:
            return
        raise ForbiddenError("You are not allowed to modify this work order")

    def _use_part(self, order: WorkOrder, entry: PartUsed) -> PartUsage:
        task = self._get_task(order, entry.task_id)
        if task.is_completed:
            raise BadRequestError("Cannot add parts to a completed task")

        part = self.inventory.deduct(entry.part_id, entry.quantity)
        usage = PartUsage(part_id=part.id, quantity=entry.quantity, unit_price=part.unit_price)
        task.part_usages.append(usage)
        logger.info(
            f"Part usage registered: {part.code} x {entry.quantity} for task {task.id}. Price: {part.unit_price}"
        )
        return usage
