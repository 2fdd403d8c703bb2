"""Preventive maintenance plans and next-due recalculation."""
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from fleetops.core.clock import Clock, system_clock
from fleetops.core.database import transaction
from fleetops.core.exceptions import BadRequestError, ConflictError, NotFoundError
from fleetops.models.enums import IntervalKind
from fleetops.models.preventive_plan import PreventivePlan
from fleetops.models.vehicle import Vehicle
from fleetops.schemas.preventive_plan import PlanCreate, PlanUpdate

logger = logging.getLogger(__name__)


def next_due_km(odometer_km: int, interval_km: int) -> int:
    return odometer_km + interval_km


def next_due_date(today: date, interval_days: int) -> date:
    return today + timedelta(days=interval_days)


def recalculate(vehicle: Vehicle, plan: Optional[PreventivePlan], today: date) -> None:
    """Move the plan's threshold one interval past the service just done.

    Distance plans count from the vehicle's current odometer, time plans from
    ``today``. Does nothing when there is no active plan.
    """
    if plan is None or not plan.is_active:
        return

    if plan.interval_kind == IntervalKind.DISTANCE:
        plan.next_due_km = next_due_km(vehicle.odometer_km, plan.interval_value)
        plan.next_due_date = None
    else:
        plan.next_due_date = next_due_date(today, plan.interval_value)
        plan.next_due_km = None

    logger.info(
        f"Preventive plan {plan.id} recalculated for {vehicle.plate}: "
        f"next due {plan.next_due_km if plan.next_due_km is not None else plan.next_due_date}"
    )


class PreventivePlanService:
    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    def get(self, plan_id: int) -> PreventivePlan:
        plan = self.db.query(PreventivePlan).filter(PreventivePlan.id == plan_id).first()
        if not plan:
            raise NotFoundError(f"Preventive plan {plan_id} not found")
        return plan

    def list(self, active_only: bool = False) -> List[PreventivePlan]:
        query = self.db.query(PreventivePlan)
        if active_only:
            query = query.filter(PreventivePlan.is_active == True)  # noqa: E712
        return query.order_by(PreventivePlan.id.asc()).all()

    def find_by_vehicle(self, vehicle_id: int) -> Optional[PreventivePlan]:
        return (
            self.db.query(PreventivePlan)
            .filter(PreventivePlan.vehicle_id == vehicle_id, PreventivePlan.is_active == True)  # noqa: E712
            .first()
        )

    def create(self, data: PlanCreate) -> PreventivePlan:
        vehicle = self._get_vehicle(data.vehicle_id)

        existing = self.db.query(PreventivePlan).filter(PreventivePlan.vehicle_id == vehicle.id).first()
        if existing:
            raise ConflictError(f"Vehicle {vehicle.plate} already has a preventive plan")

        plan = PreventivePlan(
            vehicle_id=vehicle.id,
            maintenance_type=data.maintenance_type,
            description=data.description,
            interval_kind=data.interval_kind,
            interval_value=data.interval_value,
            is_active=data.is_active,
        )
        self._set_threshold(plan, vehicle, data.next_due_km, data.next_due_date)

        with transaction(self.db):
            self.db.add(plan)
        self.db.refresh(plan)
        logger.info(
            f"Preventive plan created for {vehicle.plate}: every {plan.interval_value} "
            f"{'km' if plan.interval_kind == IntervalKind.DISTANCE else 'days'}"
        )
        return plan

    def update(self, plan_id: int, data: PlanUpdate) -> PreventivePlan:
        plan = self.get(plan_id)
        update_data = data.model_dump(exclude_unset=True)

        kind_changed = "interval_kind" in update_data and update_data["interval_kind"] != plan.interval_kind

        with transaction(self.db):
            for key in ("maintenance_type", "description", "interval_kind", "interval_value", "is_active"):
                if key in update_data:
                    setattr(plan, key, update_data[key])

            if kind_changed or "next_due_km" in update_data or "next_due_date" in update_data:
                self._set_threshold(
                    plan,
                    plan.vehicle,
                    update_data.get("next_due_km"),
                    update_data.get("next_due_date"),
                )
        self.db.refresh(plan)
        logger.info(f"Preventive plan {plan_id} updated")
        return plan

    def deactivate(self, plan_id: int) -> PreventivePlan:
        plan = self.get(plan_id)
        with transaction(self.db):
            plan.is_active = False
        logger.info(f"Preventive plan {plan_id} deactivated for vehicle {plan.vehicle.plate}")
        return plan

    def _get_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = (
            self.db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.is_archived == False)  # noqa: E712
            .first()
        )
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

    def _set_threshold(
        self,
        plan: PreventivePlan,
        vehicle: Vehicle,
        due_km: Optional[int],
        due_date: Optional[date],
    ) -> None:
        """Populate exactly the threshold matching the plan's kind."""
        if plan.interval_kind == IntervalKind.DISTANCE:
            if due_date is not None:
                raise BadRequestError("Distance plans take next_due_km, not next_due_date")
            plan.next_due_km = due_km if due_km is not None else next_due_km(vehicle.odometer_km, plan.interval_value)
            plan.next_due_date = None
        else:
            if due_km is not None:
                raise BadRequestError("Time plans take next_due_date, not next_due_km")
            plan.next_due_date = due_date if due_date is not None else next_due_date(self.clock.today(), plan.interval_value)
            plan.next_due_km = None
