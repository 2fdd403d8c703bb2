"""Fleet registration and odometer tracking."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from fleetops.core.clock import Clock, system_clock
from fleetops.core.database import transaction
from fleetops.core.exceptions import BadRequestError, ConflictError, NotFoundError
from fleetops.models.enums import VehicleStatus, WorkOrderState
from fleetops.models.vehicle import Vehicle
from fleetops.models.work_order import WorkOrder
from fleetops.schemas.vehicle import VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)


def update_odometer(vehicle: Vehicle, odometer_km: int) -> None:
    """Set a new reading. Readings lower than the current one are rejected."""
    if odometer_km < vehicle.odometer_km:
        raise BadRequestError(
            f"Odometer cannot decrease (current: {vehicle.odometer_km} km, given: {odometer_km} km)"
        )
    vehicle.odometer_km = odometer_km


class VehicleService:
    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    def get(self, vehicle_id: int, include_archived: bool = False) -> Vehicle:
        query = self.db.query(Vehicle).filter(Vehicle.id == vehicle_id)
        if not include_archived:
            query = query.filter(Vehicle.is_archived == False)  # noqa: E712
        vehicle = query.first()
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

    def list(
        self,
        status: Optional[VehicleStatus] = None,
        make: Optional[str] = None,
        plate: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Vehicle]:
        query = self.db.query(Vehicle).filter(Vehicle.is_archived == False)  # noqa: E712
        if status:
            query = query.filter(Vehicle.status == status)
        if make:
            query = query.filter(Vehicle.make.ilike(f"%{make}%"))
        if plate:
            query = query.filter(Vehicle.plate.ilike(f"%{plate}%"))
        return query.order_by(Vehicle.id.asc()).offset(skip).limit(limit).all()

    def register(self, data: VehicleCreate) -> Vehicle:
        plate = data.plate.strip().upper()
        if self.db.query(Vehicle).filter(Vehicle.plate == plate).first():
            raise ConflictError(f"A vehicle with plate {plate} already exists")

        vehicle = Vehicle(
            plate=plate,
            make=data.make,
            model=data.model,
            year=data.year,
            odometer_km=data.odometer_km,
            status=VehicleStatus.ACTIVE,
        )
        with transaction(self.db):
            self.db.add(vehicle)
        self.db.refresh(vehicle)
        logger.info(f"Vehicle registered: {vehicle.plate} ({vehicle.make} {vehicle.model} {vehicle.year})")
        return vehicle

    def update(self, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
        vehicle = self.get(vehicle_id)
        update_data = data.model_dump(exclude_unset=True)

        with transaction(self.db):
            if update_data.get("odometer_km") is not None:
                update_odometer(vehicle, update_data.pop("odometer_km"))
            for key, value in update_data.items():
                if value is not None:
                    setattr(vehicle, key, value)
        self.db.refresh(vehicle)
        return vehicle

    def archive(self, vehicle_id: int) -> Vehicle:
        """Tombstone a vehicle that has no open work in progress."""
        vehicle = self.get(vehicle_id)

        open_orders = (
            self.db.query(WorkOrder)
            .filter(
                WorkOrder.vehicle_id == vehicle.id,
                WorkOrder.state.in_([WorkOrderState.ASSIGNED, WorkOrderState.IN_PROGRESS]),
            )
            .count()
        )
        if open_orders:
            raise BadRequestError("Cannot archive a vehicle with active work orders")

        with transaction(self.db):
            vehicle.is_archived = True
            vehicle.archived_at = self.clock.now()
            vehicle.status = VehicleStatus.INACTIVE
        logger.info(f"Vehicle archived: {vehicle.plate}")
        return vehicle
