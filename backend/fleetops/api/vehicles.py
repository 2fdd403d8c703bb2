from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from fleetops.api.deps import get_clock, require_any_role, require_supervisor
from fleetops.core.clock import Clock
from fleetops.core.database import get_db
from fleetops.models.enums import VehicleStatus
from fleetops.models.user import User
from fleetops.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse
from fleetops.services.vehicles import VehicleService

router = APIRouter()


@router.get("", response_model=List[VehicleResponse])
def list_vehicles(
    status: Optional[VehicleStatus] = None,
    make: Optional[str] = None,
    plate: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    _: User = Depends(require_any_role),
):
    return VehicleService(db).list(status=status, make=make, plate=plate, skip=skip, limit=limit)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return VehicleService(db).get(vehicle_id)


@router.post("", response_model=VehicleResponse, status_code=201)
def create_vehicle(
    vehicle: VehicleCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return VehicleService(db, clock).register(vehicle)


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
def update_vehicle(
    vehicle_id: int,
    vehicle: VehicleUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    """Update vehicle information (e.g., odometer reading)."""
    return VehicleService(db, clock).update(vehicle_id, vehicle)


@router.delete("/{vehicle_id}", response_model=VehicleResponse)
def archive_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return VehicleService(db, clock).archive(vehicle_id)
