from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from fleetops.api.deps import get_clock, require_any_role, require_supervisor
from fleetops.core.clock import Clock
from fleetops.core.database import get_db
from fleetops.core.exceptions import NotFoundError
from fleetops.models.user import User
from fleetops.schemas.preventive_plan import PlanCreate, PlanUpdate, PlanResponse
from fleetops.services.preventive_plans import PreventivePlanService

router = APIRouter()


@router.get("", response_model=List[PlanResponse])
def list_plans(active_only: bool = False, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return PreventivePlanService(db).list(active_only=active_only)


@router.get("/vehicle/{vehicle_id}", response_model=PlanResponse)
def get_vehicle_plan(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    """Active plan for a vehicle."""
    plan = PreventivePlanService(db).find_by_vehicle(vehicle_id)
    if not plan:
        raise NotFoundError(f"Vehicle {vehicle_id} has no active preventive plan")
    return plan


@router.get("/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: int, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return PreventivePlanService(db).get(plan_id)


@router.post("", response_model=PlanResponse, status_code=201)
def create_plan(
    data: PlanCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return PreventivePlanService(db, clock).create(data)


@router.patch("/{plan_id}", response_model=PlanResponse)
def update_plan(
    plan_id: int,
    data: PlanUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return PreventivePlanService(db, clock).update(plan_id, data)


@router.delete("/{plan_id}", response_model=PlanResponse)
def deactivate_plan(plan_id: int, db: Session = Depends(get_db), _: User = Depends(require_supervisor)):
    return PreventivePlanService(db).deactivate(plan_id)
