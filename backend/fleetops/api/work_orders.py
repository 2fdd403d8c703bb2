from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from fleetops.api.deps import get_clock, require_any_role, require_supervisor
from fleetops.core.clock import Clock
from fleetops.core.database import get_db
from fleetops.models.enums import WorkOrderState, WorkOrderType
from fleetops.models.user import User
from fleetops.schemas.work_order import (
    AssignTechnician,
    RecordWork,
    TaskComplete,
    TaskCreate,
    TaskResponse,
    WorkOrderCreate,
    WorkOrderFilter,
    WorkOrderResponse,
    WorkOrderUpdate,
)
from fleetops.services.alerts import AlertService
from fleetops.services.work_orders import WorkOrderService

router = APIRouter()


@router.get("", response_model=List[WorkOrderResponse])
def list_work_orders(
    vehicle_id: Optional[int] = None,
    state: Optional[WorkOrderState] = None,
    order_type: Optional[WorkOrderType] = None,
    technician_id: Optional[int] = None,
    created_from: Optional[date] = None,
    created_to: Optional[date] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(require_any_role),
):
    filters = WorkOrderFilter(
        vehicle_id=vehicle_id,
        state=state,
        order_type=order_type,
        technician_id=technician_id,
        created_from=created_from,
        created_to=created_to,
        skip=skip,
        limit=limit,
    )
    return WorkOrderService(db).list(filters)


@router.get("/number/{number}", response_model=WorkOrderResponse)
def get_work_order_by_number(number: str, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return WorkOrderService(db).get_by_number(number)


@router.get("/{order_id}", response_model=WorkOrderResponse)
def get_work_order(order_id: int, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return WorkOrderService(db).get(order_id)


@router.post("", response_model=WorkOrderResponse, status_code=201)
def create_work_order(
    data: WorkOrderCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    """Open a work order. Pending alerts of the vehicle count as attended."""
    order = WorkOrderService(db, clock).create(data)
    AlertService(db, clock=clock).attend(order.vehicle_id)
    return order


@router.patch("/{order_id}", response_model=WorkOrderResponse)
def update_work_order(
    order_id: int,
    data: WorkOrderUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    """Edit a Pending order. Moving it to another vehicle attends that vehicle's alerts."""
    service = WorkOrderService(db, clock)
    previous_vehicle_id = service.get(order_id).vehicle_id
    order = service.update(order_id, data)
    if order.vehicle_id != previous_vehicle_id:
        AlertService(db, clock=clock).attend(order.vehicle_id)
    return order


@router.post("/{order_id}/assign", response_model=WorkOrderResponse)
def assign_work_order(
    order_id: int,
    data: AssignTechnician,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return WorkOrderService(db, clock).assign(order_id, data.technician_id)


@router.post("/{order_id}/work", response_model=WorkOrderResponse)
def record_work(
    order_id: int,
    data: RecordWork,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_any_role),
):
    """Register parts used, odometer and notes. Starts an Assigned order."""
    return WorkOrderService(db, clock).record_work(order_id, current_user, data)


@router.post("/{order_id}/close", response_model=WorkOrderResponse)
def close_work_order(
    order_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return WorkOrderService(db, clock).close(order_id)


@router.post("/{order_id}/tasks", response_model=TaskResponse, status_code=201)
def add_task(
    order_id: int,
    data: TaskCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _: User = Depends(require_supervisor),
):
    return WorkOrderService(db, clock).add_task(order_id, data)


@router.post("/{order_id}/tasks/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    order_id: int,
    task_id: int,
    data: TaskComplete,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_any_role),
):
    return WorkOrderService(db, clock).complete_task(order_id, task_id, current_user, data)
