from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fleetops.models.enums import WorkOrderType, WorkOrderState


class WorkOrderCreate(BaseModel):
    vehicle_id: int
    order_type: WorkOrderType
    description: str = Field(min_length=1)


class WorkOrderUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    order_type: Optional[WorkOrderType] = None
    description: Optional[str] = Field(default=None, min_length=1)


class AssignTechnician(BaseModel):
    technician_id: int


class PartUsed(BaseModel):
    part_id: int
    task_id: int
    quantity: int = Field(ge=1)


class RecordWork(BaseModel):
    parts: List[PartUsed] = []
    odometer_km: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class WorkOrderFilter(BaseModel):
    vehicle_id: Optional[int] = None
    state: Optional[WorkOrderState] = None
    order_type: Optional[WorkOrderType] = None
    technician_id: Optional[int] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=50, ge=1, le=500)


class TaskCreate(BaseModel):
    description: str = Field(min_length=1)
    technician_id: Optional[int] = None
    hours_worked: Decimal = Field(default=Decimal("0"), ge=0)


class TaskComplete(BaseModel):
    hours_worked: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None


class PartUsageResponse(BaseModel):
    id: int
    part_id: int
    quantity: int
    unit_price: Decimal
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    id: int
    work_order_id: int
    description: str
    technician_id: Optional[int] = None
    hours_worked: Decimal
    is_completed: bool
    notes: Optional[str] = None
    part_usages: List[PartUsageResponse] = []

    class Config:
        from_attributes = True


class WorkOrderResponse(BaseModel):
    id: int
    number: str
    vehicle_id: int
    order_type: WorkOrderType
    description: str
    state: WorkOrderState
    technician_id: Optional[int] = None
    notes: Optional[str] = None
    parts_cost: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    created_at: datetime
    closed_at: Optional[datetime] = None
    tasks: List[TaskResponse] = []

    class Config:
        from_attributes = True
