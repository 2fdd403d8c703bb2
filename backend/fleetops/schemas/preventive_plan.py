from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from fleetops.models.enums import IntervalKind


class PlanBase(BaseModel):
    maintenance_type: str
    description: Optional[str] = None
    interval_kind: IntervalKind
    interval_value: int = Field(ge=1)  # km or days


class PlanCreate(PlanBase):
    vehicle_id: int
    next_due_km: Optional[int] = Field(default=None, ge=0)
    next_due_date: Optional[date] = None
    is_active: bool = True


class PlanUpdate(BaseModel):
    maintenance_type: Optional[str] = None
    description: Optional[str] = None
    interval_kind: Optional[IntervalKind] = None
    interval_value: Optional[int] = Field(default=None, ge=1)
    next_due_km: Optional[int] = Field(default=None, ge=0)
    next_due_date: Optional[date] = None
    is_active: Optional[bool] = None


class PlanResponse(PlanBase):
    id: int
    vehicle_id: int
    next_due_km: Optional[int] = None
    next_due_date: Optional[date] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
