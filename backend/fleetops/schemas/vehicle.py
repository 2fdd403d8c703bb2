from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from fleetops.models.enums import VehicleStatus


class VehicleBase(BaseModel):
    plate: str = Field(min_length=4, max_length=10)
    make: str
    model: str
    year: int = Field(ge=1900, le=2100)


class VehicleCreate(VehicleBase):
    odometer_km: int = Field(default=0, ge=0)


class VehicleUpdate(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    odometer_km: Optional[int] = Field(default=None, ge=0)
    status: Optional[VehicleStatus] = None


class VehicleResponse(VehicleBase):
    id: int
    odometer_km: int
    status: VehicleStatus
    last_service_date: Optional[date] = None
    is_archived: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
