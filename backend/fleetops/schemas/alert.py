from pydantic import BaseModel
from datetime import datetime

from fleetops.models.enums import AlertKind


class AlertResponse(BaseModel):
    id: int
    vehicle_id: int
    kind: AlertKind
    message: str
    generated_at: datetime
    notified: bool

    class Config:
        from_attributes = True


class AlertCheckResult(BaseModel):
    generated: int
    notified: bool
    carried_over: int = 0
