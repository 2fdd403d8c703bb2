from fleetops.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse
from fleetops.schemas.preventive_plan import PlanCreate, PlanUpdate, PlanResponse
from fleetops.schemas.part import PartCreate, PartUpdate, PartResponse, StockMovement
from fleetops.schemas.work_order import (
    WorkOrderCreate, WorkOrderUpdate, WorkOrderFilter, WorkOrderResponse,
    AssignTechnician, PartUsed, RecordWork, TaskCreate, TaskComplete, TaskResponse,
)
from fleetops.schemas.alert import AlertResponse, AlertCheckResult
from fleetops.schemas.user import UserCreate, UserResponse, LoginRequest, TokenResponse

__all__ = [
    "VehicleCreate", "VehicleUpdate", "VehicleResponse",
    "PlanCreate", "PlanUpdate", "PlanResponse",
    "PartCreate", "PartUpdate", "PartResponse", "StockMovement",
    "WorkOrderCreate", "WorkOrderUpdate", "WorkOrderFilter", "WorkOrderResponse",
    "AssignTechnician", "PartUsed", "RecordWork", "TaskCreate", "TaskComplete", "TaskResponse",
    "AlertResponse", "AlertCheckResult",
    "UserCreate", "UserResponse", "LoginRequest", "TokenResponse",
]
