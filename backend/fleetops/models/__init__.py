from fleetops.models.user import User
from fleetops.models.vehicle import Vehicle
from fleetops.models.preventive_plan import PreventivePlan
from fleetops.models.part import Part
from fleetops.models.work_order import WorkOrder, Task, PartUsage
from fleetops.models.alert import Alert

__all__ = ["User", "Vehicle", "PreventivePlan", "Part", "WorkOrder", "Task", "PartUsage", "Alert"]
