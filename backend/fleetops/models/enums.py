from enum import Enum


class VehicleStatus(str, Enum):
    ACTIVE = "Active"
    UNDER_MAINTENANCE = "UnderMaintenance"
    INACTIVE = "Inactive"


class IntervalKind(str, Enum):
    DISTANCE = "Distance"
    TIME = "Time"


class WorkOrderType(str, Enum):
    PREVENTIVE = "Preventive"
    CORRECTIVE = "Corrective"


class WorkOrderState(str, Enum):
    """Forward-only: Pending -> Assigned -> InProgress -> Closed."""

    PENDING = "Pending"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "InProgress"
    CLOSED = "Closed"


class AlertKind(str, Enum):
    DISTANCE = "Distance"
    TIME = "Time"


class UserRole(str, Enum):
    ADMINISTRATOR = "Administrator"
    MAINTENANCE_MANAGER = "MaintenanceManager"
    TECHNICIAN = "Technician"


# Roles that may be assigned to execute a work order
ASSIGNABLE_ROLES = frozenset({UserRole.TECHNICIAN, UserRole.MAINTENANCE_MANAGER})

# Roles allowed to act on any work order regardless of assignment
SUPERVISORY_ROLES = frozenset({UserRole.ADMINISTRATOR, UserRole.MAINTENANCE_MANAGER})
