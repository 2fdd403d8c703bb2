"""Shared FastAPI dependencies. Tests override these through ``app.dependency_overrides``."""
from fastapi import Request

from fleetops.core.clock import Clock, system_clock
from fleetops.models.enums import UserRole
from fleetops.core.security import require_roles
from fleetops.services.scheduler import AlertScheduler, build_scheduler


def get_clock() -> Clock:
    return system_clock


def get_scheduler(request: Request) -> AlertScheduler:
    """The application's scheduler, so manual checks share its run locks."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        scheduler = build_scheduler()
        request.app.state.scheduler = scheduler
    return scheduler


require_admin = require_roles(UserRole.ADMINISTRATOR)
require_supervisor = require_roles(UserRole.ADMINISTRATOR, UserRole.MAINTENANCE_MANAGER)
require_any_role = require_roles(UserRole.ADMINISTRATOR, UserRole.MAINTENANCE_MANAGER, UserRole.TECHNICIAN)
