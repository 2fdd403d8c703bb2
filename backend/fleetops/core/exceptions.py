"""Domain errors raised by the service layer.

Services never raise ``HTTPException`` directly; ``fleetops.main`` maps every
``FleetOpsError`` onto a JSON response using ``status_code``.
"""


class FleetOpsError(Exception):
    """Base class for all expected, caller-correctable failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FleetOpsError):
    """A referenced vehicle, part, task, work order or user does not exist."""

    status_code = 404


class BadRequestError(FleetOpsError):
    """Invalid transition, insufficient stock, decreasing odometer, ..."""

    status_code = 400


class ForbiddenError(FleetOpsError):
    """Caller's role or ownership does not permit the operation."""

    status_code = 403


class ConflictError(FleetOpsError):
    """Uniqueness violation (plate, part code, one plan per vehicle)."""

    status_code = 409
