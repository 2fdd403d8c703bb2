from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from fleetops.api.deps import get_scheduler, require_any_role, require_supervisor
from fleetops.core.database import get_db
from fleetops.core.exceptions import ConflictError
from fleetops.models.user import User
from fleetops.schemas.alert import AlertResponse, AlertCheckResult
from fleetops.services.alerts import AlertService
from fleetops.services.scheduler import AlertScheduler

router = APIRouter()


@router.get("", response_model=List[AlertResponse])
def list_alerts(db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return AlertService(db).list_all()


@router.get("/pending", response_model=List[AlertResponse])
def list_pending_alerts(db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    """Alerts whose notification has not been delivered yet."""
    return AlertService(db).list_pending()


@router.get("/notified", response_model=List[AlertResponse])
def list_notified_alerts(db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return AlertService(db).list_notified()


@router.get("/vehicle/{vehicle_id}", response_model=List[AlertResponse])
def list_vehicle_alerts(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return AlertService(db).list_by_vehicle(vehicle_id)


@router.post("/check", response_model=AlertCheckResult)
def run_alert_check(scheduler: AlertScheduler = Depends(get_scheduler), _: User = Depends(require_supervisor)):
    """Run the preventive check now instead of waiting for the daily trigger."""
    result = scheduler.run_once()
    if result is None:
        raise ConflictError("An alert check is already running")
    return AlertCheckResult(generated=result.generated, notified=result.notified, carried_over=result.carried_over)


@router.post("/vehicle/{vehicle_id}/attend")
def attend_vehicle_alerts(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(require_supervisor)):
    deleted = AlertService(db).attend(vehicle_id)
    return {"message": f"Attended {deleted} alerts", "deleted": deleted}
