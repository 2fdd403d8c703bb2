"""Preventive alert generation.

A check walks every active vehicle with an active preventive plan and raises
an alert when the plan is due within the warning window (1000 km or 7 days)
or already overdue. A vehicle holding an alert that has not been notified yet
is not evaluated again; its pending alert rides along in the next batch.
"""
import logging
from datetime import date
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from fleetops.core.clock import Clock, system_clock
from fleetops.core.config import settings
from fleetops.core.database import transaction
from fleetops.models.alert import Alert
from fleetops.models.enums import AlertKind, IntervalKind, VehicleStatus
from fleetops.models.preventive_plan import PreventivePlan
from fleetops.models.vehicle import Vehicle
from fleetops.services.notifications import AlertNotice, Notifier, LogNotifier

logger = logging.getLogger(__name__)

DISTANCE_WINDOW_KM = 1000
TIME_WINDOW_DAYS = 7


class Evaluation(NamedTuple):
    kind: AlertKind
    reason: str


class CheckResult(NamedTuple):
    generated: int
    notified: bool
    carried_over: int = 0


def _vehicle_label(vehicle: Vehicle) -> str:
    return f"{vehicle.plate} - {vehicle.make} {vehicle.model}"


def evaluate(vehicle: Vehicle, plan: PreventivePlan, today: date) -> Optional[Evaluation]:
    """Decide whether ``vehicle`` needs an alert under ``plan``. Pure."""
    if plan.interval_kind == IntervalKind.DISTANCE:
        if plan.next_due_km is None:
            return None
        remaining = plan.next_due_km - vehicle.odometer_km
        if remaining < 0:
            return Evaluation(
                AlertKind.DISTANCE,
                f"OVERDUE by {abs(remaining)} km (was due at {plan.next_due_km} km)",
            )
        if remaining <= DISTANCE_WINDOW_KM:
            return Evaluation(
                AlertKind.DISTANCE,
                f"due in {remaining} km (next: {plan.next_due_km} km)",
            )
        return None

    if plan.next_due_date is None:
        return None
    remaining_days = (plan.next_due_date - today).days
    if remaining_days < 0:
        return Evaluation(
            AlertKind.TIME,
            f"OVERDUE by {abs(remaining_days)} days (was due on {plan.next_due_date.isoformat()})",
        )
    if remaining_days <= TIME_WINDOW_DAYS:
        return Evaluation(
            AlertKind.TIME,
            f"due in {remaining_days} days (next: {plan.next_due_date.isoformat()})",
        )
    return None


class AlertService:
    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        clock: Clock = system_clock,
        recipient: Optional[str] = None,
        subject: Optional[str] = None,
    ):
        self.db = db
        self.notifier = notifier or LogNotifier()
        self.clock = clock
        self.recipient = recipient or settings.ALERT_RECIPIENT
        self.subject = subject or settings.ALERT_SUBJECT

    def run_check(self) -> CheckResult:
        """Generate alerts and dispatch them with any still waiting from earlier runs."""
        logger.info("Starting preventive alert check")
        today = self.clock.today()

        candidates = (
            self.db.query(Vehicle, PreventivePlan)
            .join(PreventivePlan, PreventivePlan.vehicle_id == Vehicle.id)
            .filter(
                Vehicle.status == VehicleStatus.ACTIVE,
                Vehicle.is_archived == False,  # noqa: E712
                PreventivePlan.is_active == True,  # noqa: E712
            )
            .all()
        )
        logger.info(f"Evaluating {len(candidates)} active vehicles with preventive plans")

        # One query for the skip check instead of one per vehicle
        candidate_ids = {vehicle.id for vehicle, _ in candidates}
        pending: List[Alert] = []
        if candidate_ids:
            pending = (
                self.db.query(Alert)
                .filter(Alert.notified == False, Alert.vehicle_id.in_(candidate_ids))  # noqa: E712
                .order_by(Alert.generated_at.asc(), Alert.id.asc())
                .all()
            )
        pending_vehicle_ids = {alert.vehicle_id for alert in pending}

        generated: List[Alert] = []
        with transaction(self.db):
            for vehicle, plan in candidates:
                if vehicle.id in pending_vehicle_ids:
                    continue
                result = evaluate(vehicle, plan, today)
                if result is None:
                    continue
                alert = Alert(
                    vehicle_id=vehicle.id,
                    kind=result.kind,
                    message=f"{_vehicle_label(vehicle)}: {result.reason}",
                    generated_at=self.clock.now(),
                    notified=False,
                )
                alert.vehicle = vehicle
                self.db.add(alert)
                generated.append(alert)

        batch = pending + generated
        if not batch:
            logger.info("Alert check finished: no new alerts")
            return CheckResult(generated=0, notified=False, carried_over=0)

        logger.info(f"Generated {len(generated)} alerts, {len(pending)} carried over from earlier runs")
        notified = self._dispatch(batch)
        return CheckResult(generated=len(generated), notified=notified, carried_over=len(pending))

    def _dispatch(self, alerts: List[Alert]) -> bool:
        notices = [
            AlertNotice(
                plate=a.vehicle.plate,
                vehicle=f"{a.vehicle.make} {a.vehicle.model}",
                kind=a.kind.value,
                message=a.message,
                generated_at=a.generated_at,
            )
            for a in alerts
        ]
        try:
            self.notifier.send(self.recipient, self.subject, notices)
        except Exception:
            # Left un-notified; the next run sends them again instead of generating duplicates
            logger.exception(f"Failed to dispatch {len(alerts)} alerts to {self.recipient}")
            return False

        with transaction(self.db):
            for alert in alerts:
                alert.notified = True
        logger.info(f"Alerts dispatched to {self.recipient}")
        return True

    def attend(self, vehicle_id: int) -> int:
        """Delete every alert of a vehicle once maintenance has been scheduled."""
        with transaction(self.db):
            deleted = self.db.query(Alert).filter(Alert.vehicle_id == vehicle_id).delete(synchronize_session=False)
        if deleted:
            logger.info(f"Attended {deleted} alerts for vehicle {vehicle_id}")
        return deleted

    def list_all(self) -> List[Alert]:
        return self.db.query(Alert).order_by(Alert.generated_at.desc(), Alert.id.desc()).all()

    def list_pending(self) -> List[Alert]:
        return (
            self.db.query(Alert)
            .filter(Alert.notified == False)  # noqa: E712
            .order_by(Alert.generated_at.desc(), Alert.id.desc())
            .all()
        )

    def list_notified(self) -> List[Alert]:
        return (
            self.db.query(Alert)
            .filter(Alert.notified == True)  # noqa: E712
            .order_by(Alert.generated_at.desc(), Alert.id.desc())
            .all()
        )

    def list_by_vehicle(self, vehicle_id: int) -> List[Alert]:
        return (
            self.db.query(Alert)
            .filter(Alert.vehicle_id == vehicle_id)
            .order_by(Alert.generated_at.desc(), Alert.id.desc())
            .all()
        )
