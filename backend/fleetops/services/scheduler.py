"""Daily trigger for the preventive alert check.

A background thread sleeps until the next ``HH:MM`` (UTC) trigger, runs one
check in a fresh database session and goes back to sleep. Runs never overlap
inside a process; with a Redis client they also never overlap across
processes sharing the database.
"""
import logging
import threading
from datetime import datetime, time, timedelta
from typing import Callable, Optional

import redis
from sqlalchemy.orm import Session

from fleetops.core.clock import Clock, system_clock
from fleetops.core.config import settings
from fleetops.core.database import SessionLocal
from fleetops.core.redis_client import RedisLock, get_redis
from fleetops.services.alerts import AlertService, CheckResult
from fleetops.services.notifications import Notifier, build_notifier

logger = logging.getLogger(__name__)

LOCK_NAME = "alert-check"


def parse_trigger(value: str) -> time:
    """'06:00' -> time(6, 0)"""
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except ValueError:
        raise ValueError(f"Invalid trigger time '{value}', expected HH:MM")


def next_fire_time(now: datetime, trigger: time) -> datetime:
    """First occurrence of ``trigger`` strictly after ``now``, same timezone."""
    candidate = now.replace(hour=trigger.hour, minute=trigger.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class AlertScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier_factory: Callable[[], Notifier],
        clock: Clock = system_clock,
        trigger: str = "06:00",
        lock_ttl_seconds: int = 900,
        redis_client: Optional[redis.Redis] = None,
    ):
        self._session_factory = session_factory
        self._notifier_factory = notifier_factory
        self._clock = clock
        self._trigger = parse_trigger(trigger)
        self._lock_ttl = lock_ttl_seconds
        self._redis = redis_client
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> Optional[CheckResult]:
        """Run a single check now. Returns None when another run holds the lock."""
        if not self._run_lock.acquire(blocking=False):
            logger.warning("Alert check already running in this process, skipping")
            return None
        try:
            if self._redis is None:
                return self._check()

            lock = RedisLock(self._redis, LOCK_NAME, self._lock_ttl)
            if not lock.acquire():
                logger.warning("Alert check already running in another process, skipping")
                return None
            try:
                return self._check()
            finally:
                lock.release()
        finally:
            self._run_lock.release()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="alert-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Alert scheduler started, daily at {self._trigger.strftime('%H:%M')} UTC")

    def stop(self, timeout: float = 30.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Alert scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        last_fire: Optional[datetime] = None
        while not self._stop_event.is_set():
            now = self._clock.now()
            # Never schedule at or before the previous trigger if the wait woke early
            fire_at = next_fire_time(max(now, last_fire) if last_fire else now, self._trigger)
            if self._stop_event.wait(timeout=max((fire_at - now).total_seconds(), 0.0)):
                break
            last_fire = fire_at
            try:
                self.run_once()
            except Exception:
                logger.exception("Scheduled alert check failed")

    def _check(self) -> CheckResult:
        db = self._session_factory()
        try:
            result = AlertService(db, notifier=self._notifier_factory(), clock=self._clock).run_check()
            logger.info(
                f"Alert check complete: {result.generated} generated, "
                f"{result.carried_over} carried over, notified={result.notified}"
            )
            return result
        finally:
            db.close()


def build_scheduler(clock: Clock = system_clock) -> AlertScheduler:
    """Scheduler wired to the application's database, notifier and Redis settings."""
    return AlertScheduler(
        session_factory=SessionLocal,
        notifier_factory=lambda: build_notifier(settings),
        clock=clock,
        trigger=settings.ALERT_CHECK_TIME,
        lock_ttl_seconds=settings.ALERT_LOCK_TTL_SECONDS,
        redis_client=get_redis(),
    )
