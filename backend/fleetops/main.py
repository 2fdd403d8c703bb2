import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fleetops.api import alerts, auth, parts, preventive_plans, users, vehicles, work_orders
from fleetops.core.config import settings
from fleetops.core.database import SessionLocal, check_database_health, init_db
from fleetops.core.exceptions import FleetOpsError
from fleetops.core.redis_client import check_redis_health
from fleetops.services.scheduler import build_scheduler
from fleetops.services.users import init_default_user

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    db = SessionLocal()
    try:
        init_default_user(db)
    finally:
        db.close()

    # Built even when disabled; manual checks go through its locks
    scheduler = build_scheduler()
    app.state.scheduler = scheduler
    if settings.ALERT_SCHEDULER_ENABLED:
        scheduler.start()

    yield

    if scheduler.is_running:
        scheduler.stop()


app = FastAPI(
    title="FleetOps API",
    description="Work orders, parts inventory and preventive maintenance alerts for vehicle fleets",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FleetOpsError)
async def fleetops_error_handler(request: Request, exc: FleetOpsError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(vehicles.router, prefix="/api/vehicles", tags=["Vehicles"])
app.include_router(parts.router, prefix="/api/parts", tags=["Parts"])
app.include_router(preventive_plans.router, prefix="/api/preventive-plans", tags=["Preventive Plans"])
app.include_router(work_orders.router, prefix="/api/work-orders", tags=["Work Orders"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])


@app.get("/")
async def root():
    return {"message": "FleetOps API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    database = check_database_health()
    return {
        "status": database["status"],
        "database": database,
        "redis": check_redis_health(),
        "scheduler": bool(getattr(app.state, "scheduler", None) and app.state.scheduler.is_running),
    }
