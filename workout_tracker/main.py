import asyncio
import logging
import uuid

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from workout_tracker.config import settings
from workout_tracker.core import exceptions
from workout_tracker.database import AsyncSessionLocal
from workout_tracker.routers.exercise_logs import router as exercise_logs_router
from workout_tracker.routers.goals import router as goals_router
from workout_tracker.routers.metrics import router as metrics_router
from workout_tracker.routers.sessions import router as sessions_router
from workout_tracker.services.clock import utc_now
from workout_tracker.services.session_lifecycle import SessionLifecycleService

logger = logging.getLogger(__name__)
missed_sweep_task: asyncio.Task | None = None

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# CORS must be added before other middleware
default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]
configured_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys([*default_origins, *configured_origins])),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# Exception Handlers
app.add_exception_handler(exceptions.DomainError, exceptions.domain_exception_handler)  # type: ignore
app.add_exception_handler(RequestValidationError, exceptions.validation_exception_handler)  # type: ignore
app.add_exception_handler(IntegrityError, exceptions.integrity_exception_handler)  # type: ignore
app.add_exception_handler(Exception, exceptions.unhandled_exception_handler)

# Routers
app.include_router(sessions_router, prefix=f"{settings.API_V1_STR}/sessions", tags=["Sessions"])
app.include_router(exercise_logs_router, prefix=f"{settings.API_V1_STR}/exercise-logs", tags=["Exercise Logs"])
app.include_router(metrics_router, prefix=f"{settings.API_V1_STR}/metrics", tags=["Metrics"])
app.include_router(goals_router, prefix=f"{settings.API_V1_STR}/goals", tags=["Goals"])

@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="database unavailable",
        ) from exc
    return {"status": "ok", "database": "ok"}

@app.get("/")
async def root():
    return {"message": "Welcome to the Workout Tracker API", "docs": "/docs"}


async def _run_missed_sweep_once() -> None:
    async with AsyncSessionLocal() as db:
        marked = await SessionLifecycleService.sweep_missed(db, utc_now())
        logger.info("Missed-session sweep complete: marked=%s", marked)


async def _missed_sweep_loop() -> None:
    while True:
        await asyncio.sleep(settings.MISSED_SWEEP_INTERVAL_SECONDS)
        try:
            await _run_missed_sweep_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Missed-session sweep iteration failed")


@app.on_event("startup")
async def startup_missed_sweep() -> None:
    global missed_sweep_task
    if not settings.MISSED_SWEEP_ENABLED:
        logger.info("Missed-session sweep disabled by config")
        return
    if missed_sweep_task and not missed_sweep_task.done():
        return
    missed_sweep_task = asyncio.create_task(_missed_sweep_loop())
    logger.info("Missed-session sweep started (interval=%ss)", settings.MISSED_SWEEP_INTERVAL_SECONDS)


@app.on_event("shutdown")
async def shutdown_missed_sweep() -> None:
    global missed_sweep_task
    if missed_sweep_task and not missed_sweep_task.done():
        missed_sweep_task.cancel()
        try:
            await missed_sweep_task
        except asyncio.CancelledError:
            pass
    missed_sweep_task = None
