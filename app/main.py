import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from app.db.init_db import create_database
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.api.middleware import admin_role_interceptor
from app.api.router import api_router
from app.utils.tasks import (
    purge_deleted_reservations,
    release_expired_blacklists,
    transition_reservation_statuses,
)

logger = logging.getLogger(__name__)


async def _sweep_loop(name: str, sweep, interval: int) -> None:
    """Background task: run one sweeper every ``interval`` seconds."""
    while True:
        try:
            db = SessionLocal()
            try:
                result = sweep(db)
                if result:
                    logger.info("%s: %s", name, result)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during %s.", name)
        await asyncio.sleep(interval)


def _status_sweep(db):
    counts = transition_reservation_statuses(db)
    return counts if any(counts.values()) else None


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    tasks = []
    if settings.SCHEDULER_ENABLED:
        tasks = [
            asyncio.create_task(_sweep_loop(
                "reservation status sweep", _status_sweep, settings.STATUS_SWEEP_INTERVAL_SECONDS,
            )),
            asyncio.create_task(_sweep_loop(
                "blacklist release", release_expired_blacklists, settings.BLACKLIST_SWEEP_INTERVAL_SECONDS,
            )),
            asyncio.create_task(_sweep_loop(
                "deleted reservation purge", purge_deleted_reservations, settings.PURGE_SWEEP_INTERVAL_SECONDS,
            )),
        ]
    yield

    # Shutdown: cancel background tasks
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Role check on admin routes; registered first so CORS wraps it
app.middleware("http")(admin_role_interceptor)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
def read_root():
    return {"Hello": "StudySeat"}
