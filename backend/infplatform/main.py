import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import redis_client
from .routers import bookings, events, sessions, slots
from .services.phase_sync import phase_transition_loop
from .services.scheduling.errors import BookingRejected, RegenerationFailed, SchedulingError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.phase_sync_interval_seconds > 0:
        task = asyncio.create_task(phase_transition_loop())

    yield

    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="INF Platform API", lifespan=lifespan)

app.include_router(events.router)
app.include_router(sessions.router)
app.include_router(slots.router)
app.include_router(bookings.router)


# ===== Error mapping =====
@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    if isinstance(exc, BookingRejected):
        content = {"reason": exc.reason, "message": exc.message}
    elif isinstance(exc, RegenerationFailed):
        content = {"detail": exc.message, "result": exc.result.to_dict()}
    else:
        content = {"detail": exc.message}

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = True
    except Exception:
        logger.exception("Health check: database unavailable")
        database = False

    redis = None
    if redis_client is not None:
        try:
            redis = redis_client.ping()
        except Exception:
            logger.exception("Health check: redis unavailable")
            redis = False

    return {"status": "ok" if database else "degraded", "database": database, "redis": redis}
