# coursehub/main.py
from __future__ import annotations

import logging
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# ---------------------------
# Env loading (root .env first, then coursehub/.env as fallback)
# ---------------------------
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent / ".env", override=False)

from fastapi import FastAPI  # noqa: E402

from coursehub.core.config import get_settings  # noqa: E402
from coursehub.core.errors import register_exception_handlers  # noqa: E402
from coursehub.db.queue import alert_queue, reminder_queue  # noqa: E402
from coursehub.db.seed import seed_default_admin, seed_sample_data  # noqa: E402
from coursehub.db.session import SessionLocal, engine  # noqa: E402
from coursehub.middleware.request_logging import RequestLoggingMiddleware  # noqa: E402
from coursehub.models import Base  # noqa: E402
from coursehub.worker.notification_worker import NotificationWorker  # noqa: E402

from coursehub.api import health  # noqa: E402
from coursehub.api.v1 import activity_logs, auth, catalog, course_allocations, users  # noqa: E402

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("coursehub")

# ---------------------------
# APP
# ---------------------------
app = FastAPI(title="Course Management Platform")

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(course_allocations.router, prefix="/api/v1")
app.include_router(catalog.router, prefix="/api/v1")
app.include_router(activity_logs.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api")


def build_notification_worker() -> NotificationWorker:
    return NotificationWorker(
        session_factory=SessionLocal,
        reminder_queue=reminder_queue(),
        alert_queue=alert_queue(),
        pop_timeout=settings.QUEUE_POP_TIMEOUT_SECONDS,
        backoff_seconds=settings.DISPATCH_BACKOFF_SECONDS,
        scan_interval_seconds=settings.SCAN_INTERVAL_HOURS * 3600,
    )


# ---------------------------
# Startup: tables, default admin, sample data, notification worker
# ---------------------------
@app.on_event("startup")
def _startup():
    if settings.ENABLE_CREATE_ALL:
        Base.metadata.create_all(bind=engine)

    if settings.SEED_DEFAULT_ADMIN or settings.SEED_SAMPLE_DATA:
        db = SessionLocal()
        try:
            if settings.SEED_DEFAULT_ADMIN:
                seed_default_admin(db)
            if settings.SEED_SAMPLE_DATA:
                seed_sample_data(db)
        except Exception:
            db.rollback()
            log.exception("seeding failed")
        finally:
            db.close()

    app.state.notification_worker = None
    if settings.ENABLE_NOTIFICATION_WORKER:
        try:
            worker = build_notification_worker()
            worker.start()
            app.state.notification_worker = worker
        except Exception:
            # keep API running if the worker fails to start
            log.exception("notification worker failed to start")


@app.on_event("shutdown")
def _shutdown():
    worker = getattr(app.state, "notification_worker", None)
    if worker:
        worker.stop()
