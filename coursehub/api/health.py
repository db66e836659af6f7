# coursehub/api/health.py
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from coursehub.core.auth import get_db
from coursehub.db.queue import WorkQueue, get_alert_queue

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz() -> dict:
    # liveness: 200 while the process is up
    return {
        "ok": True,
        "service": "coursehub",
        "status": "healthy",
        "ts": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/readyz")
def readyz(db: Session = Depends(get_db), queue: WorkQueue = Depends(get_alert_queue)):
    # readiness: DB ping + queue ping
    content = {"ok": True}
    t0 = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
        content["db"] = "up"
        content["db_latency_ms"] = round((time.perf_counter() - t0) * 1000.0, 2)
    except Exception as e:
        content.update(ok=False, db="down", db_error=str(e))

    try:
        queue.client.ping()
        content["queue"] = "up"
    except Exception as e:
        content.update(ok=False, queue="down", queue_error=str(e))

    return JSONResponse(
        status_code=200 if content["ok"] else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=content,
        headers={"Cache-Control": "no-store"},
    )
