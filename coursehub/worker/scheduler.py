# coursehub/worker/scheduler.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from tzlocal import get_localzone
from sqlalchemy.orm import Session

from coursehub.core.config import get_settings
from coursehub.db.queue import WorkQueue
from coursehub.worker.scanner import scan_missing_submissions

log = logging.getLogger("coursehub.worker")


def _resolve_timezone() -> str:
    configured = get_settings().APP_TIMEZONE
    if configured:
        return configured
    try:
        return str(get_localzone())
    except Exception:
        log.warning("could not resolve local timezone, falling back to UTC")
        return "UTC"


def make_scheduler() -> BackgroundScheduler:
    """
    Create a BackgroundScheduler in APP_TIMEZONE (default: system tz via tzlocal or 'UTC').
    """
    return BackgroundScheduler(timezone=_resolve_timezone())


class PeriodicTask:
    """
    Runs `fn` every `interval_seconds` on an APScheduler interval job until
    the cancellation token is set. The first run happens one interval after
    `start`. `tick()` runs the job body directly.
    """

    def __init__(
        self,
        fn: Callable[[], object],
        interval_seconds: float,
        token: threading.Event,
        *,
        name: str,
        scheduler_factory: Callable[[], BackgroundScheduler] = make_scheduler,
    ):
        self.fn = fn
        self.interval_seconds = interval_seconds
        self.token = token
        self.name = name
        self.scheduler_factory = scheduler_factory
        self.scheduler: Optional[BackgroundScheduler] = None

    def tick(self) -> None:
        if self.token.is_set():
            return
        try:
            self.fn()
        except Exception:
            log.exception("periodic task %s failed", self.name)

    def start(self) -> None:
        sched = self.scheduler_factory()
        sched.add_job(
            self.tick,
            IntervalTrigger(seconds=self.interval_seconds),
            id=self.name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        sched.start()
        self.scheduler = sched
        log.info("periodic task %s scheduled every %ss", self.name, self.interval_seconds)

    def stop(self) -> None:
        sched, self.scheduler = self.scheduler, None
        if sched is not None:
            sched.shutdown(wait=False)


def run_scan(session_factory: Callable[[], Session], queue: WorkQueue) -> int:
    """Run one missing-submission scan with a fresh DB session (0 on failure)."""
    db = session_factory()
    try:
        return scan_missing_submissions(db, queue)
    except Exception:
        db.rollback()
        log.exception("missing-submission scan failed")
        return 0
    finally:
        db.close()
