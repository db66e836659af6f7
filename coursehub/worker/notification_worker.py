# coursehub/worker/notification_worker.py
from __future__ import annotations

import logging
import threading
from functools import partial
from typing import Callable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from coursehub.db.queue import WorkQueue
from coursehub.schemas.notification import OutboundMessage
from coursehub.services.notifications import send_message
from coursehub.worker.dispatchers import AlertDispatcher, ReminderDispatcher
from coursehub.worker.scheduler import PeriodicTask, make_scheduler, run_scan

log = logging.getLogger("coursehub.worker")


class NotificationWorker:
    """
    Supervisor for the reminder dispatcher, the alert dispatcher and the
    periodic missing-submission scan.

    `start` returns immediately; the loops run on daemon threads. `stop` sets
    the cancellation token and does not wait: loops exit at their next pop
    timeout or backoff. Use `join` to wait for them.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        reminder_queue: WorkQueue,
        alert_queue: WorkQueue,
        send: Callable[[OutboundMessage], None] = send_message,
        pop_timeout: float = 5.0,
        backoff_seconds: float = 5.0,
        scan_interval_seconds: float = 24 * 3600,
        scheduler_factory: Callable[[], BackgroundScheduler] = make_scheduler,
    ):
        self.session_factory = session_factory
        self.reminder_queue = reminder_queue
        self.reminders = ReminderDispatcher(
            reminder_queue,
            session_factory,
            send=send,
            pop_timeout=pop_timeout,
            backoff_seconds=backoff_seconds,
        )
        self.alerts = AlertDispatcher(
            alert_queue,
            session_factory,
            send=send,
            pop_timeout=pop_timeout,
            backoff_seconds=backoff_seconds,
        )
        self.scan_interval_seconds = scan_interval_seconds
        self.scheduler_factory = scheduler_factory

        self._token: Optional[threading.Event] = None
        self._threads: List[threading.Thread] = []
        self.scan_task: Optional[PeriodicTask] = None

    @property
    def is_running(self) -> bool:
        return self._token is not None and not self._token.is_set()

    @property
    def state(self) -> str:
        return "running" if self.is_running else "stopped"

    def start(self) -> bool:
        if self.is_running:
            log.info("notification worker is already running")
            return False

        token = threading.Event()
        self._token = token
        log.info("starting notification worker")

        self._threads = [
            threading.Thread(target=d.run, args=(token,), name=d.name, daemon=True)
            for d in (self.reminders, self.alerts)
        ]
        for t in self._threads:
            t.start()

        self.scan_task = PeriodicTask(
            partial(run_scan, self.session_factory, self.reminder_queue),
            self.scan_interval_seconds,
            token,
            name="missing_submission_scan",
            scheduler_factory=self.scheduler_factory,
        )
        self.scan_task.start()
        return True

    def stop(self) -> None:
        if not self.is_running:
            return
        log.info("stopping notification worker")
        self._token.set()
        if self.scan_task is not None:
            self.scan_task.stop()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the dispatcher threads; True when all of them have exited."""
        for t in self._threads:
            t.join(timeout)
        return not any(t.is_alive() for t in self._threads)
