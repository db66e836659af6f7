# coursehub/worker/dispatchers.py
"""
Queue consumers for the notification worker.

Each dispatcher is a single sequential consumer of one queue, so items are
handled in queue order. The loop runs until its cancellation token is set;
the token is checked after every pop and the error backoff waits on it.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session, joinedload

from coursehub.db.queue import WorkQueue
from coursehub.models.activity_tracker import ActivityTracker
from coursehub.models.course_allocation import CourseAllocation
from coursehub.models.user import User
from coursehub.schemas.notification import (
    AlertItem,
    OutboundMessage,
    ReminderItem,
    parse_queue_item,
)
from coursehub.services.notifications import render_alert, render_reminder, send_message

log = logging.getLogger("coursehub.worker")

# run_once outcomes
IDLE = "idle"
SENT = "sent"
SKIPPED = "skipped"
DEAD_LETTERED = "dead_lettered"
REQUEUED = "requeued"


class Dispatcher:
    """Base consumer loop; subclasses resolve and render one item kind."""

    name = "dispatcher"
    item_type: type = object

    def __init__(
        self,
        queue: WorkQueue,
        session_factory: Callable[[], Session],
        *,
        send: Callable[[OutboundMessage], None] = send_message,
        pop_timeout: float = 5.0,
        backoff_seconds: float = 5.0,
    ):
        self.queue = queue
        self.session_factory = session_factory
        self.send = send
        self.pop_timeout = pop_timeout
        self.backoff_seconds = backoff_seconds

    def run(self, token: threading.Event) -> None:
        log.info("%s started (queue=%s)", self.name, self.queue.name)
        while not token.is_set():
            try:
                self.run_once(token)
            except Exception:
                log.exception("%s: error processing %s", self.name, self.queue.name)
                token.wait(self.backoff_seconds)
        log.info("%s stopped", self.name)

    def run_once(self, token: Optional[threading.Event] = None) -> str:
        raw = self.queue.pop(self.pop_timeout)
        if raw is None:
            return IDLE

        if token is not None and token.is_set():
            # stopped while blocked on the pop: hand the item back to the head
            self.queue.requeue(raw)
            return REQUEUED

        try:
            item = parse_queue_item(raw)
        except ValidationError as exc:
            log.warning("%s: malformed payload dead-lettered: %s", self.name, exc.errors())
            self.queue.send_to_dead_letter(raw, str(exc))
            return DEAD_LETTERED

        if not isinstance(item, self.item_type):
            log.warning("%s: unexpected %r item dead-lettered", self.name, item.kind)
            self.queue.send_to_dead_letter(raw, f"unexpected kind {item.kind!r} on {self.queue.name}")
            return DEAD_LETTERED

        db = self.session_factory()
        try:
            message = self.build_message(db, item)
        finally:
            db.close()

        if message is None:
            return SKIPPED
        self.send(message)
        return SENT

    def build_message(self, db: Session, item) -> Optional[OutboundMessage]:
        raise NotImplementedError


class ReminderDispatcher(Dispatcher):
    name = "reminder-dispatcher"
    item_type = ReminderItem

    def build_message(self, db: Session, item: ReminderItem) -> Optional[OutboundMessage]:
        facilitator = db.get(User, item.facilitator_id)
        allocation = (
            db.query(CourseAllocation)
            .options(joinedload(CourseAllocation.course), joinedload(CourseAllocation.cohort))
            .filter(CourseAllocation.id == item.allocation_id)
            .first()
        )
        if facilitator is None or allocation is None:
            log.info(
                "reminder skipped - facilitator %s or allocation %s not found",
                item.facilitator_id,
                item.allocation_id,
            )
            return None
        return render_reminder(item, facilitator, allocation)


class AlertDispatcher(Dispatcher):
    name = "alert-dispatcher"
    item_type = AlertItem

    def build_message(self, db: Session, item: AlertItem) -> Optional[OutboundMessage]:
        facilitator = db.get(User, item.facilitator_id)
        activity_log = (
            db.query(ActivityTracker)
            .options(
                joinedload(ActivityTracker.course_allocation).joinedload(CourseAllocation.course),
                joinedload(ActivityTracker.course_allocation).joinedload(CourseAllocation.cohort),
            )
            .filter(ActivityTracker.id == item.log_id)
            .first()
        )
        if facilitator is None or activity_log is None:
            log.info(
                "alert skipped - facilitator %s or activity log %s not found",
                item.facilitator_id,
                item.log_id,
            )
            return None

        managers = (
            db.query(User)
            .filter(User.role == "manager", User.is_active.is_(True))
            .order_by(User.id.asc())
            .all()
        )
        if not managers:
            log.warning("alert for activity log %s has no active managers to notify", item.log_id)
            return None
        return render_alert(item, facilitator, activity_log, managers)
