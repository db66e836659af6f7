# coursehub/worker/scanner.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from coursehub.db.queue import WorkQueue
from coursehub.models.activity_tracker import ActivityTracker
from coursehub.models.user import User
from coursehub.schemas.notification import ReminderItem
from coursehub.services.notifications import current_week

log = logging.getLogger("coursehub.worker")


def _active_pairs(db: Session) -> list[tuple[int, str, int]]:
    """(facilitator_id, facilitator_email, allocation_id) for active facilitators' active allocations."""
    facilitators = (
        db.query(User)
        .options(selectinload(User.facilitator_allocations))
        .filter(User.role == "facilitator", User.is_active.is_(True))
        .order_by(User.id.asc())
        .all()
    )
    pairs = []
    for f in facilitators:
        for a in sorted(f.facilitator_allocations, key=lambda x: x.id):
            if a.is_active:
                pairs.append((f.id, f.email, a.id))
    return pairs


def scan_missing_submissions(
    db: Session,
    queue: WorkQueue,
    *,
    today: Optional[date] = None,
) -> int:
    """
    Queue a ReminderItem for every active (facilitator, allocation) pair with no
    activity log for the current week. Returns the number of reminders queued.

    A failure on one pair is logged and the scan moves on to the next one.
    There is no de-duplication beyond the existence check, so a second scan
    before the log is submitted queues the reminder again.
    """
    week_number, academic_year = current_week(today)
    queued = 0

    for facilitator_id, email, allocation_id in _active_pairs(db):
        try:
            exists = (
                db.query(ActivityTracker.id)
                .filter(
                    ActivityTracker.allocation_id == allocation_id,
                    ActivityTracker.facilitator_id == facilitator_id,
                    ActivityTracker.week_number == week_number,
                    ActivityTracker.academic_year == academic_year,
                )
                .first()
            )
            if exists:
                continue
            queue.push(
                ReminderItem(
                    facilitator_id=facilitator_id,
                    allocation_id=allocation_id,
                    week_number=week_number,
                    academic_year=academic_year,
                )
            )
        except Exception:
            db.rollback()
            log.exception(
                "scan failed for facilitator %s allocation %s", facilitator_id, allocation_id
            )
            continue

        queued += 1
        log.info("queued reminder for %s - week %s (%s)", email, week_number, academic_year)

    log.info("missing-submission scan week=%s year=%s queued=%s", week_number, academic_year, queued)
    return queued
