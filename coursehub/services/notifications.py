# coursehub/services/notifications.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Tuple

from coursehub.db.queue import WorkQueue
from coursehub.models.activity_tracker import ActivityTracker
from coursehub.models.course_allocation import CourseAllocation
from coursehub.models.user import User
from coursehub.schemas.notification import AlertItem, OutboundMessage, ReminderItem

log = logging.getLogger("coursehub.notifications")

SIGNATURE = "Best regards,\nCourse Management System"


# ---------------------------------
# Week numbering
# ---------------------------------
def current_week(today: Optional[date] = None) -> Tuple[int, str]:
    """
    ISO-8601 week number and ISO year for `today`.

    Activity logs only accept weeks 1..52, so ISO week 53 is reported as 52.
    """
    today = today or date.today()
    iso_year, iso_week, _ = today.isocalendar()
    return min(iso_week, 52), str(iso_year)


# ---------------------------------
# Message templates (subject/body)
# ---------------------------------
def _course_line(allocation: CourseAllocation) -> str:
    course = allocation.course
    return f"{course.course_code} - {course.course_title}"


def render_reminder(
    item: ReminderItem, facilitator: User, allocation: CourseAllocation
) -> OutboundMessage:
    subject = f"Weekly Activity Log Reminder - Week {item.week_number}"
    body = (
        f"Dear {facilitator.full_name},\n\n"
        f"This is a friendly reminder that your weekly activity log for "
        f"Week {item.week_number} ({item.academic_year}) is due.\n\n"
        f"Course: {_course_line(allocation)}\n"
        f"Cohort: {allocation.cohort.cohort_name}\n\n"
        "Please submit your activity log as soon as possible to ensure "
        "compliance with institutional requirements.\n\n"
        f"{SIGNATURE}"
    )
    return OutboundMessage(
        kind="reminder", recipients=[facilitator.email], subject=subject, body=body
    )


def render_alert(
    item: AlertItem,
    facilitator: User,
    activity_log: ActivityTracker,
    managers: Iterable[User],
) -> OutboundMessage:
    allocation = activity_log.course_allocation
    action = item.action
    subject = f"Activity Log {action.capitalize()} - Week {item.week_number}"
    body = (
        "Dear Manager,\n\n"
        f"An activity log has been {action} by {facilitator.full_name}.\n\n"
        "Details:\n"
        f"- Week: {item.week_number}\n"
        f"- Academic Year: {item.academic_year}\n"
        f"- Course: {_course_line(allocation)}\n"
        f"- Cohort: {allocation.cohort.cohort_name}\n"
        f"- Action: {action}\n"
        f"- Timestamp: {item.enqueued_at.isoformat()}\n\n"
        "Please review the submission in the system.\n\n"
        f"{SIGNATURE}"
    )
    return OutboundMessage(
        kind="alert",
        recipients=[m.email for m in managers],
        subject=subject,
        body=body,
    )


# ---------------------------------
# Transport
# ---------------------------------
def send_message(message: OutboundMessage) -> None:
    """
    Log transport: the log line stands in for real mail delivery.
    """
    log.info(
        "notification sent kind=%s recipients=%s subject=%r",
        message.kind,
        ",".join(message.recipients),
        message.subject,
    )
    log.debug("notification body:\n%s", message.body)


# ---------------------------------
# Event-style producer – activity logs
# ---------------------------------
def queue_manager_notification(
    queue: WorkQueue,
    *,
    action: str,
    log_id: int,
    facilitator_id: int,
    week_number: int,
    academic_year: str,
    enqueued_at: Optional[datetime] = None,
) -> bool:
    """
    Push an AlertItem for an activity-log lifecycle event.

    Best-effort: failures are logged and reported as False, never raised,
    so the calling request is not affected.
    """
    try:
        extra = {"enqueued_at": enqueued_at} if enqueued_at else {}
        item = AlertItem(
            action=action,
            log_id=log_id,
            facilitator_id=facilitator_id,
            week_number=week_number,
            academic_year=academic_year,
            **extra,
        )
        queue.push(item)
    except Exception:
        log.exception("failed to queue %s alert for activity log %s", action, log_id)
        return False

    log.info("queued %s alert for activity log %s", action, log_id)
    return True
