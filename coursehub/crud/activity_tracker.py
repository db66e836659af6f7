# coursehub/crud/activity_tracker.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from coursehub.models.activity_tracker import ACTIVITY_FIELDS, GRADING_STATUSES, ActivityTracker
from coursehub.models.course_allocation import CourseAllocation
from coursehub.schemas.activity_tracker import ActivityLogCreate, ActivityLogUpdate


def _utcnow() -> datetime:
    # naive UTC for SQLite
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_allocation(db: Session, allocation_id: int) -> Optional[CourseAllocation]:
    return db.get(CourseAllocation, allocation_id)


def get_log(db: Session, log_id: int) -> Optional[ActivityTracker]:
    return (
        db.query(ActivityTracker)
        .options(
            joinedload(ActivityTracker.course_allocation).joinedload(CourseAllocation.course),
            joinedload(ActivityTracker.course_allocation).joinedload(CourseAllocation.cohort),
        )
        .filter(ActivityTracker.id == log_id)
        .first()
    )


def find_log(
    db: Session, *, allocation_id: int, week_number: int, academic_year: str
) -> Optional[ActivityTracker]:
    return (
        db.query(ActivityTracker)
        .filter(
            ActivityTracker.allocation_id == allocation_id,
            ActivityTracker.week_number == week_number,
            ActivityTracker.academic_year == academic_year,
        )
        .first()
    )


def list_logs(
    db: Session,
    *,
    facilitator_id: Optional[int] = None,
    allocation_id: Optional[int] = None,
    week_number: Optional[int] = None,
    academic_year: Optional[str] = None,
    grading_status: Optional[str] = None,
    skip: int = 0,
    limit: int = 10,
) -> Tuple[List[ActivityTracker], int]:
    """
    Filtered, newest-first page of logs plus the total match count.
    `grading_status` matches if any of the six activity fields has that value.
    """
    q = db.query(ActivityTracker)
    if facilitator_id is not None:
        q = q.filter(ActivityTracker.facilitator_id == facilitator_id)
    if allocation_id is not None:
        q = q.filter(ActivityTracker.allocation_id == allocation_id)
    if week_number is not None:
        q = q.filter(ActivityTracker.week_number == week_number)
    if academic_year:
        q = q.filter(ActivityTracker.academic_year == academic_year)
    if grading_status:
        q = q.filter(or_(*[getattr(ActivityTracker, f) == grading_status for f in ACTIVITY_FIELDS]))

    total = q.count()
    rows = (
        q.order_by(ActivityTracker.created_at.desc(), ActivityTracker.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return rows, total


def create_log(db: Session, data: ActivityLogCreate, *, facilitator_id: int) -> ActivityTracker:
    now = _utcnow()
    obj = ActivityTracker(
        facilitator_id=facilitator_id,
        submitted_at=now,
        last_updated_at=now,
        created_at=now,
        **data.model_dump(),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def update_log(db: Session, obj: ActivityTracker, data: ActivityLogUpdate) -> ActivityTracker:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)
    obj.last_updated_at = _utcnow()
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def delete_log(db: Session, obj: ActivityTracker) -> None:
    db.delete(obj)
    db.commit()


def activity_stats(
    db: Session,
    *,
    academic_year: Optional[str] = None,
    facilitator_id: Optional[int] = None,
) -> Dict[str, object]:
    q = db.query(*[getattr(ActivityTracker, f) for f in ACTIVITY_FIELDS])
    if academic_year:
        q = q.filter(ActivityTracker.academic_year == academic_year)
    if facilitator_id is not None:
        q = q.filter(ActivityTracker.facilitator_id == facilitator_id)

    rows = q.all()
    counts = {s: 0 for s in GRADING_STATUSES}
    for row in rows:
        for value in row:
            if value in counts:
                counts[value] += 1

    total_activities = len(rows) * len(ACTIVITY_FIELDS)
    rate = (counts["Done"] / total_activities * 100) if total_activities else 0.0
    return {
        "total_logs": len(rows),
        "total_activities": total_activities,
        "status_counts": counts,
        "completion_rate": f"{rate:.2f}%",
    }
