# coursehub/crud/course_allocation.py
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from coursehub.models.activity_tracker import ActivityTracker
from coursehub.models.course_allocation import CourseAllocation
from coursehub.schemas.course_allocation import AllocationCreate, AllocationUpdate

FILTERS = (
    "trimester",
    "cohort_id",
    "facilitator_id",
    "intake_period",
    "delivery_mode",
    "class_section",
    "course_id",
)


def _with_associations(db: Session):
    return db.query(CourseAllocation).options(
        joinedload(CourseAllocation.course),
        joinedload(CourseAllocation.cohort),
        joinedload(CourseAllocation.facilitator),
    )


def get_allocation(db: Session, allocation_id: int) -> Optional[CourseAllocation]:
    return _with_associations(db).filter(CourseAllocation.id == allocation_id).first()


def list_allocations(db: Session, **filters) -> List[CourseAllocation]:
    """Newest first. Unknown or empty filters are ignored."""
    q = _with_associations(db)
    for name in FILTERS:
        value = filters.get(name)
        if value is not None and value != "":
            q = q.filter(getattr(CourseAllocation, name) == value)
    return q.order_by(CourseAllocation.created_at.desc(), CourseAllocation.id.desc()).all()


def create_allocation(db: Session, payload: AllocationCreate, *, assigned_by: int) -> CourseAllocation:
    obj = CourseAllocation(assigned_by=assigned_by, **payload.model_dump())
    db.add(obj)
    db.commit()
    return get_allocation(db, obj.id)


def update_allocation(db: Session, obj: CourseAllocation, payload: AllocationUpdate) -> CourseAllocation:
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(obj, k, v)
    db.add(obj)
    db.commit()
    return get_allocation(db, obj.id)


def has_activity_logs(db: Session, allocation_id: int) -> bool:
    return (
        db.query(ActivityTracker.id).filter(ActivityTracker.allocation_id == allocation_id).first()
        is not None
    )


def delete_allocation(db: Session, obj: CourseAllocation) -> None:
    db.delete(obj)
    db.commit()
