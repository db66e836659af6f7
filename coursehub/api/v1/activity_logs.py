# coursehub/api/v1/activity_logs.py
from __future__ import annotations

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.auth import get_db, require_roles
from coursehub.crud import activity_tracker as crud
from coursehub.db.queue import WorkQueue, get_alert_queue
from coursehub.models.activity_tracker import ActivityTracker
from coursehub.models.user import User
from coursehub.schemas.activity_tracker import (
    ActivityLogCreate,
    ActivityLogOut,
    ActivityLogPage,
    ActivityLogUpdate,
    ActivityStats,
    GradingStatus,
)
from coursehub.services.notifications import queue_manager_notification

router = APIRouter(prefix="/activities", tags=["activity_logs"])

facilitator_only = require_roles("facilitator")
facilitator_or_manager = require_roles("facilitator", "manager")
manager_only = require_roles("manager")


def _to_out(obj: ActivityTracker) -> ActivityLogOut:
    return ActivityLogOut.model_validate(obj)


def _load_own_log(db: Session, log_id: int, user: User, verb: str) -> ActivityTracker:
    obj = crud.get_log(db, log_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Activity log not found")
    if obj.facilitator_id != user.id:
        raise HTTPException(
            status_code=403, detail=f"Access denied - you can only {verb} your own logs"
        )
    return obj


def _notify(queue: WorkQueue, action: str, obj: ActivityTracker) -> None:
    # best-effort; never breaks the request
    queue_manager_notification(
        queue,
        action=action,
        log_id=obj.id,
        facilitator_id=obj.facilitator_id,
        week_number=obj.week_number,
        academic_year=obj.academic_year,
    )


# ---------------------------
# CREATE
# ---------------------------
@router.post("/logs", response_model=ActivityLogOut, status_code=status.HTTP_201_CREATED)
def create_activity_log(
    payload: ActivityLogCreate,
    db: Session = Depends(get_db),
    queue: WorkQueue = Depends(get_alert_queue),
    current_user: User = Depends(facilitator_only),
):
    """
    Submit a weekly activity log for one of the caller's own allocations.
    Managers are alerted through the notification queue.
    """
    allocation = crud.get_allocation(db, payload.allocation_id)
    if not allocation:
        raise HTTPException(status_code=404, detail="Course allocation not found")
    if allocation.facilitator_id != current_user.id:
        raise HTTPException(
            status_code=403,
            detail="Access denied - you can only create logs for your own allocations",
        )
    if crud.find_log(
        db,
        allocation_id=payload.allocation_id,
        week_number=payload.week_number,
        academic_year=payload.academic_year,
    ):
        raise HTTPException(status_code=409, detail="Activity log already exists for this week")

    try:
        obj = crud.create_log(db, payload, facilitator_id=current_user.id)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Activity log already exists for this week")

    _notify(queue, "submitted", obj)
    return _to_out(obj)


# ---------------------------
# LIST
# ---------------------------
@router.get("/logs", response_model=ActivityLogPage)
def list_activity_logs(
    allocation_id: Optional[int] = Query(None, ge=1),
    facilitator_id: Optional[int] = Query(None, ge=1, description="Managers only"),
    week_number: Optional[int] = Query(None, ge=1, le=52),
    academic_year: Optional[str] = Query(None, pattern=r"^\d{4}$"),
    grading_status: Optional[GradingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(facilitator_or_manager),
):
    """Facilitators see their own logs; managers see all, optionally per facilitator."""
    if current_user.role == "facilitator":
        facilitator_id = current_user.id

    rows, total = crud.list_logs(
        db,
        facilitator_id=facilitator_id,
        allocation_id=allocation_id,
        week_number=week_number,
        academic_year=academic_year,
        grading_status=grading_status,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return ActivityLogPage(
        items=[_to_out(r) for r in rows],
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )


# ---------------------------
# STATS
# ---------------------------
@router.get("/stats", response_model=ActivityStats)
def activity_stats(
    academic_year: Optional[str] = Query(None, pattern=r"^\d{4}$"),
    facilitator_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    return crud.activity_stats(db, academic_year=academic_year, facilitator_id=facilitator_id)


# ---------------------------
# READ (by id)
# ---------------------------
@router.get("/logs/{log_id}", response_model=ActivityLogOut)
def get_activity_log(
    log_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(facilitator_or_manager),
):
    obj = crud.get_log(db, log_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Activity log not found")
    if current_user.role == "facilitator" and obj.facilitator_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return _to_out(obj)


# ---------------------------
# UPDATE
# ---------------------------
@router.put("/logs/{log_id}", response_model=ActivityLogOut)
def update_activity_log(
    log_id: int,
    payload: ActivityLogUpdate,
    db: Session = Depends(get_db),
    queue: WorkQueue = Depends(get_alert_queue),
    current_user: User = Depends(facilitator_only),
):
    obj = _load_own_log(db, log_id, current_user, "update")

    week = payload.week_number or obj.week_number
    year = payload.academic_year or obj.academic_year
    clash = crud.find_log(db, allocation_id=obj.allocation_id, week_number=week, academic_year=year)
    if clash is not None and clash.id != obj.id:
        raise HTTPException(status_code=409, detail="Activity log already exists for this week")

    try:
        obj = crud.update_log(db, obj, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Activity log already exists for this week")
    _notify(queue, "updated", obj)
    return _to_out(obj)


# ---------------------------
# DELETE
# ---------------------------
@router.delete("/logs/{log_id}")
def delete_activity_log(
    log_id: int,
    db: Session = Depends(get_db),
    queue: WorkQueue = Depends(get_alert_queue),
    current_user: User = Depends(facilitator_only),
):
    obj = _load_own_log(db, log_id, current_user, "delete")

    # capture before the row goes away
    event = dict(
        log_id=obj.id,
        facilitator_id=obj.facilitator_id,
        week_number=obj.week_number,
        academic_year=obj.academic_year,
    )
    crud.delete_log(db, obj)

    queue_manager_notification(queue, action="deleted", **event)
    return {"success": True, "message": "Activity log deleted"}
