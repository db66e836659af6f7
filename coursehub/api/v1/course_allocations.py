# coursehub/api/v1/course_allocations.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.auth import get_current_user, get_db, require_roles
from coursehub.crud import course as catalog
from coursehub.crud import course_allocation as crud
from coursehub.crud import user as users
from coursehub.models.course_allocation import CourseAllocation
from coursehub.models.user import User
from coursehub.schemas.course_allocation import (
    AllocationCreate,
    AllocationOut,
    AllocationUpdate,
    DeliveryMode,
    Trimester,
)

router = APIRouter(prefix="/courses/allocations", tags=["course_allocations"])

manager_only = require_roles("manager")

DUPLICATE = "An allocation for this course, cohort, trimester, intake and section already exists"


def _get_or_404(db: Session, allocation_id: int) -> CourseAllocation:
    obj = crud.get_allocation(db, allocation_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Allocation not found")
    return obj


def _check_references(
    db: Session,
    *,
    course_id: Optional[int] = None,
    cohort_id: Optional[int] = None,
    facilitator_id: Optional[int] = None,
) -> None:
    if course_id is not None and catalog.get_course(db, course_id) is None:
        raise HTTPException(status_code=404, detail="Course not found")
    if cohort_id is not None and catalog.get_cohort(db, cohort_id) is None:
        raise HTTPException(status_code=404, detail="Cohort not found")
    if facilitator_id is not None:
        fac = users.get_user(db, facilitator_id)
        if fac is None:
            raise HTTPException(status_code=404, detail="Facilitator not found")
        if fac.role != "facilitator":
            raise HTTPException(status_code=400, detail="Allocations can only be assigned to facilitators")


# ---------------------------
# CREATE (manager)
# ---------------------------
@router.post("", response_model=AllocationOut, status_code=status.HTTP_201_CREATED)
def create_allocation(
    payload: AllocationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    _check_references(
        db,
        course_id=payload.course_id,
        cohort_id=payload.cohort_id,
        facilitator_id=payload.facilitator_id,
    )
    try:
        return crud.create_allocation(db, payload, assigned_by=current_user.id)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE)


# ---------------------------
# LIST (manager: all, facilitator: own)
# ---------------------------
@router.get("", response_model=List[AllocationOut])
def list_allocations(
    trimester: Optional[Trimester] = Query(None),
    cohort_id: Optional[int] = Query(None, ge=1),
    facilitator_id: Optional[int] = Query(None, ge=1),
    intake_period: Optional[str] = Query(None),
    delivery_mode: Optional[DeliveryMode] = Query(None),
    class_section: Optional[str] = Query(None),
    course_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == "facilitator":
        facilitator_id = current_user.id

    return crud.list_allocations(
        db,
        trimester=trimester,
        cohort_id=cohort_id,
        facilitator_id=facilitator_id,
        intake_period=intake_period,
        delivery_mode=delivery_mode,
        class_section=class_section,
        course_id=course_id,
    )


# ---------------------------
# READ (by id)
# ---------------------------
@router.get("/{allocation_id}", response_model=AllocationOut)
def get_allocation(
    allocation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    obj = _get_or_404(db, allocation_id)
    if current_user.role == "facilitator" and obj.facilitator_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return obj


# ---------------------------
# UPDATE (manager)
# ---------------------------
@router.put("/{allocation_id}", response_model=AllocationOut)
def update_allocation(
    allocation_id: int,
    payload: AllocationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    obj = _get_or_404(db, allocation_id)
    _check_references(
        db,
        course_id=payload.course_id,
        cohort_id=payload.cohort_id,
        facilitator_id=payload.facilitator_id,
    )
    try:
        return crud.update_allocation(db, obj, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE)


# ---------------------------
# DELETE (manager)
# ---------------------------
@router.delete("/{allocation_id}")
def delete_allocation(
    allocation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    obj = _get_or_404(db, allocation_id)
    if crud.has_activity_logs(db, obj.id):
        raise HTTPException(
            status_code=409,
            detail="Allocation has activity logs; deactivate it instead",
        )
    crud.delete_allocation(db, obj)
    return {"success": True, "message": "Allocation deleted"}
