# coursehub/api/v1/catalog.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from coursehub.core.auth import get_current_user, get_db, require_roles
from coursehub.crud import course as crud
from coursehub.models.user import User
from coursehub.schemas.course import CohortCreate, CohortOut, CourseCreate, CourseOut

router = APIRouter(tags=["catalog"])

manager_only = require_roles("manager")


# ---- Courses ----

@router.get("/courses", response_model=List[CourseOut])
def list_courses(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.list_courses(db, active_only=active_only)


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    if crud.get_course_by_code(db, payload.course_code):
        raise HTTPException(status_code=409, detail="Course code already exists")
    return crud.create_course(db, payload)


# ---- Cohorts ----

@router.get("/cohorts", response_model=List[CohortOut])
def list_cohorts(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.list_cohorts(db, active_only=active_only)


@router.post("/cohorts", response_model=CohortOut, status_code=status.HTTP_201_CREATED)
def create_cohort(
    payload: CohortCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    if crud.get_cohort_by_name(db, payload.cohort_name):
        raise HTTPException(status_code=409, detail="Cohort name already exists")
    return crud.create_cohort(db, payload)
