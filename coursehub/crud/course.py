# coursehub/crud/course.py
from typing import List, Optional

from sqlalchemy.orm import Session

from coursehub.models.cohort import Cohort
from coursehub.models.course import Course
from coursehub.schemas.course import CohortCreate, CourseCreate


def get_course(db: Session, course_id: int) -> Optional[Course]:
    return db.get(Course, course_id)


def get_course_by_code(db: Session, course_code: str) -> Optional[Course]:
    return db.query(Course).filter(Course.course_code == course_code).first()


def list_courses(db: Session, *, active_only: bool = False) -> List[Course]:
    q = db.query(Course)
    if active_only:
        q = q.filter(Course.is_active.is_(True))
    return q.order_by(Course.course_code.asc()).all()


def create_course(db: Session, payload: CourseCreate) -> Course:
    obj = Course(**payload.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def get_cohort(db: Session, cohort_id: int) -> Optional[Cohort]:
    return db.get(Cohort, cohort_id)


def get_cohort_by_name(db: Session, cohort_name: str) -> Optional[Cohort]:
    return db.query(Cohort).filter(Cohort.cohort_name == cohort_name).first()


def list_cohorts(db: Session, *, active_only: bool = False) -> List[Cohort]:
    q = db.query(Cohort)
    if active_only:
        q = q.filter(Cohort.is_active.is_(True))
    return q.order_by(Cohort.start_date.desc()).all()


def create_cohort(db: Session, payload: CohortCreate) -> Cohort:
    obj = Cohort(**payload.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj
