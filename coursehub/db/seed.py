# coursehub/db/seed.py
import logging
from datetime import date

from sqlalchemy.orm import Session

from coursehub.core.security import get_password_hash
from coursehub.models.cohort import Cohort
from coursehub.models.course import Course
from coursehub.models.user import User

log = logging.getLogger("coursehub.seed")

DEFAULT_ADMIN_EMAIL = "admin@institution.com"


def seed_default_admin(db: Session, password: str = "admin123") -> User:
    """Create the default manager account if it does not exist yet."""
    u = db.query(User).filter(User.email == DEFAULT_ADMIN_EMAIL).first()
    if u:
        return u
    u = User(
        first_name="System",
        last_name="Administrator",
        email=DEFAULT_ADMIN_EMAIL,
        hashed_password=get_password_hash(password),
        role="manager",
        is_active=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    log.info("default admin user created (%s)", DEFAULT_ADMIN_EMAIL)
    return u


SAMPLE_COURSES = (
    ("CS101", "Introduction to Computer Science", "Fundamental concepts of programming and computer science", 3),
    ("MATH201", "Advanced Mathematics", "Advanced mathematical concepts and applications", 4),
    ("ENG301", "Technical Writing", "Professional writing skills for technical documentation", 3),
)

SAMPLE_COHORTS = (
    ("2024-Spring", date(2024, 1, 15), date(2024, 5, 15)),
    ("2024-Fall", date(2024, 9, 1), date(2024, 12, 20)),
)

SAMPLE_FACILITATORS = (
    ("John", "Smith", "john.smith@institution.com"),
    ("Sarah", "Johnson", "sarah.johnson@institution.com"),
)


def seed_sample_data(db: Session, facilitator_password: str = "Facilitator123") -> int:
    """Insert the demo courses, cohorts and facilitators that are missing. Returns rows added."""
    added = 0
    for code, title, description, credits in SAMPLE_COURSES:
        if db.query(Course).filter(Course.course_code == code).first() is None:
            db.add(Course(course_code=code, course_title=title, course_description=description, credit_hours=credits))
            added += 1

    for name, start, end in SAMPLE_COHORTS:
        if db.query(Cohort).filter(Cohort.cohort_name == name).first() is None:
            db.add(Cohort(cohort_name=name, start_date=start, end_date=end))
            added += 1

    for first, last, email in SAMPLE_FACILITATORS:
        if db.query(User).filter(User.email == email).first() is None:
            db.add(
                User(
                    first_name=first,
                    last_name=last,
                    email=email,
                    hashed_password=get_password_hash(facilitator_password),
                    role="facilitator",
                    is_active=True,
                )
            )
            added += 1

    db.commit()
    if added:
        log.info("sample data created (%d rows)", added)
    return added
