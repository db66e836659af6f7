# coursehub/models/course_allocation.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from coursehub.db.base import Base


class CourseAllocation(Base):
    """
    Assignment of a facilitator to teach a course section within a cohort.

    `is_active` gates the weekly missing-submission scan.
    """

    __tablename__ = "course_allocations"
    __table_args__ = (
        UniqueConstraint(
            "course_id", "cohort_id", "trimester", "intake_period", "class_section",
            name="unique_course_allocation",
        ),
    )

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    facilitator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    cohort_id = Column(Integer, ForeignKey("cohorts.id"), nullable=False, index=True)

    trimester = Column(String(10), nullable=False)  # HT1 | HT2 | FT
    intake_period = Column(String(20), nullable=False)
    delivery_mode = Column(String(20), nullable=False, server_default="in-person")  # online | in-person | hybrid
    class_section = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text("1"))

    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    course = relationship("Course")
    cohort = relationship("Cohort")
    facilitator = relationship(
        "User", foreign_keys=[facilitator_id], back_populates="facilitator_allocations"
    )
    assigned_by_manager = relationship("User", foreign_keys=[assigned_by])

    def __repr__(self) -> str:
        return (
            f"<CourseAllocation id={self.id} course={self.course_id} cohort={self.cohort_id} "
            f"facilitator={self.facilitator_id} active={self.is_active}>"
        )


Index("ix_course_allocations_facilitator_active", CourseAllocation.facilitator_id, CourseAllocation.is_active)
