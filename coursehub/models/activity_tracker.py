# coursehub/models/activity_tracker.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    JSON,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from coursehub.db.base import Base

GRADING_STATUSES = ("Done", "Pending", "Not Started")

# The six weekly compliance checkpoints tracked per log
ACTIVITY_FIELDS = (
    "formative_one_grading",
    "formative_two_grading",
    "summative_grading",
    "course_moderation",
    "intranet_sync",
    "grade_book_status",
)


class ActivityTracker(Base):
    """
    A facilitator's weekly activity log for one allocation.

    The existence of a row for (allocation, week, year) is what the
    missing-submission scan checks for.
    """

    __tablename__ = "activity_trackers"
    __table_args__ = (
        UniqueConstraint(
            "allocation_id", "week_number", "academic_year", name="uq_activity_allocation_week_year"
        ),
    )

    id = Column(Integer, primary_key=True)
    allocation_id = Column(Integer, ForeignKey("course_allocations.id"), nullable=False, index=True)
    facilitator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    week_number = Column(Integer, nullable=False)  # 1..52
    academic_year = Column(String(9), nullable=False)

    # one boolean per day of the week
    attendance_status = Column(JSON, nullable=False)

    formative_one_grading = Column(String(20), nullable=False, server_default="Not Started")
    formative_two_grading = Column(String(20), nullable=False, server_default="Not Started")
    summative_grading = Column(String(20), nullable=False, server_default="Not Started")
    course_moderation = Column(String(20), nullable=False, server_default="Not Started")
    intranet_sync = Column(String(20), nullable=False, server_default="Not Started")
    grade_book_status = Column(String(20), nullable=False, server_default="Not Started")

    additional_notes = Column(Text, nullable=True)

    submitted_at = Column(DateTime, nullable=False, server_default=func.now())
    last_updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    course_allocation = relationship("CourseAllocation")
    facilitator = relationship("User")

    def activity_values(self) -> list:
        return [getattr(self, f) for f in ACTIVITY_FIELDS]

    def is_all_activities_completed(self) -> bool:
        return all(v == "Done" for v in self.activity_values())

    @property
    def completion_percentage(self) -> int:
        done = sum(1 for v in self.activity_values() if v == "Done")
        return round(done / len(ACTIVITY_FIELDS) * 100)

    def __repr__(self) -> str:
        return (
            f"<ActivityTracker id={self.id} allocation={self.allocation_id} "
            f"week={self.week_number} year={self.academic_year!r}>"
        )
