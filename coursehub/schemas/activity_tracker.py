# coursehub/schemas/activity_tracker.py
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, conint, constr, field_validator

GradingStatus = Literal["Done", "Pending", "Not Started"]


class ActivityLogBase(BaseModel):
    week_number: conint(ge=1, le=52) = Field(..., description="Week of the academic year (1-52)")
    academic_year: constr(pattern=r"^\d{4}$") = Field(..., description="Four-digit year, e.g. '2024'")
    attendance_status: List[bool] = Field(..., description="One boolean per teaching day")

    formative_one_grading: GradingStatus = "Not Started"
    formative_two_grading: GradingStatus = "Not Started"
    summative_grading: GradingStatus = "Not Started"
    course_moderation: GradingStatus = "Not Started"
    intranet_sync: GradingStatus = "Not Started"
    grade_book_status: GradingStatus = "Not Started"

    additional_notes: Optional[constr(strip_whitespace=True, max_length=2000)] = None


class ActivityLogCreate(ActivityLogBase):
    """
    Create payload. `facilitator_id` is taken from the authenticated user.
    """
    allocation_id: conint(ge=1)


class ActivityLogUpdate(BaseModel):
    """
    Partial update payload. All fields optional.
    """
    week_number: Optional[conint(ge=1, le=52)] = None
    academic_year: Optional[constr(pattern=r"^\d{4}$")] = None
    attendance_status: Optional[List[bool]] = None

    formative_one_grading: Optional[GradingStatus] = None
    formative_two_grading: Optional[GradingStatus] = None
    summative_grading: Optional[GradingStatus] = None
    course_moderation: Optional[GradingStatus] = None
    intranet_sync: Optional[GradingStatus] = None
    grade_book_status: Optional[GradingStatus] = None

    additional_notes: Optional[constr(strip_whitespace=True, max_length=2000)] = None

    @field_validator(
        "week_number",
        "academic_year",
        "attendance_status",
        "formative_one_grading",
        "formative_two_grading",
        "summative_grading",
        "course_moderation",
        "intranet_sync",
        "grade_book_status",
        mode="before",
    )
    @classmethod
    def _not_null(cls, v):
        # omit a field to keep it; only notes may be cleared
        if v is None:
            raise ValueError("must not be null")
        return v


class ActivityLogOut(ActivityLogBase):
    id: int
    allocation_id: int
    facilitator_id: int
    submitted_at: datetime
    last_updated_at: datetime
    completion_percentage: int = 0

    class Config:
        from_attributes = True


class ActivityLogPage(BaseModel):
    items: List[ActivityLogOut]
    page: int
    limit: int
    total: int
    pages: int


class ActivityStats(BaseModel):
    total_logs: int
    total_activities: int
    status_counts: dict
    completion_rate: str
