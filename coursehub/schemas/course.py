# coursehub/schemas/course.py
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, conint, constr, model_validator


class CourseCreate(BaseModel):
    course_code: constr(strip_whitespace=True, min_length=2, max_length=20)
    course_title: constr(strip_whitespace=True, min_length=2, max_length=200)
    course_description: Optional[str] = None
    credit_hours: conint(ge=1, le=30)


class CourseOut(CourseCreate):
    id: int
    is_active: bool

    class Config:
        from_attributes = True


class CourseBrief(BaseModel):
    id: int
    course_code: str
    course_title: str

    class Config:
        from_attributes = True


class CohortCreate(BaseModel):
    cohort_name: constr(strip_whitespace=True, min_length=2, max_length=50)
    start_date: date
    end_date: date = Field(..., description="Must be after start_date")

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class CohortOut(CohortCreate):
    id: int
    is_active: bool

    class Config:
        from_attributes = True


class CohortBrief(BaseModel):
    id: int
    cohort_name: str

    class Config:
        from_attributes = True
