# coursehub/schemas/course_allocation.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, conint, constr, field_validator

from coursehub.schemas.course import CohortBrief, CourseBrief
from coursehub.schemas.user import UserBrief

Trimester = Literal["HT1", "HT2", "FT"]
DeliveryMode = Literal["online", "in-person", "hybrid"]


class AllocationCreate(BaseModel):
    course_id: conint(ge=1)
    facilitator_id: conint(ge=1)
    cohort_id: conint(ge=1)
    trimester: Trimester
    intake_period: constr(strip_whitespace=True, min_length=1, max_length=20)
    delivery_mode: DeliveryMode
    class_section: constr(strip_whitespace=True, min_length=1, max_length=20)
    is_active: bool = True


class AllocationUpdate(BaseModel):
    """
    Partial update payload. Omitted fields are left unchanged.
    """
    course_id: Optional[conint(ge=1)] = None
    facilitator_id: Optional[conint(ge=1)] = None
    cohort_id: Optional[conint(ge=1)] = None
    trimester: Optional[Trimester] = None
    intake_period: Optional[constr(strip_whitespace=True, min_length=1, max_length=20)] = None
    delivery_mode: Optional[DeliveryMode] = None
    class_section: Optional[constr(strip_whitespace=True, min_length=1, max_length=20)] = None
    is_active: Optional[bool] = None

    @field_validator("*", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class AllocationOut(BaseModel):
    id: int
    course_id: int
    facilitator_id: int
    cohort_id: int
    trimester: str
    intake_period: str
    delivery_mode: str
    class_section: str
    is_active: bool
    assigned_by: int
    created_at: Optional[datetime] = None

    course: Optional[CourseBrief] = None
    cohort: Optional[CohortBrief] = None
    facilitator: Optional[UserBrief] = None

    class Config:
        from_attributes = True
