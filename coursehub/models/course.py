# coursehub/models/course.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func, text

from coursehub.db.base import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    course_code = Column(String(20), unique=True, nullable=False)
    course_title = Column(String(200), nullable=False)
    course_description = Column(Text, nullable=True)
    credit_hours = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text("1"))

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
