# coursehub/models/user.py
from sqlalchemy import Column, Integer, String, DateTime, Boolean, func, text
from sqlalchemy.orm import relationship

from coursehub.db.base import Base

ROLES = ("manager", "facilitator", "student")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)

    # Profile
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # RBAC: manager | facilitator | student
    role = Column(String(20), nullable=False, server_default="student", index=True)
    is_active = Column(Boolean, nullable=False, server_default=text("1"))

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    facilitator_allocations = relationship(
        "CourseAllocation",
        foreign_keys="CourseAllocation.facilitator_id",
        back_populates="facilitator",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r} active={self.is_active}>"
