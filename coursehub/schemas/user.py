# coursehub/schemas/user.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, constr, field_validator, model_validator

Role = Literal["manager", "facilitator", "student"]

PersonName = constr(strip_whitespace=True, min_length=2, max_length=50, pattern=r"^[a-zA-Z\s]+$")


def _check_strength(v: str) -> str:
    if not (any(c.islower() for c in v) and any(c.isupper() for c in v) and any(c.isdigit() for c in v)):
        raise ValueError("Password must contain at least one lowercase letter, one uppercase letter, and one number")
    return v


class UserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    email: EmailStr
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    class Config:
        from_attributes = True


class UserRegister(BaseModel):
    first_name: PersonName
    last_name: PersonName
    email: EmailStr
    password: constr(min_length=8)
    role: Role = "student"

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        return _check_strength(v)


class ProfileUpdate(BaseModel):
    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    email: Optional[EmailStr] = None

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class PasswordChange(BaseModel):
    current_password: constr(min_length=1)
    new_password: constr(min_length=8)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        return _check_strength(v)

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.confirm_password != self.new_password:
            raise ValueError("Password confirmation does not match new password")
        return self


class UserPage(BaseModel):
    items: List[UserOut]
    page: int
    limit: int
    total: int
    pages: int


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RegisterOut(Token):
    user: UserOut
