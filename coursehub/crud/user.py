# coursehub/crud/user.py
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from coursehub.core.security import get_password_hash
from coursehub.models.user import User
from coursehub.schemas.user import ProfileUpdate, UserRegister


# --- Read helpers -------------------------------------------------------------

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def list_users(
    db: Session,
    *,
    role: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 10,
) -> Tuple[List[User], int]:
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if search:
        like = f"%{search.lower()}%"
        q = q.filter(
            or_(
                func.lower(User.first_name).like(like),
                func.lower(User.last_name).like(like),
                func.lower(User.email).like(like),
            )
        )
    total = q.count()
    rows = q.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()
    return rows, total


# --- Create / Update ----------------------------------------------------------

def create_user(db: Session, payload: UserRegister) -> User:
    u = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email.lower(),
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        is_active=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
    data = payload.model_dump(exclude_unset=True)
    if "email" in data:
        data["email"] = data["email"].lower()
    for k, v in data.items():
        setattr(user, k, v)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def set_password(db: Session, user: User, new_password: str) -> None:
    user.hashed_password = get_password_hash(new_password)
    db.add(user)
    db.commit()


def set_active(db: Session, user: User, active: bool) -> User:
    user.is_active = active
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
