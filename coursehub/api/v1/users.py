# coursehub/api/v1/users.py
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.auth import get_current_user, get_db, require_roles
from coursehub.core.security import verify_password
from coursehub.crud import user as crud
from coursehub.models.user import User
from coursehub.schemas.user import PasswordChange, ProfileUpdate, Role, UserOut, UserPage

log = logging.getLogger("coursehub.auth")

router = APIRouter(prefix="/users", tags=["users"])

manager_only = require_roles("manager")


def _get_user_or_404(db: Session, user_id: int) -> User:
    u = crud.get_user(db, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return u


# ---- ROUTES ----


@router.get("", response_model=UserPage)
def list_users(
    role: Optional[Role] = Query(None),
    search: Optional[str] = Query(None, description="Matches first name, last name or email"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    rows, total = crud.list_users(db, role=role, search=search, skip=(page - 1) * limit, limit=limit)
    return UserPage(
        items=[UserOut.model_validate(u) for u in rows],
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )


# /profile and /password are declared before /{user_id} routes
@router.put("/profile", response_model=UserOut)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.email is not None:
        existing = crud.get_user_by_email(db, payload.email)
        if existing is not None and existing.id != current_user.id:
            raise HTTPException(status_code=409, detail="Email address already in use")

    try:
        return crud.update_profile(db, current_user, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email address already in use")


@router.put("/password")
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    crud.set_password(db, current_user, payload.new_password)
    log.info("password changed for user %s", current_user.id)
    return {"success": True, "message": "Password changed successfully"}


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    return _get_user_or_404(db, user_id)


@router.put("/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own account")
    u = _get_user_or_404(db, user_id)
    log.info("user %s deactivated by %s", u.id, current_user.id)
    return crud.set_active(db, u, False)


@router.put("/{user_id}/activate", response_model=UserOut)
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_only),
):
    u = _get_user_or_404(db, user_id)
    log.info("user %s activated by %s", u.id, current_user.id)
    return crud.set_active(db, u, True)
