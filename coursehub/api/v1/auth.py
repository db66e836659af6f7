# coursehub/api/v1/auth.py
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.auth import authenticate_user, get_current_user, get_db
from coursehub.crud import user as user_crud
from coursehub.core.security import create_access_token
from coursehub.models.user import User
from coursehub.schemas.user import RegisterOut, Token, UserOut, UserRegister

log = logging.getLogger("coursehub.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def _utcnow():
    # stored as naive UTC (SQLite-friendly)
    return datetime.now(timezone.utc).replace(tzinfo=None)


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    if user_crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=409, detail="User with this email already exists")

    try:
        user = user_crud.create_user(db, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="User with this email already exists")

    log.info("registered %s user %s", user.role, user.email)
    token = create_access_token({"sub": user.email, "role": user.role})
    return RegisterOut(access_token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = (form_data.username or "").strip()
    user = authenticate_user(db, email, form_data.password)
    if not user:
        log.info("login failed for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login_at = _utcnow()
    db.add(user)
    db.commit()

    return Token(access_token=create_access_token({"sub": user.email, "role": user.role}))


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
