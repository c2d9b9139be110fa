from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session, select
import structlog

from ghostframe.db import get_session
from ghostframe.models import User
from ghostframe.auth import (
    get_password_hash, verify_password, create_access_token, create_refresh_token,
    refresh_access_token, get_current_user,
)
from ghostframe.middleware.rate_limit import auth_limit
from ghostframe.schemas import LoginRequest, RefreshRequest, RegisterRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_payload(user: User) -> dict:
    return {"id": user.id, "email": user.email, "username": user.username, "full_name": user.full_name}


def _token_response(user: User) -> dict:
    return {
        "access_token": create_access_token(str(user.id)),
        "refresh_token": create_refresh_token(str(user.id)),
        "token_type": "bearer",
        "user": _user_payload(user),
    }


@router.post("/register")
@auth_limit()
def register(request: Request, body: RegisterRequest, session: Session = Depends(get_session)):
    email = body.email.strip().lower()
    existing = session.exec(
        select(User).where((User.email == email) | (User.username == body.username))
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")
    user = User(
        email=email,
        username=body.username,
        full_name=body.full_name,
        hashed_password=get_password_hash(body.password),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("user_registered", user_id=user.id)
    return _token_response(user)


@router.post("/login")
@auth_limit()
def login(request: Request, body: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == body.email.strip().lower())).first()
    if not user or not verify_password(body.password, user.hashed_password):
        logger.warning("login_failed", email=body.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _token_response(user)


@router.post("/refresh")
def refresh(body: RefreshRequest):
    token = refresh_access_token(body.refresh_token)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return _user_payload(user)
