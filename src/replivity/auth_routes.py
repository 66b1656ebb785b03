"""
Authentication API routes
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from .auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_current_user,
    get_password_hash,
    verify_password,
)
from .config import config
from .db import User, get_db
from .exceptions import BadRequestError
from .schemas import ChangePasswordRequest
from .services.password_validator import get_password_validator
from .services.security_events_service import SecurityEventsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["authentication"])


class UserSignup(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str
    user: dict
    password_reset_required: bool = False


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    image: Optional[str] = None
    is_active: bool
    is_admin: bool
    password_reset_required: bool


def _user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "image": user.image,
        "is_active": user.is_active,
        "is_admin": user.is_admin,
        "password_reset_required": bool(user.password_reset_required),
    }


def _issue_token(user: User) -> str:
    # JWT requires 'sub' claim to be a string
    return create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def _check_password_policy(password: str, email: str) -> None:
    is_valid, error = get_password_validator().validate(password, email=email)
    if not is_valid:
        raise BadRequestError(error, details={"requirements": get_password_validator().get_requirements_list()})


@router.post("/signup", response_model=Token)
async def signup(user_data: UserSignup, db: Session = Depends(get_db)):
    """Register a new user with email and password"""
    logger.info(f"Signup attempt for email: {user_data.email}")

    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        logger.warning(f"Signup failed: Email already registered - {user_data.email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    _check_password_policy(user_data.password, user_data.email)

    # The first account of an installation administers it
    is_first_user = db.query(User.id).first() is None
    now = datetime.utcnow()

    new_user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name or None,
        is_active=True,
        is_admin=is_first_user,
        last_password_change=now,
        password_expires_at=now + timedelta(days=config.PASSWORD_EXPIRY_DAYS),
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info(f"User created successfully with ID: {new_user.id} (admin={is_first_user})")

    return {
        "access_token": _issue_token(new_user),
        "token_type": "bearer",
        "user": _user_payload(new_user),
        "password_reset_required": False,
    }


@router.post("/login", response_model=Token)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Login with email and password"""
    # Find user by email (username field in OAuth2PasswordRequestForm)
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not user.hashed_password:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    security = SecurityEventsService(db)

    if not verify_password(form_data.password, user.hashed_password):
        security.record_failed_login(
            user.id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    reset_status = security.check_password_reset_required(user.id)
    db.refresh(user)

    return {
        "access_token": _issue_token(user),
        "token_type": "bearer",
        "user": _user_payload(user),
        "password_reset_required": reset_status["required"],
    }


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information"""
    return _user_payload(current_user)


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Logout user (client should discard token)"""
    return {"message": "Logged out successfully"}


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change the current user's password, completing any pending forced reset"""
    if not current_user.hashed_password or not verify_password(
        payload.current_password, current_user.hashed_password
    ):
        raise BadRequestError("Current password is incorrect")

    if payload.new_password == payload.current_password:
        raise BadRequestError("New password must be different from the current password")

    _check_password_policy(payload.new_password, current_user.email)

    current_user.hashed_password = get_password_hash(payload.new_password)
    db.commit()

    SecurityEventsService(db).complete_password_reset(current_user.id)
    logger.info(f"User {current_user.id} changed their password")
    return {"message": "Password changed successfully"}
