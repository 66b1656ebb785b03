"""
Authentication utilities and JWT token handling
"""
import hashlib
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import config
from .db import get_db
from .db.models import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = config.ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.BCRYPT_ROUNDS,
)

http_bearer = HTTPBearer(auto_error=False)


def _prepare_password(password: str) -> bytes:
    """Bcrypt only reads 72 bytes; longer passwords are pre-hashed with SHA256"""
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        return hashlib.sha256(password_bytes).hexdigest().encode("utf-8")
    return password_bytes


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not hashed_password:
        return False

    prepared = _prepare_password(plain_password)
    try:
        return pwd_context.verify(prepared, hashed_password)
    except (ValueError, AttributeError) as e:
        # passlib cannot always introspect newer bcrypt releases
        logger.debug(f"passlib verification unavailable ({type(e).__name__}), using bcrypt directly")
        if not hashed_password.startswith("$2"):
            return False
        return bcrypt.checkpw(prepared, hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    """Hash a password, handling bcrypt's 72-byte limit"""
    if not password:
        raise ValueError("Password cannot be empty")

    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_prepare_password(password), salt).decode("utf-8")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token

    Args:
        data: Dictionary with user data (must include 'sub' - user ID)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "jti": str(uuid.uuid4()),
        "iat": now,
    })
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Verify and decode a JWT token"""
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token verification failed: Token has expired")
        return None
    except JWTError as e:
        logger.warning(f"Token verification failed: {type(e).__name__}")
        return None


def get_auth_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Optional[str]:
    """
    Extract authentication token from Authorization header or cookie.
    Returns None if no token is found.
    """
    if credentials and credentials.credentials:
        return credentials.credentials

    return request.cookies.get("auth_token")


def _resolve_user(token: Optional[str], db: Session) -> Optional[User]:
    if not token or not token.strip():
        return None

    payload = verify_token(token.strip())
    if payload is None:
        return None

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        logger.warning("Authentication failed: Invalid user ID format in token")
        return None

    return db.query(User).filter(User.id == user_id).first()


async def get_current_user(
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from token

    Checks both Authorization header (Bearer token) and auth_token cookie.
    """
    if not token or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is missing. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _resolve_user(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired authentication token. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning(f"Authentication failed: User {user.id} account is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


async def get_optional_user(
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests resolve to None"""
    user = _resolve_user(token, db)
    if user is None or not user.is_active:
        return None
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Dependency that only lets administrators through"""
    if not current_user.is_admin:
        logger.warning(f"Non-admin user {current_user.id} attempted admin access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
