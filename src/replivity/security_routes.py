"""
Security API routes - security events and forced password resets
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .auth import get_current_user, require_admin
from .db import User, get_db
from .schemas import (
    ForcePasswordResetRequest,
    PasswordBreachReport,
    PasswordExpiryRequest,
    SecurityEventCreate,
    SuspiciousLoginCheck,
)
from .services.security_events_service import SecurityEventsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/security", tags=["security"])


@router.post("/events")
async def log_event(
    payload: SecurityEventCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Record a security event; high and critical events force a password reset"""
    event_id = SecurityEventsService(db).log_security_event(
        payload.user_id,
        event_type=payload.event_type,
        severity=payload.severity,
        description=payload.description,
        ip_address=payload.ip_address,
        user_agent=payload.user_agent,
        metadata=payload.metadata,
        action_taken=payload.action_taken,
    )
    return {"success": True, "event_id": event_id}


@router.post("/password-reset")
async def force_password_reset(
    payload: ForcePasswordResetRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    SecurityEventsService(db).force_password_reset(
        payload.user_id,
        reason=payload.reason,
        expires_in_days=payload.expires_in_days,
        notify_user=payload.notify_user,
    )
    logger.info(f"Admin {admin.id} forced a password reset for user {payload.user_id}")
    return {"success": True, "message": "Password reset has been required for the user"}


@router.get("/password-reset/status")
async def get_password_reset_status(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return SecurityEventsService(db).check_password_reset_required(current_user.id)


@router.post("/password-reset/complete")
async def complete_password_reset(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    SecurityEventsService(db).complete_password_reset(current_user.id)
    return {"success": True, "message": "Password reset completed"}


@router.get("/events/me")
async def get_my_security_events(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return SecurityEventsService(db).get_user_security_events(current_user.id, limit)


@router.get("/events/users/{user_id}")
async def get_user_security_events(
    user_id: int,
    limit: int = Query(50, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    service = SecurityEventsService(db)
    service.get_user(user_id)
    return service.get_user_security_events(user_id, limit)


@router.post("/password-breach")
async def report_password_breach(
    payload: PasswordBreachReport,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Report that the current user's password appeared in known breaches"""
    SecurityEventsService(db).handle_password_breach(
        current_user.id,
        source=payload.breach_source,
        breach_count=payload.breach_count,
    )
    return {"success": True, "message": "Password breach handled, reset required"}


@router.post("/password-expiry")
async def set_password_expiry(
    payload: PasswordExpiryRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    expires_at = SecurityEventsService(db).set_password_expiry(payload.user_id, payload.days)
    return {"success": True, "expires_at": expires_at.isoformat()}


@router.post("/suspicious-login")
async def detect_suspicious_login(
    payload: SuspiciousLoginCheck,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    suspicious = SecurityEventsService(db).detect_suspicious_login(
        current_user.id,
        ip_address=payload.ip_address,
        user_agent=payload.user_agent,
    )
    return {"suspicious": suspicious}
