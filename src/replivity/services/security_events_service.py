"""
Security Events Service
Logs security events on accounts and triggers forced password resets
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..config import config
from ..db.models import SecurityAction, SecurityEvent, SecurityEventType, SecuritySeverity, User
from ..exceptions import NotFoundError
from .email_provider import EmailMessage, get_email_provider

logger = logging.getLogger(__name__)

DEFAULT_RESET_EXPIRY_DAYS = 7
SUSPICIOUS_LOGIN_THRESHOLD = 3
SUSPICIOUS_LOGIN_WINDOW = timedelta(hours=1)


def serialize_security_event(event: SecurityEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "event_type": event.event_type,
        "severity": event.severity,
        "description": event.description,
        "action_taken": event.action_taken,
        "created_at": event.created_at.isoformat() if event.created_at else None,
    }


class SecurityEventsService:
    """
    Records security events and applies their consequences

    High and critical events force a password reset (1 day to comply for critical,
    7 days for high).
    """

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        return user

    def log_security_event(
        self,
        user_id: int,
        event_type: str,
        severity: str,
        description: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Union[str, Dict[str, Any]]] = None,
        action_taken: Optional[str] = None,
    ) -> int:
        """Insert an event and return its id"""
        self.get_user(user_id)

        if metadata is not None and not isinstance(metadata, str):
            metadata = json.dumps(metadata, default=str)

        event = SecurityEvent(
            user_id=user_id,
            event_type=event_type,
            severity=severity,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata_json=metadata,
            action_taken=action_taken,
            created_at=datetime.utcnow(),
        )
        self.db.add(event)
        self.db.commit()

        log = logger.warning if severity in (SecuritySeverity.HIGH.value, SecuritySeverity.CRITICAL.value) else logger.info
        log(f"Security event {event_type} ({severity}) for user {user_id}: {description}")

        if severity in (SecuritySeverity.HIGH.value, SecuritySeverity.CRITICAL.value):
            self.force_password_reset(
                user_id,
                reason=f"Security event: {description}",
                expires_in_days=1 if severity == SecuritySeverity.CRITICAL.value else 7,
                notify_user=True,
            )

        return event.id

    def force_password_reset(
        self,
        user_id: int,
        reason: str,
        expires_in_days: int = DEFAULT_RESET_EXPIRY_DAYS,
        notify_user: bool = True,
    ) -> None:
        user = self.get_user(user_id)
        now = datetime.utcnow()

        user.password_reset_required = True
        user.password_reset_reason = reason
        user.password_reset_required_at = now
        user.password_expires_at = now + timedelta(days=expires_in_days or DEFAULT_RESET_EXPIRY_DAYS)
        self.db.commit()

        self.log_security_event(
            user_id,
            event_type=SecurityEventType.ADMIN_FORCED.value,
            severity=SecuritySeverity.MEDIUM.value,
            description=f"Password reset required: {reason}",
            action_taken=SecurityAction.PASSWORD_RESET_REQUIRED.value,
        )

        if notify_user:
            self._notify_password_reset(user, reason)

    def _notify_password_reset(self, user: User, reason: str) -> None:
        deadline = user.password_expires_at.strftime("%Y-%m-%d %H:%M UTC")
        text_body = (
            f"Hello {user.display_name},\n\n"
            f"For your security, you must change your Replivity password before {deadline}.\n"
            f"Reason: {reason}\n\n"
            "Sign in and open your profile settings to choose a new password."
        )
        sent = get_email_provider().send(EmailMessage(
            to=user.email,
            subject="Action required: reset your password",
            html_body="<p>" + text_body.replace("\n\n", "</p><p>").replace("\n", "<br>") + "</p>",
            text_body=text_body,
        ))
        if not sent:
            logger.error(f"Password reset notification could not be sent to user {user.id}")

    def check_password_reset_required(self, user_id: int) -> Dict[str, Any]:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            return {"required": False, "reason": None, "expires_at": None}

        expires_at = user.password_expires_at
        if expires_at is not None and expires_at < datetime.utcnow():
            self.force_password_reset(
                user_id,
                reason="Password has expired",
                expires_in_days=DEFAULT_RESET_EXPIRY_DAYS,
                notify_user=True,
            )
            return {
                "required": True,
                "reason": "Password has expired",
                "expires_at": expires_at.isoformat(),
            }

        return {
            "required": bool(user.password_reset_required),
            "reason": user.password_reset_reason,
            "expires_at": expires_at.isoformat() if expires_at else None,
        }

    def complete_password_reset(self, user_id: int) -> None:
        user = self.get_user(user_id)
        now = datetime.utcnow()

        user.password_reset_required = False
        user.password_reset_reason = None
        user.password_reset_required_at = None
        user.last_password_change = now
        user.password_expires_at = now + timedelta(days=config.PASSWORD_EXPIRY_DAYS)
        self.db.commit()

        self.log_security_event(
            user_id,
            event_type=SecurityEventType.ADMIN_FORCED.value,
            severity=SecuritySeverity.LOW.value,
            description="Password reset completed successfully",
        )

    def get_user_security_events(self, user_id: int, limit: int = 50) -> List[Dict[str, Any]]:
        events = (
            self.db.query(SecurityEvent)
            .filter(SecurityEvent.user_id == user_id)
            .order_by(SecurityEvent.created_at.desc(), SecurityEvent.id.desc())
            .limit(limit)
            .all()
        )
        return [serialize_security_event(event) for event in events]

    def detect_suspicious_login(
        self,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """Three or more failed-attempt events within the last hour mark the login suspicious"""
        since = datetime.utcnow() - SUSPICIOUS_LOGIN_WINDOW
        recent_failures = self.db.query(SecurityEvent).filter(
            SecurityEvent.user_id == user_id,
            SecurityEvent.event_type == SecurityEventType.MULTIPLE_FAILED_ATTEMPTS.value,
            SecurityEvent.created_at >= since,
        ).count()

        if recent_failures < SUSPICIOUS_LOGIN_THRESHOLD:
            return False

        self.log_security_event(
            user_id,
            event_type=SecurityEventType.SUSPICIOUS_LOGIN.value,
            severity=SecuritySeverity.HIGH.value,
            description="Multiple failed login attempts detected",
            ip_address=ip_address,
            user_agent=user_agent,
            action_taken=SecurityAction.PASSWORD_RESET_REQUIRED.value,
        )
        return True

    def handle_password_breach(self, user_id: int, source: str, breach_count: int) -> None:
        self.log_security_event(
            user_id,
            event_type=SecurityEventType.PASSWORD_BREACH.value,
            severity=SecuritySeverity.CRITICAL.value,
            description=f"Password found in {breach_count} data breach(es)",
            metadata={"source": source, "breachCount": breach_count},
            action_taken=SecurityAction.PASSWORD_RESET_REQUIRED.value,
        )

    def set_password_expiry(self, user_id: int, expires_in_days: int = 90) -> datetime:
        user = self.get_user(user_id)
        user.password_expires_at = datetime.utcnow() + timedelta(days=expires_in_days)
        self.db.commit()
        return user.password_expires_at

    def record_failed_login(
        self,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.log_security_event(
            user_id,
            event_type=SecurityEventType.MULTIPLE_FAILED_ATTEMPTS.value,
            severity=SecuritySeverity.LOW.value,
            description="Failed password login attempt",
            ip_address=ip_address,
            user_agent=user_agent,
        )
