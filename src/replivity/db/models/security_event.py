"""
Security event model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..base import Base


class SecurityEventType(str, enum.Enum):
    SUSPICIOUS_LOGIN = "suspicious_login"
    PASSWORD_BREACH = "password_breach"
    MULTIPLE_FAILED_ATTEMPTS = "multiple_failed_attempts"
    ACCOUNT_COMPROMISE = "account_compromise"
    ADMIN_FORCED = "admin_forced"
    PASSWORD_EXPIRED = "password_expired"
    TWO_FACTOR_DISABLED = "two_factor_disabled"
    SESSION_HIJACK = "session_hijack"


class SecuritySeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SecurityAction(str, enum.Enum):
    PASSWORD_RESET_REQUIRED = "password_reset_required"
    ACCOUNT_LOCKED = "account_locked"
    SESSION_TERMINATED = "session_terminated"
    NOTIFICATION_SENT = "notification_sent"
    TWO_FACTOR_REQUIRED = "two_factor_required"


class SecurityEvent(Base):
    """Audit record of a security-relevant event on an account"""
    __tablename__ = "security_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_type = Column(String, nullable=False, index=True)
    severity = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    metadata_json = Column("metadata", Text, nullable=True)  # JSON string
    action_taken = Column(String, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="security_events")

    __table_args__ = (
        Index("ix_security_events_user_type_created", "user_id", "event_type", "created_at"),
    )
