"""
Product (plan), billing record and usage counter models
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, Text, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..base import Base, JSONType


class BillingStatus(str, enum.Enum):
    """Billing record status enum"""
    PENDING = "pending"
    ACTIVE = "active"
    APPROVED = "APPROVED"  # as reported by some payment providers
    CANCELED = "canceled"
    EXPIRED = "expired"


ACTIVE_BILLING_STATUSES = (BillingStatus.ACTIVE.value, BillingStatus.APPROVED.value)


class Product(Base):
    """A purchasable plan with a generation limit"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    type = Column(String, nullable=False, default="subscription")
    mode = Column(String, nullable=False, default="monthly")
    limit = Column(Integer, nullable=True)
    has_trial = Column(Boolean, default=False, nullable=False)
    trial_duration = Column(Integer, nullable=True)
    trial_usage_limit = Column(Integer, nullable=True)
    marketing_taglines = Column(JSONType, nullable=True)
    status = Column(String, nullable=False, default="active", index=True)
    price_id = Column(String, nullable=True)
    is_free = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    feature_permissions = relationship(
        "FeaturePermission", back_populates="product", cascade="all, delete-orphan"
    )


class Billing(Base):
    """A user's subscription to a product"""
    __tablename__ = "billing"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=BillingStatus.PENDING.value, index=True)
    provider = Column(String, nullable=False, default="manual")
    provider_transaction_id = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="USD")
    interval = Column(String, nullable=True)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    canceled_at = Column(DateTime, nullable=True)
    metadata_json = Column("metadata", JSONType, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="billings")
    product = relationship("Product")

    __table_args__ = (
        Index("ix_billing_user_product_status", "user_id", "product_id", "status"),
    )


class Usage(Base):
    """Generations used by a user against a product"""
    __tablename__ = "usage"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    used = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_usage_user_product"),
    )
