"""
Per-product feature permission model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from ..base import Base


class FeaturePermission(Base):
    """Links a product to a feature key it may (or may not) use"""
    __tablename__ = "feature_permissions"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    feature_key = Column(String, nullable=False, index=True)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    product = relationship("Product", back_populates="feature_permissions")

    __table_args__ = (
        UniqueConstraint("product_id", "feature_key", name="uq_feature_permissions_product_feature"),
    )
