"""
Generated reply model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from ..base import Base


class Generation(Base):
    """A reply or caption produced for a user"""
    __tablename__ = "generations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    source = Column(String, nullable=False, index=True)
    link = Column(Text, nullable=True)
    post = Column(Text, nullable=False)
    reply = Column(Text, nullable=False)
    author = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    product = relationship("Product")

    __table_args__ = (
        Index("ix_generations_user_product", "user_id", "product_id"),
    )
