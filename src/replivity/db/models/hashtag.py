"""
Saved hashtag templates and custom hashtag sets
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from datetime import datetime

from ..base import Base, JSONType

HASHTAG_PLATFORMS = ("instagram", "twitter", "facebook", "linkedin", "all")


class HashtagTemplate(Base):
    """Reusable hashtag list; creation is limited by the user's plan"""
    __tablename__ = "hashtag_templates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    hashtags = Column(JSONType, nullable=False)  # list of "#tag" strings
    category = Column(String(100), nullable=False, default="general", index=True)
    platform = Column(String(20), nullable=False, default="all")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class HashtagSet(Base):
    """Custom hashtag set from the hashtag generator"""
    __tablename__ = "hashtag_sets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    hashtags = Column(JSONType, nullable=False)
    platform = Column(String(20), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    tags = Column(JSONType, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False, index=True)
