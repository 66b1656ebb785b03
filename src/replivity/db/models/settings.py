"""
Global application settings (single row)
"""
from sqlalchemy import Column, Integer, DateTime
from datetime import datetime

from ..base import Base, JSONType

DEFAULT_ACCOUNT_SETTINGS = {
    "brandName": "",
    "brandTone": "professional",
    "customTone": "",
    "brandValues": "",
    "customPrompt": "",
    "avoidKeywords": "",
    "brandKeywords": "",
    "targetAudience": "",
    "brandPersonality": "",
}


class Settings(Base):
    """Installation-wide settings; `general.ai` holds the AI provider configuration"""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    general = Column(JSONType, nullable=False, default=dict)
    account = Column(JSONType, nullable=False, default=lambda: dict(DEFAULT_ACCOUNT_SETTINGS))
    billing = Column(JSONType, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
