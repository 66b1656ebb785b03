"""
Database module for Replivity
"""
from .engine import engine, SessionLocal, get_db, init_db
from .base import Base
from .models import (
    User,
    Product,
    Billing,
    Usage,
    Generation,
    Settings,
    SecurityEvent,
    FeaturePermission,
    BlogPost,
    BlogCategory,
    BlogTag,
    BlogComment,
    BlogCommentLike,
    HashtagTemplate,
    HashtagSet,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "Base",
    "User",
    "Product",
    "Billing",
    "Usage",
    "Generation",
    "Settings",
    "SecurityEvent",
    "FeaturePermission",
    "BlogPost",
    "BlogCategory",
    "BlogTag",
    "BlogComment",
    "BlogCommentLike",
    "HashtagTemplate",
    "HashtagSet",
]
