"""
Database models for Replivity
"""
from .user import User
from .billing import Product, Billing, Usage, BillingStatus, ACTIVE_BILLING_STATUSES
from .generation import Generation
from .settings import Settings
from .security_event import SecurityEvent, SecurityEventType, SecuritySeverity, SecurityAction
from .feature_permission import FeaturePermission
from .blog import (
    BlogPost,
    BlogCategory,
    BlogTag,
    BlogComment,
    BlogCommentLike,
    PostStatus,
    CommentStatus,
    blog_post_categories,
    blog_post_tags,
)
from .hashtag import HashtagTemplate, HashtagSet, HASHTAG_PLATFORMS

__all__ = [
    "User",
    "Product",
    "Billing",
    "Usage",
    "BillingStatus",
    "ACTIVE_BILLING_STATUSES",
    "Generation",
    "Settings",
    "SecurityEvent",
    "SecurityEventType",
    "SecuritySeverity",
    "SecurityAction",
    "FeaturePermission",
    "BlogPost",
    "BlogCategory",
    "BlogTag",
    "BlogComment",
    "BlogCommentLike",
    "PostStatus",
    "CommentStatus",
    "blog_post_categories",
    "blog_post_tags",
    "HashtagTemplate",
    "HashtagSet",
    "HASHTAG_PLATFORMS",
]
