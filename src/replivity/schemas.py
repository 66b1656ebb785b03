"""
Pydantic request schemas
"""
import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _validate_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not HEX_COLOR_PATTERN.match(value):
        raise ValueError("Color must be a hex value like #1A2B3C")
    return value.upper() if value else value


# Generations

class QuotedPost(BaseModel):
    handle: str = Field(..., max_length=100)
    text: str = Field(..., max_length=10000)


class GenerationRequest(BaseModel):
    """A post to reply to, or a topic to write a status about"""
    source: Literal["twitter", "x", "facebook", "linkedin", "instagram"]
    type: Literal["reply", "status"] = "reply"
    post: str = Field(..., min_length=1, max_length=10000)
    tone: str = Field("casual", max_length=50)
    author: Optional[str] = Field(None, max_length=200)
    link: Optional[str] = Field(None, max_length=2000)
    url: Optional[str] = Field(None, max_length=2000)
    images: List[str] = Field(default_factory=list, max_length=20)
    video: bool = False
    quoted_post: Optional[QuotedPost] = None

    @field_validator("tone")
    @classmethod
    def normalize_tone(cls, v):
        return v.strip().lower() or "casual"


# Products and billing

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    type: str = "subscription"
    mode: str = "monthly"
    limit: Optional[int] = Field(None, ge=0)
    has_trial: bool = False
    trial_duration: Optional[int] = Field(None, ge=0)
    trial_usage_limit: Optional[int] = Field(None, ge=0)
    price_id: Optional[str] = None
    is_free: bool = False
    marketing_taglines: Optional[List[str]] = None


class AssignPlanRequest(BaseModel):
    user_id: int
    product_id: int
    provider: str = "manual"
    current_period_end: Optional[datetime] = None


class AISettingsUpdate(BaseModel):
    api_key: Optional[str] = Field(None, max_length=500)
    api_base: Optional[str] = Field(None, max_length=500)
    enabled_models: Optional[List[str]] = None
    system_prompt: Optional[str] = Field(None, max_length=10000)


# Feature permissions

class FeatureToggle(BaseModel):
    feature_key: str
    enabled: bool = True


class ProductFeaturesUpdate(BaseModel):
    features: List[FeatureToggle]


# Security

SecurityEventTypeName = Literal[
    "suspicious_login",
    "password_breach",
    "multiple_failed_attempts",
    "account_compromise",
    "admin_forced",
    "password_expired",
    "two_factor_disabled",
    "session_hijack",
]
SeverityName = Literal["low", "medium", "high", "critical"]
SecurityActionName = Literal[
    "password_reset_required",
    "account_locked",
    "session_terminated",
    "notification_sent",
    "two_factor_required",
]


class SecurityEventCreate(BaseModel):
    user_id: int
    event_type: SecurityEventTypeName
    severity: SeverityName
    description: str = Field(..., min_length=1, max_length=2000)
    ip_address: Optional[str] = Field(None, max_length=45)
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    action_taken: Optional[SecurityActionName] = None


class ForcePasswordResetRequest(BaseModel):
    user_id: int
    reason: str = Field(..., min_length=1, max_length=500)
    expires_in_days: int = Field(7, ge=1, le=365)
    notify_user: bool = True


class PasswordBreachReport(BaseModel):
    breach_source: str = Field(..., min_length=1, max_length=200)
    breach_count: int = Field(..., ge=1)


class PasswordExpiryRequest(BaseModel):
    user_id: int
    days: int = Field(90, ge=1, le=3650)


class SuspiciousLoginCheck(BaseModel):
    ip_address: Optional[str] = Field(None, max_length=45)
    user_agent: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# Blog

PostStatusName = Literal["draft", "published", "archived"]


class BlogPostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=500)
    excerpt: Optional[str] = None
    content: str = Field(..., min_length=1)
    featured_image: Optional[str] = Field(None, max_length=500)
    status: PostStatusName = "draft"
    published_at: Optional[datetime] = None
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = None
    category_ids: List[int] = Field(default_factory=list)
    tag_ids: List[int] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = Field(None, min_length=1, max_length=500)
    excerpt: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    featured_image: Optional[str] = Field(None, max_length=500)
    status: Optional[PostStatusName] = None
    published_at: Optional[datetime] = None
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = None
    category_ids: Optional[List[int]] = None
    tag_ids: Optional[List[int]] = None
    metadata: Optional[Dict[str, Any]] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _validate_color(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _validate_color(v)


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    slug: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _validate_color(v)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    slug: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return _validate_color(v)


CommentStatusName = Literal["pending", "approved", "rejected", "spam"]
ModerationStatusName = Literal["approved", "rejected", "spam"]


class CommentCreate(BaseModel):
    post_id: int
    parent_id: Optional[int] = None
    author_name: str = Field(..., min_length=1, max_length=100)
    author_email: EmailStr
    author_website: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1, max_length=5000)


class CommentUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    status: Optional[CommentStatusName] = None


class CommentModeration(BaseModel):
    status: ModerationStatusName


class BulkCommentModeration(BaseModel):
    comment_ids: List[int] = Field(..., min_length=1)
    status: ModerationStatusName


class BulkCommentDelete(BaseModel):
    comment_ids: List[int] = Field(..., min_length=1)


# Hashtag templates and sets

HashtagPlatform = Literal["instagram", "twitter", "facebook", "linkedin", "all"]

MAX_TEMPLATE_HASHTAGS = 30


def _normalize_hashtags(values: Optional[List[str]]) -> Optional[List[str]]:
    """Strip, prefix with '#' and drop blanks and duplicates, keeping order"""
    if values is None:
        return values
    hashtags = []
    for value in values:
        tag = value.strip().lstrip("#").strip()
        if tag and f"#{tag}" not in hashtags:
            hashtags.append(f"#{tag}")
    if not hashtags:
        raise ValueError("At least one hashtag is required")
    return hashtags


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    hashtags: List[str] = Field(..., min_length=1, max_length=MAX_TEMPLATE_HASHTAGS)
    category: Optional[str] = Field(None, max_length=100)
    platform: HashtagPlatform = "all"

    @field_validator("hashtags")
    @classmethod
    def normalize_hashtags(cls, v):
        return _normalize_hashtags(v)


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    hashtags: Optional[List[str]] = Field(None, min_length=1, max_length=MAX_TEMPLATE_HASHTAGS)
    category: Optional[str] = Field(None, max_length=100)
    platform: Optional[HashtagPlatform] = None

    @field_validator("hashtags")
    @classmethod
    def normalize_hashtags(cls, v):
        return _normalize_hashtags(v)


class HashtagSetCreate(BaseModel):
    """Also used for full replacement on update"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    hashtags: List[str] = Field(..., min_length=1, max_length=100)
    platform: HashtagPlatform
    category: str = Field(..., min_length=1, max_length=100)
    tags: List[str] = Field(default_factory=list, max_length=20)
    is_public: bool = False

    @field_validator("hashtags")
    @classmethod
    def normalize_hashtags(cls, v):
        return _normalize_hashtags(v)
