"""
Template Service - saved hashtag templates

Templates belong to one user. Creating or duplicating one needs an active
plan, and the number a user may keep depends on that plan.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db.models import Billing, HashtagTemplate, User
from ..exceptions import NoActiveSubscription, NotFoundError, UsageLimitExceeded
from .billing_service import BillingService

logger = logging.getLogger(__name__)

PRO_TEMPLATE_LIMIT = 100
DEFAULT_TEMPLATE_LIMIT = 20
DEFAULT_CATEGORY = "general"


def template_limit(billing: Optional[Billing]) -> int:
    """Pro plans keep 100 templates, every other plan 20"""
    name = billing.product.name if billing and billing.product else ""
    return PRO_TEMPLATE_LIMIT if "pro" in (name or "").lower() else DEFAULT_TEMPLATE_LIMIT


def serialize_template(template: HashtagTemplate) -> Dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "hashtags": list(template.hashtags or []),
        "category": template.category,
        "platform": template.platform,
        "created_at": template.created_at.isoformat() if template.created_at else None,
        "updated_at": template.updated_at.isoformat() if template.updated_at else None,
    }


class TemplateService:
    def __init__(self, db: Session):
        self.db = db

    def _owned(self, user: User):
        return self.db.query(HashtagTemplate).filter(HashtagTemplate.user_id == user.id)

    def _get(self, user: User, template_id: int) -> HashtagTemplate:
        # Other users' templates are reported as missing
        template = self._owned(user).filter(HashtagTemplate.id == template_id).first()
        if template is None:
            raise NotFoundError("Template not found")
        return template

    def _check_quota(self, user: User, action: str) -> None:
        billing = BillingService(self.db).get_active_billing(user.id)
        if billing is None:
            raise NoActiveSubscription(f"Active subscription required to {action} templates")

        limit = template_limit(billing)
        used = self._owned(user).count()
        if used >= limit:
            raise UsageLimitExceeded(
                used=used,
                limit=limit,
                plan=billing.product.name,
                message=f"Template creation limit reached ({limit})",
            )

    def create_template(self, user: User, data: Dict[str, Any]) -> Dict[str, Any]:
        self._check_quota(user, "create")

        template = HashtagTemplate(
            user_id=user.id,
            name=data["name"],
            description=data.get("description"),
            hashtags=data["hashtags"],
            category=data.get("category") or DEFAULT_CATEGORY,
            platform=data.get("platform") or "all",
        )
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)

        logger.info(f"User {user.id} created hashtag template {template.id}")
        return serialize_template(template)

    def list_templates(
        self,
        user: User,
        category: Optional[str] = None,
        platform: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Dict[str, Any]:
        query = self._owned(user)
        if category:
            query = query.filter(HashtagTemplate.category == category)
        if platform and platform != "all":
            query = query.filter(HashtagTemplate.platform.in_([platform, "all"]))

        total_count = query.count()
        templates = (
            query.order_by(HashtagTemplate.created_at.desc(), HashtagTemplate.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {
            "templates": [serialize_template(t) for t in templates],
            "total_count": total_count,
            "has_more": offset + limit < total_count,
        }

    def get_template(self, user: User, template_id: int) -> Dict[str, Any]:
        return serialize_template(self._get(user, template_id))

    def update_template(self, user: User, template_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        template = self._get(user, template_id)

        for field in ("name", "hashtags", "platform"):
            if data.get(field) is not None:
                setattr(template, field, data[field])
        if "description" in data:
            template.description = data["description"]
        if "category" in data:
            template.category = data["category"] or DEFAULT_CATEGORY

        self.db.commit()
        self.db.refresh(template)
        return serialize_template(template)

    def delete_template(self, user: User, template_id: int) -> None:
        template = self._get(user, template_id)
        self.db.delete(template)
        self.db.commit()

    def duplicate_template(self, user: User, template_id: int) -> Dict[str, Any]:
        self._check_quota(user, "duplicate")
        original = self._get(user, template_id)

        copy = HashtagTemplate(
            user_id=user.id,
            name=f"{original.name} (Copy)",
            description=original.description,
            hashtags=list(original.hashtags or []),
            category=original.category,
            platform=original.platform,
        )
        self.db.add(copy)
        self.db.commit()
        self.db.refresh(copy)
        return serialize_template(copy)

    def get_categories(self, user: User) -> List[str]:
        rows = (
            self.db.query(HashtagTemplate.category)
            .filter(HashtagTemplate.user_id == user.id)
            .distinct()
            .order_by(HashtagTemplate.category)
            .all()
        )
        return [category for (category,) in rows if category]

    def get_usage_stats(self, user: User) -> Dict[str, Any]:
        billing = BillingService(self.db).get_active_billing(user.id)
        limit = template_limit(billing)
        current = self.db.query(func.count(HashtagTemplate.id)).filter(
            HashtagTemplate.user_id == user.id
        ).scalar() or 0
        return {
            "current": current,
            "limit": limit,
            "percentage": round(current / limit * 100),
            "has_active_subscription": billing is not None,
        }
