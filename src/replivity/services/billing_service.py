"""
Billing Service - plans, active subscriptions and usage counters
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from ..db.models import (
    ACTIVE_BILLING_STATUSES,
    Billing,
    BillingStatus,
    Product,
    Usage,
    User,
)
from ..exceptions import NotFoundError

logger = logging.getLogger(__name__)


def serialize_product(product: Product) -> Dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": float(product.price or 0),
        "type": product.type,
        "mode": product.mode,
        "limit": product.limit,
        "has_trial": product.has_trial,
        "trial_duration": product.trial_duration,
        "trial_usage_limit": product.trial_usage_limit,
        "marketing_taglines": product.marketing_taglines or [],
        "status": product.status,
        "price_id": product.price_id,
        "is_free": product.is_free,
    }


class BillingService:
    """Lookups and updates for products, billing records and usage rows"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_billing(self, user_id: int) -> Optional[Billing]:
        """The user's current active billing record (with its product), if any"""
        return (
            self.db.query(Billing)
            .options(joinedload(Billing.product))
            .filter(
                Billing.user_id == user_id,
                Billing.status.in_(ACTIVE_BILLING_STATUSES),
            )
            .order_by(Billing.created_at.desc(), Billing.id.desc())
            .first()
        )

    def get_usage(self, user_id: int, product_id: int) -> Optional[Usage]:
        return self.db.query(Usage).filter(
            Usage.user_id == user_id,
            Usage.product_id == product_id,
        ).first()

    def increment_usage(self, user_id: int, product_id: int, amount: int = 1) -> Usage:
        """Add to the usage counter, creating the row on first use"""
        usage = self.get_usage(user_id, product_id)
        if usage is None:
            usage = Usage(user_id=user_id, product_id=product_id, used=amount)
            self.db.add(usage)
        else:
            usage.used = (usage.used or 0) + amount
            usage.updated_at = datetime.utcnow()
        self.db.flush()
        return usage

    def get_usage_summary(self, user: User) -> Dict:
        """Plan, used and remaining generations for a user"""
        billing = self.get_active_billing(user.id)
        if billing is None or billing.product is None:
            return {
                "plan": None,
                "used": 0,
                "limit": 0,
                "remaining": 0,
                "unlimited": bool(user.is_admin),
            }

        usage = self.get_usage(user.id, billing.product_id)
        used = usage.used if usage else 0
        limit = billing.product.limit or 0
        return {
            "plan": serialize_product(billing.product),
            "used": used,
            "limit": limit,
            "remaining": max(limit - used, 0),
            "unlimited": bool(user.is_admin),
            "current_period_end": billing.current_period_end.isoformat() if billing.current_period_end else None,
        }

    def list_products(self, include_inactive: bool = False) -> List[Product]:
        query = self.db.query(Product)
        if not include_inactive:
            query = query.filter(Product.status == "active")
        return query.order_by(Product.price.asc(), Product.id.asc()).all()

    def get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, **fields) -> Product:
        product = Product(**fields)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def assign_plan(
        self,
        user_id: int,
        product_id: int,
        provider: str = "manual",
        current_period_end: Optional[datetime] = None,
    ) -> Billing:
        """
        Make `product_id` the user's active plan

        Any other active billing record is canceled, and the usage row for the new
        (user, product) pair is created or reset to zero.
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        product = self.get_product(product_id)

        now = datetime.utcnow()
        previous = self.db.query(Billing).filter(
            Billing.user_id == user_id,
            Billing.status.in_(ACTIVE_BILLING_STATUSES),
        ).all()
        for record in previous:
            record.status = BillingStatus.CANCELED.value
            record.canceled_at = now

        billing = Billing(
            user_id=user_id,
            product_id=product.id,
            status=BillingStatus.ACTIVE.value,
            provider=provider,
            amount=product.price or 0,
            currency="USD",
            interval=product.mode,
            current_period_start=now,
            current_period_end=current_period_end,
        )
        self.db.add(billing)

        usage = self.get_usage(user_id, product.id)
        if usage is None:
            self.db.add(Usage(user_id=user_id, product_id=product.id, used=0))
        else:
            usage.used = 0
            usage.updated_at = now

        self.db.commit()
        self.db.refresh(billing)
        logger.info(f"Assigned product {product.id} to user {user_id} (canceled {len(previous)} previous)")
        return billing
