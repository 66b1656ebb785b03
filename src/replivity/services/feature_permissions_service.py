"""
Feature Permissions Service - which product unlocks which tool
"""
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db.models import FeaturePermission, Product, User
from ..exceptions import BadRequestError
from .billing_service import BillingService

logger = logging.getLogger(__name__)

# key -> (display name, description)
AVAILABLE_FEATURES = OrderedDict([
    ("ai_caption_generator", ("AI Caption Generator",
                              "Generate engaging social media captions from images using AI")),
    ("tweet_generator", ("Tweet Generator",
                         "Create human-like tweets that pass AI detection")),
    ("bio_optimizer", ("Bio & Profile Optimizer",
                       "Optimize social media bios and profiles for better engagement")),
    ("browser_extension", ("Browser Extension",
                           "Real-time social media response generation via browser extension")),
    ("link_in_bio_creator", ("Link-in-Bio Creator",
                             "Create custom link-in-bio pages for social media profiles")),
    ("profile_audit", ("Profile Audit & Suggestions",
                       "Comprehensive analysis and suggestions for social media profiles")),
    ("ab_testing", ("A/B Testing for Profiles",
                    "Test different profile variations to optimize performance")),
    ("hashtag_generator", ("Hashtag Generator",
                           "Generate relevant hashtags for social media posts")),
    ("blog_management", ("Blog Management",
                         "Manage and publish blog content (Admin only)")),
    ("comment_moderation", ("Comment Moderation",
                            "Moderate and manage user comments (Admin only)")),
    ("reports", ("Reports",
                 "Access detailed reports and insights (Admin only)")),
    ("analytics", ("Analytics",
                   "View comprehensive analytics dashboard (Admin only)")),
    ("products_management", ("Products Management",
                             "Manage products and pricing plans (Admin only)")),
    ("users_management", ("Users Management",
                          "Manage user accounts and permissions (Admin only)")),
])

FREE_PLAN_FEATURES = ["browser_extension"]
BASIC_PLAN_FEATURES = ["browser_extension", "ai_caption_generator"]
PRO_PLAN_FEATURES = ["browser_extension", "ai_caption_generator", "tweet_generator", "bio_optimizer"]


def get_feature_display_name(feature_key: str) -> str:
    entry = AVAILABLE_FEATURES.get(feature_key)
    return entry[0] if entry else feature_key


def get_feature_description(feature_key: str) -> str:
    entry = AVAILABLE_FEATURES.get(feature_key)
    return entry[1] if entry else "Feature description not available"


def describe_features(keys: Iterable[str]) -> List[Dict[str, str]]:
    return [
        {
            "key": key,
            "name": get_feature_display_name(key),
            "description": get_feature_description(key),
        }
        for key in keys
    ]


def default_features_for_product(product: Product) -> List[str]:
    """Default feature set by plan tier, used when seeding products"""
    price = float(product.price or 0)
    if product.is_free or price == 0:
        return list(FREE_PLAN_FEATURES)
    if "basic" in (product.name or "").lower() or price < 20:
        return list(BASIC_PLAN_FEATURES)
    return list(PRO_PLAN_FEATURES)


class FeaturePermissionsService:

    def __init__(self, db: Session):
        self.db = db

    def get_product_features(self, product_id: int) -> List[Dict]:
        """Every catalogue feature with whether the product enables it"""
        rows = self.db.query(FeaturePermission).filter(
            FeaturePermission.product_id == product_id
        ).all()
        enabled = {row.feature_key: row.enabled for row in rows}

        return [
            {**feature, "enabled": enabled.get(feature["key"], False)}
            for feature in describe_features(AVAILABLE_FEATURES)
        ]

    def update_product_features(self, product_id: int, features: List[Dict]) -> List[Dict]:
        """Replace the product's permission rows"""
        unknown = [f["feature_key"] for f in features if f["feature_key"] not in AVAILABLE_FEATURES]
        if unknown:
            raise BadRequestError(f"Unknown feature keys: {', '.join(sorted(set(unknown)))}")

        self.db.query(FeaturePermission).filter(
            FeaturePermission.product_id == product_id
        ).delete(synchronize_session=False)

        seen = set()
        for feature in features:
            if feature["feature_key"] in seen:
                continue
            seen.add(feature["feature_key"])
            self.db.add(FeaturePermission(
                product_id=product_id,
                feature_key=feature["feature_key"],
                enabled=feature.get("enabled", True),
            ))

        self.db.commit()
        logger.info(f"Updated feature permissions for product {product_id}: {sorted(seen)}")
        return self.get_product_features(product_id)

    def get_user_feature_keys(self, user: User) -> List[str]:
        """Admins get every feature; others get their active plan's enabled features"""
        if user.is_admin:
            return list(AVAILABLE_FEATURES)

        billing = BillingService(self.db).get_active_billing(user.id)
        if billing is None:
            return []

        rows = self.db.query(FeaturePermission.feature_key).filter(
            FeaturePermission.product_id == billing.product_id,
            FeaturePermission.enabled.is_(True),
        ).all()
        enabled = {key for (key,) in rows}
        return [key for key in AVAILABLE_FEATURES if key in enabled]

    def get_user_features(self, user: User) -> List[Dict[str, str]]:
        return describe_features(self.get_user_feature_keys(user))

    def has_feature_access(self, user: User, feature_key: str) -> bool:
        return feature_key in self.get_user_feature_keys(user)

    def get_products_with_feature_counts(self) -> List[Dict]:
        counts = dict(
            self.db.query(FeaturePermission.product_id, func.count(FeaturePermission.id))
            .filter(FeaturePermission.enabled.is_(True))
            .group_by(FeaturePermission.product_id)
            .all()
        )
        products = self.db.query(Product).order_by(Product.price.asc(), Product.id.asc()).all()

        return [
            {
                "id": product.id,
                "name": product.name,
                "price": float(product.price or 0),
                "status": product.status,
                "enabled_feature_count": counts.get(product.id, 0),
                "total_feature_count": len(AVAILABLE_FEATURES),
            }
            for product in products
        ]
