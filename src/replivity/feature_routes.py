"""
Feature permission API routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import get_current_user, require_admin
from .db import User, get_db
from .schemas import ProductFeaturesUpdate
from .services.billing_service import BillingService
from .services.feature_permissions_service import (
    AVAILABLE_FEATURES,
    FeaturePermissionsService,
    describe_features,
)

router = APIRouter(prefix="/v1/features", tags=["features"])


@router.get("")
async def list_available_features():
    """The feature catalogue"""
    return describe_features(AVAILABLE_FEATURES)


@router.get("/me")
async def get_my_features(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return FeaturePermissionsService(db).get_user_features(current_user)


@router.get("/access/{feature_key}")
async def check_feature_access(
    feature_key: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    has_access = FeaturePermissionsService(db).has_feature_access(current_user, feature_key)
    return {"feature_key": feature_key, "has_access": has_access}


@router.get("/products")
async def list_products_with_feature_counts(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return FeaturePermissionsService(db).get_products_with_feature_counts()


@router.get("/products/{product_id}")
async def get_product_features(
    product_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    BillingService(db).get_product(product_id)
    return FeaturePermissionsService(db).get_product_features(product_id)


@router.put("/products/{product_id}")
async def update_product_features(
    product_id: int,
    payload: ProductFeaturesUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    BillingService(db).get_product(product_id)
    return FeaturePermissionsService(db).update_product_features(
        product_id,
        [feature.model_dump() for feature in payload.features],
    )
