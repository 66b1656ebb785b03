"""
Billing API routes - products, plan assignment, usage and AI settings
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import get_current_user, require_admin
from .db import User, get_db
from .schemas import AISettingsUpdate, AssignPlanRequest, ProductCreate
from .services.billing_service import BillingService, serialize_product
from .services.settings_service import SettingsService

logger = logging.getLogger(__name__)

products_router = APIRouter(prefix="/v1/products", tags=["billing"])
router = APIRouter(prefix="/v1/billing", tags=["billing"])
usage_router = APIRouter(prefix="/v1/usage", tags=["billing"])
settings_router = APIRouter(prefix="/v1/settings", tags=["settings"])


@products_router.get("")
async def list_products(db: Session = Depends(get_db)):
    """Active products, cheapest first"""
    return [serialize_product(p) for p in BillingService(db).list_products()]


@products_router.post("")
async def create_product(
    payload: ProductCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump()
    fields["is_free"] = payload.is_free or payload.price == 0
    product = BillingService(db).create_product(**fields)
    logger.info(f"Admin {admin.id} created product {product.id}")
    return serialize_product(product)


@router.post("/assign")
async def assign_plan(
    payload: AssignPlanRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Give a user a plan

    Any existing active billing record is canceled and the user's usage counter
    for the new product starts from zero.
    """
    billing = BillingService(db).assign_plan(
        payload.user_id,
        payload.product_id,
        provider=payload.provider,
        current_period_end=payload.current_period_end,
    )
    return {
        "id": billing.id,
        "user_id": billing.user_id,
        "product_id": billing.product_id,
        "status": billing.status,
        "provider": billing.provider,
        "current_period_start": billing.current_period_start.isoformat() if billing.current_period_start else None,
        "current_period_end": billing.current_period_end.isoformat() if billing.current_period_end else None,
    }


@usage_router.get("")
async def get_usage(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BillingService(db).get_usage_summary(current_user)


@settings_router.get("/ai")
async def get_ai_settings(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return SettingsService(db).get_public_ai_settings()


@settings_router.put("/ai")
async def update_ai_settings(
    payload: AISettingsUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return SettingsService(db).update_ai_settings(
        api_key=payload.api_key,
        api_base=payload.api_base,
        enabled_models=payload.enabled_models,
        system_prompt=payload.system_prompt,
    )
