"""
Hashtag template API routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .auth import get_current_user
from .db import User, get_db
from .schemas import HashtagPlatform, TemplateCreate, TemplateUpdate
from .services.template_service import TemplateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/templates", tags=["templates"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: TemplateCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save a hashtag template; needs an active plan with room left"""
    return TemplateService(db).create_template(current_user, payload.model_dump())


@router.get("")
async def list_templates(
    category: Optional[str] = Query(None, max_length=100),
    platform: Optional[HashtagPlatform] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TemplateService(db).list_templates(
        current_user,
        category=category,
        platform=platform,
        limit=limit,
        offset=offset,
    )


@router.get("/categories")
async def get_template_categories(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TemplateService(db).get_categories(current_user)


@router.get("/usage")
async def get_template_usage(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TemplateService(db).get_usage_stats(current_user)


@router.get("/{template_id}")
async def get_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TemplateService(db).get_template(current_user, template_id)


@router.patch("/{template_id}")
async def update_template(
    template_id: int,
    payload: TemplateUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TemplateService(db).update_template(
        current_user, template_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{template_id}")
async def delete_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    TemplateService(db).delete_template(current_user, template_id)
    return {"success": True}


@router.post("/{template_id}/duplicate", status_code=status.HTTP_201_CREATED)
async def duplicate_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TemplateService(db).duplicate_template(current_user, template_id)
