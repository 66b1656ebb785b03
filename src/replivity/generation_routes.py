"""
Generation API routes - reply generation and generation statistics
"""
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .auth import get_current_user
from .db import User, get_db
from .exceptions import ForbiddenError
from .schemas import GenerationRequest
from .services.generation_service import HASHTAG_GENERATOR_AUTHOR, GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/generations", tags=["generations"])


class TrackedSource(str, Enum):
    facebook = "facebook"
    twitter = "twitter"
    linkedin = "linkedin"


def _scope(current_user: User, site_wide: bool) -> Optional[int]:
    """User id to filter on, or None for site-wide figures (admins only)"""
    if site_wide:
        if not current_user.is_admin:
            raise ForbiddenError("Admin access required for site-wide statistics")
        return None
    return current_user.id


@router.post("/generate")
async def generate(
    request: GenerationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Generate a reply (or status) for a social post

    Returns the text together with the remaining plan usage, the model's
    confidence and the context analysis it worked from.
    """
    # Model calls block for up to AI_REQUEST_TIMEOUT each
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None,
        lambda: GenerationService(db).generate(current_user, request),
    )


@router.get("/stats/hashtags")
async def get_hashtag_stats(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    site_wide: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GenerationService(db).get_stats(
        _scope(current_user, site_wide),
        author=HASHTAG_GENERATOR_AUTHOR,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/stats/{source}")
async def get_source_stats(
    source: TrackedSource,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    site_wide: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Total generations for one platform and the change against last month"""
    return GenerationService(db).get_stats(
        _scope(current_user, site_wide),
        source=source.value,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/overview")
async def get_sources_overview(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GenerationService(db).get_sources_overview(current_user.id)


@router.get("/daily")
async def get_daily_stats(
    days: int = Query(30, ge=1, le=90),
    site_wide: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GenerationService(db).get_daily_stats(_scope(current_user, site_wide), days)


@router.get("/totals")
async def get_source_totals(
    site_wide: bool = False,
    user_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user_id is not None and user_id != current_user.id:
        if not current_user.is_admin:
            raise ForbiddenError("Admin access required to view another user's statistics")
        return GenerationService(db).get_source_totals(user_id)

    return GenerationService(db).get_source_totals(_scope(current_user, site_wide))


@router.get("/history")
async def get_history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GenerationService(db).get_history(current_user.id, limit=limit, offset=offset)
