"""
Custom hashtag set API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .auth import get_current_user
from .db import User, get_db
from .schemas import HashtagSetCreate
from .services.hashtag_set_service import HashtagSetService

router = APIRouter(prefix="/v1/hashtag-sets", tags=["hashtags"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_hashtag_set(
    payload: HashtagSetCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return HashtagSetService(db).create_set(current_user, payload.model_dump())


@router.get("")
async def list_hashtag_sets(
    category: Optional[str] = Query(None, max_length=100),
    platform: Optional[str] = Query(None, max_length=20),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return HashtagSetService(db).list_sets(
        current_user,
        category=category,
        platform=platform,
        limit=limit,
        offset=offset,
    )


@router.get("/{set_id}")
async def get_hashtag_set(
    set_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return HashtagSetService(db).get_set(current_user, set_id)


@router.put("/{set_id}")
async def replace_hashtag_set(
    set_id: int,
    payload: HashtagSetCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return HashtagSetService(db).replace_set(current_user, set_id, payload.model_dump())


@router.delete("/{set_id}")
async def delete_hashtag_set(
    set_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    HashtagSetService(db).delete_set(current_user, set_id)
    return {"success": True}
