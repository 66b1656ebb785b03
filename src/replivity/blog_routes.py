"""
Blog API routes - posts, categories, tags and comments
"""
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from .auth import get_current_user, get_optional_user, require_admin
from .db import User, get_db
from .schemas import (
    BlogPostCreate,
    BlogPostUpdate,
    BulkCommentDelete,
    BulkCommentModeration,
    CategoryCreate,
    CategoryUpdate,
    CommentCreate,
    CommentModeration,
    CommentUpdate,
    TagCreate,
    TagUpdate,
)
from .services.blog_service import BlogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/blog", tags=["blog"])


# Posts

@router.post("/posts", status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: BlogPostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).create_post(current_user, payload.model_dump())


@router.get("/posts")
async def list_posts(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: Optional[Literal["draft", "published", "archived"]] = Query(None, alias="status"),
    category_id: Optional[int] = None,
    tag_id: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=200),
    sort_by: Literal["created_at", "published_at", "title", "view_count"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
):
    return BlogService(db).list_posts(
        limit=limit,
        offset=offset,
        status=status_filter,
        category_id=category_id,
        tag_id=tag_id,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/posts/by-slug/{slug}")
async def get_post_by_slug(
    slug: str,
    increment_view: bool = False,
    db: Session = Depends(get_db),
):
    return BlogService(db).get_post(slug=slug, increment_view=increment_view)


@router.get("/posts/{post_id}")
async def get_post(
    post_id: int,
    increment_view: bool = False,
    db: Session = Depends(get_db),
):
    return BlogService(db).get_post(post_id=post_id, increment_view=increment_view)


@router.patch("/posts/{post_id}")
async def update_post(
    post_id: int,
    payload: BlogPostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).update_post(current_user, post_id, payload.model_dump(exclude_unset=True))


@router.delete("/posts/{post_id}")
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    BlogService(db).delete_post(current_user, post_id)
    return {"success": True}


@router.get("/stats")
async def get_blog_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).get_stats(current_user)


# Categories

@router.get("/categories")
async def list_categories(db: Session = Depends(get_db)):
    return BlogService(db).list_categories()


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).create_category(payload.model_dump())


@router.patch("/categories/{category_id}")
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).update_category(category_id, payload.model_dump(exclude_unset=True))


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    BlogService(db).delete_category(category_id)
    return {"success": True}


# Tags

@router.get("/tags")
async def list_tags(db: Session = Depends(get_db)):
    return BlogService(db).list_tags()


@router.post("/tags", status_code=status.HTTP_201_CREATED)
async def create_tag(
    payload: TagCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).create_tag(payload.model_dump())


@router.patch("/tags/{tag_id}")
async def update_tag(
    tag_id: int,
    payload: TagUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).update_tag(tag_id, payload.model_dump(exclude_unset=True))


@router.delete("/tags/{tag_id}")
async def delete_tag(
    tag_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    BlogService(db).delete_tag(tag_id)
    return {"success": True}


# Comments

@router.post("/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    payload: CommentCreate,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Submit a comment; anonymous visitors may comment, every comment awaits moderation"""
    return BlogService(db).create_comment(
        payload.model_dump(),
        user=current_user,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.get("/comments")
async def list_comments(
    post_id: Optional[int] = None,
    status_filter: Optional[Literal["pending", "approved", "rejected", "spam"]] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: Literal["created_at", "like_count"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
):
    return BlogService(db).list_comments(
        post_id=post_id,
        status=status_filter,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("/comments/bulk-moderate")
async def bulk_moderate_comments(
    payload: BulkCommentModeration,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return BlogService(db).bulk_moderate(payload.comment_ids, payload.status)


@router.post("/comments/bulk-delete")
async def bulk_delete_comments(
    payload: BulkCommentDelete,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return BlogService(db).bulk_delete(payload.comment_ids)


@router.patch("/comments/{comment_id}")
async def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).update_comment(current_user, comment_id, payload.model_dump(exclude_unset=True))


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    BlogService(db).delete_comment(current_user, comment_id)
    return {"success": True}


@router.post("/comments/{comment_id}/like")
async def toggle_comment_like(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BlogService(db).toggle_like(current_user, comment_id)


@router.post("/comments/{comment_id}/moderate")
async def moderate_comment(
    comment_id: int,
    payload: CommentModeration,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return BlogService(db).moderate_comment(comment_id, payload.status)
