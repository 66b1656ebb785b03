"""
Blog Service - posts, categories, tags and threaded comments
"""
import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ..db.models import (
    BlogCategory,
    BlogComment,
    BlogCommentLike,
    BlogPost,
    BlogTag,
    CommentStatus,
    PostStatus,
    User,
)
from ..exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
REPLY_DEPTH = 3

POST_SORT_COLUMNS = {
    "created_at": BlogPost.created_at,
    "published_at": BlogPost.published_at,
    "title": BlogPost.title,
    "view_count": BlogPost.view_count,
}

COMMENT_SORT_COLUMNS = {
    "created_at": BlogComment.created_at,
    "like_count": BlogComment.like_count,
}


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9 -]", "", (text or "").lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so search terms match literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def calculate_reading_time(content: str) -> int:
    """Minutes at 200 words per minute, at least one"""
    words = len((content or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_author(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.display_name, "image": user.image}


def serialize_category(category: BlogCategory) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "color": category.color,
        "is_active": category.is_active,
    }


def serialize_tag(tag: BlogTag) -> Dict[str, Any]:
    return {
        "id": tag.id,
        "name": tag.name,
        "slug": tag.slug,
        "color": tag.color,
        "is_active": tag.is_active,
    }


def serialize_post(post: BlogPost) -> Dict[str, Any]:
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "excerpt": post.excerpt,
        "content": post.content,
        "featured_image": post.featured_image,
        "status": post.status,
        "published_at": _iso(post.published_at),
        "seo_title": post.seo_title,
        "seo_description": post.seo_description,
        "seo_keywords": post.seo_keywords,
        "reading_time": post.reading_time,
        "view_count": post.view_count,
        "metadata": post.metadata_json,
        "author": serialize_author(post.author),
        "categories": [serialize_category(c) for c in post.categories],
        "tags": [serialize_tag(t) for t in post.tags],
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
    }


def serialize_comment(
    comment: BlogComment,
    depth: int = REPLY_DEPTH,
    approved_only: bool = False,
) -> Dict[str, Any]:
    """Comment with its replies nested `depth` levels deep, oldest first"""
    data = {
        "id": comment.id,
        "post_id": comment.post_id,
        "parent_id": comment.parent_id,
        "author_id": comment.author_id,
        "author_name": comment.author_name,
        "author_website": comment.author_website,
        "author": serialize_author(comment.author),
        "content": comment.content,
        "status": comment.status,
        "is_edited": comment.is_edited,
        "edited_at": _iso(comment.edited_at),
        "like_count": comment.like_count,
        "created_at": _iso(comment.created_at),
        "updated_at": _iso(comment.updated_at),
    }
    if depth > 0:
        replies = sorted(comment.replies, key=lambda r: (r.created_at or datetime.min, r.id))
        if approved_only:
            replies = [r for r in replies if r.status == CommentStatus.APPROVED.value]
        data["replies"] = [serialize_comment(r, depth - 1, approved_only) for r in replies]
    return data


class BlogService:
    """Blog content management"""

    def __init__(self, db: Session):
        self.db = db

    # Posts

    def _get_post(self, post_id: int) -> BlogPost:
        post = self.db.query(BlogPost).filter(BlogPost.id == post_id).first()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def _ensure_post_slug_free(self, slug: str, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(BlogPost.id).filter(BlogPost.slug == slug)
        if exclude_id is not None:
            query = query.filter(BlogPost.id != exclude_id)
        if query.first() is not None:
            raise ConflictError("A post with this slug already exists")

    def _load_categories(self, ids: List[int]) -> List[BlogCategory]:
        if not ids:
            return []
        return self.db.query(BlogCategory).filter(BlogCategory.id.in_(ids)).all()

    def _load_tags(self, ids: List[int]) -> List[BlogTag]:
        if not ids:
            return []
        return self.db.query(BlogTag).filter(BlogTag.id.in_(ids)).all()

    def create_post(self, user: User, data: Dict[str, Any]) -> Dict[str, Any]:
        slug = data.get("slug") or slugify(data["title"])
        if not slug:
            raise BadRequestError("Could not derive a slug from the title")
        self._ensure_post_slug_free(slug)

        status = data.get("status") or PostStatus.DRAFT.value
        published_at = data.get("published_at")
        if status == PostStatus.PUBLISHED.value and published_at is None:
            published_at = datetime.utcnow()

        post = BlogPost(
            title=data["title"],
            slug=slug,
            excerpt=data.get("excerpt"),
            content=data["content"],
            featured_image=data.get("featured_image"),
            status=status,
            published_at=published_at,
            seo_title=data.get("seo_title"),
            seo_description=data.get("seo_description"),
            seo_keywords=data.get("seo_keywords"),
            reading_time=calculate_reading_time(data["content"]),
            metadata_json=data.get("metadata"),
            created_by_id=user.id,
        )
        post.categories = self._load_categories(data.get("category_ids") or [])
        post.tags = self._load_tags(data.get("tag_ids") or [])

        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        logger.info(f"User {user.id} created post {post.id} ({post.slug})")
        return serialize_post(post)

    def update_post(self, user: User, post_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply the provided fields; only the post's creator may edit it"""
        post = self._get_post(post_id)
        if post.created_by_id != user.id:
            raise ForbiddenError("You can only edit your own posts")

        if data.get("slug") and data["slug"] != post.slug:
            self._ensure_post_slug_free(data["slug"], exclude_id=post.id)

        simple_fields = (
            "title", "slug", "excerpt", "content", "featured_image", "status",
            "published_at", "seo_title", "seo_description", "seo_keywords",
        )
        for name in simple_fields:
            if name in data and data[name] is not None:
                setattr(post, name, data[name])

        if data.get("content") is not None:
            post.reading_time = calculate_reading_time(data["content"])
        if data.get("metadata") is not None:
            post.metadata_json = data["metadata"]
        if post.status == PostStatus.PUBLISHED.value and post.published_at is None:
            post.published_at = datetime.utcnow()

        if data.get("category_ids") is not None:
            post.categories = self._load_categories(data["category_ids"])
        if data.get("tag_ids") is not None:
            post.tags = self._load_tags(data["tag_ids"])

        post.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(post)
        return serialize_post(post)

    def delete_post(self, user: User, post_id: int) -> None:
        post = self._get_post(post_id)
        if post.created_by_id != user.id:
            raise ForbiddenError("You can only delete your own posts")
        self.db.delete(post)
        self.db.commit()
        logger.info(f"User {user.id} deleted post {post_id}")

    def get_post(
        self,
        post_id: Optional[int] = None,
        slug: Optional[str] = None,
        increment_view: bool = False,
    ) -> Dict[str, Any]:
        if post_id is None and not slug:
            raise BadRequestError("Either slug or id must be provided")

        query = self.db.query(BlogPost)
        if slug:
            query = query.filter(BlogPost.slug == slug)
        else:
            query = query.filter(BlogPost.id == post_id)
        post = query.first()
        if post is None:
            raise NotFoundError("Post not found")

        if increment_view:
            post.view_count = (post.view_count or 0) + 1
            self.db.commit()
            self.db.refresh(post)

        return serialize_post(post)

    def list_posts(
        self,
        limit: int = 10,
        offset: int = 0,
        status: Optional[str] = None,
        category_id: Optional[int] = None,
        tag_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        query = self.db.query(BlogPost)
        if status:
            query = query.filter(BlogPost.status == status)
        if category_id is not None:
            query = query.filter(BlogPost.categories.any(BlogCategory.id == category_id))
        if tag_id is not None:
            query = query.filter(BlogPost.tags.any(BlogTag.id == tag_id))
        if search:
            pattern = f"%{escape_like(search)}%"
            query = query.filter(or_(
                BlogPost.title.ilike(pattern, escape="\\"),
                BlogPost.excerpt.ilike(pattern, escape="\\"),
                BlogPost.content.ilike(pattern, escape="\\"),
            ))

        total_count = query.count()

        column = POST_SORT_COLUMNS.get(sort_by, BlogPost.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        posts = (
            query.options(
                selectinload(BlogPost.author),
                selectinload(BlogPost.categories),
                selectinload(BlogPost.tags),
            )
            .order_by(ordering, BlogPost.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        return {
            "posts": [serialize_post(p) for p in posts],
            "total_count": total_count,
            "has_more": offset + limit < total_count,
        }

    def get_stats(self, user: User) -> Dict[str, int]:
        base = self.db.query(BlogPost).filter(BlogPost.created_by_id == user.id)
        total_views = self.db.query(func.coalesce(func.sum(BlogPost.view_count), 0)).filter(
            BlogPost.created_by_id == user.id
        ).scalar()
        return {
            "total_posts": base.count(),
            "published_posts": base.filter(BlogPost.status == PostStatus.PUBLISHED.value).count(),
            "total_views": int(total_views or 0),
        }

    # Categories and tags

    def create_category(self, data: Dict[str, Any]) -> Dict[str, Any]:
        slug = data.get("slug") or slugify(data["name"])
        if self.db.query(BlogCategory.id).filter(BlogCategory.slug == slug).first() is not None:
            raise ConflictError("A category with this slug already exists")

        category = BlogCategory(
            name=data["name"],
            slug=slug,
            description=data.get("description"),
            color=data.get("color"),
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return serialize_category(category)

    def update_category(self, category_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        category = self.db.query(BlogCategory).filter(BlogCategory.id == category_id).first()
        if category is None:
            raise NotFoundError("Category not found")

        if data.get("slug") and data["slug"] != category.slug:
            taken = self.db.query(BlogCategory.id).filter(
                BlogCategory.slug == data["slug"], BlogCategory.id != category_id
            ).first()
            if taken is not None:
                raise ConflictError("A category with this slug already exists")

        for name in ("name", "slug", "description", "color", "is_active"):
            if data.get(name) is not None:
                setattr(category, name, data[name])
        category.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(category)
        return serialize_category(category)

    def delete_category(self, category_id: int) -> None:
        category = self.db.query(BlogCategory).filter(BlogCategory.id == category_id).first()
        if category is None:
            raise NotFoundError("Category not found")
        self.db.delete(category)
        self.db.commit()

    def list_categories(self) -> List[Dict[str, Any]]:
        rows = self.db.query(BlogCategory).filter(
            BlogCategory.is_active.is_(True)
        ).order_by(BlogCategory.name.asc()).all()
        return [serialize_category(c) for c in rows]

    def create_tag(self, data: Dict[str, Any]) -> Dict[str, Any]:
        slug = data.get("slug") or slugify(data["name"])
        if self.db.query(BlogTag.id).filter(BlogTag.slug == slug).first() is not None:
            raise ConflictError("A tag with this slug already exists")

        tag = BlogTag(name=data["name"], slug=slug, color=data.get("color"))
        self.db.add(tag)
        self.db.commit()
        self.db.refresh(tag)
        return serialize_tag(tag)

    def update_tag(self, tag_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        tag = self.db.query(BlogTag).filter(BlogTag.id == tag_id).first()
        if tag is None:
            raise NotFoundError("Tag not found")

        if data.get("slug") and data["slug"] != tag.slug:
            taken = self.db.query(BlogTag.id).filter(
                BlogTag.slug == data["slug"], BlogTag.id != tag_id
            ).first()
            if taken is not None:
                raise ConflictError("A tag with this slug already exists")

        for name in ("name", "slug", "color", "is_active"):
            if data.get(name) is not None:
                setattr(tag, name, data[name])
        self.db.commit()
        self.db.refresh(tag)
        return serialize_tag(tag)

    def delete_tag(self, tag_id: int) -> None:
        tag = self.db.query(BlogTag).filter(BlogTag.id == tag_id).first()
        if tag is None:
            raise NotFoundError("Tag not found")
        self.db.delete(tag)
        self.db.commit()

    def list_tags(self) -> List[Dict[str, Any]]:
        rows = self.db.query(BlogTag).filter(
            BlogTag.is_active.is_(True)
        ).order_by(BlogTag.name.asc()).all()
        return [serialize_tag(t) for t in rows]

    # Comments

    def _get_comment(self, comment_id: int) -> BlogComment:
        comment = self.db.query(BlogComment).filter(BlogComment.id == comment_id).first()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def create_comment(
        self,
        data: Dict[str, Any],
        user: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        """New comments start out pending moderation"""
        post = self.db.query(BlogPost.id).filter(BlogPost.id == data["post_id"]).first()
        if post is None:
            raise NotFoundError("Post not found")

        parent_id = data.get("parent_id")
        if parent_id is not None:
            parent = self.db.query(BlogComment).filter(BlogComment.id == parent_id).first()
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.post_id != data["post_id"]:
                raise BadRequestError("Parent comment belongs to a different post")

        comment = BlogComment(
            post_id=data["post_id"],
            parent_id=parent_id,
            author_id=user.id if user else None,
            author_name=data["author_name"],
            author_email=data["author_email"],
            author_website=data.get("author_website"),
            content=data["content"],
            status=CommentStatus.PENDING.value,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        logger.info(f"Comment {comment.id} created on post {comment.post_id} (pending)")
        return serialize_comment(comment, depth=0)

    def list_comments(
        self,
        post_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        """
        Top-level comments with nested replies

        When a post is given without a status filter only approved comments are
        returned, and their replies are restricted to approved ones as well.
        """
        query = self.db.query(BlogComment).filter(BlogComment.parent_id.is_(None))
        if post_id is not None:
            query = query.filter(BlogComment.post_id == post_id)

        effective_status = status
        if effective_status is None and post_id is not None:
            effective_status = CommentStatus.APPROVED.value
        if effective_status is not None:
            query = query.filter(BlogComment.status == effective_status)

        total_count = query.count()

        column = COMMENT_SORT_COLUMNS.get(sort_by, BlogComment.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        comments = query.order_by(ordering, BlogComment.id.desc()).offset(offset).limit(limit).all()

        approved_only = effective_status == CommentStatus.APPROVED.value
        return {
            "comments": [serialize_comment(c, REPLY_DEPTH, approved_only) for c in comments],
            "total_count": total_count,
            "has_more": offset + limit < total_count,
        }

    def update_comment(self, user: User, comment_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        comment = self._get_comment(comment_id)
        if comment.author_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only edit your own comments")

        if data.get("status") is not None and data["status"] != comment.status:
            if not user.is_admin:
                raise ForbiddenError("Only admins can change comment status")
            comment.status = data["status"]

        if data.get("content") is not None:
            comment.content = data["content"]
            comment.is_edited = True
            comment.edited_at = datetime.utcnow()

        comment.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(comment)
        return serialize_comment(comment, depth=0)

    def delete_comment(self, user: User, comment_id: int) -> None:
        comment = self._get_comment(comment_id)
        if comment.author_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only delete your own comments")
        self.db.delete(comment)
        self.db.commit()

    def toggle_like(self, user: User, comment_id: int) -> Dict[str, bool]:
        comment = self._get_comment(comment_id)
        like = self.db.query(BlogCommentLike).filter(
            BlogCommentLike.comment_id == comment_id,
            BlogCommentLike.user_id == user.id,
        ).first()

        if like is not None:
            self.db.delete(like)
            self.db.flush()
            liked = False
        else:
            self.db.add(BlogCommentLike(comment_id=comment_id, user_id=user.id))
            self.db.flush()
            liked = True

        comment.like_count = self.db.query(func.count()).select_from(BlogCommentLike).filter(
            BlogCommentLike.comment_id == comment_id
        ).scalar()
        self.db.commit()
        return {"liked": liked}

    def moderate_comment(self, comment_id: int, status: str) -> Dict[str, Any]:
        comment = self._get_comment(comment_id)
        comment.status = status
        comment.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(comment)
        logger.info(f"Comment {comment_id} moderated to {status}")
        return serialize_comment(comment, depth=0)

    def bulk_moderate(self, comment_ids: List[int], status: str) -> Dict[str, int]:
        updated = self.db.query(BlogComment).filter(BlogComment.id.in_(comment_ids)).update(
            {BlogComment.status: status, BlogComment.updated_at: datetime.utcnow()},
            synchronize_session=False,
        )
        self.db.commit()
        logger.info(f"Bulk moderated {updated} comments to {status}")
        return {"updated_count": updated}

    def bulk_delete(self, comment_ids: List[int]) -> Dict[str, int]:
        comments = self.db.query(BlogComment).filter(BlogComment.id.in_(comment_ids)).all()
        for comment in comments:
            self.db.delete(comment)
        self.db.commit()
        logger.info(f"Bulk deleted {len(comments)} comments")
        return {"deleted_count": len(comments)}
