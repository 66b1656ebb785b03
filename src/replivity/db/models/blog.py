"""
Blog post, taxonomy and comment models
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Table, PrimaryKeyConstraint,
)
from sqlalchemy.orm import relationship, backref
from datetime import datetime
import enum

from ..base import Base, JSONType


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class CommentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SPAM = "spam"


blog_post_categories = Table(
    "blog_post_categories",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("blog_categories.id", ondelete="CASCADE"), primary_key=True),
)

blog_post_tags = Table(
    "blog_post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("blog_tags.id", ondelete="CASCADE"), primary_key=True),
)


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), unique=True, index=True, nullable=False)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    featured_image = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=PostStatus.DRAFT.value, index=True)
    published_at = Column(DateTime, nullable=True, index=True)
    seo_title = Column(String(60), nullable=True)
    seo_description = Column(String(160), nullable=True)
    seo_keywords = Column(Text, nullable=True)
    reading_time = Column(Integer, nullable=True)  # minutes
    view_count = Column(Integer, default=0, nullable=False)
    metadata_json = Column("metadata", JSONType, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    author = relationship("User")
    categories = relationship("BlogCategory", secondary=blog_post_categories, back_populates="posts")
    tags = relationship("BlogTag", secondary=blog_post_tags, back_populates="posts")
    comments = relationship("BlogComment", back_populates="post", cascade="all, delete-orphan")


class BlogCategory(Base):
    __tablename__ = "blog_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    posts = relationship("BlogPost", secondary=blog_post_categories, back_populates="categories")


class BlogTag(Base):
    __tablename__ = "blog_tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, index=True)
    slug = Column(String(50), unique=True, index=True, nullable=False)
    color = Column(String(7), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    posts = relationship("BlogPost", secondary=blog_post_tags, back_populates="tags")


class BlogComment(Base):
    """Comment on a post; replies reference their parent comment"""
    __tablename__ = "blog_comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("blog_comments.id", ondelete="CASCADE"), nullable=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    author_name = Column(String(100), nullable=False)
    author_email = Column(String(255), nullable=False, index=True)
    author_website = Column(String(500), nullable=True)
    content = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=CommentStatus.PENDING.value, index=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime, nullable=True)
    like_count = Column(Integer, default=0, nullable=False)
    metadata_json = Column("metadata", JSONType, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    post = relationship("BlogPost", back_populates="comments")
    author = relationship("User")
    replies = relationship(
        "BlogComment",
        backref=backref("parent", remote_side=[id]),
        cascade="all, delete-orphan",
        order_by="BlogComment.created_at",
    )
    likes = relationship("BlogCommentLike", back_populates="comment", cascade="all, delete-orphan")


class BlogCommentLike(Base):
    __tablename__ = "blog_comment_likes"

    comment_id = Column(Integer, ForeignKey("blog_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    comment = relationship("BlogComment", back_populates="likes")

    __table_args__ = (
        PrimaryKeyConstraint("comment_id", "user_id"),
    )
