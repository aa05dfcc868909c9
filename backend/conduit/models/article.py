"""
Conduit Articles Backend — Article SQLAlchemy Models
=====================================================

What:  ORM models for the `articles`, `article_tags` and `favorites` tables.
Who:   Used by ArticleService for every read and write, and by Alembic.

Table design:
    - articles.slug is UNIQUE: routes address articles by slug, never by id
    - article_tags keeps an integer surrogate key so tags come back in the
      order the author supplied them
    - favorites uses (user_id, article_id) as its primary key, so a user
      can favorite an article at most once
    - idx_articles_created_at DESC serves the default "newest first" listing

Relationships are never lazy-loaded (async sessions cannot do implicit IO);
the service eager-loads `author` and `tags` with selectinload().
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from conduit.database import Base
from conduit.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(Base):
    """
    A published article.

    Lifecycle:
        1. Created by its author (slug derived from the title)
        2. Updated only by its author; a new title regenerates the slug
        3. Deleted only by its author, together with its tags and favorites
    """

    __tablename__ = "articles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    author: Mapped[User] = relationship(User, lazy="raise")
    tags: Mapped[List["ArticleTag"]] = relationship(
        "ArticleTag",
        order_by="ArticleTag.id",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_articles_created_at", created_at.desc()),
    )

    @property
    def tag_list(self) -> List[str]:
        return [tag.name for tag in self.tags]

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, slug='{self.slug}')>"


class ArticleTag(Base):
    """One tag attached to one article."""

    __tablename__ = "article_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)


class Favorite(Base):
    """A user's bookmark on an article."""

    __tablename__ = "favorites"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    article_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
