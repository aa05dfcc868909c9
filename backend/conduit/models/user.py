"""
Conduit Articles Backend — User and Follow Models
==================================================

What:  Read-side mapping of the `users` and `follows` tables.
Who:   Article authors, favorite owners and feed subscriptions.

Ownership:
    Rows are written by the profile/auth service (registration, profile
    edits, follow/unfollow). This service only reads them to resolve the
    token's user, render author profiles and build feeds.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from conduit.database import Base


class User(Base):
    """A registered account. `username` is the public handle used in filters."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class Follow(Base):
    """`follower_id` follows `followee_id`; the pair is the primary key."""

    __tablename__ = "follows"

    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    followee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
