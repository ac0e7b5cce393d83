from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, SmallInteger, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Image(Base):
    """Hosted image. Never written by the service outside of seeding."""

    __tablename__ = "images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_datetime_utc: Mapped[datetime] = mapped_column(DateTime, default=_now)


class Caption(Base):
    """A caption written for one image."""

    __tablename__ = "captions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_id: Mapped[str] = mapped_column(String(36), ForeignKey("images.id"), index=True)
    # Denormalised counter, maintained by the database (trigger) as votes land
    like_count: Mapped[int] = mapped_column(Integer, default=0, index=True)
    created_datetime_utc: Mapped[datetime] = mapped_column(DateTime, default=_now)


class Profile(Base):
    """Signed-in user, keyed by the identity provider's user id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    login_count: Mapped[int] = mapped_column(Integer, default=0)


class CaptionVote(Base):
    """One up/down vote per (profile, caption). A repeat vote is an update."""

    __tablename__ = "caption_votes"
    __table_args__ = (
        UniqueConstraint("profile_id", "caption_id", name="uq_caption_votes_profile_caption"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    profile_id: Mapped[str] = mapped_column(String(36), index=True)
    caption_id: Mapped[str] = mapped_column(String(36), ForeignKey("captions.id"), index=True)
    vote_value: Mapped[int] = mapped_column(SmallInteger)  # 1 | -1
    created_datetime_utc: Mapped[datetime] = mapped_column(DateTime, default=_now)
    modified_datetime_utc: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
