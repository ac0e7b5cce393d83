"""
catalog.py — Read-side queries over images, captions and votes
==============================================================
Both the vote page and the leaderboard read from here. Queries are
bounded so a page view never pulls the whole catalogue.

Unvoted fetch:
  voted ids for the user  ─┐
  ≤200 captions w/ content ─┴─> drop voted ─> first 20 ─> batch images
  with a URL ─> join ─> drop unresolved ─> first 10
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

from sqlalchemy import select

from .config import settings
from .database import db_session
from .models import Caption, CaptionVote, Image
from .schemas import CaptionImagePair, ImageRead

# Candidate captions considered per fetch
CANDIDATE_LIMIT = 200
# Unvoted captions kept before resolving images
UNVOTED_LIMIT = 20
# Pairs returned to the client
BATCH_LIMIT = 10


def voted_caption_ids(session, profile_id: str) -> set[str]:
    rows = session.execute(
        select(CaptionVote.caption_id).where(CaptionVote.profile_id == profile_id)
    ).scalars().all()
    return set(rows)


def fetch_unvoted_pairs(profile_id: str) -> List[CaptionImagePair]:
    """Caption/image pairs the profile has not voted on yet. Never raises on 'nothing found'."""
    with db_session() as session:
        voted = voted_caption_ids(session, profile_id)
        candidates = session.execute(
            select(Caption)
            .where(Caption.content.is_not(None))
            .limit(CANDIDATE_LIMIT)
        ).scalars().all()

        unvoted = [c for c in candidates if c.id not in voted][:UNVOTED_LIMIT]
        if not unvoted:
            return []

        image_ids = list(dict.fromkeys(c.image_id for c in unvoted))
        images = session.execute(
            select(Image)
            .where(Image.id.in_(image_ids))
            .where(Image.url.is_not(None))
        ).scalars().all()

    image_map = {img.id: img for img in images}
    pairs = [
        CaptionImagePair(
            id=c.id,
            content=c.content,
            image_id=c.image_id,
            images=ImageRead.model_validate(image_map[c.image_id]),
        )
        for c in unvoted
        if c.content and c.image_id in image_map
    ]
    return pairs[:BATCH_LIMIT]


def load_leaderboard_rows() -> Tuple[Sequence[Image], Sequence[Caption]]:
    """All images and captions the leaderboard ranks over, captions most-liked first."""
    with db_session() as session:
        images = session.execute(
            select(Image).limit(settings.leaderboard_image_limit)
        ).scalars().all()
        captions = session.execute(
            select(Caption)
            .order_by(Caption.like_count.desc())
            .limit(settings.leaderboard_caption_limit)
        ).scalars().all()
    return images, captions
