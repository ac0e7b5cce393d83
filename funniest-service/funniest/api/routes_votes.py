"""
routes_votes.py — Vote submission and the unvoted-caption feed
==============================================================
POST  /api/vote                 first vote on a caption (create)
PATCH /api/vote                 flip an existing vote (update)
GET   /api/captions/unvoted     next batch of pairs to swipe on
GET   /api/vote/bootstrap       initial queue for the vote page

One row per (profile, caption): create fails if the row exists, update
fails if it does not. Callers track which captions they already voted
on and pick the right verb.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..auth.dependencies import get_current_profile
from ..catalog import fetch_unvoted_pairs
from ..config import settings
from ..database import db_session
from ..errors import backend_error
from ..models import CaptionVote, Profile
from ..rate_limit import limiter
from ..schemas import CaptionImagePair, VoteBootstrap, VoteInput, VoteRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["votes"])


@router.post("/vote", response_model=VoteRead)
@limiter.limit(settings.vote_rate_limit)
def create_vote(
    request: Request,
    body: VoteInput,
    profile: Profile = Depends(get_current_profile),
) -> VoteRead:
    try:
        with db_session() as session:
            row = CaptionVote(
                profile_id=profile.id,
                caption_id=body.caption_id,
                vote_value=body.vote_value,
                created_datetime_utc=datetime.now(timezone.utc),
            )
            session.add(row)
            session.flush()
            result = VoteRead.model_validate(row)
    except SQLAlchemyError as exc:
        raise backend_error(exc)

    logger.debug("vote created profile=%s caption=%s value=%s",
                 profile.id, body.caption_id, body.vote_value)
    return result


@router.patch("/vote", response_model=VoteRead)
@limiter.limit(settings.vote_rate_limit)
def update_vote(
    request: Request,
    body: VoteInput,
    profile: Profile = Depends(get_current_profile),
) -> VoteRead:
    try:
        with db_session() as session:
            row = session.execute(
                select(CaptionVote)
                .where(CaptionVote.profile_id == profile.id)
                .where(CaptionVote.caption_id == body.caption_id)
            ).scalar_one_or_none()
            if row is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="No existing vote for this caption.",
                )
            row.vote_value = body.vote_value
            row.modified_datetime_utc = datetime.now(timezone.utc)
            session.flush()
            result = VoteRead.model_validate(row)
    except SQLAlchemyError as exc:
        raise backend_error(exc)

    logger.debug("vote updated profile=%s caption=%s value=%s",
                 profile.id, body.caption_id, body.vote_value)
    return result


@router.get("/captions/unvoted", response_model=List[CaptionImagePair])
def list_unvoted_captions(
    profile: Profile = Depends(get_current_profile),
) -> List[CaptionImagePair]:
    try:
        return fetch_unvoted_pairs(profile.id)
    except SQLAlchemyError as exc:
        raise backend_error(exc)


@router.get("/vote/bootstrap", response_model=VoteBootstrap)
def vote_bootstrap(
    profile: Profile = Depends(get_current_profile),
) -> VoteBootstrap:
    """Initial queue for the vote page; same selection as the unvoted feed."""
    try:
        return VoteBootstrap(captions=fetch_unvoted_pairs(profile.id))
    except SQLAlchemyError as exc:
        raise backend_error(exc)
