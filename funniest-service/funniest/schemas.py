from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Caption / image pairs
# ---------------------------------------------------------------------------

class ImageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: Optional[str] = None
    image_description: Optional[str] = None


class CaptionImagePair(BaseModel):
    """A caption joined with its image, in the shape the vote UI consumes."""

    id: str = Field(..., description="Caption id.")
    content: str
    image_id: str
    images: ImageRead


class VoteBootstrap(BaseModel):
    captions: List[CaptionImagePair] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------

class VoteInput(BaseModel):
    """Body for both create (POST) and update (PATCH)."""

    caption_id: str = Field(..., min_length=1, description="Caption being voted on.")
    vote_value: Literal[1, -1] = Field(..., description="1 for up, -1 for down.")


class VoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: str
    caption_id: str
    vote_value: int
    created_datetime_utc: datetime
    modified_datetime_utc: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

class CaptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content: Optional[str] = None
    image_id: str
    like_count: int = 0


class LeaderboardItem(BaseModel):
    rank: int = Field(..., ge=1, description="1-based position in the top-N list.")
    like_count: int
    image: ImageRead
    caption: CaptionRead


class LeaderboardPage(BaseModel):
    items: List[LeaderboardItem] = Field(default_factory=list)
    page: int
    total_pages: int
    total_items: int
    per_page: int
    page_links: List[Union[int, Literal["ellipsis"]]] = Field(
        default_factory=list,
        description="Page numbers to link, with 'ellipsis' markers for gaps.",
    )
    has_previous: bool
    has_next: bool


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class MeResponse(BaseModel):
    id: str
    email: str
    name: str
    initials: str
