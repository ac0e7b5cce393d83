from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from sqlalchemy.exc import SQLAlchemyError

from ..catalog import load_leaderboard_rows
from ..config import settings
from ..errors import backend_error
from ..leaderboard import Page, build_leaderboard, page_links, parse_page
from ..schemas import CaptionRead, ImageRead, LeaderboardItem, LeaderboardPage

router = APIRouter(prefix="/api", tags=["leaderboard"])


def load_page(raw_page: Optional[str]) -> Page:
    """Load rows and build the requested leaderboard page. Raises SQLAlchemyError."""
    images, captions = load_leaderboard_rows()
    return build_leaderboard(
        images,
        captions,
        parse_page(raw_page),
        top_n=settings.leaderboard_top_n,
        per_page=settings.leaderboard_page_size,
    )


def page_to_read(page: Page) -> LeaderboardPage:
    items = [
        LeaderboardItem(
            rank=page.start_rank + offset,
            like_count=pair.like_count,
            image=ImageRead.model_validate(pair.image),
            caption=CaptionRead.model_validate(pair.caption),
        )
        for offset, pair in enumerate(page.items)
    ]
    return LeaderboardPage(
        items=items,
        page=page.page,
        total_pages=page.total_pages,
        total_items=page.total_items,
        per_page=page.per_page,
        page_links=page_links(page.page, page.total_pages),
        has_previous=page.has_previous,
        has_next=page.has_next,
    )


@router.get("/leaderboard", response_model=LeaderboardPage)
def get_leaderboard(
    page: Optional[str] = Query(None, description="1-based page; clamped to the valid range."),
) -> LeaderboardPage:
    """Top captioned images, best caption each, most liked first."""
    try:
        return page_to_read(load_page(page))
    except SQLAlchemyError as exc:
        raise backend_error(exc)
