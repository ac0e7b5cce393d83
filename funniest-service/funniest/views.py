"""
views.py — Server-rendered pages
================================
GET /       leaderboard grid (?page=N)
GET /vote   swipe page for signed-in users (initial queue, empty state)
GET /login  sign-in page; shows ?error= markers from /auth/callback

Markup is plain HTML strings; every value from the database is escaped.
"""
from __future__ import annotations

import html as html_module
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from .api.routes_leaderboard import load_page
from .auth.core import display_initials
from .auth.dependencies import get_optional_profile
from .catalog import fetch_unvoted_pairs
from .config import settings
from .leaderboard import ELLIPSIS, Page, page_links
from .models import Profile
from .schemas import CaptionImagePair

router = APIRouter(tags=["pages"])

_AUTH_FAILED = "Sign-in failed. Please try again."


def _login_error_message(error: str) -> str:
    if error == "unauthorized_domain":
        domains = " or ".join(settings.allowed_email_domains)
        return f"Sign in with a {domains} account."
    return _AUTH_FAILED


_PAGE_SHELL = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""


def _esc(value: object) -> str:
    return html_module.escape("" if value is None else str(value), quote=True)


def _profile_menu(profile: Optional[Profile]) -> str:
    if profile is None:
        return '<a class="signin" href="/login">Sign in</a>'
    name = profile.full_name or profile.email or "User"
    return (
        '<div class="profile-menu">'
        f'<span class="initials">{_esc(display_initials(name))}</span> '
        f'<span class="name">{_esc(name)}</span>'
        '<a class="vote-link" href="/vote">Vote on captions</a>'
        '<form method="post" action="/auth/logout"><button type="submit">Sign out</button></form>'
        "</div>"
    )


def _card(rank: int, pair) -> str:
    image, caption = pair.image, pair.caption
    if image.url:
        picture = (
            f'<img src="{_esc(image.url)}" '
            f'alt="{_esc(image.image_description or "Funny image")}">'
        )
    else:
        picture = '<div class="no-image">No image</div>'
    return (
        '<article class="card">'
        f'<span class="rank">#{rank}</span>'
        f'<span class="likes">{pair.like_count:,}</span>'
        f"{picture}"
        f'<p class="caption">&ldquo;{_esc(caption.content)}&rdquo;</p>'
        "</article>"
    )


def render_pagination(page: Page) -> str:
    """Previous arrow, page links with gap markers, next arrow."""
    if page.total_pages <= 1:
        return ""
    parts = []
    if page.has_previous:
        parts.append(f'<a class="prev" href="/?page={page.page - 1}" aria-label="Previous page">&lsaquo;</a>')
    else:
        parts.append('<span class="prev disabled">&lsaquo;</span>')
    for item in page_links(page.page, page.total_pages):
        if item == ELLIPSIS:
            parts.append('<span class="gap">...</span>')
        elif item == page.page:
            parts.append(f'<a class="current" href="/?page={item}">{item}</a>')
        else:
            parts.append(f'<a href="/?page={item}">{item}</a>')
    if page.has_next:
        parts.append(f'<a class="next" href="/?page={page.page + 1}" aria-label="Next page">&rsaquo;</a>')
    else:
        parts.append('<span class="next disabled">&rsaquo;</span>')
    return '<nav class="pagination">' + "".join(parts) + "</nav>"


def render_leaderboard(page: Page, profile: Optional[Profile]) -> str:
    cards = "".join(
        _card(page.start_rank + offset, pair) for offset, pair in enumerate(page.items)
    )
    if not page.items:
        cards = '<p class="empty">No captions found</p>'
    body = (
        "<header>"
        "<h1>Funniest 67</h1><p>Top rated captions</p>"
        f'<span class="count">{page.total_items} entries</span>'
        f"{_profile_menu(profile)}"
        "</header>"
        f'<main><section class="grid">{cards}</section>{render_pagination(page)}</main>'
        f"<footer><p>Showing the funniest captions</p>"
        f"<p>Page {page.page} of {page.total_pages}</p></footer>"
    )
    return _PAGE_SHELL.format(title="Funniest 67", body=body)


@router.get("/", response_class=HTMLResponse)
def leaderboard_page(
    page: Optional[str] = Query(None),
    profile: Optional[Profile] = Depends(get_optional_profile),
) -> HTMLResponse:
    try:
        board = load_page(page)
    except SQLAlchemyError as exc:
        message = str(getattr(exc, "orig", None) or exc)
        body = f'<div class="error"><p>Error loading data: {_esc(message)}</p></div>'
        return HTMLResponse(_PAGE_SHELL.format(title="Funniest 67", body=body), status_code=500)
    return HTMLResponse(render_leaderboard(board, profile))


# ---------------------------------------------------------------------------
# Vote page
# ---------------------------------------------------------------------------

def _queue_json(pairs: List[CaptionImagePair]) -> str:
    """Initial queue for the swipe client, safe to inline in a <script> tag."""
    data = json.dumps([p.model_dump() for p in pairs])
    return data.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def _vote_card(head: CaptionImagePair, upcoming: Optional[CaptionImagePair]) -> str:
    image = head.images
    hint = ""
    if image.image_description:
        hint = (
            '<div class="hint"><span class="hint-button">?</span>'
            f'<span class="hint-text">{_esc(image.image_description)}</span></div>'
        )
    preview = ""
    if upcoming is not None and upcoming.images.url:
        preview = f'<div class="card preview"><img src="{_esc(upcoming.images.url)}" alt=""></div>'
    return (
        f'<div class="stack">{hint}{preview}'
        f'<article class="card current" data-caption-id="{_esc(head.id)}">'
        f'<img src="{_esc(image.url)}" alt="{_esc(image.image_description or "Caption image")}">'
        f'<p class="caption">&ldquo;{_esc(head.content)}&rdquo;</p>'
        "</article></div>"
        '<div class="controls">'
        '<button class="downvote" data-vote="-1">Downvote</button>'
        '<button class="undo" title="Undo last vote" disabled>Undo</button>'
        '<button class="upvote" data-vote="1">Upvote</button>'
        "</div>"
        '<p class="swipe-hint">Swipe right to upvote, left to downvote</p>'
    )


def render_vote_page(pairs: List[CaptionImagePair]) -> str:
    if pairs:
        content = _vote_card(pairs[0], pairs[1] if len(pairs) > 1 else None)
    else:
        content = (
            '<div class="empty">'
            "<p>You've voted on all captions!</p>"
            "<p>Check back later for more</p>"
            "</div>"
        )
    body = (
        "<header>"
        '<a class="home" href="/"><h1>Funniest 67</h1><p>Vote on captions</p></a>'
        '<a class="back" href="/">Back to leaderboard</a>'
        "</header>"
        f"<main>{content}</main>"
        f'<script type="application/json" id="initial-queue">{_queue_json(pairs)}</script>'
    )
    return _PAGE_SHELL.format(title="Vote - Funniest 67", body=body)


@router.get("/vote", response_class=HTMLResponse)
def vote_page(profile: Optional[Profile] = Depends(get_optional_profile)):
    if profile is None:
        return RedirectResponse("/login", status_code=303)
    try:
        pairs = fetch_unvoted_pairs(profile.id)
    except SQLAlchemyError as exc:
        message = str(getattr(exc, "orig", None) or exc)
        body = f'<div class="error"><p>Error loading data: {_esc(message)}</p></div>'
        return HTMLResponse(_PAGE_SHELL.format(title="Funniest 67", body=body), status_code=500)
    return HTMLResponse(render_vote_page(pairs))


@router.get("/login", response_class=HTMLResponse)
def login_page(error: Optional[str] = Query(None)) -> HTMLResponse:
    notice = ""
    if error:
        message = _login_error_message(error)
        notice = f'<p class="error" data-error="{_esc(error)}">{_esc(message)}</p>'
    body = (
        "<main><h1>Funniest 67</h1>"
        f"{notice}"
        '<a class="signin" href="/auth/login?provider=google">Sign in with Google</a>'
        "</main>"
    )
    return HTMLResponse(_PAGE_SHELL.format(title="Sign in - Funniest 67", body=body))
