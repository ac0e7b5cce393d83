"""
leaderboard.py — Funniest-N ranking and pagination
===================================================
Pure functions over already-loaded rows; no database access here.

  1. Group captions by image and keep the most-liked caption per image
     (first encountered wins a tie).
  2. Sort the resulting pairs by like count, descending, stable.
  3. Keep the top N (67 by default).
  4. Slice out one page (12 per page), clamping the requested page.

Images with no captions never appear on the board.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Union

TOP_N = 67
PAGE_SIZE = 12

ELLIPSIS = "ellipsis"
PageLink = Union[int, Literal["ellipsis"]]


@dataclass(frozen=True)
class RankedPair:
    """One image with its best caption."""
    image: Any
    caption: Any

    @property
    def like_count(self) -> int:
        return self.caption.like_count or 0


@dataclass(frozen=True)
class Page:
    items: List[RankedPair]
    page: int
    total_pages: int
    total_items: int
    per_page: int

    @property
    def start_rank(self) -> int:
        """Rank (1-based) of the first item on this page."""
        return (self.page - 1) * self.per_page + 1

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def best_caption_per_image(
    images: Iterable[Any],
    captions: Iterable[Any],
) -> List[RankedPair]:
    """Return one pair per captioned image, in image order."""
    by_image: Dict[str, List[Any]] = {}
    for caption in captions:
        by_image.setdefault(caption.image_id, []).append(caption)

    pairs: List[RankedPair] = []
    for image in images:
        candidates = by_image.get(image.id)
        if not candidates:
            continue
        best = candidates[0]
        for caption in candidates[1:]:
            if (caption.like_count or 0) > (best.like_count or 0):
                best = caption
        pairs.append(RankedPair(image=image, caption=best))
    return pairs


def rank_pairs(pairs: Sequence[RankedPair], top_n: int = TOP_N) -> List[RankedPair]:
    # sorted() is stable: equal like counts keep their input order
    ranked = sorted(pairs, key=lambda p: p.like_count, reverse=True)
    return ranked[:top_n]


def parse_page(raw: Optional[str]) -> int:
    """Lenient page parsing: leading digits count, anything else is page 1."""
    if raw is None:
        return 1
    text = str(raw).strip()
    sign = 1
    if text[:1] in ("-", "+"):
        sign, text = (-1 if text[0] == "-" else 1), text[1:]
    digits = ""
    for ch in text:
        if not ch.isdigit():
            break
        digits += ch
    if not digits:
        return 1
    return sign * int(digits)


def clamp_page(page: int, total_pages: int) -> int:
    if total_pages < 1:
        return 1
    return max(1, min(page, total_pages))


def paginate(
    ranked: Sequence[RankedPair],
    page: int,
    per_page: int = PAGE_SIZE,
) -> Page:
    total_items = len(ranked)
    total_pages = math.ceil(total_items / per_page) if per_page > 0 else 0
    current = clamp_page(page, total_pages)
    start = (current - 1) * per_page
    return Page(
        items=list(ranked[start:start + per_page]),
        page=current,
        total_pages=total_pages,
        total_items=total_items,
        per_page=per_page,
    )


def build_leaderboard(
    images: Iterable[Any],
    captions: Iterable[Any],
    page: int = 1,
    *,
    top_n: int = TOP_N,
    per_page: int = PAGE_SIZE,
) -> Page:
    """Full pipeline: best caption per image -> rank -> top N -> page."""
    ranked = rank_pairs(best_caption_per_image(images, captions), top_n=top_n)
    return paginate(ranked, page, per_page=per_page)


def page_links(current: int, total_pages: int) -> List[PageLink]:
    """
    Page numbers worth linking: first, current, next and last, in order,
    with an ``"ellipsis"`` marker wherever consecutive numbers skip a page.
    """
    if total_pages < 1:
        return []
    wanted = {1, current, total_pages}
    if current + 1 <= total_pages:
        wanted.add(current + 1)

    links: List[PageLink] = []
    previous: Optional[int] = None
    for number in sorted(wanted):
        if previous is not None and number - previous > 1:
            links.append(ELLIPSIS)
        links.append(number)
        previous = number
    return links
