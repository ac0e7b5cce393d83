"""
Tests for leaderboard ranking, pagination and page links.

Run with: pytest tests/test_leaderboard.py -v
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from funniest.database import db_session
from funniest.leaderboard import (
    ELLIPSIS,
    PAGE_SIZE,
    TOP_N,
    best_caption_per_image,
    build_leaderboard,
    clamp_page,
    page_links,
    paginate,
    parse_page,
    rank_pairs,
)
from funniest.main import app
from funniest.models import Caption, Image

client = TestClient(app)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@dataclass
class Img:
    id: str
    url: Optional[str] = "https://img.example/x.png"
    image_description: Optional[str] = None


@dataclass
class Cap:
    id: str
    image_id: str
    like_count: int
    content: Optional[str] = "lol"


def _catalogue(n_images: int, captions_per_image: int = 1):
    images = [Img(id=f"img-{i}") for i in range(n_images)]
    captions = [
        Cap(id=f"cap-{i}-{j}", image_id=f"img-{i}", like_count=i * 10 + j)
        for i in range(n_images)
        for j in range(captions_per_image)
    ]
    return images, captions


# ---------------------------------------------------------------------------
# Best caption per image
# ---------------------------------------------------------------------------

class TestBestCaption:
    def test_picks_strict_maximum(self):
        images = [Img("a")]
        captions = [Cap("c1", "a", 3), Cap("c2", "a", 9), Cap("c3", "a", 5)]
        pairs = best_caption_per_image(images, captions)
        assert [p.caption.id for p in pairs] == ["c2"]

    def test_tie_keeps_first_encountered(self):
        images = [Img("a")]
        captions = [Cap("first", "a", 7), Cap("second", "a", 7)]
        pairs = best_caption_per_image(images, captions)
        assert pairs[0].caption.id == "first"

    def test_image_without_captions_excluded(self):
        images = [Img("a"), Img("lonely")]
        captions = [Cap("c1", "a", 1)]
        pairs = best_caption_per_image(images, captions)
        assert [p.image.id for p in pairs] == ["a"]

    def test_caption_for_unknown_image_ignored(self):
        pairs = best_caption_per_image([Img("a")], [Cap("c1", "ghost", 100)])
        assert pairs == []


# ---------------------------------------------------------------------------
# Ranking and pagination
# ---------------------------------------------------------------------------

class TestRanking:
    def test_sorted_descending(self):
        images, captions = _catalogue(5)
        ranked = rank_pairs(best_caption_per_image(images, captions))
        counts = [p.like_count for p in ranked]
        assert counts == sorted(counts, reverse=True)

    def test_stable_on_equal_like_counts(self):
        images = [Img("a"), Img("b"), Img("c")]
        captions = [Cap("ca", "a", 5), Cap("cb", "b", 5), Cap("cc", "c", 5)]
        ranked = rank_pairs(best_caption_per_image(images, captions))
        assert [p.image.id for p in ranked] == ["a", "b", "c"]

    def test_truncated_to_top_n(self):
        images, captions = _catalogue(100)
        ranked = rank_pairs(best_caption_per_image(images, captions))
        assert len(ranked) == TOP_N == 67

    def test_output_length_bounded_by_captioned_images(self):
        images, captions = _catalogue(10)
        images.append(Img("uncaptioned"))
        ranked = rank_pairs(best_caption_per_image(images, captions))
        assert len(ranked) <= min(TOP_N, 10)

    def test_idempotent(self):
        images, captions = _catalogue(30, captions_per_image=3)
        first = build_leaderboard(images, captions, 2)
        second = build_leaderboard(images, captions, 2)
        assert [p.caption.id for p in first.items] == [p.caption.id for p in second.items]


class TestPagination:
    def test_pages_concatenate_to_top_n(self):
        images, captions = _catalogue(100)
        ranked = rank_pairs(best_caption_per_image(images, captions))
        total_pages = math.ceil(len(ranked) / PAGE_SIZE)
        assert total_pages == 6

        joined = []
        for n in range(1, total_pages + 1):
            joined.extend(paginate(ranked, n).items)
        assert [p.caption.id for p in joined] == [p.caption.id for p in ranked]

    def test_last_page_is_partial(self):
        images, captions = _catalogue(100)
        page = build_leaderboard(images, captions, 6)
        assert len(page.items) == 67 - 5 * 12
        assert page.start_rank == 61
        assert page.has_previous and not page.has_next

    @pytest.mark.parametrize("requested,expected", [(0, 1), (-4, 1), (99, 6), (3, 3)])
    def test_page_clamped(self, requested, expected):
        images, captions = _catalogue(100)
        assert build_leaderboard(images, captions, requested).page == expected

    def test_empty_board(self):
        page = build_leaderboard([], [], 5)
        assert page.page == 1
        assert page.total_pages == 0
        assert page.items == []

    def test_clamp_page_without_pages(self):
        assert clamp_page(3, 0) == 1

    @pytest.mark.parametrize("raw,expected", [
        (None, 1), ("", 1), ("abc", 1), ("4", 4), ("2abc", 2), (" 7 ", 7), ("-3", -3), ("+2", 2), ("+", 1),
    ])
    def test_parse_page(self, raw, expected):
        assert parse_page(raw) == expected


class TestPageLinks:
    def test_single_page(self):
        assert page_links(1, 1) == [1]

    def test_first_page_of_many(self):
        assert page_links(1, 6) == [1, 2, ELLIPSIS, 6]

    def test_middle_page(self):
        assert page_links(3, 6) == [1, ELLIPSIS, 3, 4, ELLIPSIS, 6]

    def test_second_to_last(self):
        assert page_links(5, 6) == [1, ELLIPSIS, 5, 6]

    def test_last_page(self):
        assert page_links(6, 6) == [1, ELLIPSIS, 6]

    def test_no_pages(self):
        assert page_links(1, 0) == []


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def _seed_db(n_images: int) -> None:
    with db_session() as session:
        for i in range(n_images):
            session.add(Image(id=f"img-{i:03d}", url=f"https://img.example/{i}.png"))
            session.add(Caption(id=f"cap-{i:03d}-a", image_id=f"img-{i:03d}",
                                content=f"caption {i} a", like_count=i))
            session.add(Caption(id=f"cap-{i:03d}-b", image_id=f"img-{i:03d}",
                                content=f"caption {i} b", like_count=i + 1000))


class TestLeaderboardEndpoint:
    def test_first_page(self):
        _seed_db(20)
        resp = client.get("/api/leaderboard")
        assert resp.status_code == 200
        data = resp.json()
        assert data["page"] == 1
        assert data["total_items"] == 20
        assert data["total_pages"] == 2
        assert len(data["items"]) == 12
        top = data["items"][0]
        assert top["rank"] == 1
        assert top["caption"]["id"] == "cap-019-b"
        assert top["like_count"] == 1019
        assert data["page_links"] == [1, 2]

    def test_page_out_of_range_is_clamped(self):
        _seed_db(20)
        data = client.get("/api/leaderboard", params={"page": "42"}).json()
        assert data["page"] == 2
        assert data["items"][0]["rank"] == 13
        assert len(data["items"]) == 8

    def test_garbage_page_falls_back_to_first(self):
        _seed_db(3)
        data = client.get("/api/leaderboard", params={"page": "nope"}).json()
        assert data["page"] == 1

    def test_explicit_plus_sign_page(self):
        _seed_db(20)
        data = client.get("/api/leaderboard", params={"page": "+2"}).json()
        assert data["page"] == 2

    def test_empty_catalogue(self):
        data = client.get("/api/leaderboard").json()
        assert data["items"] == []
        assert data["total_pages"] == 0
