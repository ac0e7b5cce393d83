"""
Tests for the server-rendered leaderboard and sign-in pages.

Run with: pytest tests/test_views.py -v
"""
from __future__ import annotations

from fastapi.testclient import TestClient

from funniest.database import db_session
from funniest.main import app
from funniest.models import Caption, Image

client = TestClient(app)


def _seed(n_images: int, url: str | None = "https://img.example/x.png") -> None:
    with db_session() as session:
        for i in range(n_images):
            session.add(Image(id=f"img-{i:03d}", url=url, image_description=f"pic {i}"))
            session.add(Caption(id=f"cap-{i:03d}", image_id=f"img-{i:03d}",
                                content=f"caption {i}", like_count=i))


class TestLeaderboardPage:
    def test_renders_ranked_cards(self):
        _seed(3)
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        body = resp.text
        assert "Funniest 67" in body
        assert body.index("caption 2") < body.index("caption 1") < body.index("caption 0")
        assert '<span class="rank">#1</span>' in body
        assert "3 entries" in body
        assert "Sign in" in body

    def test_empty_state(self):
        body = client.get("/").text
        assert "No captions found" in body
        assert "Page 1 of 0" in body

    def test_image_placeholder(self):
        _seed(1, url=None)
        body = client.get("/").text
        assert "No image" in body
        assert "<img" not in body

    def test_content_is_escaped(self):
        with db_session() as session:
            session.add(Image(id="img-x", url="https://img.example/x.png"))
            session.add(Caption(id="cap-x", image_id="img-x",
                                content="<script>alert(1)</script>", like_count=1))
        body = client.get("/").text
        assert "<script>alert(1)</script>" not in body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body

    def test_pagination_controls(self):
        _seed(30)
        body = client.get("/", params={"page": "2"}).text
        assert 'href="/?page=1"' in body
        assert 'class="current" href="/?page=2"' in body
        assert 'class="next" href="/?page=3"' in body
        assert '<span class="rank">#13</span>' in body
        assert "Page 2 of 3" in body

    def test_last_page_disables_next(self):
        _seed(30)
        body = client.get("/", params={"page": "99"}).text
        assert '<span class="next disabled">' in body
        assert "Page 3 of 3" in body

    def test_signed_in_menu(self, student_token):
        cookie_client = TestClient(app, cookies={"funniest_session": student_token})
        body = cookie_client.get("/").text
        assert "Ada Lovelace" in body
        assert '<span class="initials">AL</span>' in body
        assert 'action="/auth/logout"' in body


class TestLoginPage:
    def test_plain(self):
        resp = client.get("/login")
        assert resp.status_code == 200
        assert 'href="/auth/login?provider=google"' in resp.text
        assert 'class="error"' not in resp.text

    def test_unauthorized_domain_notice(self):
        body = client.get("/login", params={"error": "unauthorized_domain"}).text
        assert 'data-error="unauthorized_domain"' in body
        assert "columbia.edu or barnard.edu" in body

    def test_auth_failed_notice(self):
        body = client.get("/login", params={"error": "auth_failed"}).text
        assert "Sign-in failed" in body


class TestVotePage:
    def test_anonymous_redirected_to_login(self):
        anon = TestClient(app, follow_redirects=False)
        resp = anon.get("/vote")
        assert resp.status_code == 303
        assert resp.headers["location"].endswith("/login")

    def test_invalid_session_redirected(self):
        anon = TestClient(app, follow_redirects=False, cookies={"funniest_session": "garbage"})
        assert anon.get("/vote").status_code == 303

    def test_empty_state(self, student_token):
        resp = client.get("/vote", headers={"Authorization": f"Bearer {student_token}"})
        assert resp.status_code == 200
        body = resp.text
        assert "voted on all captions!" in body
        assert "Check back later for more" in body
        assert 'href="/">Back to leaderboard' in body
        assert '<script type="application/json" id="initial-queue">[]</script>' in body

    def test_renders_head_card_and_hint(self, student_token):
        with db_session() as session:
            session.add(Image(id="img-a", url="https://img.example/a.png",
                              image_description="A cat on a <keyboard>"))
            session.add(Image(id="img-b", url="https://img.example/b.png"))
            session.add(Caption(id="cap-a", image_id="img-a", content="first up"))
            session.add(Caption(id="cap-b", image_id="img-b", content="next one"))
        cookie_client = TestClient(app, cookies={"funniest_session": student_token})
        body = cookie_client.get("/vote").text
        assert 'data-caption-id="cap-a"' in body
        assert "first up" in body
        assert '<span class="hint-text">A cat on a &lt;keyboard&gt;</span>' in body
        assert 'class="card preview"' in body
        assert "Swipe right to upvote, left to downvote" in body
        assert "voted on all captions" not in body
        assert '"id": "cap-b"' in body
        assert "<keyboard>" not in body

    def test_voted_captions_not_shown(self, student_token):
        with db_session() as session:
            session.add(Image(id="img-a", url="https://img.example/a.png"))
            session.add(Caption(id="cap-a", image_id="img-a", content="seen it"))
        headers = {"Authorization": f"Bearer {student_token}"}
        client.post("/api/vote", json={"caption_id": "cap-a", "vote_value": 1}, headers=headers)
        body = client.get("/vote", headers=headers).text
        assert "voted on all captions!" in body
