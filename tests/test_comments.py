"""
Comment endpoint tests — comments are appended as ``" <text> - <email>"``
display strings; they need an identity with an email address.

Comments are append-only in this API (no edit/delete endpoints), so the
test surface is focused on appending and on leaving existing entries alone.
"""
import pytest
from httpx import AsyncClient

from conftest import auth, read_article


# ---------------------------------------------------------------------------
# Add comment — happy path
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment(async_client: AsyncClient, article):
    """The new entry is appended after the existing one, formatted with the email."""
    resp = await async_client.post(
        "/api/articles/1/comment",
        json={"text": "hello"},
        headers=auth("alice-token"),
    )
    assert resp.status_code == 200
    assert resp.json()["comment"] == [
        " first! - carol@example.com",
        " hello - alice@example.com",
    ]

    stored = await read_article(1)
    assert stored.comment == [" first! - carol@example.com", " hello - alice@example.com"]


@pytest.mark.asyncio
async def test_add_multiple_comments(async_client: AsyncClient, article):
    for i, token in enumerate(["alice-token", "bob-token", "alice-token"]):
        resp = await async_client.post(
            "/api/articles/1/comment", json={"text": f"Comment {i}"}, headers=auth(token)
        )
        assert resp.status_code == 200

    detail = await async_client.get("/api/articles/1")
    assert detail.json()["comment"][1:] == [
        " Comment 0 - alice@example.com",
        " Comment 1 - bob@example.com",
        " Comment 2 - alice@example.com",
    ]


@pytest.mark.asyncio
async def test_comment_text_stored_verbatim(async_client: AsyncClient, article):
    text = "<script>alert('x')</script> ' OR 1=1; --"
    resp = await async_client.post(
        "/api/articles/1/comment", json={"text": text}, headers=auth("bob-token")
    )
    assert resp.status_code == 200
    assert resp.json()["comment"][-1] == f" {text} - bob@example.com"


@pytest.mark.asyncio
async def test_comment_does_not_touch_votes(async_client: AsyncClient, article):
    await async_client.post("/api/articles/1/comment", json={"text": "hi"}, headers=auth("alice-token"))
    stored = await read_article(1)
    assert stored.upvote == 0
    assert stored.upvote_ids == []


# ---------------------------------------------------------------------------
# Add comment — error paths
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comment_on_nonexistent_article(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/articles/99999/comment", json={"text": "Ghost comment"}, headers=auth("alice-token")
    )
    assert resp.status_code == 404
    assert resp.json() == {"message": "Article not found"}


@pytest.mark.asyncio
async def test_anonymous_comment_rejected(async_client: AsyncClient, article):
    resp = await async_client.post("/api/articles/1/comment", json={"text": "hi"})
    assert resp.status_code == 403
    assert resp.json() == {"error": "User not authenticated"}

    stored = await read_article(1)
    assert stored.comment == [" first! - carol@example.com"]


@pytest.mark.asyncio
async def test_comment_without_email_rejected(async_client: AsyncClient, article):
    resp = await async_client.post(
        "/api/articles/1/comment", json={"text": "hi"}, headers=auth("no-email-token")
    )
    assert resp.status_code == 403
    assert resp.json() == {"error": "User not authenticated"}


@pytest.mark.asyncio
async def test_comment_with_invalid_token_rejected(async_client: AsyncClient, article):
    resp = await async_client.post(
        "/api/articles/1/comment", json={"text": "hi"}, headers=auth("forged")
    )
    assert resp.status_code == 403
    assert resp.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_comment_missing_text_field(async_client: AsyncClient, article):
    """Omitting the required 'text' field returns 422 Unprocessable Entity."""
    resp = await async_client.post(
        "/api/articles/1/comment", json={"body": "hi"}, headers=auth("alice-token")
    )
    assert resp.status_code == 422
