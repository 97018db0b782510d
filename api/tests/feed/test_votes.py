"""
Tests for POST /api/v1/posts/{id}/vote.

One vote row per (post, user); repeated votes overwrite, "none" clears.
"""

from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import func, select

from campus_feed.models import PostVote


async def _vote(client: AsyncClient, post_id, vote: str, headers: dict):
    return await client.post(f"/api/v1/posts/{post_id}/vote", json={"vote": vote}, headers=headers)


async def _vote_rows(db_session, post_id, user_id) -> int:
    return await db_session.scalar(
        select(func.count()).select_from(PostVote).where(
            PostVote.post_id == post_id, PostVote.user_id == user_id
        )
    )


class TestVote:
    """Vote set, flip, and clear."""

    async def test_upvote(self, async_client: AsyncClient, seed_post, student: dict, auth_headers):
        """An upvote is reflected in the tally and the caller's vote."""
        post = await seed_post()
        response = await _vote(async_client, post.id, "up", auth_headers(student))
        assert response.status_code == 200
        assert response.json()["data"] == {
            "postId": str(post.id),
            "voteScore": 1,
            "upvoteCount": 1,
            "downvoteCount": 0,
            "userVote": "up",
        }

    async def test_repeat_upvote_is_idempotent(
        self, async_client: AsyncClient, db_session, seed_post, student: dict, auth_headers
    ):
        """Voting up twice leaves one row and the same score."""
        post = await seed_post()
        headers = auth_headers(student)
        await _vote(async_client, post.id, "up", headers)
        response = await _vote(async_client, post.id, "up", headers)

        assert response.json()["data"]["voteScore"] == 1
        assert await _vote_rows(db_session, post.id, student["id"]) == 1

    async def test_down_after_up_moves_score_by_two(
        self, async_client: AsyncClient, db_session, seed_post, student: dict, auth_headers
    ):
        """Flipping a vote changes the score by exactly -2."""
        post = await seed_post()
        headers = auth_headers(student)
        up = await _vote(async_client, post.id, "up", headers)
        down = await _vote(async_client, post.id, "down", headers)

        assert down.json()["data"]["voteScore"] - up.json()["data"]["voteScore"] == -2
        assert down.json()["data"]["upvoteCount"] == 0
        assert down.json()["data"]["downvoteCount"] == 1
        assert down.json()["data"]["userVote"] == "down"
        assert await _vote_rows(db_session, post.id, student["id"]) == 1

    async def test_none_clears_vote(
        self, async_client: AsyncClient, db_session, seed_post, student: dict, auth_headers
    ):
        """'none' removes the row and returns counts to baseline."""
        post = await seed_post()
        headers = auth_headers(student)
        await _vote(async_client, post.id, "up", headers)
        response = await _vote(async_client, post.id, "none", headers)

        assert response.json()["data"] == {
            "postId": str(post.id),
            "voteScore": 0,
            "upvoteCount": 0,
            "downvoteCount": 0,
            "userVote": None,
        }
        assert await _vote_rows(db_session, post.id, student["id"]) == 0

    async def test_votes_aggregate_across_users(
        self,
        async_client: AsyncClient,
        seed_post,
        student: dict,
        second_student: dict,
        faculty: dict,
        auth_headers,
    ):
        """The feed shows totals across voters and the caller's own vote."""
        post = await seed_post()
        await _vote(async_client, post.id, "up", auth_headers(student))
        await _vote(async_client, post.id, "up", auth_headers(second_student))
        await _vote(async_client, post.id, "down", auth_headers(faculty))

        response = await async_client.get(f"/api/v1/posts/{post.id}", headers=auth_headers(faculty))
        data = response.json()["data"]
        assert data["voteScore"] == 1
        assert data["upvoteCount"] == 2
        assert data["downvoteCount"] == 1
        assert data["userVote"] == "down"

    async def test_vote_requires_auth(self, async_client: AsyncClient, seed_post):
        """Anonymous votes are rejected."""
        post = await seed_post()
        response = await async_client.post(f"/api/v1/posts/{post.id}/vote", json={"vote": "up"})
        assert response.status_code == 401

    async def test_vote_rejects_unknown_direction(
        self, async_client: AsyncClient, seed_post, student: dict, auth_headers
    ):
        """Only up, down, or none are accepted."""
        post = await seed_post()
        response = await _vote(async_client, post.id, "sideways", auth_headers(student))
        assert response.status_code == 422

    async def test_vote_on_unknown_post(self, async_client: AsyncClient, student: dict, auth_headers):
        """Unknown post is NotFound."""
        response = await _vote(async_client, uuid4(), "up", auth_headers(student))
        assert response.status_code == 404

    async def test_vote_on_archived_post(
        self, async_client: AsyncClient, seed_post, student: dict, auth_headers
    ):
        """Archived posts are closed to votes."""
        post = await seed_post(status="archived")
        response = await _vote(async_client, post.id, "up", auth_headers(student))
        assert response.status_code == 422
