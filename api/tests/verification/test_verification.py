"""
Tests for alumni verification:
- GET /api/v1/alumni-verification/me
- POST /api/v1/alumni-verification/apply
- GET /api/v1/notifications/alumni-verifications
- PATCH /api/v1/notifications/alumni-verifications/{id}
"""

from types import SimpleNamespace
from uuid import uuid4

from httpx import AsyncClient

from campus_feed.models import VerificationStatus
from campus_feed.services.verification import SUPERSEDED_NOTE, resolve_effective_status


def _apply_body(id_card: str, **overrides) -> dict:
    body = {
        "studentId": "S-2019-117",
        "currentJobInfo": "Data engineer at Example Corp",
        "idCardImageDataUrl": id_card,
    }
    body.update(overrides)
    return body


async def _review(client: AsyncClient, application_id, action: str, headers: dict, note=None):
    body = {"action": action}
    if note is not None:
        body["reviewNote"] = note
    return await client.patch(
        f"/api/v1/notifications/alumni-verifications/{application_id}",
        json=body,
        headers=headers,
    )


class TestEffectiveStatus:
    """Priority reduction over an applicant's history."""

    def _history(self, *statuses: str) -> list:
        return [SimpleNamespace(id=uuid4(), status=status) for status in statuses]

    def test_empty_history_is_not_submitted(self):
        """No applications means not_submitted."""
        assert resolve_effective_status([]).status == VerificationStatus.NOT_SUBMITTED

    def test_approved_beats_everything_in_any_order(self):
        """Order of the history does not change the outcome."""
        history = self._history("rejected", "approved", "pending")
        for ordering in (history, list(reversed(history)), history[1:] + history[:1]):
            state = resolve_effective_status(ordering)
            assert state.status == VerificationStatus.APPROVED
            assert state.is_verified

    def test_pending_beats_rejected(self):
        """A resubmission after rejection reads as pending."""
        state = resolve_effective_status(self._history("rejected", "pending"))
        assert state.status == VerificationStatus.PENDING
        assert not state.is_verified

    def test_first_match_is_surfaced(self):
        """Within a status, the first application in the input is returned."""
        history = self._history("rejected", "rejected")
        assert resolve_effective_status(history).application is history[0]


class TestMyVerification:
    """GET /api/v1/alumni-verification/me tests."""

    async def test_not_submitted(self, async_client: AsyncClient, alumni: dict, auth_headers):
        """A fresh alumni account has no application."""
        response = await async_client.get(
            "/api/v1/alumni-verification/me", headers=auth_headers(alumni)
        )
        assert response.status_code == 200
        assert response.json()["data"] == {
            "status": "not_submitted",
            "isVerified": False,
            "application": None,
        }

    async def test_only_alumni(self, async_client: AsyncClient, student: dict, auth_headers):
        """Other roles are Forbidden."""
        response = await async_client.get(
            "/api/v1/alumni-verification/me", headers=auth_headers(student)
        )
        assert response.status_code == 403

    async def test_requires_auth(self, async_client: AsyncClient, db_session):
        """Anonymous callers are rejected."""
        response = await async_client.get("/api/v1/alumni-verification/me")
        assert response.status_code == 401


class TestApply:
    """POST /api/v1/alumni-verification/apply tests."""

    async def test_apply_creates_pending(
        self, async_client: AsyncClient, alumni: dict, auth_headers, id_card: str
    ):
        """Applying moves the account to pending."""
        response = await async_client.post(
            "/api/v1/alumni-verification/apply",
            json=_apply_body(id_card),
            headers=auth_headers(alumni),
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["application"]["studentId"] == "S-2019-117"
        assert data["application"]["applicant"]["fullName"] == alumni["full_name"]

    async def test_apply_while_pending_conflicts(
        self, async_client: AsyncClient, alumni: dict, auth_headers, id_card: str
    ):
        """A second application while one is pending is a Conflict."""
        headers = auth_headers(alumni)
        await async_client.post(
            "/api/v1/alumni-verification/apply", json=_apply_body(id_card), headers=headers
        )
        response = await async_client.post(
            "/api/v1/alumni-verification/apply", json=_apply_body(id_card), headers=headers
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    async def test_apply_when_approved_conflicts(
        self, async_client: AsyncClient, alumni: dict, auth_headers, id_card: str, seed_application
    ):
        """Approved is terminal."""
        await seed_application(alumni["id"], status="approved")
        response = await async_client.post(
            "/api/v1/alumni-verification/apply",
            json=_apply_body(id_card),
            headers=auth_headers(alumni),
        )
        assert response.status_code == 409

    async def test_resubmit_after_rejection(
        self, async_client: AsyncClient, alumni: dict, auth_headers, id_card: str, seed_application
    ):
        """Rejected applicants may apply again."""
        await seed_application(alumni["id"], status="rejected", age_minutes=10)
        response = await async_client.post(
            "/api/v1/alumni-verification/apply",
            json=_apply_body(id_card),
            headers=auth_headers(alumni),
        )
        assert response.status_code == 201
        assert response.json()["data"]["status"] == "pending"

    async def test_apply_validation_details_are_ordered(
        self, async_client: AsyncClient, alumni: dict, auth_headers
    ):
        """Every failing field is reported, in field order."""
        response = await async_client.post(
            "/api/v1/alumni-verification/apply",
            json={"studentId": "  ", "currentJobInfo": "", "idCardImageDataUrl": "https://x/y.png"},
            headers=auth_headers(alumni),
        )
        assert response.status_code == 422
        locs = [detail["loc"][-1] for detail in response.json()["error"]["details"]]
        assert locs == ["studentId", "currentJobInfo", "idCardImageDataUrl"]

    async def test_student_cannot_apply(
        self, async_client: AsyncClient, student: dict, auth_headers, id_card: str
    ):
        """Only alumni accounts apply."""
        response = await async_client.post(
            "/api/v1/alumni-verification/apply",
            json=_apply_body(id_card),
            headers=auth_headers(student),
        )
        assert response.status_code == 403


class TestReview:
    """PATCH /api/v1/notifications/alumni-verifications/{id} tests."""

    async def test_approve_supersedes_other_pending(
        self,
        async_client: AsyncClient,
        alumni: dict,
        faculty: dict,
        auth_headers,
        seed_application,
    ):
        """Approving A rejects B with a system note; the account reads approved."""
        first = await seed_application(alumni["id"], age_minutes=20)
        second = await seed_application(alumni["id"], age_minutes=10)

        response = await _review(async_client, first.id, "approve", auth_headers(faculty))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "approved"
        assert response.json()["data"]["reviewedBy"] == faculty["user_id"]

        queue = await async_client.get(
            "/api/v1/notifications/alumni-verifications",
            params={"status": "all"},
            headers=auth_headers(faculty),
        )
        by_id = {item["id"]: item for item in queue.json()["data"]}
        assert by_id[str(first.id)]["status"] == "approved"
        assert by_id[str(second.id)]["status"] == "rejected"
        assert by_id[str(second.id)]["reviewNote"] == SUPERSEDED_NOTE

        me = await async_client.get("/api/v1/alumni-verification/me", headers=auth_headers(alumni))
        assert me.json()["data"]["status"] == "approved"
        assert me.json()["data"]["isVerified"] is True

    async def test_reject_keeps_note(
        self, async_client: AsyncClient, alumni: dict, admin: dict, auth_headers, seed_application
    ):
        """Rejection stores the reviewer's note."""
        application = await seed_application(alumni["id"])
        response = await _review(
            async_client, application.id, "reject", auth_headers(admin), note="  Blurry photo  "
        )
        assert response.json()["data"]["status"] == "rejected"
        assert response.json()["data"]["reviewNote"] == "Blurry photo"

    async def test_only_moderators_review(
        self, async_client: AsyncClient, alumni: dict, auth_headers, seed_application
    ):
        """Alumni cannot review, not even their own application."""
        application = await seed_application(alumni["id"])
        response = await _review(async_client, application.id, "approve", auth_headers(alumni))
        assert response.status_code == 403

    async def test_review_unknown_application(
        self, async_client: AsyncClient, faculty: dict, auth_headers
    ):
        """Unknown id is NotFound."""
        response = await _review(async_client, uuid4(), "approve", auth_headers(faculty))
        assert response.status_code == 404

    async def test_review_twice_conflicts(
        self, async_client: AsyncClient, alumni: dict, faculty: dict, auth_headers, seed_application
    ):
        """Only pending applications can be reviewed."""
        application = await seed_application(alumni["id"])
        await _review(async_client, application.id, "reject", auth_headers(faculty))
        response = await _review(async_client, application.id, "approve", auth_headers(faculty))
        assert response.status_code == 409

    async def test_unknown_action(
        self, async_client: AsyncClient, alumni: dict, faculty: dict, auth_headers, seed_application
    ):
        """action must be approve or reject."""
        application = await seed_application(alumni["id"])
        response = await _review(async_client, application.id, "maybe", auth_headers(faculty))
        assert response.status_code == 422

    async def test_job_gate_opens_after_approval(
        self,
        async_client: AsyncClient,
        alumni: dict,
        faculty: dict,
        student: dict,
        auth_headers,
        id_card: str,
    ):
        """A pending alumni is refused a JOB post; after approval the same request succeeds."""
        alumni_headers = auth_headers(alumni)
        job = {"type": "JOB", "summary": "Junior analyst", "authorId": student["user_id"]}

        applied = await async_client.post(
            "/api/v1/alumni-verification/apply", json=_apply_body(id_card), headers=alumni_headers
        )
        application_id = applied.json()["data"]["application"]["id"]

        refused = await async_client.post("/api/v1/posts", json=job, headers=alumni_headers)
        assert refused.status_code == 403

        await _review(async_client, application_id, "approve", auth_headers(faculty))

        accepted = await async_client.post("/api/v1/posts", json=job, headers=alumni_headers)
        assert accepted.status_code == 201
        assert accepted.json()["data"]["authorId"] == alumni["user_id"]


class TestQueue:
    """GET /api/v1/notifications/alumni-verifications tests."""

    async def test_moderator_sees_pending_by_default(
        self,
        async_client: AsyncClient,
        alumni: dict,
        faculty: dict,
        auth_headers,
        seed_application,
    ):
        """Moderators get the pending queue with review capability."""
        pending = await seed_application(alumni["id"], age_minutes=5)
        await seed_application(alumni["id"], status="rejected", age_minutes=50)

        response = await async_client.get(
            "/api/v1/notifications/alumni-verifications", headers=auth_headers(faculty)
        )
        body = response.json()
        assert [item["id"] for item in body["data"]] == [str(pending.id)]
        assert body["meta"] == {"recipientRole": "faculty", "canReview": True, "unreadCount": 1}
        assert body["data"][0]["applicant"]["email"] == alumni["email"]

    async def test_alumni_sees_own_history(
        self, async_client: AsyncClient, alumni: dict, auth_headers, seed_application
    ):
        """Alumni see every status of their own applications, newest first."""
        older = await seed_application(alumni["id"], status="rejected", age_minutes=50)
        newer = await seed_application(alumni["id"], age_minutes=5)
        await seed_application(uuid4(), age_minutes=1)

        response = await async_client.get(
            "/api/v1/notifications/alumni-verifications", headers=auth_headers(alumni)
        )
        body = response.json()
        assert [item["id"] for item in body["data"]] == [str(newer.id), str(older.id)]
        assert body["meta"]["canReview"] is False

    async def test_students_see_nothing(
        self, async_client: AsyncClient, alumni: dict, student: dict, auth_headers, seed_application
    ):
        """Roles outside alumni and moderators get an empty page."""
        await seed_application(alumni["id"])
        response = await async_client.get(
            "/api/v1/notifications/alumni-verifications", headers=auth_headers(student)
        )
        assert response.json()["data"] == []
        assert response.json()["pagination"]["total"] == 0

    async def test_marked_items_are_read(
        self,
        async_client: AsyncClient,
        alumni: dict,
        faculty: dict,
        auth_headers,
        seed_application,
    ):
        """A marked verification key flips isRead and lowers unreadCount."""
        application = await seed_application(alumni["id"])
        headers = auth_headers(faculty)
        await async_client.post(
            "/api/v1/notifications/state/mark-read",
            json={"notificationKey": f"alumni-verification:{application.id}"},
            headers=headers,
        )

        response = await async_client.get("/api/v1/notifications/alumni-verifications", headers=headers)
        body = response.json()
        assert body["data"][0]["isRead"] is True
        assert body["meta"]["unreadCount"] == 0

    async def test_unread_count_spans_every_page(
        self,
        async_client: AsyncClient,
        alumni: dict,
        faculty: dict,
        auth_headers,
        seed_application,
    ):
        """unreadCount covers the whole filtered queue, not just the page."""
        first = await seed_application(alumni["id"], age_minutes=30)
        await seed_application(uuid4(), age_minutes=20)
        await seed_application(uuid4(), age_minutes=10)
        await seed_application(uuid4(), status="approved", age_minutes=5)
        headers = auth_headers(faculty)
        await async_client.post(
            "/api/v1/notifications/state/mark-read",
            json={"notificationKey": f"alumni-verification:{first.id}"},
            headers=headers,
        )

        response = await async_client.get(
            "/api/v1/notifications/alumni-verifications",
            params={"limit": 1},
            headers=headers,
        )
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"]["total"] == 3
        assert body["meta"]["unreadCount"] == 2
