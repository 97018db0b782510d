"""Alumni verification workflow.

States per applicant: not_submitted -> pending -> approved | rejected, and
rejected -> pending by resubmitting. Approved is terminal. Approving one
application rejects the applicant's other pending applications.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.database import utcnow
from campus_feed.errors import Conflict, Forbidden, NotFound, ValidationFailed
from campus_feed.models.enums import Role, VerificationStatus
from campus_feed.models.verification import AlumniVerificationApplication

logger = logging.getLogger(__name__)

SUPERSEDED_NOTE = "Superseded by an approved verification."
REVIEW_NOTE_MAX_LENGTH = 2000
STUDENT_ID_MAX_LENGTH = 120
JOB_INFO_MAX_LENGTH = 5000
ID_CARD_MAX_LENGTH = 2_000_000

# Highest priority first
_PRIORITY = (
    VerificationStatus.APPROVED,
    VerificationStatus.PENDING,
    VerificationStatus.REJECTED,
)


@dataclass
class VerificationState:
    status: VerificationStatus
    application: AlumniVerificationApplication | None = None

    @property
    def is_verified(self) -> bool:
        return self.status == VerificationStatus.APPROVED


def resolve_effective_status(
    applications: Iterable[AlumniVerificationApplication],
) -> VerificationState:
    """
    Fold an applicant's history into one effective status.

    Priority, not recency: approved > pending > rejected > not_submitted.
    Within a status the first application seen wins, so callers pass the
    history newest-first to surface the latest matching application.
    """
    first_by_status: dict[str, AlumniVerificationApplication] = {}
    for application in applications:
        first_by_status.setdefault(application.status, application)

    for candidate in _PRIORITY:
        if candidate.value in first_by_status:
            return VerificationState(candidate, first_by_status[candidate.value])
    return VerificationState(VerificationStatus.NOT_SUBMITTED)


def _require_alumni(caller: Caller, action: str) -> None:
    if caller.role != Role.ALUMNI:
        raise Forbidden(f"Only alumni accounts can {action}")


class VerificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def history(self, applicant_id: UUID) -> list[AlumniVerificationApplication]:
        result = await self.db.execute(
            select(AlumniVerificationApplication)
            .where(AlumniVerificationApplication.applicant_id == applicant_id)
            .order_by(AlumniVerificationApplication.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def effective_state(self, applicant_id: UUID) -> VerificationState:
        return resolve_effective_status(await self.history(applicant_id))

    async def state_for(self, caller: Caller) -> VerificationState:
        _require_alumni(caller, "request alumni verification")
        return await self.effective_state(caller.id)

    async def apply(
        self,
        caller: Caller,
        student_id: str,
        current_job_info: str,
        id_card_image_data_url: str,
    ) -> AlumniVerificationApplication:
        _require_alumni(caller, "submit verification applications")

        state = await self.effective_state(caller.id)
        if state.status == VerificationStatus.APPROVED:
            raise Conflict("Your alumni account is already verified")
        if state.status == VerificationStatus.PENDING:
            raise Conflict("You already have a pending application")

        student_id = (student_id or "").strip()
        current_job_info = (current_job_info or "").strip()
        id_card = (id_card_image_data_url or "").strip()

        details = []
        if not student_id:
            details.append({"loc": ["body", "studentId"], "msg": "studentId is required"})
        elif len(student_id) > STUDENT_ID_MAX_LENGTH:
            details.append({"loc": ["body", "studentId"], "msg": "studentId is too long"})
        if not current_job_info:
            details.append({"loc": ["body", "currentJobInfo"], "msg": "currentJobInfo is required"})
        elif len(current_job_info) > JOB_INFO_MAX_LENGTH:
            details.append({"loc": ["body", "currentJobInfo"], "msg": "currentJobInfo is too long"})
        if not id_card:
            details.append(
                {"loc": ["body", "idCardImageDataUrl"], "msg": "idCardImageDataUrl is required"}
            )
        elif not id_card.startswith("data:image/"):
            details.append(
                {
                    "loc": ["body", "idCardImageDataUrl"],
                    "msg": "idCardImageDataUrl must be a valid image data URL",
                }
            )
        elif len(id_card) > ID_CARD_MAX_LENGTH:
            details.append(
                {"loc": ["body", "idCardImageDataUrl"], "msg": "idCardImageDataUrl is too large"}
            )
        if details:
            raise ValidationFailed("Validation failed", details=details)

        now = utcnow()
        application = AlumniVerificationApplication(
            applicant_id=caller.id,
            student_id=student_id,
            current_job_info=current_job_info,
            id_card_image_data_url=id_card,
            status=VerificationStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        self.db.add(application)
        await self.db.flush()
        return application

    async def review(
        self,
        application_id: UUID,
        action: str,
        reviewer: Caller,
        note: str | None = None,
    ) -> AlumniVerificationApplication:
        """Approve or reject a pending application; approval supersedes the rest."""
        if not reviewer.is_moderator:
            raise Forbidden("Only faculty/admin can review verification applications")

        action = (action or "").strip().lower()
        if action not in {"approve", "reject"}:
            raise ValidationFailed('action must be "approve" or "reject"', field="action")

        result = await self.db.execute(
            select(AlumniVerificationApplication).where(
                AlumniVerificationApplication.id == application_id
            )
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFound("Verification application not found")
        if application.status != VerificationStatus.PENDING.value:
            raise Conflict(f"Application is already {application.status}")

        review_note = note.strip()[:REVIEW_NOTE_MAX_LENGTH] if note else None
        now = utcnow()
        next_status = (
            VerificationStatus.APPROVED if action == "approve" else VerificationStatus.REJECTED
        )

        application.status = next_status.value
        application.review_note = review_note or None
        application.reviewed_by = reviewer.id
        application.reviewed_at = now
        application.updated_at = now
        await self.db.flush()

        superseded = 0
        if next_status == VerificationStatus.APPROVED:
            outcome = await self.db.execute(
                update(AlumniVerificationApplication)
                .where(
                    AlumniVerificationApplication.applicant_id == application.applicant_id,
                    AlumniVerificationApplication.status == VerificationStatus.PENDING.value,
                    AlumniVerificationApplication.id != application.id,
                )
                .values(
                    status=VerificationStatus.REJECTED.value,
                    review_note=SUPERSEDED_NOTE,
                    reviewed_by=reviewer.id,
                    reviewed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session="evaluate")
            )
            superseded = outcome.rowcount or 0

        logger.info(
            "verification reviewed id=%s status=%s reviewer=%s superseded=%s",
            application.id,
            next_status.value,
            reviewer.id,
            superseded,
        )
        return application

    def _queue_conditions(self, caller: Caller, status: str | None) -> list | None:
        """Filter for the caller's view of the queue; ``None`` when they see nothing."""
        if status is None:
            status = "pending" if caller.is_moderator else "all"
        status = status.strip().lower()
        allowed = {"pending", "approved", "rejected", "all"}
        if status not in allowed:
            raise ValidationFailed(
                "status must be one of: pending, approved, rejected, all", field="status"
            )

        if not caller.is_moderator and caller.role != Role.ALUMNI:
            return None

        conditions = []
        if status != "all":
            conditions.append(AlumniVerificationApplication.status == status)
        if not caller.is_moderator:
            conditions.append(AlumniVerificationApplication.applicant_id == caller.id)
        return conditions

    async def queue(
        self,
        caller: Caller,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[AlumniVerificationApplication], int]:
        """
        Applications visible to the caller.

        Moderators see everything (default ``pending``); alumni see their own
        (default ``all``); other roles see nothing.
        """
        conditions = self._queue_conditions(caller, status)
        if conditions is None:
            return [], 0

        total = await self.db.scalar(
            select(func.count(AlumniVerificationApplication.id)).where(*conditions)
        )
        result = await self.db.execute(
            select(AlumniVerificationApplication)
            .where(*conditions)
            .order_by(AlumniVerificationApplication.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def queue_stamps(
        self, caller: Caller, status: str | None = None
    ) -> list[tuple[UUID, datetime]]:
        """``(id, created_at)`` for every application in the caller's filtered queue."""
        conditions = self._queue_conditions(caller, status)
        if conditions is None:
            return []
        result = await self.db.execute(
            select(
                AlumniVerificationApplication.id, AlumniVerificationApplication.created_at
            ).where(*conditions)
        )
        return [(row.id, row.created_at) for row in result]
