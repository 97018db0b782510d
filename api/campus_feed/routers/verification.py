"""Alumni verification router: applicant self-service and moderator review."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.auth.dependencies import get_current_caller, require_moderator
from campus_feed.config import settings
from campus_feed.database import get_db
from campus_feed.middleware.rate_limit import limiter
from campus_feed.models.verification import AlumniVerificationApplication
from campus_feed.schemas.common import Pagination, iso
from campus_feed.schemas.verification import (
    ApplicantInfo,
    ApplicationItem,
    ApplyRequest,
    QueueMeta,
    QueueResponse,
    ReviewRequest,
    ReviewResponse,
    VerificationStateInfo,
    VerificationStateResponse,
)
from campus_feed.services.identity import Identity, IdentityDirectory
from campus_feed.services.notifications import NotificationStateService, verification_key
from campus_feed.services.verification import VerificationService, VerificationState

router = APIRouter(prefix="/api/v1", tags=["Alumni Verification"])


def _applicant_info(identity: Identity | None) -> ApplicantInfo | None:
    if identity is None:
        return None
    return ApplicantInfo(
        id=str(identity.id),
        full_name=identity.full_name,
        email=identity.email,
        role=identity.role,
        university_id=identity.university_id,
        session=identity.session,
    )


def _application_item(
    application: AlumniVerificationApplication,
    applicant: Identity | None,
    is_read: bool | None = None,
) -> ApplicationItem:
    return ApplicationItem(
        id=str(application.id),
        applicant_id=str(application.applicant_id),
        student_id=application.student_id,
        id_card_image_data_url=application.id_card_image_data_url,
        current_job_info=application.current_job_info,
        status=application.status,
        review_note=application.review_note,
        reviewed_by=str(application.reviewed_by) if application.reviewed_by else None,
        reviewed_at=iso(application.reviewed_at),
        created_at=iso(application.created_at),
        updated_at=iso(application.updated_at),
        applicant=_applicant_info(applicant),
        is_read=is_read,
    )


def _state_info(state: VerificationState, applicant: Identity | None) -> VerificationStateInfo:
    return VerificationStateInfo(
        status=state.status.value,
        is_verified=state.is_verified,
        application=(
            _application_item(state.application, applicant) if state.application else None
        ),
    )


@router.get(
    "/alumni-verification/me",
    response_model=VerificationStateResponse,
    status_code=status.HTTP_200_OK,
)
async def get_my_verification(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> VerificationStateResponse:
    """Effective verification status of the calling alumni account."""
    state = await VerificationService(db).state_for(caller)
    applicant = await IdentityDirectory(db).get(caller.id)
    return VerificationStateResponse(data=_state_info(state, applicant))


@router.post(
    "/alumni-verification/apply",
    response_model=VerificationStateResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.verification_apply_rate_limit)
async def apply_for_verification(
    request: Request,
    data: ApplyRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> VerificationStateResponse:
    """
    Submit an alumni verification application.

    Allowed when the caller has never applied or was rejected.
    """
    service = VerificationService(db)
    await service.apply(
        caller,
        student_id=data.student_id,
        current_job_info=data.current_job_info,
        id_card_image_data_url=data.id_card_image_data_url,
    )
    state = await service.effective_state(caller.id)
    applicant = await IdentityDirectory(db).get(caller.id)
    await db.commit()

    return VerificationStateResponse(
        message="Verification application submitted.",
        data=_state_info(state, applicant),
    )


@router.get(
    "/notifications/alumni-verifications",
    response_model=QueueResponse,
    status_code=status.HTTP_200_OK,
)
async def list_verification_queue(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
    application_status: str | None = Query(
        default=None, alias="status", description="pending, approved, rejected, or all"
    ),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page"),
    offset: int = Query(default=0, ge=0),
) -> QueueResponse:
    """
    Verification applications visible to the caller.

    Moderators get the review queue; alumni get their own history.
    """
    service = VerificationService(db)
    applications, total = await service.queue(
        caller, status=application_status, limit=limit, offset=offset
    )
    applicants = await IdentityDirectory(db).lookup(a.applicant_id for a in applications)
    read_state = await NotificationStateService(db).get_state(caller.id)
    stamps = await service.queue_stamps(caller, status=application_status)

    items = [
        _application_item(
            application,
            applicants.get(application.applicant_id),
            is_read=read_state.is_read(verification_key(application.id), application.created_at),
        )
        for application in applications
    ]

    return QueueResponse(
        data=items,
        pagination=Pagination(limit=limit, offset=offset, total=total),
        meta=QueueMeta(
            recipient_role=caller.role.value,
            can_review=caller.is_moderator,
            unread_count=sum(
                1
                for application_id, created_at in stamps
                if not read_state.is_read(verification_key(application_id), created_at)
            ),
        ),
    )


@router.patch(
    "/notifications/alumni-verifications/{application_id}",
    response_model=ReviewResponse,
    status_code=status.HTTP_200_OK,
)
async def review_application(
    application_id: UUID,
    data: ReviewRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_moderator),
) -> ReviewResponse:
    """
    Approve or reject a pending application.

    Requires faculty or admin. Approval rejects the applicant's other
    pending applications.
    """
    application = await VerificationService(db).review(
        application_id, data.action, caller, data.review_note
    )
    applicant = await IdentityDirectory(db).get(application.applicant_id)
    await db.commit()

    return ReviewResponse(
        message=f"Application {application.status}.",
        data=_application_item(application, applicant),
    )
