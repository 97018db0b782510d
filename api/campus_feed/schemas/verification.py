"""Alumni verification Pydantic schemas."""

from campus_feed.schemas.common import CamelModel, Pagination


class ApplicantInfo(CamelModel):
    id: str
    full_name: str | None
    email: str | None
    role: str | None
    university_id: str | None
    session: str | None


class ApplicationItem(CamelModel):
    id: str
    applicant_id: str
    student_id: str
    id_card_image_data_url: str
    current_job_info: str
    status: str
    review_note: str | None
    reviewed_by: str | None
    reviewed_at: str | None
    created_at: str
    updated_at: str
    applicant: ApplicantInfo | None
    is_read: bool | None = None


class VerificationStateInfo(CamelModel):
    status: str
    is_verified: bool
    application: ApplicationItem | None


class VerificationStateResponse(CamelModel):
    message: str | None = None
    data: VerificationStateInfo


class ApplyRequest(CamelModel):
    """Verification submission; fields are trimmed and checked by the workflow."""

    student_id: str = ""
    current_job_info: str = ""
    id_card_image_data_url: str = ""


class ReviewRequest(CamelModel):
    action: str
    review_note: str | None = None


class ReviewResponse(CamelModel):
    message: str
    data: ApplicationItem


class QueueMeta(CamelModel):
    recipient_role: str
    can_review: bool
    unread_count: int


class QueueResponse(CamelModel):
    data: list[ApplicationItem]
    pagination: Pagination
    meta: QueueMeta
