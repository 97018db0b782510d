"""Alumni verification application model."""

import uuid

from sqlalchemy import TIMESTAMP, CheckConstraint, Column, Index, String, Text, Uuid, func

from campus_feed.database import Base, utcnow


class AlumniVerificationApplication(Base):
    """One submission of alumni credentials awaiting or having received review."""

    __tablename__ = "alumni_verification_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    applicant_id = Column(Uuid, nullable=False)
    student_id = Column(Text, nullable=False)
    id_card_image_data_url = Column(Text, nullable=False)
    current_job_info = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending", server_default="pending")
    review_note = Column(Text)
    reviewed_by = Column(Uuid)
    reviewed_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "status in ('pending', 'approved', 'rejected')",
            name="ck_alumni_verification_status",
        ),
        Index("idx_alumni_verification_applicant", applicant_id, created_at.desc()),
        Index("idx_alumni_verification_status", status, created_at.desc()),
    )
