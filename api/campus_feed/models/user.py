"""Identity directory model.

Rows are owned by the auth service; this service only reads them to resolve
author and applicant identity.
"""

from sqlalchemy import TIMESTAMP, Column, String, Text, Uuid, func

from campus_feed.database import Base, utcnow


class User(Base):
    """User account as exposed by the identity directory."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True)
    university_id = Column(Text, unique=True)
    full_name = Column(Text, nullable=False)
    session = Column(Text)
    email = Column(String, unique=True, nullable=False)
    role = Column(String, nullable=False, server_default="student")
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
