"""Error taxonomy shared by services and routers.

Services raise these; the app registers one handler that renders every
``FeedError`` as ``{"error": {"code", "message", "request_id", "details"?}}``.
Datastore exceptions are translated once, at the app boundary, by
``translate_db_error``.
"""

from typing import Any

from fastapi import status
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

MIGRATION_HINT = "Run `alembic upgrade head` to create the missing tables."


class FeedError(Exception):
    """Base class for errors with a stable machine-readable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "request_id": request_id,
        }
        if self.details is not None:
            body["details"] = self.details
        return {"error": body}


class ValidationFailed(FeedError):
    """Malformed or missing input; carries ordered per-field complaints."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        details: list[dict[str, Any]] | None = None,
        field: str | None = None,
    ):
        if details is None:
            details = [{"loc": ["body", field] if field else ["body"], "msg": message}]
        super().__init__(message, details)


class Unauthorized(FeedError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class Forbidden(FeedError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFound(FeedError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class Conflict(FeedError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class SchemaUnavailable(FeedError):
    """An expected table is missing; the message includes the remediation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SCHEMA_UNAVAILABLE"


class DatastoreError(FeedError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "DATASTORE_ERROR"


def _is_missing_table(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        # asyncpg UndefinedTableError surfaces SQLSTATE 42P01
        if getattr(orig, "sqlstate", None) == "42P01" or getattr(orig, "pgcode", None) == "42P01":
            return True
    text = str(exc).lower()
    return "no such table" in text or "undefinedtable" in text or (
        "relation" in text and "does not exist" in text
    )


def translate_db_error(exc: SQLAlchemyError) -> FeedError:
    """Map an underlying storage error to the nearest taxonomy kind."""
    if _is_missing_table(exc):
        return SchemaUnavailable(f"A required table is missing. {MIGRATION_HINT}")
    return DatastoreError("The datastore rejected the request")
