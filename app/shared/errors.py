"""Domain error taxonomy shared by every service.

Services raise these directly; they are ``HTTPException`` subclasses so FastAPI
renders them without any per-route handling. ``main.py`` adds the ``code`` field
to the JSON body.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes surfaced by the store
EXCLUSION_VIOLATION = "23P01"
UNIQUE_VIOLATION = "23505"


class DomainError(HTTPException):
    default_status = 500
    code = "error"

    def __init__(self, detail: str, headers: Optional[dict] = None):
        super().__init__(status_code=self.default_status, detail=detail, headers=headers)


class NotFoundError(DomainError):
    default_status = 404
    code = "not_found"


class UnauthorizedError(DomainError):
    default_status = 401
    code = "unauthorized"


class ForbiddenError(DomainError):
    default_status = 403
    code = "forbidden"


class InvalidInputError(DomainError):
    default_status = 400
    code = "invalid_input"


class InvalidStateError(DomainError):
    default_status = 422
    code = "invalid_state"


class ConflictError(DomainError):
    default_status = 409
    code = "conflict"


class UpstreamError(DomainError):
    default_status = 502
    code = "upstream"


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_exclusion_violation(exc: SQLAlchemyError) -> bool:
    """True when the store rejected a write because of an exclusion constraint."""
    if not isinstance(exc, IntegrityError):
        return False
    if _sqlstate(exc) == EXCLUSION_VIOLATION:
        return True
    return "exclusion constraint" in str(exc.orig).lower()


def is_unique_violation(exc: SQLAlchemyError) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    message = str(exc.orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def upstream(exc: Exception, action: str) -> UpstreamError:
    """Log a persistence failure and wrap it for the caller."""
    logger.error(f"❌ Persistence failure while trying to {action}: {exc}")
    logger.exception(exc)
    return UpstreamError(f"Failed to {action}. Please try again.")
