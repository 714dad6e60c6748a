"""Translate domain errors into standardized API error responses.

``drf-standardized-errors`` renders every error as::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": null}]}

``DomainExceptionHandler`` plugs into it and converts the domain error
categories from ``shared.domain.errors`` into DRF ``APIException``s with
the matching status code.  Unknown exceptions still fall through to the
library's default handling (500 for programming errors).
"""

from __future__ import annotations

from typing import Dict, Type

import structlog
from drf_standardized_errors.handler import ExceptionHandler
from rest_framework import status
from rest_framework.exceptions import APIException

from shared.domain.errors import (
    AccessDenied,
    Conflict,
    DomainError,
    DomainValidationError,
    NotAuthorized,
    NotFound,
    RuleViolation,
    TransientStoreError,
)

logger = structlog.get_logger(__name__)

# Not-authorized answers exactly like not-found so callers cannot learn
# whether other companies' orders exist.
STATUS_BY_CATEGORY: Dict[Type[DomainError], int] = {
    DomainValidationError: status.HTTP_400_BAD_REQUEST,
    RuleViolation: status.HTTP_409_CONFLICT,
    Conflict: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    NotAuthorized: status.HTTP_404_NOT_FOUND,
    AccessDenied: status.HTTP_403_FORBIDDEN,
    TransientStoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class DomainAPIException(APIException):
    """APIException carrying the status code chosen for a domain error."""

    def __init__(self, exc: DomainError, status_code: int) -> None:
        super().__init__(detail=str(exc), code=exc.code)
        self.status_code = status_code


def status_for(exc: DomainError) -> int:
    for category, code in STATUS_BY_CATEGORY.items():
        if isinstance(exc, category):
            return code
    return status.HTTP_400_BAD_REQUEST


class DomainExceptionHandler(ExceptionHandler):
    def convert_known_exceptions(self, exc: Exception) -> Exception:
        if isinstance(exc, DomainError):
            code = status_for(exc)
            logger.info(
                "api.domain_error",
                error=exc.__class__.__name__,
                code=exc.code,
                status_code=code,
            )
            return DomainAPIException(exc, code)
        return super().convert_known_exceptions(exc)
