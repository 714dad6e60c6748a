"""Domain error categories shared by every bounded context.

Concrete errors subclass exactly one category.  The API layer maps
categories (not concrete classes) to HTTP responses, so adding a new
error never requires touching the exception handler.

- ``DomainValidationError``: bad input shape or values.  Not retried.
- ``RuleViolation``: illegal state transition or business rule.
  User-correctable; not retried.
- ``Conflict``: uniqueness collision that survived internal retries.
- ``NotFound``: the addressed resource does not exist.
- ``NotAuthorized``: the caller may not see the resource.  Must not leak
  existence, so it is reported exactly like ``NotFound``.
- ``AccessDenied``: the caller can see the resource but may not perform
  the operation.
- ``TransientStoreError``: the store failed in a way worth retrying.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base for every error raised by the domain/service layers."""

    default_code = "domain_error"

    def __init__(self, message: str = "", *, code: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or "")
        self.code = code or self.default_code


class DomainValidationError(DomainError):
    default_code = "invalid"


class RuleViolation(DomainError):
    default_code = "rule_violation"


class Conflict(DomainError):
    default_code = "conflict"


class NotFound(DomainError):
    default_code = "not_found"


class NotAuthorized(DomainError):
    default_code = "not_accessible"


class AccessDenied(DomainError):
    default_code = "permission_denied"


class TransientStoreError(DomainError):
    default_code = "try_again"
