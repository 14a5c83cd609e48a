"""Domain exception hierarchy for structured error responses."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class ProfileNotFoundException(NotFoundException):
    code = "PROFILE_NOT_FOUND"


class RequirementUnavailableException(NotFoundException):
    """A requirement that is missing, closed or inactive, reported identically."""

    code = "REQUIREMENT_UNAVAILABLE"


class QuoteNotFoundException(NotFoundException):
    code = "QUOTE_NOT_FOUND"


class ConflictException(AppException):
    code = "CONFLICT"
    status_code = 409


class DuplicateQuoteException(ConflictException):
    code = "DUPLICATE_QUOTE"


class InvalidStateException(ConflictException):
    code = "INVALID_STATE"


class AlreadySelectedException(ConflictException):
    code = "ALREADY_SELECTED"


class ProfileExistsException(ConflictException):
    code = "PROFILE_EXISTS"


class ForbiddenException(AppException):
    code = "FORBIDDEN"
    status_code = 403


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422


class BusinessRuleException(AppException):
    code = "BUSINESS_RULE_VIOLATION"
    status_code = 422


class InvalidTransitionException(BusinessRuleException):
    code = "INVALID_TRANSITION"


class SelectionIncompleteException(AppException):
    """Raised when quote selection fails after its first write.

    ``details`` lists each ordered step with whether it was reached, so the
    caller sees the partial state instead of a generic error.
    """

    code = "SELECTION_INCOMPLETE"
    status_code = 500
