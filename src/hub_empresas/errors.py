"""Error taxonomy for hub-empresas.

Every domain error carries an ``ErrorCode`` and the HTTP status it maps to.
The API layer renders them as ``{"error": {"code": ..., "message": ...}}``.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable error codes returned to API clients."""

    NOT_FOUND = "NOT_FOUND"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    RESPONSE_NOT_FOUND = "RESPONSE_NOT_FOUND"
    BADGE_NOT_FOUND = "BADGE_NOT_FOUND"
    ACTION_PLAN_NOT_FOUND = "ACTION_PLAN_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ANSWER = "INVALID_ANSWER"
    STORE_ERROR = "STORE_ERROR"


class HubError(Exception):
    """Base class for all hub-empresas domain errors."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.STORE_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(HubError):
    """A referenced template, response, badge or company does not exist."""

    status_code = 404
    code = ErrorCode.NOT_FOUND


class TemplateNotFoundError(NotFoundError):
    code = ErrorCode.TEMPLATE_NOT_FOUND


class ResponseNotFoundError(NotFoundError):
    code = ErrorCode.RESPONSE_NOT_FOUND


class BadgeNotFoundError(NotFoundError):
    code = ErrorCode.BADGE_NOT_FOUND


class ActionPlanNotFoundError(NotFoundError):
    code = ErrorCode.ACTION_PLAN_NOT_FOUND


class ValidationError(HubError):
    """Input passed schema validation but is inconsistent with stored data."""

    status_code = 422
    code = ErrorCode.VALIDATION_ERROR


class AnswerOutOfRangeError(ValidationError):
    """An answer lies outside the template's 0..max_score_per_question scale."""

    code = ErrorCode.INVALID_ANSWER


class StoreError(HubError):
    """The persistence layer failed (connectivity, constraint, timeout).

    Callers may retry the whole request.
    """

    status_code = 503
    code = ErrorCode.STORE_ERROR
