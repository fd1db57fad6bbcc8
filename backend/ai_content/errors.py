"""
AI Content Errors

Every failure the generation pipeline can report. Each error knows its
HTTP status and renders the `success: false` envelope returned to clients.
"""

from typing import Any, Dict, Optional

from .config import ERROR_MESSAGES


class ContentServiceError(Exception):
    """Base class for all pipeline errors."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: Optional[str] = None):
        self.message = message or ERROR_MESSAGES.get(self.error_code, ERROR_MESSAGES["INTERNAL_ERROR"])
        super().__init__(self.message)

    def extra_fields(self) -> Dict[str, Any]:
        return {}

    def to_response(self) -> Dict[str, Any]:
        body = {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
        }
        body.update(self.extra_fields())
        return body


class ValidationError(ContentServiceError):
    """Request rejected before any work was done."""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class MissingPromptError(ValidationError):
    """Prompt is absent or empty."""
    error_code = "MISSING_PROMPT"


class InsufficientBalanceError(ContentServiceError):
    """Balance is below the cost of the request."""

    status_code = 403
    error_code = "INSUFFICIENT_TOKENS"

    def __init__(self, tokens_remaining: int, tokens_required: int, message: Optional[str] = None):
        self.tokens_remaining = tokens_remaining
        self.tokens_required = tokens_required
        super().__init__(message)

    def extra_fields(self) -> Dict[str, Any]:
        return {
            "tokensRemaining": self.tokens_remaining,
            "tokensRequired": self.tokens_required,
        }


class BalanceBelowMinimumError(ContentServiceError):
    """
    Balance is below the floor needed to start a generation at all.

    The real cost is unknown until the backend has answered, so only the
    floor is reported, never as a required amount.
    """

    status_code = 403
    error_code = "BALANCE_BELOW_MINIMUM"

    def __init__(self, tokens_remaining: int, minimum_balance: int, message: Optional[str] = None):
        self.tokens_remaining = tokens_remaining
        self.minimum_balance = minimum_balance
        super().__init__(message)

    def extra_fields(self) -> Dict[str, Any]:
        return {
            "tokensRemaining": self.tokens_remaining,
            "minimumBalance": self.minimum_balance,
        }


class GenerationBackendError(ContentServiceError):
    """The generation backend failed."""
    status_code = 502
    error_code = "GENERATION_FAILED"


class RateLimitedError(GenerationBackendError):
    """The generation backend is throttling us. Try again later."""
    status_code = 429
    error_code = "RATE_LIMITED"


class NotFoundError(ContentServiceError):
    status_code = 404
    error_code = "NOT_FOUND"


class ForbiddenError(ContentServiceError):
    """Record exists but belongs to another user."""
    status_code = 403
    error_code = "FORBIDDEN"


class InternalError(ContentServiceError):
    status_code = 500
    error_code = "INTERNAL_ERROR"


HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def http_error_response(status_code: int, detail: Any) -> Dict[str, Any]:
    """Envelope for framework-raised HTTP errors (auth, unknown routes)."""
    error_code = HTTP_ERROR_CODES.get(status_code, "HTTP_ERROR")
    if not detail:
        detail = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES["INTERNAL_ERROR"])
    return {
        "success": False,
        "message": str(detail),
        "error_code": error_code,
    }


def describe_validation_errors(errors) -> str:
    """One line per pydantic error: `location: message`."""
    parts = []
    for error in errors:
        location = ".".join(str(p) for p in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or ERROR_MESSAGES["VALIDATION_ERROR"]
