"""Custom exception hierarchy for AdvisorFlow."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Request errors
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"

    # Version errors
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # Review errors
    REVIEW_NOT_FOUND = "REVIEW_NOT_FOUND"

    # Workflow errors
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"

    # Editor errors
    SELECTION_INVALID = "SELECTION_INVALID"

    # Generation errors
    GENERATION_FAILED = "GENERATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AdvisorFlowError(Exception):
    """
    Base exception for all AdvisorFlow errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class RequestNotFoundError(AdvisorFlowError):
    """Content request not found in database."""

    def __init__(self, request_id: str):
        super().__init__(
            f"Content request not found: {request_id}",
            ErrorCode.REQUEST_NOT_FOUND,
            status_code=404,
            details={"request_id": request_id}
        )


class VersionNotFoundError(AdvisorFlowError):
    """Version not found in database."""

    def __init__(self, version_id: str):
        super().__init__(
            f"Version not found: {version_id}",
            ErrorCode.VERSION_NOT_FOUND,
            status_code=404,
            details={"version_id": version_id}
        )


class ReviewNotFoundError(AdvisorFlowError):
    """Review not found in database."""

    def __init__(self, review_id: str):
        super().__init__(
            f"Review not found: {review_id}",
            ErrorCode.REVIEW_NOT_FOUND,
            status_code=404,
            details={"review_id": review_id}
        )


class InvalidTransitionError(AdvisorFlowError):
    """Action is not allowed from the request's current status."""

    def __init__(
        self,
        current_status: str,
        requested_action: str,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INVALID_TRANSITION,
    ):
        super().__init__(
            message or f"Cannot {requested_action} a request in status '{current_status}'",
            error_code,
            status_code=409,
            details={
                "current_status": current_status,
                "requested_action": requested_action,
            }
        )
        self.current_status = current_status
        self.requested_action = requested_action


class PreconditionFailedError(InvalidTransitionError):
    """Transition is allowed from this status but its precondition is not met."""

    def __init__(self, current_status: str, requested_action: str, message: str):
        super().__init__(
            current_status,
            requested_action,
            message=message,
            error_code=ErrorCode.PRECONDITION_FAILED,
        )


class SelectionInvalidError(AdvisorFlowError):
    """Selection is too short, ambiguous, or does not resolve to one span."""

    def __init__(self, message: str, selection: Optional[str] = None):
        details = {"selection": selection} if selection is not None else {}
        super().__init__(
            message,
            ErrorCode.SELECTION_INVALID,
            status_code=422,
            details=details
        )


class GenerationFailedError(AdvisorFlowError):
    """The text/image generation capability errored or returned nothing.

    The message is the collaborator's own message, passed through verbatim.
    """

    def __init__(self, message: str, provider: Optional[str] = None):
        details = {"provider": provider} if provider else {}
        super().__init__(
            message,
            ErrorCode.GENERATION_FAILED,
            status_code=502,
            details=details
        )


class VersionConflictError(AdvisorFlowError):
    """A concurrent write produced a version-number mismatch."""

    def __init__(
        self,
        request_id: str,
        message: str = "Request was modified by another writer",
        retryable: bool = True,
    ):
        super().__init__(
            message,
            ErrorCode.VERSION_CONFLICT,
            status_code=409,
            details={"request_id": request_id}
        )
        # False when the caller's own view is stale; re-running would not help.
        self.retryable = retryable


class ValidationError(AdvisorFlowError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(AdvisorFlowError):
    """Request lacks a usable caller identity."""

    def __init__(self, message: str = "Missing caller identity"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(AdvisorFlowError):
    """Caller lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class DatabaseError(AdvisorFlowError):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
