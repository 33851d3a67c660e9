"""Domain-specific exceptions

Every error raised by the record-store client or the services belongs to this
taxonomy. ``code`` is the machine-readable tag outer layers switch on and
``retryable`` tells the retry executor whether another attempt can help.
"""

from typing import Any, Dict, Optional


class FinanceServiceError(Exception):
    """Base exception for the finance service"""

    code = "INTERNAL_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class AuthenticationError(FinanceServiceError):
    """Credential is invalid or revoked"""

    code = "UNAUTHORIZED"


class PermissionDeniedError(FinanceServiceError):
    """Credential lacks access to the resource"""

    code = "FORBIDDEN"


class NotFoundError(FinanceServiceError):
    """Referenced record or collection does not exist"""

    code = "NOT_FOUND"


class InputValidationError(FinanceServiceError):
    """Caller-supplied input failed shape or range checks"""

    code = "VALIDATION_ERROR"


class ConflictError(FinanceServiceError):
    """Operation conflicts with the current state of the entity"""

    code = "CONFLICT"


class MalformedRecordError(FinanceServiceError):
    """Stored record is missing fields required for the operation"""

    code = "PARSE_ERROR"


class RateLimitedError(FinanceServiceError):
    """Store throttled the request"""

    code = "RATE_LIMITED"
    retryable = True

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.retry_after = retry_after


class RequestTimeoutError(FinanceServiceError):
    """Operation did not finish within its timeout"""

    code = "TIMEOUT"
    retryable = True


class StoreConnectionError(FinanceServiceError):
    """Transport-level failure reaching the store"""

    code = "CONNECTION_ERROR"
    retryable = True


class ServerError(FinanceServiceError):
    """Upstream 5xx or otherwise unrecognised fault"""

    code = "SERVER_ERROR"
    retryable = True
