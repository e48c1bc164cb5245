"""
Classified errors raised by the security rules client.

Every failure surfaced to a caller is an instance of SecurityRulesError
carrying a stable ``code`` and a human-readable ``message``.
"""


class SecurityRulesError(Exception):
    """Base class for all classified security rules errors."""

    code = "unknown-error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidArgumentError(SecurityRulesError, ValueError):
    """Malformed name, content, page size or missing default bucket."""

    code = "invalid-argument"


class NotFoundError(SecurityRulesError):
    """Ruleset, release or page token does not exist."""

    code = "not-found"


class AlreadyExistsError(SecurityRulesError):
    code = "already-exists"


class PermissionDeniedError(SecurityRulesError):
    code = "authentication-error"


class ResourceExhaustedError(SecurityRulesError):
    code = "resource-exhausted"


class UnavailableError(SecurityRulesError):
    code = "service-unavailable"


class DeadlineExceededError(SecurityRulesError):
    """Transport timed out before the backend answered."""

    code = "deadline-exceeded"


class InternalError(SecurityRulesError):
    code = "internal-error"


class InvalidServerResponseError(SecurityRulesError):
    """Backend answered with a payload that does not have the expected shape."""

    code = "invalid-server-response"


class UnknownError(SecurityRulesError):
    code = "unknown-error"


# RPC status name -> error class
STATUS_TO_ERROR: dict[str, type[SecurityRulesError]] = {
    "INVALID_ARGUMENT": InvalidArgumentError,
    "FAILED_PRECONDITION": InvalidArgumentError,
    "OUT_OF_RANGE": InvalidArgumentError,
    "NOT_FOUND": NotFoundError,
    "ALREADY_EXISTS": AlreadyExistsError,
    "UNAUTHENTICATED": PermissionDeniedError,
    "PERMISSION_DENIED": PermissionDeniedError,
    "RESOURCE_EXHAUSTED": ResourceExhaustedError,
    "UNAVAILABLE": UnavailableError,
    "DEADLINE_EXCEEDED": DeadlineExceededError,
    "INTERNAL": InternalError,
}

HTTP_STATUS_TO_ERROR: dict[int, type[SecurityRulesError]] = {
    400: InvalidArgumentError,
    401: PermissionDeniedError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: AlreadyExistsError,
    429: ResourceExhaustedError,
    500: InternalError,
    503: UnavailableError,
    504: DeadlineExceededError,
}


def classify_status(status: str | None, message: str) -> SecurityRulesError:
    """
    Build a classified error from an RPC status name.

    Args:
        status: Status name reported by the backend (e.g. "NOT_FOUND")
        message: Message to attach to the error

    Returns:
        SecurityRulesError subclass instance (UnknownError when unmapped)
    """
    error_class = STATUS_TO_ERROR.get((status or "").upper(), UnknownError)
    return error_class(message)


def classify_http_status(status_code: int, message: str) -> SecurityRulesError:
    """Build a classified error from an HTTP status code."""
    error_class = HTTP_STATUS_TO_ERROR.get(status_code, UnknownError)
    return error_class(message)
