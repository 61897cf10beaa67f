"""Business error model.

Every error raised across module boundaries derives from BusinessError so
the API layer can map it to an HTTP status in one place.
"""


class BusinessError(Exception):
    """Base class for business errors.

    Attributes:
        code: machine readable error code (e.g. "MISSING_API_KEY").
        message: human readable message.
        http_status: status code to use when surfaced over HTTP.
        extra: additional fields (provider, trace_id, ...).
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class InvalidRequest(BusinessError):
    """Malformed or missing conversation payload; the caller can fix it."""

    def __init__(self, message: str = "Invalid request body", code: str = "INVALID_REQUEST", **extra):
        super().__init__(code=code, message=message, http_status=400, **extra)


class ProviderFailure(BusinessError):
    """A provider call failed or returned something unusable. Never retried."""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class NetworkError(ProviderFailure):
    """Transport level failure: DNS, connect, read timeout."""


class ApiError(ProviderFailure):
    """The provider answered with a non-2xx/429 status or a malformed body."""


class RateLimitError(ProviderFailure):
    """The provider rejected the call with 429."""


class ValidationError(BusinessError):
    """Server-side configuration or tool registry problem."""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)
