"""
D&D Beyond middleware exceptions.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class NotAuthenticatedError(ServiceError):
    """No stored D&D Beyond credentials."""

    def __init__(self, message: str = "Not authenticated. Run setup first."):
        super().__init__(message)


class TokenExchangeError(ServiceError):
    """Cobalt token exchange failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class HttpError(ServiceError):
    """Upstream answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        service_id: str | None = None,
    ):
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            f"D&D Beyond API error: {status_code} {reason}".rstrip(),
            service_id=service_id,
        )


class CircuitOpenError(ServiceError):
    """Circuit breaker is open, request blocked."""

    def __init__(self, service_id: str, reset_after_seconds: float):
        self.reset_after_seconds = reset_after_seconds
        super().__init__(
            f"Circuit breaker open for service '{service_id}', "
            f"retry after {reset_after_seconds:.1f}s",
            service_id=service_id,
        )


class RequestTimeoutError(ServiceError):
    """Request timed out."""

    def __init__(self, service_id: str, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"Request to service '{service_id}' timed out after {timeout}s",
            service_id=service_id,
        )
