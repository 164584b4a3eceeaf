"""
Domain exceptions for the relay.

Services raise these instead of fastapi.HTTPException to avoid coupling
the relay pipeline to the web framework. A global exception handler in
main.py translates them into HTTP responses.

Upstream exchange statuses are never raised: a 4xx from the exchange is a
completed relay, and retry exhaustion is a 504 outcome, not an error.
"""


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Malformed alert body or relay request (400)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class AuthenticationError(AppError):
    """Bad caller IP, missing/invalid token or unresolved secret (401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    """Exchange API path or method not whitelisted (403)."""

    def __init__(self, message: str = "Exchange API path or method is not allowed"):
        super().__init__(message, status_code=403)


class ConfigurationError(AppError):
    """Missing or invalid mandatory configuration (500)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class SinkError(Exception):
    """Metrics sink rejected or could not receive a batch.

    Never leaves the metrics emitter.
    """
