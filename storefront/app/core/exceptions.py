"""
Unified base exception classes for all services.

Each service module extends ServiceError with its own errors; routers
convert any ServiceError into an HTTPException with its status_code.
"""


class ServiceError(Exception):
    """Base exception for all service-layer errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class LookupFailedError(ServiceError):
    """Backing store or cache could not be reached, or returned malformed data."""

    def __init__(self, source: str, detail: str = ""):
        self.source = source
        message = f"Could not check delivery availability ({source} unavailable)"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, 503)
