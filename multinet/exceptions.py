"""
Custom exceptions for the Multinet client

Two failure kinds reach callers: local precondition failures raised before any
request is sent, and transport/server failures propagated from the HTTP layer.
"""
from typing import Any, Optional


class MultinetException(Exception):
    """Base exception for all client errors."""
    pass


class APIException(MultinetException):
    """
    Exception for transport and server failures.

    Carries the HTTP status (None when no response was received) and the
    server-supplied error body. The client never interprets the status;
    callers inspect it to tell not-found, forbidden and validation errors apart.
    """

    def __init__(
        self,
        message: str = "",
        status: Optional[int] = None,
        detail: Any = None,
        method: Optional[str] = None,
        url: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.detail = detail
        self.method = method
        self.url = url

    @property
    def is_network_error(self) -> bool:
        """True when the request never produced an HTTP response."""
        return self.status is None


class InvalidArgumentError(MultinetException, ValueError):
    """Raised when a required identifier argument is empty or not allowed."""
    pass


class ConfigurationException(MultinetException):
    """Exception for configuration-related errors."""
    pass
