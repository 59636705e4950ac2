"""Normalized error kinds raised by the Jules API client."""

from __future__ import annotations

from typing import Any


class JulesClientError(RuntimeError):
    """Base class for Jules API client errors."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RemoteAuthError(JulesClientError):
    """Raised when the API rejects the configured credentials."""


class RemoteRateLimitError(JulesClientError):
    """Raised when the API throttles the caller."""


class RemoteUnavailableError(JulesClientError):
    """Raised on 5xx-class responses from the API."""


class RemoteNotFoundError(JulesClientError):
    """Raised when the API reports that a session does not exist."""


class RemoteRequestError(JulesClientError):
    """Raised for any other unsuccessful response."""


class NetworkError(JulesClientError):
    """Raised when the API cannot be reached at all."""


__all__ = [
    "JulesClientError",
    "NetworkError",
    "RemoteAuthError",
    "RemoteNotFoundError",
    "RemoteRateLimitError",
    "RemoteRequestError",
    "RemoteUnavailableError",
]
