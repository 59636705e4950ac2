"""Jules API client exports."""

from .errors import (
    JulesClientError,
    NetworkError,
    RemoteAuthError,
    RemoteNotFoundError,
    RemoteRateLimitError,
    RemoteRequestError,
    RemoteUnavailableError,
)
from .http import JulesClient
from .models import ActivityInfo, SessionInfo, SourceInfo

__all__ = [
    "ActivityInfo",
    "JulesClient",
    "JulesClientError",
    "NetworkError",
    "RemoteAuthError",
    "RemoteNotFoundError",
    "RemoteRateLimitError",
    "RemoteRequestError",
    "RemoteUnavailableError",
    "SessionInfo",
    "SourceInfo",
]
