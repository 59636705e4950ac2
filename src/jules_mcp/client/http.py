"""Async HTTP client for the Jules API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator

import httpx
from pydantic import BaseModel, ValidationError

from .errors import (
    JulesClientError,
    NetworkError,
    RemoteAuthError,
    RemoteNotFoundError,
    RemoteRateLimitError,
    RemoteRequestError,
    RemoteUnavailableError,
)
from .models import ActivityInfo, SessionInfo, SourceInfo

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://jules.googleapis.com"
DEFAULT_API_VERSION = "v1alpha"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _activity_key(activity: ActivityInfo) -> str:
    if activity.id:
        return activity.id
    return json.dumps(activity.raw, sort_keys=True, default=str)


def _parse_record(model: type[BaseModel], data: Any, *, action: str) -> Any:
    if not isinstance(data, dict):
        raise RemoteRequestError(f"Unexpected response to {action}: {data!r}", body=data)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RemoteRequestError(f"Unexpected response to {action}: {exc}", body=data) from exc


class JulesClient:
    """Typed gateway to the Jules session API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Jules API key is required")
        self._base_url = f"{base_url.rstrip('/')}/{api_version}"
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "X-Goog-Api-Key": api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "JulesClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def create_session(
        self,
        prompt: str,
        source: str,
        title: str,
        branch: str = "main",
    ) -> SessionInfo:
        body = {
            "prompt": prompt,
            "sourceContext": {
                "source": source,
                "githubRepoContext": {"startingBranch": branch},
            },
            "title": title,
        }
        data = await self._request("POST", "/sessions", action="create session", json=body)
        return _parse_record(SessionInfo, data, action="create session")

    async def get_session(self, session_id: str) -> SessionInfo:
        data = await self._request(
            "GET",
            f"/sessions/{session_id}",
            action="get session",
            not_found=f"Session not found: {session_id}",
        )
        return _parse_record(SessionInfo, data, action="get session")

    async def send_message(self, session_id: str, text: str) -> dict[str, Any]:
        data = await self._request(
            "POST",
            f"/sessions/{session_id}:sendMessage",
            action="send message",
            json={"prompt": text},
        )
        return data if isinstance(data, dict) and data else {"success": True}

    async def list_activities(self, session_id: str, limit: int = 10) -> list[ActivityInfo]:
        data = await self._request(
            "GET",
            f"/sessions/{session_id}/activities",
            action="get activities",
            params={"pageSize": limit},
        )
        items = data.get("activities") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []
        return [ActivityInfo.model_validate(item) for item in items[:limit] if isinstance(item, dict)]

    async def stream_activities(
        self,
        session_id: str,
        *,
        max_activities: int = 50,
        poll_interval: float = 2.0,
        page_size: int = 100,
    ) -> AsyncIterator[ActivityInfo]:
        """Yield activities as they appear until the limit or a terminal session state."""

        seen: set[str] = set()
        emitted = 0
        while emitted < max_activities:
            batch = await self.list_activities(session_id, limit=page_size)
            fresh = [activity for activity in batch if _activity_key(activity) not in seen]
            for activity in fresh:
                seen.add(_activity_key(activity))
                yield activity
                emitted += 1
                if emitted >= max_activities:
                    return
            if not fresh:
                session = await self.get_session(session_id)
                if session.is_terminal:
                    return
            await asyncio.sleep(poll_interval)

    async def list_sources(self) -> list[SourceInfo]:
        sources: list[SourceInfo] = []
        page_token: str | None = None
        while True:
            params = {"pageToken": page_token} if page_token else None
            data = await self._request("GET", "/sources", action="list sources", params=params)
            if not isinstance(data, dict):
                break
            sources.extend(
                SourceInfo.model_validate(item)
                for item in data.get("sources") or []
                if isinstance(item, dict)
            )
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        return sources

    async def delete_session(self, session_id: str) -> None:
        await self._request(
            "DELETE",
            f"/sessions/{session_id}",
            action="delete session",
            not_found=f"Session not found: {session_id}",
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        not_found: str | None = None,
        **kwargs: Any,
    ) -> Any:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(
                f"Cannot reach Jules API ({exc.__class__.__name__}: {exc}). "
                "Please check your network connection."
            ) from exc
        except httpx.HTTPError as exc:
            raise JulesClientError(f"Failed to {action}: {exc}") from exc

        if response.is_success:
            if not response.content:
                return None
            return _response_body(response)

        raise self._error_for(response, action=action, not_found=not_found)

    @staticmethod
    def _error_for(
        response: httpx.Response,
        *,
        action: str,
        not_found: str | None,
    ) -> JulesClientError:
        status = response.status_code
        body = _response_body(response)
        logger.debug(
            "Jules API request failed",
            extra={"action": action, "status_code": status},
        )
        if status in (401, 403):
            return RemoteAuthError(
                "Invalid API key. Please check your JULES_API_KEY environment variable.",
                status_code=status,
                body=body,
            )
        if status == 429:
            return RemoteRateLimitError(
                "Rate limit exceeded. Please try again later.", status_code=status, body=body
            )
        if status >= 500:
            return RemoteUnavailableError(
                "Jules API service unavailable. Please try again later.",
                status_code=status,
                body=body,
            )
        if status == 404 and not_found is not None:
            return RemoteNotFoundError(not_found, status_code=status, body=body)
        return RemoteRequestError(
            f"Failed to {action} (HTTP {status}): {body}", status_code=status, body=body
        )


__all__ = ["JulesClient", "DEFAULT_BASE_URL", "DEFAULT_API_VERSION"]
