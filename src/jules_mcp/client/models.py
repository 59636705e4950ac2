"""Canonical record shapes for Jules API payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

TERMINAL_SESSION_STATES = frozenset({"COMPLETED", "FAILED", "CANCELLED"})


def _first(payload: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


class SessionInfo(BaseModel):
    """A remote session as reported by the API."""

    model_config = ConfigDict(extra="ignore")

    session_id: str | None = Field(default=None, description="Opaque session identifier.")
    name: str | None = Field(default=None, description="Resource name, e.g. sessions/<id>.")
    status: str | None = Field(default=None, description="Remote session state.")
    title: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "raw" in data:
            return data
        name = _first(data, "name")
        session_id = _first(data, "sessionId", "session_id", "id")
        if session_id is None and isinstance(name, str) and name:
            session_id = name.rstrip("/").split("/")[-1] or None
        return {
            "session_id": session_id,
            "name": name,
            "status": _first(data, "status", "state"),
            "title": _first(data, "title"),
            "raw": data,
        }

    @property
    def is_terminal(self) -> bool:
        return (self.status or "").upper() in TERMINAL_SESSION_STATES


class ActivityInfo(BaseModel):
    """One entry of a session's activity history."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    type: str = "unknown"
    originator: str = "system"
    create_time: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    title: str = ""
    description: str = ""
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "raw" in data:
            return data
        normalized: dict[str, Any] = {"raw": data}
        activity_id = _first(data, "id")
        if activity_id is None and isinstance(data.get("name"), str):
            activity_id = data["name"].rstrip("/").split("/")[-1]
        fields = {
            "id": activity_id,
            "type": _first(data, "type"),
            "originator": _first(data, "originator"),
            "create_time": _first(data, "create_time", "createTime"),
            "title": _first(data, "title"),
            "description": _first(data, "description"),
        }
        normalized.update({key: str(value) for key, value in fields.items() if value is not None})
        return normalized

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "type": self.type,
            "originator": self.originator,
            "createTime": self.create_time,
            "title": self.title,
            "description": self.description,
        }


class SourceInfo(BaseModel):
    """A repository source the API can run sessions against."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    id: str = ""
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "raw" in data:
            return data
        return {
            "name": str(data.get("name") or ""),
            "id": str(data.get("id") or ""),
            "raw": data,
        }


__all__ = ["ActivityInfo", "SessionInfo", "SourceInfo", "TERMINAL_SESSION_STATES"]
