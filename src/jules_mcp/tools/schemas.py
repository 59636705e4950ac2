"""Input models validated at the tool boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOURCE_REGEX = r"^sources/github/[\w-]+/[\w-]+$"


class _ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CreateWorkerInput(_ToolInput):
    task_description: str = Field(..., min_length=1)
    source: str = Field(..., pattern=SOURCE_REGEX)
    title: str = Field(..., min_length=1)
    github_branch: str = Field(default="main", min_length=1)
    role: str = Field(default="FREELANCER")
    parent_session_id: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value):  # type: ignore[override]
        return value or "FREELANCER"


class SessionInput(_ToolInput):
    session_id: str = Field(..., min_length=1)


class SendMessageInput(SessionInput):
    message: str = Field(..., min_length=1)


class ActivitiesInput(SessionInput):
    limit: int = Field(default=10, ge=1, le=100)


class StreamActivitiesInput(SessionInput):
    max_activities: int = Field(default=50, ge=1, le=200)


class EstimateWorkInput(_ToolInput):
    task_description: str = Field(..., min_length=1)
    source: str = Field(..., pattern=SOURCE_REGEX)


class StoreMemoryInput(_ToolInput):
    key: str = Field(..., min_length=1)
    value: str


class ReadMemoryInput(_ToolInput):
    key: str = Field(..., min_length=1)


class CreateBranchInput(_ToolInput):
    branch_name: str = Field(..., min_length=1)
    base_branch: str = Field(default="main", min_length=1)


class MergeBranchInput(_ToolInput):
    source_branch: str = Field(..., min_length=1)
    target_branch: str = Field(..., min_length=1)


class DeleteBranchInput(_ToolInput):
    branch_name: str = Field(..., min_length=1)


class GenerateCodeInput(_ToolInput):
    prompt: str = Field(..., min_length=1)
    source: str = Field(..., pattern=SOURCE_REGEX)
    language: str = Field(..., min_length=1)
    context: dict[str, str] | None = None


class FixBugInput(_ToolInput):
    source: str = Field(..., pattern=SOURCE_REGEX)
    error_description: str = Field(..., min_length=1)
    expected_behavior: str = Field(..., min_length=1)
    code_context: str | None = None


class ReviewCodeInput(_ToolInput):
    source: str = Field(..., pattern=SOURCE_REGEX)
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    focus_areas: list[str] = Field(default_factory=lambda: ["security", "quality"])

    @field_validator("focus_areas", mode="before")
    @classmethod
    def _default_focus(cls, value):  # type: ignore[override]
        return value or ["security", "quality"]


def format_validation_error(exc) -> str:
    """Render a pydantic ValidationError as ``field: message`` pairs."""

    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Validation error: " + ", ".join(parts)


__all__ = [
    "ActivitiesInput",
    "CreateBranchInput",
    "CreateWorkerInput",
    "DeleteBranchInput",
    "EstimateWorkInput",
    "FixBugInput",
    "GenerateCodeInput",
    "MergeBranchInput",
    "ReadMemoryInput",
    "ReviewCodeInput",
    "SOURCE_REGEX",
    "SendMessageInput",
    "SessionInput",
    "StoreMemoryInput",
    "StreamActivitiesInput",
    "format_validation_error",
]
