"""Worker orchestration on top of the Jules session API."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from .client import ActivityInfo, JulesClientError, RemoteRequestError, SessionInfo, SourceInfo
from .coordination import MAIN_BRANCH, BranchResult, CoordinationStore
from .roles import WorkerRole, coerce_role, compose_prompt

logger = logging.getLogger(__name__)

SOURCE_PATTERN = re.compile(r"^sources/github/[\w-]+/[\w-]+$")
MAX_ACTIVITIES = 100
MAX_STREAMED_ACTIVITIES = 200
TITLE_PREFIX_LENGTH = 50
DEFAULT_FOCUS_AREAS = ("security", "quality")


class OrchestratorError(RuntimeError):
    """Base class for orchestration errors."""


class ValidationError(OrchestratorError):
    """Raised when input is rejected before any remote interaction."""


class WorkerNotFoundError(OrchestratorError):
    """Raised when an operation references a session that is not tracked locally."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Worker not found: {session_id}")
        self.session_id = session_id


class RetriesExhaustedError(OrchestratorError):
    """Raised when session creation failed on every attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Failed to create session after {attempts} attempts (retries exhausted): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class SessionClient(Protocol):
    async def create_session(self, prompt: str, source: str, title: str, branch: str = ...) -> SessionInfo: ...

    async def get_session(self, session_id: str) -> SessionInfo: ...

    async def send_message(self, session_id: str, text: str) -> dict[str, Any]: ...

    async def list_activities(self, session_id: str, limit: int = ...) -> list[ActivityInfo]: ...

    def stream_activities(self, session_id: str, *, max_activities: int = ..., poll_interval: float = ...) -> Any: ...

    async def list_sources(self) -> list[SourceInfo]: ...

    async def delete_session(self, session_id: str) -> None: ...


@dataclass(slots=True)
class WorkerSession:
    session_id: str
    title: str
    role: WorkerRole
    status: str = "created"
    parent_session_id: str | None = None
    branch: str = MAIN_BRANCH
    created_at: datetime | None = None
    last_activity: datetime | None = None

    def touch(self) -> None:
        self.last_activity = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["role"] = self.role.value
        payload["created_at"] = self.created_at.isoformat() if self.created_at else None
        payload["last_activity"] = self.last_activity.isoformat() if self.last_activity else None
        return payload


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _truncate(text: str, length: int = TITLE_PREFIX_LENGTH) -> str:
    text = " ".join(text.split())
    return text if len(text) <= length else f"{text[:length]}..."


def _require_text(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} cannot be empty")
    return value


def _require_source(source: str) -> str:
    if not isinstance(source, str) or not SOURCE_PATTERN.match(source):
        raise ValidationError(
            f"Invalid source format: {source!r}. Expected: sources/github/owner/repo"
        )
    return source


def _require_limit(value: int, upper: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= upper:
        raise ValidationError(f"{field} must be an integer between 1 and {upper}")
    return value


class WorkerOrchestrator:
    """Tracks Jules worker sessions and the coordination state shared between them.

    The registry, memory and branch set belong to this instance; several
    orchestrators can coexist in one process.
    """

    def __init__(
        self,
        client: SessionClient,
        store: CoordinationStore | None = None,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        stream_poll_interval: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._client = client
        self._store = store or CoordinationStore()
        self._workers: dict[str, WorkerSession] = {}
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._stream_poll_interval = stream_poll_interval
        self._sleep = sleep

    @property
    def store(self) -> CoordinationStore:
        return self._store

    def _require_worker(self, session_id: str) -> WorkerSession:
        worker = self._workers.get(session_id)
        if worker is None:
            raise WorkerNotFoundError(session_id)
        return worker

    async def create_worker(
        self,
        task: str,
        source: str,
        title: str,
        branch: str = MAIN_BRANCH,
        role: str | WorkerRole = WorkerRole.FREELANCER,
        parent_session_id: str | None = None,
    ) -> str:
        """Create a remote session for ``task`` and start tracking it."""

        _require_text(task, "Task description")
        _require_text(title, "Title")
        _require_source(source)
        branch = branch or MAIN_BRANCH

        role_enum = coerce_role(role)
        prompt = compose_prompt(role_enum, task, parent_session_id)
        session = await self._create_with_retry(prompt, source, title, branch)

        worker = WorkerSession(
            session_id=session.session_id,
            title=title,
            role=role_enum,
            status=session.status or "created",
            parent_session_id=parent_session_id if role_enum is WorkerRole.CREW else None,
            branch=branch,
            created_at=_utcnow(),
        )
        self._workers[worker.session_id] = worker
        logger.info(
            "Created worker",
            extra={
                "session_id": worker.session_id,
                "role": role_enum.value,
                "parent_session_id": worker.parent_session_id,
                "branch": branch,
            },
        )
        return worker.session_id

    async def _create_with_retry(self, prompt: str, source: str, title: str, branch: str) -> SessionInfo:
        attempt = 0
        while True:
            attempt += 1
            try:
                session = await self._client.create_session(prompt, source, title, branch)
                if not session.session_id:
                    raise RemoteRequestError("Session created but no ID returned", body=session.raw)
                return session
            except JulesClientError as exc:
                logger.warning(
                    "Session creation attempt failed",
                    extra={"attempt": attempt, "max_attempts": self._max_attempts, "error": str(exc)},
                )
                if attempt >= self._max_attempts:
                    raise RetriesExhaustedError(attempt, exc) from exc
                await self._sleep(self._backoff_seconds * attempt)

    async def send_message(self, session_id: str, text: str) -> dict[str, Any]:
        worker = self._require_worker(session_id)
        _require_text(text, "Message")
        ack = await self._client.send_message(session_id, text)
        worker.touch()
        return ack

    async def get_activities(self, session_id: str, limit: int = 10) -> list[dict[str, str]]:
        worker = self._require_worker(session_id)
        _require_limit(limit, MAX_ACTIVITIES, "limit")
        activities = await self._client.list_activities(session_id, limit)
        worker.touch()
        return [activity.to_dict() for activity in activities[:limit]]

    async def stream_activities(self, session_id: str, max_activities: int = 50) -> list[dict[str, str]]:
        worker = self._require_worker(session_id)
        _require_limit(max_activities, MAX_STREAMED_ACTIVITIES, "max_activities")
        collected: list[dict[str, str]] = []
        async for activity in self._client.stream_activities(
            session_id,
            max_activities=max_activities,
            poll_interval=self._stream_poll_interval,
        ):
            collected.append(activity.to_dict())
            if len(collected) >= max_activities:
                break
        worker.touch()
        return collected

    async def get_worker_status(self, session_id: str) -> WorkerSession | None:
        """Return the tracked session, refreshed from the API when possible."""

        worker = self._workers.get(session_id)
        if worker is None:
            return None

        try:
            session = await self._client.get_session(session_id)
        except JulesClientError as exc:
            logger.warning(
                "Failed to refresh worker status",
                extra={"session_id": session_id, "error": str(exc)},
            )
            return worker

        worker.status = session.status or worker.status
        worker.touch()
        return worker

    def list_workers(self) -> list[WorkerSession]:
        return list(self._workers.values())

    async def delete_worker(self, session_id: str) -> None:
        self._require_worker(session_id)
        await self._client.delete_session(session_id)
        self._workers.pop(session_id, None)
        logger.info("Deleted worker", extra={"session_id": session_id})

    async def estimate_work(self, task: str, source: str) -> dict[str, str]:
        _require_text(task, "Task description")
        prompt = (
            "Analyze and estimate the following task. Provide effort estimation, "
            f"complexity assessment, and recommended approach:\n\n{task}"
        )
        session_id = await self.create_worker(
            prompt, source, "Task Estimation", MAIN_BRANCH, WorkerRole.EVALUATOR
        )
        return {"session_id": session_id, "estimation_type": WorkerRole.EVALUATOR.value}

    async def generate_code(
        self,
        prompt: str,
        source: str,
        language: str,
        context: dict[str, str] | None = None,
    ) -> str:
        _require_text(prompt, "Prompt")
        _require_text(language, "Language")
        sections = [f"Generate {language} code for the following requirements:", prompt]
        if context:
            sections.append("Context:\n" + "\n".join(f"- {key}: {value}" for key, value in context.items()))
        sections.append(
            "Requirements:\n"
            f"- Follow best practices for {language}\n"
            "- Include proper error handling\n"
            "- Add inline documentation\n"
            "- Make the code production-ready"
        )
        return await self.create_worker(
            "\n\n".join(sections),
            source,
            f"Code Generation: {_truncate(prompt)}",
            MAIN_BRANCH,
            WorkerRole.FREELANCER,
        )

    async def fix_bug(
        self,
        source: str,
        error_description: str,
        expected_behavior: str,
        code_context: str | None = None,
    ) -> str:
        _require_text(error_description, "Error description")
        _require_text(expected_behavior, "Expected behavior")
        sections = [
            "Fix the following bug:",
            f"Error Description: {error_description}",
            f"Expected Behavior: {expected_behavior}",
        ]
        if code_context:
            sections.append(f"Code Context:\n```\n{code_context}\n```")
        sections.append(
            "Requirements:\n"
            "- Identify the root cause\n"
            "- Implement a fix\n"
            "- Ensure no regression\n"
            "- Add tests for the fix"
        )
        return await self.create_worker(
            "\n\n".join(sections),
            source,
            f"Bug Fix: {_truncate(error_description)}",
            MAIN_BRANCH,
            WorkerRole.FREELANCER,
        )

    async def review_code(
        self,
        source: str,
        code: str,
        language: str,
        focus_areas: list[str] | None = None,
    ) -> str:
        _require_text(code, "Code")
        _require_text(language, "Language")
        areas = list(focus_areas) if focus_areas else list(DEFAULT_FOCUS_AREAS)
        prompt = (
            f"Review the following {language} code:\n\n"
            f"```{language}\n{code}\n```\n\n"
            f"Focus Areas: {', '.join(areas)}\n\n"
            "Provide assessment on:\n"
            "- Code quality and maintainability\n"
            "- Security vulnerabilities\n"
            "- Performance considerations\n"
            "- Best practices adherence\n"
            "- Suggested improvements"
        )
        return await self.create_worker(
            prompt,
            source,
            f"Code Review: {_truncate(language)}",
            MAIN_BRANCH,
            WorkerRole.EVALUATOR,
        )

    async def list_sources(self) -> list[SourceInfo]:
        return await self._client.list_sources()

    def store_memory(self, key: str, value: str) -> None:
        _require_text(key, "Key")
        self._store.store(key, value)

    def read_memory(self, key: str) -> str | None:
        return self._store.read(key)

    def list_memory_keys(self) -> list[str]:
        return self._store.list_keys()

    def create_branch(self, name: str, base: str = MAIN_BRANCH) -> BranchResult:
        _require_text(name, "Branch name")
        return self._store.create_branch(name, base or MAIN_BRANCH)

    def merge_branch(self, source: str, target: str) -> BranchResult:
        return self._store.merge_branch(source, target)

    def delete_branch(self, name: str) -> BranchResult:
        return self._store.delete_branch(name)

    def list_branches(self) -> list[str]:
        return self._store.list_branches()


__all__ = [
    "OrchestratorError",
    "RetriesExhaustedError",
    "SOURCE_PATTERN",
    "SessionClient",
    "ValidationError",
    "WorkerNotFoundError",
    "WorkerOrchestrator",
    "WorkerSession",
]
