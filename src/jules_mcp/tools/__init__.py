"""Tool registration for Jules MCP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from fastmcp import Context, FastMCP
from pydantic import ValidationError as InputValidationError

from ..client import JulesClientError
from ..coordination import CoordinationConflictError
from ..orchestrator import OrchestratorError, WorkerOrchestrator
from ..roles import coerce_role
from .schemas import (
    ActivitiesInput,
    CreateBranchInput,
    CreateWorkerInput,
    DeleteBranchInput,
    EstimateWorkInput,
    FixBugInput,
    GenerateCodeInput,
    MergeBranchInput,
    ReadMemoryInput,
    ReviewCodeInput,
    SendMessageInput,
    SessionInput,
    StoreMemoryInput,
    StreamActivitiesInput,
    format_validation_error,
)

logger = logging.getLogger(__name__)

SOURCE_HINT = 'GitHub source (format: "sources/github/owner/repo")'


@dataclass(slots=True)
class ToolHandles:
    create_worker: Any
    send_message: Any
    get_activities: Any
    stream_activities: Any
    estimate_work: Any
    store_memory: Any
    read_memory: Any
    list_memory_keys: Any
    create_branch: Any
    merge_branch: Any
    delete_branch: Any
    list_branches: Any
    generate_code: Any
    fix_bug: Any
    review_code: Any
    delete_worker: Any
    get_status: Any
    list_workers: Any
    list_sources: Any


def _success(**payload: Any) -> dict[str, Any]:
    return {"status": "success", **payload}


def _error(message: str) -> dict[str, Any]:
    return {"status": "error", "message": message}


async def _guarded(
    tool_name: str,
    context: Context | None,
    operation: Callable[[], Awaitable[dict[str, Any]]],
) -> dict[str, Any]:
    """Run a tool body, rendering any expected failure as an error payload."""

    try:
        return await operation()
    except InputValidationError as exc:
        message = format_validation_error(exc)
    except (OrchestratorError, JulesClientError, CoordinationConflictError) as exc:
        message = f"Error: {exc}"
    _emit_log(context, "warning", "Tool call failed", extra={"tool": tool_name, "error": message})
    return _error(message)


def register_tools(
    server: FastMCP,
    *,
    orchestrator: WorkerOrchestrator | None,
) -> ToolHandles:
    """Register Jules MCP tools on the server."""

    def _require_orchestrator() -> WorkerOrchestrator:
        if orchestrator is None:
            raise OrchestratorError(
                "Worker manager not initialized; set JULES_API_KEY in your MCP configuration"
            )
        return orchestrator

    async def _create_worker(
        task_description: str,
        source: str,
        title: str,
        github_branch: str = "main",
        role: str = "FREELANCER",
        parent_session_id: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Create a Jules worker session for a task."""

        async def run() -> dict[str, Any]:
            parsed = CreateWorkerInput(
                task_description=task_description,
                source=source,
                title=title,
                github_branch=github_branch,
                role=role,
                parent_session_id=parent_session_id,
            )
            session_id = await _require_orchestrator().create_worker(
                parsed.task_description,
                parsed.source,
                parsed.title,
                parsed.github_branch,
                parsed.role,
                parsed.parent_session_id,
            )
            role_name = coerce_role(parsed.role).value
            _emit_log(
                context,
                "info",
                "Created worker",
                extra={"session_id": session_id, "role": role_name},
            )
            return _success(
                session_id=session_id,
                role=role_name,
                message=f"Worker created successfully. Role: {role_name}. Session ID: {session_id}",
            )

        return await _guarded("jules_create_worker", context, run)

    async def _send_message(
        session_id: str,
        message: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Send a message to an existing worker session."""

        async def run() -> dict[str, Any]:
            parsed = SendMessageInput(session_id=session_id, message=message)
            await _require_orchestrator().send_message(parsed.session_id, parsed.message)
            return _success(
                session_id=parsed.session_id,
                message=f"Message sent to worker {parsed.session_id}",
            )

        return await _guarded("jules_send_message", context, run)

    async def _get_activities(
        session_id: str,
        limit: int = 10,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Return recent activities for a worker."""

        async def run() -> dict[str, Any]:
            parsed = ActivitiesInput(session_id=session_id, limit=limit)
            activities = await _require_orchestrator().get_activities(parsed.session_id, parsed.limit)
            return _success(session_id=parsed.session_id, activities=activities, count=len(activities))

        return await _guarded("jules_get_activities", context, run)

    async def _stream_activities(
        session_id: str,
        max_activities: int = 50,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Follow a worker's activity feed until the limit or the session finishes."""

        async def run() -> dict[str, Any]:
            parsed = StreamActivitiesInput(session_id=session_id, max_activities=max_activities)
            activities = await _require_orchestrator().stream_activities(
                parsed.session_id, parsed.max_activities
            )
            return _success(
                session_id=parsed.session_id,
                activities=activities,
                count=len(activities),
                streaming=True,
            )

        return await _guarded("jules_stream_activities", context, run)

    async def _estimate_work(
        task_description: str,
        source: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = EstimateWorkInput(task_description=task_description, source=source)
            result = await _require_orchestrator().estimate_work(parsed.task_description, parsed.source)
            return _success(
                **result,
                message=f"Evaluator worker created. Session ID: {result['session_id']}",
            )

        return await _guarded("jules_estimate_work", context, run)

    async def _store_memory(key: str, value: str, context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = StoreMemoryInput(key=key, value=value)
            _require_orchestrator().store_memory(parsed.key, parsed.value)
            return _success(key=parsed.key, message=f"Stored value for key '{parsed.key}'")

        return await _guarded("jules_store_memory", context, run)

    async def _read_memory(key: str, context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = ReadMemoryInput(key=key)
            value = _require_orchestrator().read_memory(parsed.key)
            return _success(key=parsed.key, value=value, found=value is not None)

        return await _guarded("jules_read_memory", context, run)

    async def _list_memory_keys(context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            keys = _require_orchestrator().list_memory_keys()
            return _success(keys=keys, count=len(keys))

        return await _guarded("jules_list_memory_keys", context, run)

    async def _create_branch(
        branch_name: str,
        base_branch: str = "main",
        context: Context | None = None,
    ) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = CreateBranchInput(branch_name=branch_name, base_branch=base_branch)
            result = _require_orchestrator().create_branch(parsed.branch_name, parsed.base_branch)
            return result.to_dict()

        return await _guarded("jules_create_branch", context, run)

    async def _merge_branch(
        source_branch: str,
        target_branch: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = MergeBranchInput(source_branch=source_branch, target_branch=target_branch)
            result = _require_orchestrator().merge_branch(parsed.source_branch, parsed.target_branch)
            return result.to_dict()

        return await _guarded("jules_merge_branch", context, run)

    async def _delete_branch(branch_name: str, context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = DeleteBranchInput(branch_name=branch_name)
            return _require_orchestrator().delete_branch(parsed.branch_name).to_dict()

        return await _guarded("jules_delete_branch", context, run)

    async def _list_branches(context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            return _success(branches=_require_orchestrator().list_branches())

        return await _guarded("jules_list_branches", context, run)

    async def _generate_code(
        prompt: str,
        source: str,
        language: str,
        context_values: dict[str, str] | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = GenerateCodeInput(
                prompt=prompt, source=source, language=language, context=context_values
            )
            session_id = await _require_orchestrator().generate_code(
                parsed.prompt, parsed.source, parsed.language, parsed.context
            )
            return _success(session_id=session_id, message="Code generation worker created")

        return await _guarded("jules_generate_code", context, run)

    async def _fix_bug(
        source: str,
        error_description: str,
        expected_behavior: str,
        code_context: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = FixBugInput(
                source=source,
                error_description=error_description,
                expected_behavior=expected_behavior,
                code_context=code_context,
            )
            session_id = await _require_orchestrator().fix_bug(
                parsed.source,
                parsed.error_description,
                parsed.expected_behavior,
                parsed.code_context,
            )
            return _success(session_id=session_id, message="Bug fix worker created")

        return await _guarded("jules_fix_bug", context, run)

    async def _review_code(
        source: str,
        code: str,
        language: str,
        focus_areas: list[str] | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = ReviewCodeInput(
                source=source, code=code, language=language, focus_areas=focus_areas
            )
            session_id = await _require_orchestrator().review_code(
                parsed.source, parsed.code, parsed.language, parsed.focus_areas
            )
            return _success(session_id=session_id, message="Code review worker created")

        return await _guarded("jules_review_code", context, run)

    async def _delete_worker(session_id: str, context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = SessionInput(session_id=session_id)
            await _require_orchestrator().delete_worker(parsed.session_id)
            _emit_log(context, "info", "Deleted worker", extra={"session_id": parsed.session_id})
            return _success(message=f"Worker {parsed.session_id} deleted")

        return await _guarded("jules_delete_worker", context, run)

    async def _get_status(session_id: str, context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            parsed = SessionInput(session_id=session_id)
            worker = await _require_orchestrator().get_worker_status(parsed.session_id)
            if worker is None:
                return _error(f"Worker not found: {parsed.session_id}")
            return _success(worker=worker.to_dict())

        return await _guarded("jules_get_status", context, run)

    async def _list_workers(context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            workers = [worker.to_dict() for worker in _require_orchestrator().list_workers()]
            return _success(workers=workers, count=len(workers))

        return await _guarded("jules_list_workers", context, run)

    async def _list_sources(context: Context | None = None) -> dict[str, Any]:
        async def run() -> dict[str, Any]:
            sources = await _require_orchestrator().list_sources()
            _emit_log(context, "debug", "Listed sources", extra={"count": len(sources)})
            return _success(sources=[source.raw or source.model_dump(exclude={"raw"}) for source in sources])

        return await _guarded("jules_list_sources", context, run)

    def _register(name: str, description: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        return server.tool(name=name, description=description, **kwargs)(fn)

    return ToolHandles(
        create_worker=_register(
            "jules_create_worker",
            "Create a new Jules worker session for a task. Roles: MAESTRO, CREW, "
            "FREELANCER (default), EVALUATOR; pass parent_session_id for CREW workers. "
            f"source is a {SOURCE_HINT}.",
            _create_worker,
        ),
        send_message=_register(
            "jules_send_message",
            "Send a message to an existing Jules worker session.",
            _send_message,
        ),
        get_activities=_register(
            "jules_get_activities",
            "Get recent activities for a Jules worker (limit 1-100, default 10).",
            _get_activities,
        ),
        stream_activities=_register(
            "jules_stream_activities",
            "Follow activities from a Jules worker session as they happen (max 1-200, default 50).",
            _stream_activities,
        ),
        estimate_work=_register(
            "jules_estimate_work",
            f"Create an Evaluator worker for task estimation. source is a {SOURCE_HINT}.",
            _estimate_work,
        ),
        store_memory=_register(
            "jules_store_memory",
            "Store shared memory values for coordination between workers.",
            _store_memory,
        ),
        read_memory=_register(
            "jules_read_memory",
            "Read a shared memory value; found=false when the key was never stored.",
            _read_memory,
        ),
        list_memory_keys=_register(
            "jules_list_memory_keys",
            "List keys present in shared memory.",
            _list_memory_keys,
        ),
        create_branch=_register(
            "jules_create_branch",
            "Reserve a new coordination branch (used for staged orchestration).",
            _create_branch,
        ),
        merge_branch=_register(
            "jules_merge_branch",
            "Record the merge of a coordination branch into a target branch.",
            _merge_branch,
        ),
        delete_branch=_register(
            "jules_delete_branch",
            "Delete a coordination branch ('main' cannot be deleted).",
            _delete_branch,
        ),
        list_branches=_register(
            "jules_list_branches",
            "List all coordination branches.",
            _list_branches,
        ),
        generate_code=_register(
            "jules_generate_code",
            "Generate code for specific requirements with optional key/value context "
            "(context_values).",
            _generate_code,
        ),
        fix_bug=_register(
            "jules_fix_bug",
            "Analyze and fix bugs in existing code.",
            _fix_bug,
        ),
        review_code=_register(
            "jules_review_code",
            "Comprehensive code review with security and quality assessment.",
            _review_code,
        ),
        delete_worker=_register(
            "jules_delete_worker",
            "Delete a worker session.",
            _delete_worker,
            annotations={"destructiveHint": True},
        ),
        get_status=_register(
            "jules_get_status",
            "Check worker status and progress.",
            _get_status,
        ),
        list_workers=_register(
            "jules_list_workers",
            "List all worker sessions tracked by this server.",
            _list_workers,
        ),
        list_sources=_register(
            "jules_list_sources",
            "List all available repository sources for Jules.",
            _list_sources,
        ),
    )


__all__ = ["register_tools", "ToolHandles"]


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)
