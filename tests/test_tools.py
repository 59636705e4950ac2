from __future__ import annotations

import asyncio

import httpx

from jules_mcp.client import JulesClient
from jules_mcp.orchestrator import WorkerOrchestrator
from jules_mcp.tools import ToolHandles, register_tools

from stubs import StubJulesClient, StubServer, transient

SOURCE = "sources/github/acme/widgets"


async def _no_sleep(_delay: float) -> None:
    return None


def _register(client: StubJulesClient | None = None) -> tuple[ToolHandles, StubServer, StubJulesClient]:
    client = client or StubJulesClient()
    server = StubServer()
    orchestrator = WorkerOrchestrator(client, sleep=_no_sleep)
    handles = register_tools(server, orchestrator=orchestrator)  # type: ignore[arg-type]
    return handles, server, client


def test_all_tools_registered() -> None:
    _, server, _ = _register()

    assert set(server._tools) == {
        "jules_create_worker",
        "jules_send_message",
        "jules_get_activities",
        "jules_stream_activities",
        "jules_estimate_work",
        "jules_store_memory",
        "jules_read_memory",
        "jules_list_memory_keys",
        "jules_create_branch",
        "jules_merge_branch",
        "jules_delete_branch",
        "jules_list_branches",
        "jules_generate_code",
        "jules_fix_bug",
        "jules_review_code",
        "jules_delete_worker",
        "jules_get_status",
        "jules_list_workers",
        "jules_list_sources",
    }


def test_create_worker_and_status() -> None:
    handles, _, client = _register()

    created = asyncio.run(
        handles.create_worker.fn(  # type: ignore[attr-defined]
            task_description="Plan the rewrite",
            source=SOURCE,
            title="Rewrite",
            role="maestro",
        )
    )
    status = asyncio.run(handles.get_status.fn(session_id=created["session_id"]))  # type: ignore[attr-defined]

    assert created["status"] == "success"
    assert created["role"] == "MAESTRO"
    assert "Role: MAESTRO" in created["message"]
    assert status["status"] == "success"
    assert status["worker"]["title"] == "Rewrite"
    assert status["worker"]["role"] == "MAESTRO"
    assert len(client.calls_to("create_session")) == 1


def test_create_worker_rejects_bad_source() -> None:
    handles, _, client = _register()

    result = asyncio.run(
        handles.create_worker.fn(  # type: ignore[attr-defined]
            task_description="Plan",
            source="https://github.com/acme/widgets",
            title="Rewrite",
        )
    )

    assert result["status"] == "error"
    assert result["message"].startswith("Validation error: source")
    assert client.calls == []


def test_unknown_worker_rendered_as_error() -> None:
    handles, _, client = _register()

    sent = asyncio.run(handles.send_message.fn(session_id="ghost", message="hi"))  # type: ignore[attr-defined]
    activities = asyncio.run(handles.get_activities.fn(session_id="ghost"))  # type: ignore[attr-defined]
    status = asyncio.run(handles.get_status.fn(session_id="ghost"))  # type: ignore[attr-defined]
    deleted = asyncio.run(handles.delete_worker.fn(session_id="ghost"))  # type: ignore[attr-defined]

    assert sent == {"status": "error", "message": "Error: Worker not found: ghost"}
    assert activities["message"] == "Error: Worker not found: ghost"
    assert status == {"status": "error", "message": "Worker not found: ghost"}
    assert deleted["status"] == "error"
    assert client.calls == []


def test_activity_limits_validated() -> None:
    handles, _, _ = _register()

    too_many = asyncio.run(handles.get_activities.fn(session_id="s", limit=101))  # type: ignore[attr-defined]
    stream_too_many = asyncio.run(
        handles.stream_activities.fn(session_id="s", max_activities=201)  # type: ignore[attr-defined]
    )

    assert too_many["status"] == "error"
    assert "limit" in too_many["message"]
    assert stream_too_many["status"] == "error"
    assert "max_activities" in stream_too_many["message"]


def test_activities_roundtrip_through_tools() -> None:
    client = StubJulesClient(activities=[{"id": "a1", "createTime": "t1"}, {"id": "a2", "create_time": "t2"}])
    handles, _, _ = _register(client)
    created = asyncio.run(
        handles.create_worker.fn(task_description="t", source=SOURCE, title="T")  # type: ignore[attr-defined]
    )

    listed = asyncio.run(handles.get_activities.fn(session_id=created["session_id"], limit=10))  # type: ignore[attr-defined]
    streamed = asyncio.run(handles.stream_activities.fn(session_id=created["session_id"]))  # type: ignore[attr-defined]

    assert listed["count"] == 2
    assert [item["createTime"] for item in listed["activities"]] == ["t1", "t2"]
    assert streamed["streaming"] is True
    assert streamed["count"] == 2


def test_create_retries_exhausted_is_reported() -> None:
    client = StubJulesClient([transient(), transient(), transient()])
    handles, _, _ = _register(client)

    result = asyncio.run(
        handles.create_worker.fn(task_description="t", source=SOURCE, title="T")  # type: ignore[attr-defined]
    )

    assert result["status"] == "error"
    assert "retries exhausted" in result["message"]


def test_malformed_remote_response_is_not_a_validation_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "a", "session"])

    client = JulesClient("key", base_url="https://jules.example.com", transport=httpx.MockTransport(handler))
    server = StubServer()
    handles = register_tools(server, orchestrator=WorkerOrchestrator(client, sleep=_no_sleep))  # type: ignore[arg-type]

    result = asyncio.run(
        handles.create_worker.fn(task_description="t", source=SOURCE, title="T")  # type: ignore[attr-defined]
    )

    assert result["status"] == "error"
    assert result["message"].startswith("Error: Failed to create session after 3 attempts")
    assert "Unexpected response to create session" in result["message"]
    asyncio.run(client.aclose())


def test_memory_tools() -> None:
    handles, _, _ = _register()

    asyncio.run(handles.store_memory.fn(key="handoff", value=""))  # type: ignore[attr-defined]
    present = asyncio.run(handles.read_memory.fn(key="handoff"))  # type: ignore[attr-defined]
    missing = asyncio.run(handles.read_memory.fn(key="other"))  # type: ignore[attr-defined]
    keys = asyncio.run(handles.list_memory_keys.fn())  # type: ignore[attr-defined]

    assert present == {"status": "success", "key": "handoff", "value": "", "found": True}
    assert missing == {"status": "success", "key": "other", "value": None, "found": False}
    assert keys["keys"] == ["handoff"]


def test_branch_tools() -> None:
    handles, _, _ = _register()

    created = asyncio.run(handles.create_branch.fn(branch_name="stage-1"))  # type: ignore[attr-defined]
    duplicate = asyncio.run(handles.create_branch.fn(branch_name="stage-1"))  # type: ignore[attr-defined]
    merged = asyncio.run(
        handles.merge_branch.fn(source_branch="stage-1", target_branch="ghost")  # type: ignore[attr-defined]
    )
    delete_main = asyncio.run(handles.delete_branch.fn(branch_name="main"))  # type: ignore[attr-defined]
    listed = asyncio.run(handles.list_branches.fn())  # type: ignore[attr-defined]

    assert created["status"] == "success"
    assert duplicate["status"] == "error"
    assert merged == {"status": "error", "message": "Target branch 'ghost' does not exist"}
    assert delete_main["status"] == "error"
    assert listed["branches"] == ["main", "stage-1"]


def test_convenience_tools_create_workers() -> None:
    handles, _, client = _register()

    estimate = asyncio.run(
        handles.estimate_work.fn(task_description="Size it", source=SOURCE)  # type: ignore[attr-defined]
    )
    generated = asyncio.run(
        handles.generate_code.fn(  # type: ignore[attr-defined]
            prompt="CSV exporter", source=SOURCE, language="python", context_values={"module": "io"}
        )
    )
    fixed = asyncio.run(
        handles.fix_bug.fn(  # type: ignore[attr-defined]
            source=SOURCE, error_description="KeyError", expected_behavior="No crash"
        )
    )
    reviewed = asyncio.run(
        handles.review_code.fn(source=SOURCE, code="x = 1", language="python")  # type: ignore[attr-defined]
    )
    workers = asyncio.run(handles.list_workers.fn())  # type: ignore[attr-defined]

    assert estimate["estimation_type"] == "EVALUATOR"
    assert all(item["status"] == "success" for item in (generated, fixed, reviewed))
    assert workers["count"] == 4
    assert [worker["role"] for worker in workers["workers"]] == [
        "EVALUATOR",
        "FREELANCER",
        "FREELANCER",
        "EVALUATOR",
    ]
    assert "- module: io" in client.calls_to("create_session")[1][0]


def test_delete_worker_tool() -> None:
    handles, _, client = _register()
    created = asyncio.run(
        handles.create_worker.fn(task_description="t", source=SOURCE, title="T")  # type: ignore[attr-defined]
    )

    deleted = asyncio.run(handles.delete_worker.fn(session_id=created["session_id"]))  # type: ignore[attr-defined]
    again = asyncio.run(handles.delete_worker.fn(session_id=created["session_id"]))  # type: ignore[attr-defined]

    assert deleted["status"] == "success"
    assert again["status"] == "error"
    assert len(client.calls_to("delete_session")) == 1


def test_list_sources_tool() -> None:
    client = StubJulesClient(sources=[{"name": "sources/github/acme/widgets", "id": "github/acme/widgets"}])
    handles, _, _ = _register(client)

    result = asyncio.run(handles.list_sources.fn())  # type: ignore[attr-defined]

    assert result["sources"] == [{"name": "sources/github/acme/widgets", "id": "github/acme/widgets"}]


def test_tools_without_orchestrator_report_configuration_error() -> None:
    server = StubServer()
    handles = register_tools(server, orchestrator=None)  # type: ignore[arg-type]

    result = asyncio.run(handles.list_branches.fn())  # type: ignore[attr-defined]

    assert result["status"] == "error"
    assert "JULES_API_KEY" in result["message"]
