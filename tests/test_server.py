from __future__ import annotations

import asyncio
import logging

import pytest

from jules_mcp.client import JulesClient
from jules_mcp.config import JulesSettings
from jules_mcp.server import build_orchestrator, create_server, status_payload

from stubs import StubJulesClient

SOURCE = "sources/github/acme/widgets"


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> JulesSettings:
    monkeypatch.delenv("JULES_API_KEY", raising=False)
    return JulesSettings(_env_file=None)


def test_build_orchestrator_requires_api_key(settings: JulesSettings, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        orchestrator = build_orchestrator(settings)

    assert orchestrator is None
    assert "JULES_API_KEY" in caplog.text


def test_build_orchestrator_uses_configured_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JULES_API_KEY", "key")
    monkeypatch.setenv("JULES_API_VERSION", "v1")
    settings = JulesSettings(_env_file=None)

    orchestrator = build_orchestrator(settings)

    assert orchestrator is not None
    client = orchestrator._client
    assert isinstance(client, JulesClient)
    assert client.base_url == "https://jules.googleapis.com/v1"
    asyncio.run(client.aclose())


def test_create_server_wires_tools(settings: JulesSettings) -> None:
    client = StubJulesClient()
    server = create_server(settings, client=client)

    handles = getattr(server, "tool_handles")
    created = asyncio.run(
        handles.create_worker.fn(task_description="Plan", source=SOURCE, title="Plan", role="CREW", parent_session_id="m-1")
    )

    assert created["status"] == "success"
    assert "m-1" in client.calls_to("create_session")[0][0]
    assert getattr(server, "orchestrator").list_workers()[0].parent_session_id == "m-1"


def test_status_payload_summarizes_workers(settings: JulesSettings) -> None:
    server = create_server(settings, client=StubJulesClient())
    orchestrator = getattr(server, "orchestrator")
    asyncio.run(orchestrator.create_worker("Plan", SOURCE, "Plan", role="MAESTRO"))
    asyncio.run(orchestrator.create_worker("Do", SOURCE, "Do", role="CREW", parent_session_id="session-1"))
    orchestrator.create_branch("stage-1")
    orchestrator.store_memory("plan", "ready")

    payload = status_payload(settings, orchestrator)

    assert payload["api"]["configured"] is True
    assert payload["workers"]["count"] == 2
    assert payload["workers"]["by_role"] == {"MAESTRO": 1, "CREW": 1}
    assert payload["coordination"] == {"branches": ["main", "stage-1"], "memory_keys": 1}
    assert "api_key" not in payload["api"]


def test_status_payload_without_api(settings: JulesSettings) -> None:
    payload = status_payload(settings, None)

    assert payload["api"]["configured"] is False
    assert payload["workers"]["count"] == 0
    assert payload["coordination"]["branches"] == []

