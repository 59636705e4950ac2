"""FastMCP server bootstrap for Jules MCP."""

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Optional

from fastmcp import Context, FastMCP

from . import __version__
from .client import JulesClient
from .config import JulesSettings, get_settings
from .coordination import CoordinationStore
from .orchestrator import SessionClient, WorkerOrchestrator
from .tools import register_tools

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging for the Jules MCP server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def build_orchestrator(
    settings: JulesSettings,
    client: SessionClient | None = None,
) -> WorkerOrchestrator | None:
    """Wire a client and orchestrator from settings, or return None without an API key."""

    if client is None:
        if not settings.api_configured:
            logger.error(
                "JULES_API_KEY environment variable is required; worker tools are disabled"
            )
            return None
        client = JulesClient(
            settings.api_key.get_secret_value(),
            base_url=settings.api_base_url,
            api_version=settings.api_version,
            timeout=settings.request_timeout,
        )

    return WorkerOrchestrator(
        client,
        CoordinationStore(),
        max_attempts=settings.create_max_attempts,
        backoff_seconds=settings.create_backoff_seconds,
        stream_poll_interval=settings.stream_poll_interval,
    )


def status_payload(
    settings: JulesSettings,
    orchestrator: WorkerOrchestrator | None,
) -> dict[str, Any]:
    """Summarize configuration, tracked workers and coordination state."""

    workers = orchestrator.list_workers() if orchestrator is not None else []
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_version": __version__,
        "log_level": settings.log_level,
        "api": {
            "configured": orchestrator is not None,
            "base_url": settings.api_base_url,
            "version": settings.api_version,
            "create_max_attempts": settings.create_max_attempts,
        },
        "workers": {
            "count": len(workers),
            "by_role": dict(Counter(worker.role.value for worker in workers)),
            "by_status": dict(Counter(worker.status for worker in workers)),
            "recent": [worker.to_dict() for worker in workers[-5:]],
        },
        "coordination": {
            "branches": orchestrator.list_branches() if orchestrator is not None else [],
            "memory_keys": len(orchestrator.list_memory_keys()) if orchestrator is not None else 0,
        },
    }


def create_server(
    settings: Optional[JulesSettings] = None,
    client: SessionClient | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with worker tools and a status resource."""

    settings = settings or get_settings()
    orchestrator = build_orchestrator(settings, client)

    server = FastMCP(
        name="jules-mcp",
        version=__version__,
        instructions=(
            "Jules MCP coordinates Jules coding-agent workers. A MAESTRO worker plans "
            "and sequences work, CREW workers execute assigned subtasks and report to "
            "their Maestro, EVALUATOR workers estimate without implementing, and "
            "FREELANCER workers execute standalone tasks. Use shared memory and "
            "branches to hand work between workers."
        ),
    )

    handles = register_tools(server, orchestrator=orchestrator)

    @server.resource(
        "resource://jules/status",
        name="jules_status",
        description="Provides the current runtime status for the Jules MCP server.",
        mime_type="application/json",
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing basic runtime state."""

        payload = status_payload(settings, orchestrator)
        payload["request_id"] = getattr(context, "request_id", None)
        return json.dumps(payload)

    setattr(server, "orchestrator", orchestrator)
    setattr(server, "tool_handles", handles)
    setattr(server, "status_resource", status_resource)
    return server


def main() -> None:
    """Entry point for running the Jules MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logger.info(
        "Launching Jules MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "api_configured": getattr(server, "orchestrator", None) is not None,
        },
    )
    server.run()


if __name__ == "__main__":
    main()
