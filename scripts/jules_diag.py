"""Jules MCP diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json

from jules_mcp.client import JulesClient, JulesClientError
from jules_mcp.config import JulesSettings


def load_client(settings: JulesSettings) -> JulesClient:
    if not settings.api_configured:
        print("Jules API unavailable: JULES_API_KEY is not set")
        raise SystemExit(1)
    return JulesClient(
        settings.api_key.get_secret_value(),
        base_url=settings.api_base_url,
        api_version=settings.api_version,
        timeout=settings.request_timeout,
    )


async def _with_client(settings: JulesSettings, operation):
    async with load_client(settings) as client:
        return await operation(client)


def cmd_config(args: argparse.Namespace) -> None:
    settings = JulesSettings()
    payload = {
        "api_configured": settings.api_configured,
        "api_base_url": settings.api_base_url,
        "api_version": settings.api_version,
        "log_level": settings.log_level,
        "request_timeout": settings.request_timeout,
        "create_max_attempts": settings.create_max_attempts,
        "create_backoff_seconds": settings.create_backoff_seconds,
        "stream_poll_interval": settings.stream_poll_interval,
    }
    print(json.dumps(payload, indent=2))


def cmd_sources(args: argparse.Namespace) -> None:
    settings = JulesSettings()

    async def run(client: JulesClient):
        return await client.list_sources()

    try:
        sources = asyncio.run(_with_client(settings, run))
    except JulesClientError as exc:
        print(f"Jules API error: {exc}")
        raise SystemExit(1)
    if args.json:
        print(json.dumps([source.raw for source in sources], indent=2))
    else:
        for source in sources:
            print(source.name or source.id)


def cmd_session(args: argparse.Namespace) -> None:
    settings = JulesSettings()

    async def run(client: JulesClient):
        session = await client.get_session(args.session_id)
        activities = await client.list_activities(args.session_id, limit=args.limit)
        return session, activities

    try:
        session, activities = asyncio.run(_with_client(settings, run))
    except JulesClientError as exc:
        print(f"Jules API error: {exc}")
        raise SystemExit(1)
    payload = {
        "session_id": session.session_id,
        "title": session.title,
        "status": session.status,
        "activities": [activity.to_dict() for activity in activities],
    }
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Jules MCP diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_config = sub.add_parser("config", help="Show effective configuration (without secrets)")
    p_config.set_defaults(func=cmd_config)

    p_sources = sub.add_parser("sources", help="List repository sources visible to the API key")
    p_sources.add_argument("--json", action="store_true", help="Output JSON")
    p_sources.set_defaults(func=cmd_sources)

    p_session = sub.add_parser("session", help="Show a remote session and its recent activities")
    p_session.add_argument("session_id")
    p_session.add_argument("--limit", type=int, default=10, help="Number of activities to show")
    p_session.set_defaults(func=cmd_session)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
