#!/usr/bin/env python3
"""Standalone Slack MCP server.

Serves the Slack tools over streamable HTTP (stateless, plain JSON
responses) so simple JSON-RPC clients can POST `tools/list` and
`tools/call`, or over stdio for subprocess execution.
"""

import argparse
import asyncio
import contextlib
import logging
import sys

import uvicorn
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import Route

from servers.config import SlackConfig
from servers.native_tools import create_slack_mcp_server
from servers.slack_tools import SlackService
from util.errors import ConfigError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class McpEndpoint:
    """ASGI endpoint forwarding every request to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope, receive, send):
        await self.session_manager.handle_request(scope, receive, send)


def build_app(mcp_instance, path: str = "/mcp") -> Starlette:
    """Wrap a low-level MCP server instance in a Starlette app."""
    session_manager = StreamableHTTPSessionManager(
        app=mcp_instance,
        json_response=True,
        stateless=True,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app):
        async with session_manager.run():
            logger.info(f"MCP endpoint ready at {path}")
            yield

    return Starlette(
        routes=[Route(path, endpoint=McpEndpoint(session_manager))],
        lifespan=lifespan,
    )


async def run_stdio(mcp_instance):
    """Run the server with stdio transport."""
    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await mcp_instance.run(
            read_stream,
            write_stream,
            mcp_instance.create_initialization_options(),
        )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Slack MCP tool server")
    parser.add_argument(
        "--transport",
        choices=["http", "stdio"],
        default="http",
        help="Transport to serve the tools on (default: http)",
    )
    parser.add_argument("--host", help="HTTP bind address (default: MCP_HOST or localhost)")
    parser.add_argument("--port", type=int, help="HTTP port (default: MCP_PORT or 8080)")
    parser.add_argument("--path", help="HTTP endpoint path (default: MCP_PATH or /mcp)")
    return parser.parse_args(argv)


def main(argv=None):
    """Run the Slack MCP server."""
    args = parse_args(argv)

    try:
        config = SlackConfig.from_env()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    server = create_slack_mcp_server(SlackService(config), config.search_channels)

    # Get the MCP server instance
    mcp_instance = server["instance"]

    if args.transport == "stdio":
        asyncio.run(run_stdio(mcp_instance))
        return

    host = args.host or config.host
    port = args.port or config.port
    path = args.path or config.path
    logger.info(f"Serving {len(config.search_channels)} search channels on http://{host}:{port}{path}")
    uvicorn.run(build_app(mcp_instance, path), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
