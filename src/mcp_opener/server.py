"""MCP server exposing the opener engine as three tools over stdio.

Tools:
┌──────────────┬──────────┬──────────────────────────────────────────────┐
│ Tool         │ Argument │ Behavior                                     │
├──────────────┼──────────┼──────────────────────────────────────────────┤
│ open_folder  │ path     │ Show the folder in the system file manager.  │
│ open_file    │ path     │ Open the file with its default application.  │
│ open_browser │ url      │ Open an http(s)/file URL in the browser.     │
└──────────────┴──────────┴──────────────────────────────────────────────┘

A tool call always produces a result. Failures come back as a text result
"Error: <message>" flagged isError; nothing is raised across the protocol.

Configuration comes from the environment (see mcp_opener.core.config).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import anyio
import anyio.to_thread
import mcp.types as types
import structlog
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from mcp_opener import __version__
from mcp_opener.core.config import configure_logging, load_config
from mcp_opener.core.errors import MissingArgument, OpenerError, UnknownTool
from mcp_opener.opener import Opener

SERVER_NAME = "opener-server"

TOOLS: list[dict[str, Any]] = [
    {
        "name": "open_folder",
        "description": "Open a folder in the system file manager (Nautilus, Finder, Explorer, etc.)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Absolute or relative path to the folder to open",
                },
            },
            "required": ["path"],
        },
    },
    {
        "name": "open_file",
        "description": "Open a file with its default application",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Absolute or relative path to the file to open",
                },
            },
            "required": ["path"],
        },
    },
    {
        "name": "open_browser",
        "description": (
            "Open a URL in the preferred web browser. "
            "Supports Firefox (including Flatpak), Chrome, and system default."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "URL to open (must start with http://, https://, or file://)",
                },
            },
            "required": ["url"],
        },
    },
]

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Text outcome of a tool call."""

    text: str
    is_error: bool = False


def _required_argument(tool: dict[str, Any]) -> str:
    return tool["inputSchema"]["required"][0]


class ToolDispatcher:
    """Routes tool calls to the opener and turns every outcome into a ToolResult."""

    def __init__(self, opener: Opener):
        self.opener = opener
        self._handlers = {
            "open_folder": opener.open_folder,
            "open_file": opener.open_file,
            "open_browser": opener.open_browser,
        }
        self._arguments = {tool["name"]: _required_argument(tool) for tool in TOOLS}

    def call(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        log.info("tool_call", tool=name)
        try:
            text = self._dispatch(name, arguments or {})
        except OpenerError as e:
            log.warning("tool_error", tool=name, error=e.message, kind=type(e).__name__)
            return ToolResult(f"Error: {e.message}", is_error=True)
        except Exception as e:
            log.exception("tool_error", tool=name, error=str(e))
            return ToolResult(f"Error: {e}", is_error=True)
        return ToolResult(text)

    def _dispatch(self, name: str, arguments: Mapping[str, Any]) -> str:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownTool(name)
        param = self._arguments[name]
        value = arguments.get(param)
        if not value:
            raise MissingArgument(param)
        if not isinstance(value, str):
            raise OpenerError(f"{param} must be a string")
        return handler(value)


# === MCP wiring ===


class ToolCallError(Exception):
    """Carries an error result's text through the server's isError path."""


def build_server(dispatcher: ToolDispatcher) -> Server:
    """Create the MCP server with list_tools and call_tool handlers registered."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [types.Tool(**tool) for tool in TOOLS]

    # Argument checks live in the dispatcher so messages stay uniform
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        # Launching blocks on a subprocess; keep it off the event loop
        result = await anyio.to_thread.run_sync(dispatcher.call, name, arguments)
        if result.is_error:
            raise ToolCallError(result.text)
        return [types.TextContent(type="text", text=result.text)]

    return server


async def serve(server: Server) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    config = load_config()
    configure_logging(config)
    opener = Opener(config)
    log.info(
        "server_start",
        version=__version__,
        platform=opener.platform,
        browser=config.browser,
        firefox_flatpak=config.firefox_flatpak,
        tmp_copy=config.tmp_copy_for_flatpak,
    )
    server = build_server(ToolDispatcher(opener))
    try:
        anyio.run(serve, server)
    except KeyboardInterrupt:
        log.info("server_stop", reason="interrupted")
    finally:
        # Temp copies would otherwise outlive the process
        flushed = opener.flush_cleanups()
        if flushed:
            log.info("cleanup_flushed", count=flushed)


if __name__ == "__main__":
    main()
