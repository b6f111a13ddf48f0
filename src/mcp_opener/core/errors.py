"""Errors raised by the opener engine and request adapter.

Every error carries a message suitable for showing to the MCP client as-is.
"""

from __future__ import annotations


class OpenerError(Exception):
    """Base class for all opener failures."""

    @property
    def message(self) -> str:
        return str(self)


class NotFound(OpenerError):
    """Target path (folder, file, or file:// URL) does not exist."""


class InvalidURL(OpenerError):
    """URL scheme is not http, https, or file."""


class NoFileManager(OpenerError):
    """Every Linux file manager candidate was missing."""


class UnsupportedPlatform(OpenerError):
    """Host platform is not linux, darwin, or win32."""

    def __init__(self, platform: str):
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform


class OpenFailed(OpenerError):
    """Wraps a failed launch (non-zero exit or spawn error)."""

    def __init__(self, action: str, detail: str):
        super().__init__(f"Failed to {action}: {detail}")
        self.action = action
        self.detail = detail


class MissingArgument(OpenerError):
    """A required tool argument was absent or empty."""

    def __init__(self, name: str):
        super().__init__(f"{name} is required")
        self.name = name


class UnknownTool(OpenerError):
    """Tool name isn't one of the advertised tools."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name
