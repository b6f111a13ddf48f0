"""
mcp-opener - open folders, files and URLs from an MCP client.

Handles Firefox installed as a Flatpak on Linux, including local files the
sandbox can't read.
"""

from __future__ import annotations

__version__ = "1.0.0"

from mcp_opener.opener import Opener

__all__ = ["Opener", "__version__"]
