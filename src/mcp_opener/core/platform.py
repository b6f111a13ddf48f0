"""Host platform detection."""

from __future__ import annotations

import sys
from typing import Literal

Platform = Literal["linux", "darwin", "win32", "unknown"]

SUPPORTED_PLATFORMS: tuple[Platform, ...] = ("linux", "darwin", "win32")


def detect_platform(system: str | None = None) -> Platform:
    """Map a platform identifier (default: sys.platform) to a supported platform.

    Anything that isn't exactly linux, darwin or win32 is "unknown".
    """
    if system is None:
        system = sys.platform
    if system == "linux":
        return "linux"
    if system == "darwin":
        return "darwin"
    if system == "win32":
        return "win32"
    return "unknown"
