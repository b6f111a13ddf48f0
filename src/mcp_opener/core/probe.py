"""Probes for installed programs. Probes never raise; any failure means False."""

from __future__ import annotations

import subprocess

import structlog

from mcp_opener.core.platform import Platform, detect_platform
from mcp_opener.core.proc import PROBE_TIMEOUT, Runner, SubprocessRunner

FLATPAK_FIREFOX_ID = "org.mozilla.firefox"

log = structlog.get_logger(__name__)


def _lookup_argv(name: str, platform: Platform) -> list[str]:
    if platform == "win32":
        return ["where", name]
    return ["which", name]


def command_exists(
    name: str,
    runner: Runner | None = None,
    platform: Platform | None = None,
) -> bool:
    """Check whether `name` is an executable on PATH.

    True only when the lookup exits 0. Non-zero exit, timeout, or a lookup
    tool that can't be started all count as not found.
    """
    runner = runner or SubprocessRunner()
    argv = _lookup_argv(name, platform or detect_platform())
    try:
        result = runner.run(argv, timeout=PROBE_TIMEOUT)
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0


def detect_flatpak_firefox(runner: Runner | None = None) -> bool:
    """Check whether Firefox is installed as a Flatpak app.

    Plain substring match on `flatpak list --app` output, so the column
    layout doesn't matter.
    """
    runner = runner or SubprocessRunner()
    try:
        result = runner.run(["flatpak", "list", "--app"], timeout=PROBE_TIMEOUT)
    except (OSError, subprocess.SubprocessError):
        return False
    if result.returncode != 0:
        return False
    found = FLATPAK_FIREFOX_ID in result.stdout
    log.info("flatpak_detected", app=FLATPAK_FIREFOX_ID, installed=found)
    return found
