"""
Opener engine: open folders, files and URLs with the host's own programs.

Each call resolves a launch plan for the host platform and configuration,
launches it, and returns a human-readable message or raises an OpenerError.

Flatpak Firefox can't read most of the host filesystem, so local files bound
for it are copied into a fresh temp directory first. That directory is
deleted on a timer a few seconds later, whether or not Firefox is done with
it. Cleanup is best effort and nothing waits on it.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit
from urllib.request import url2pathname

import structlog

from mcp_opener.core.cleanup import CleanupHandle, Scheduler, remove_tree, schedule_removal
from mcp_opener.core.config import Config
from mcp_opener.core.errors import InvalidURL, NoFileManager, NotFound, OpenFailed
from mcp_opener.core.plans import (
    FILE_MANAGERS,
    LaunchPlan,
    browser_plans,
    file_plan,
    folder_plans,
    uses_flatpak_check,
)
from mcp_opener.core.platform import Platform, detect_platform
from mcp_opener.core.probe import command_exists, detect_flatpak_firefox
from mcp_opener.core.proc import Runner, SubprocessRunner, format_command

ALLOWED_SCHEMES = ("http", "https", "file")
TMP_PREFIX = "mcp-opener-"

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TempCopy:
    """A local file copied somewhere Flatpak Firefox can read it."""

    directory: Path
    file: Path

    @property
    def url(self) -> str:
        return self.file.as_uri()


def url_scheme(url: str) -> str:
    """Return the scheme of `url`, or raise InvalidURL if it isn't allowed.

    Matching is exact and case-sensitive on the "<scheme>://" prefix.
    """
    scheme, sep, _ = url.partition("://")
    if not sep or scheme not in ALLOWED_SCHEMES:
        raise InvalidURL("URL must start with http://, https://, or file://")
    return scheme


def file_url_path(url: str) -> str:
    """Local filesystem path named by a file:// URL."""
    return url2pathname(urlsplit(url).path)


def make_tmp_copy(source: Path) -> TempCopy:
    """Copy `source` into a new uniquely named temp directory, keeping its name."""
    directory = Path(tempfile.mkdtemp(prefix=TMP_PREFIX))
    target = directory / source.name
    try:
        shutil.copyfile(source, target)
    except OSError:
        remove_tree(directory)
        raise
    return TempCopy(directory, target)


class Opener:
    """Opens folders, files, and URLs for one immutable configuration."""

    def __init__(
        self,
        config: Config | None = None,
        platform: Platform | None = None,
        runner: Runner | None = None,
        scheduler: Scheduler = schedule_removal,
        path_exists: Callable[[str], bool] = os.path.exists,
    ):
        self.config = config or Config()
        self.platform = platform or detect_platform()
        self.runner = runner or SubprocessRunner()
        self.scheduler = scheduler
        self.path_exists = path_exists
        self.pending: list[CleanupHandle] = []

    # === Operations ===

    def open_folder(self, path: str) -> str:
        """Show a directory in the system file manager."""
        if not os.path.exists(path):
            raise NotFound(f"Folder does not exist: {path}")
        plan = self._choose(folder_plans(self.platform, os.path.abspath(path)))
        if plan is None:
            tried = ", ".join(cmd for cmd, _ in FILE_MANAGERS)
            raise NoFileManager(f"No file manager found (tried {tried})")
        self._launch(plan, "open folder")
        return plan.message

    def open_file(self, path: str) -> str:
        """Open a file with its default application."""
        if not os.path.exists(path):
            raise NotFound(f"File does not exist: {path}")
        plan = file_plan(self.platform, os.path.abspath(path))
        self._launch(plan, "open file")
        return plan.message

    def open_browser(self, url: str) -> str:
        """Open an http(s) or file URL in the configured browser."""
        scheme = url_scheme(url)
        local_path = None
        if scheme == "file":
            local_path = file_url_path(url)
            if not os.path.exists(local_path):
                raise NotFound(f"File does not exist: {local_path}")

        plans = browser_plans(
            self.platform, self.config, url, scheme, flatpak=self._firefox_is_flatpak()
        )
        plan = self._choose(plans)
        if plan is None:  # every list ends in a fallback; guard anyway
            raise OpenFailed("open browser", "no browser command available")
        if plan.tmp_copy and local_path is not None:
            return self._open_via_tmp_copy(plan, url, Path(local_path))
        self._launch(plan, "open browser")
        return plan.message

    def flush_cleanups(self) -> int:
        """Remove every temp copy still waiting on its timer. Returns how many."""
        pending, self.pending = self.pending, []
        flushed = 0
        for handle in pending:
            if not handle.done:
                handle.flush()
                flushed += 1
        return flushed

    # === Helpers ===

    def _track(self, handle: CleanupHandle) -> None:
        self.pending = [h for h in self.pending if not h.done]
        self.pending.append(handle)

    def _firefox_is_flatpak(self) -> bool:
        if not uses_flatpak_check(self.platform, self.config):
            return False
        if self.config.firefox_flatpak is not None:
            return self.config.firefox_flatpak
        return detect_flatpak_firefox(self.runner)

    def _choose(self, plans: list[LaunchPlan]) -> LaunchPlan | None:
        """First plan whose requirement is met."""
        for plan in plans:
            if plan.requires_command is not None:
                if command_exists(plan.requires_command, self.runner, self.platform):
                    return plan
            elif plan.requires_path is not None:
                if self.path_exists(plan.requires_path):
                    return plan
            else:
                return plan
        return None

    def _launch(self, plan: LaunchPlan, action: str) -> None:
        cmd = format_command(plan.argv)
        log.info("launch", action=action, cmd=cmd)
        try:
            result = self.runner.launch(plan.argv)
        except OSError as e:
            log.warning("launch_failed", action=action, cmd=cmd, error=str(e))
            raise OpenFailed(action, str(e)) from e
        if not result.ok:
            detail = result.describe_failure()
            log.warning("launch_failed", action=action, cmd=cmd, error=detail)
            raise OpenFailed(action, detail)

    def _open_via_tmp_copy(self, plan: LaunchPlan, url: str, source: Path) -> str:
        try:
            copy = make_tmp_copy(source)
        except OSError as e:
            raise OpenFailed("open browser", f"could not copy {source}: {e}") from e
        log.info("tmp_copy", source=str(source), copy=str(copy.file))
        retargeted = plan.retarget(
            copy.url, message=f"Opened in Firefox (Flatpak, via {copy.file}): {url}"
        )
        try:
            self._launch(retargeted, "open browser")
        finally:
            self._track(self.scheduler(copy.directory, self.config.cleanup_delay))
        return retargeted.message
