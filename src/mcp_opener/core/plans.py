"""
Launch planning: which command opens a target on this host.

Pure functions. Each returns an ordered list of candidate LaunchPlans; the
engine launches the first candidate whose requirement holds. The last
candidate of a list usually has no requirement and acts as the fallback.
Nothing here touches the filesystem or spawns processes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from mcp_opener.core.config import Config
from mcp_opener.core.errors import UnsupportedPlatform
from mcp_opener.core.platform import Platform
from mcp_opener.core.probe import FLATPAK_FIREFOX_ID

CHROME_APP_BUNDLE = "/Applications/Google Chrome.app"

# Characters cmd.exe interprets outside double quotes
CMD_METACHARS = frozenset("^&|<>()%!")

# Linux file managers, tried in order
FILE_MANAGERS = (
    ("xdg-open", "file manager"),
    ("nautilus", "Nautilus"),
    ("dolphin", "Dolphin"),
)


@dataclass(frozen=True)
class LaunchPlan:
    """One candidate command for opening a target."""

    argv: tuple[str, ...]
    message: str  # returned to the client on success
    requires_command: str | None = None  # must be on PATH
    requires_path: str | None = None  # must exist on disk
    tmp_copy: bool = False  # copy the local file first, then retarget

    @property
    def unconditional(self) -> bool:
        return self.requires_command is None and self.requires_path is None

    def retarget(self, target: str, message: str | None = None) -> LaunchPlan:
        """Same command pointed at a different target (the last argument)."""
        return replace(
            self,
            argv=self.argv[:-1] + (target,),
            message=self.message if message is None else message,
        )


def to_windows_path(path: str) -> str:
    return path.replace("/", "\\")


def cmd_escape(arg: str) -> str:
    """Make `arg` reach a cmd builtin as one literal word.

    Popen wraps arguments containing whitespace in double quotes, and cmd
    leaves metacharacters inside quotes alone. Bare arguments get each
    metacharacter caret-escaped instead.
    """
    if not arg or any(c.isspace() for c in arg):
        return arg
    return "".join("^" + c if c in CMD_METACHARS else c for c in arg)


def folder_plans(platform: Platform, path: str) -> list[LaunchPlan]:
    """Candidates for showing a directory in the file manager."""
    if platform == "linux":
        return [
            LaunchPlan((cmd, path), f"Opened folder in {label}: {path}", requires_command=cmd)
            for cmd, label in FILE_MANAGERS
        ]
    if platform == "darwin":
        return [LaunchPlan(("open", path), f"Opened folder in Finder: {path}")]
    if platform == "win32":
        return [LaunchPlan(("explorer", to_windows_path(path)), f"Opened folder in Explorer: {path}")]
    raise UnsupportedPlatform(platform)


def file_plan(platform: Platform, path: str) -> LaunchPlan:
    """Command for opening a file with its default application."""
    message = f"Opened file with default application: {path}"
    if platform == "linux":
        return LaunchPlan(("xdg-open", path), message)
    if platform == "darwin":
        return LaunchPlan(("open", path), message)
    if platform == "win32":
        # start is a cmd builtin; the empty string is the window title
        return LaunchPlan(("cmd", "/c", "start", "", cmd_escape(to_windows_path(path))), message)
    raise UnsupportedPlatform(platform)


def uses_flatpak_check(platform: Platform, config: Config) -> bool:
    """Whether Flatpak status matters for a browser launch on this host."""
    return platform == "linux" and config.browser == "firefox"


def _flatpak_firefox(url: str, message: str, tmp_copy: bool = False) -> LaunchPlan:
    return LaunchPlan(("flatpak", "run", FLATPAK_FIREFOX_ID, url), message, tmp_copy=tmp_copy)


def browser_plans(
    platform: Platform,
    config: Config,
    url: str,
    scheme: str,
    flatpak: bool = False,
) -> list[LaunchPlan]:
    """Candidates for opening `url` in the preferred browser.

    `flatpak` is only consulted when uses_flatpak_check() is true.
    """
    if uses_flatpak_check(platform, config):
        if flatpak:
            if scheme == "file" and config.tmp_copy_for_flatpak:
                return [_flatpak_firefox(url, f"Opened in Firefox (Flatpak, via temp copy): {url}", tmp_copy=True)]
            return [_flatpak_firefox(url, f"Opened in Firefox (Flatpak): {url}")]
        return [
            LaunchPlan(("firefox", url), f"Opened in Firefox: {url}", requires_command="firefox"),
            LaunchPlan(("xdg-open", url), f"Opened in default browser: {url}"),
        ]

    browser = config.browser
    if platform == "linux":
        plans = []
        if browser == "chrome":
            plans.append(LaunchPlan(("google-chrome", url), f"Opened in Chrome: {url}", requires_command="google-chrome"))
        elif browser == "chromium":
            plans.append(LaunchPlan(("chromium", url), f"Opened in Chromium: {url}", requires_command="chromium"))
        plans.append(LaunchPlan(("xdg-open", url), f"Opened in default browser: {url}"))
        return plans

    if platform == "darwin":
        plans = []
        if browser == "firefox":
            plans.append(LaunchPlan(("firefox", url), f"Opened in Firefox: {url}", requires_command="firefox"))
        elif browser == "chrome":
            plans.append(
                LaunchPlan(
                    ("open", "-a", "Google Chrome", url),
                    f"Opened in Chrome: {url}",
                    requires_path=CHROME_APP_BUNDLE,
                )
            )
        plans.append(LaunchPlan(("open", url), f"Opened in default browser: {url}"))
        return plans

    if platform == "win32":
        # Windows trusts the browser to be registered; no probing
        if browser == "firefox":
            return [LaunchPlan(("cmd", "/c", "start", "firefox", cmd_escape(url)), f"Opened in Firefox: {url}")]
        if browser == "chrome":
            return [LaunchPlan(("cmd", "/c", "start", "chrome", cmd_escape(url)), f"Opened in Chrome: {url}")]
        return [LaunchPlan(("cmd", "/c", "start", "", cmd_escape(url)), f"Opened in default browser: {url}")]

    raise UnsupportedPlatform(platform)
