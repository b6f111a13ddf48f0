"""Opener configuration, loaded once from the environment at startup."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog
from dotenv import dotenv_values

Browser = Literal["firefox", "chrome", "chromium", "default"]
BROWSERS: tuple[Browser, ...] = ("firefox", "chrome", "chromium", "default")
DEFAULT_BROWSER: Browser = "firefox"

# Seconds a temp copy handed to Flatpak Firefox survives before deletion
CLEANUP_DELAY = 5.0

ENV_BROWSER = "MCP_OPENER_BROWSER"
ENV_FIREFOX_FLATPAK = "MCP_OPENER_FIREFOX_FLATPAK"
ENV_TMP_COPY = "MCP_OPENER_TMP_COPY"
ENV_LOG = "MCP_OPENER_LOG"
ENV_VERBOSE = "MCP_OPENER_VERBOSE"
ENV_FILE = "MCP_OPENER_ENV_FILE"
DEFAULT_ENV_FILE_NAME = ".env"


@dataclass(frozen=True)
class Config:
    """Parsed configuration."""

    browser: Browser = DEFAULT_BROWSER
    firefox_flatpak: bool | None = None
    """Explicit Flatpak status; None means detect with `flatpak list`."""

    tmp_copy_for_flatpak: bool = True
    """Copy local files to a temp dir before handing them to Flatpak Firefox."""

    cleanup_delay: float = CLEANUP_DELAY
    log: Path | None = None  # None = log to stderr
    verbose: bool = False


# === Config Loading ===


def _parse_flag(value: str | None) -> bool | None:
    """Parse the literal strings "true" and "false". Anything else is unset."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _parse_browser(value: str | None) -> Browser:
    """Normalize a browser name, falling back to firefox when unset or unknown."""
    if not value:
        return DEFAULT_BROWSER
    value = value.strip().lower()
    for browser in BROWSERS:
        if value == browser:
            return browser
    return DEFAULT_BROWSER


def parse_environ(values: Mapping[str, str]) -> Config:
    """Build a Config from environment-style key/value pairs."""
    log_path = values.get(ENV_LOG)
    return Config(
        browser=_parse_browser(values.get(ENV_BROWSER)),
        firefox_flatpak=_parse_flag(values.get(ENV_FIREFOX_FLATPAK)),
        # Only the literal "false" turns the workaround off
        tmp_copy_for_flatpak=values.get(ENV_TMP_COPY) != "false",
        log=Path(log_path).expanduser() if log_path else None,
        verbose=_parse_flag(values.get(ENV_VERBOSE)) is True,
    )


def _find_env_file(environ: Mapping[str, str], cwd: Path) -> Path | None:
    """Locate the dotenv file: $MCP_OPENER_ENV_FILE, else ./.env."""
    explicit = environ.get(ENV_FILE)
    if explicit:
        path = Path(explicit).expanduser()
    else:
        path = cwd / DEFAULT_ENV_FILE_NAME
    return path if path.is_file() else None


def load_config(
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Config:
    """Load config from a .env file overlaid by the environment. Environment wins."""
    if environ is None:
        environ = os.environ
    values: dict[str, str] = {}
    env_file = _find_env_file(environ, cwd or Path.cwd())
    if env_file is not None:
        for key, value in dotenv_values(env_file).items():
            if value is not None:
                values[key] = value
    values.update(environ)
    return parse_environ(values)


# === Logging ===


def configure_logging(config: Config) -> None:
    """Configure structlog for JSON lines. Call once at startup.

    stdout carries the protocol, so logs go to the configured file or stderr.
    A log file records everything at INFO; stderr only does when verbose.
    """
    stream = sys.stderr
    level = logging.INFO if config.verbose else logging.WARNING
    fallback_reason = None
    if config.log is not None:
        try:
            config.log.parent.mkdir(parents=True, exist_ok=True)
            stream = open(config.log, "a", encoding="utf-8")
            level = logging.INFO
        except OSError as e:
            fallback_reason = str(e)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
    )

    if fallback_reason is not None:
        structlog.get_logger(__name__).warning(
            "log_file_unavailable", path=str(config.log), error=fallback_reason
        )
