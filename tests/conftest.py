"""
Shared test fixtures for mcp-opener tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from mcp_opener.core.cleanup import CleanupHandle
from mcp_opener.core.config import Config
from mcp_opener.core.proc import CommandResult
from mcp_opener.opener import Opener


class FakeRunner:
    """Runner that never spawns anything.

    `commands` are the executables `which`/`where` will find. `flatpak_output`
    is what `flatpak list --app` prints; None means flatpak isn't installed.
    """

    def __init__(
        self,
        commands: Sequence[str] = (),
        flatpak_output: str | None = None,
        launch_result: CommandResult | None = None,
        launch_error: OSError | None = None,
    ):
        self.available = set(commands)
        self.flatpak_output = flatpak_output
        self.launch_result = launch_result or CommandResult(0)
        self.launch_error = launch_error
        self.runs: list[tuple[str, ...]] = []
        self.launches: list[tuple[str, ...]] = []

    def run(self, argv: Sequence[str], timeout: float = 2.0) -> CommandResult:
        argv = tuple(argv)
        self.runs.append(argv)
        if argv[0] in ("which", "where"):
            if argv[1] in self.available:
                return CommandResult(0, stdout=f"/usr/bin/{argv[1]}\n")
            return CommandResult(1)
        if argv[:3] == ("flatpak", "list", "--app"):
            if self.flatpak_output is None:
                raise FileNotFoundError(2, "No such file or directory", "flatpak")
            return CommandResult(0, stdout=self.flatpak_output)
        raise FileNotFoundError(2, "No such file or directory", argv[0])

    def launch(self, argv: Sequence[str]) -> CommandResult:
        argv = tuple(argv)
        self.launches.append(argv)
        if self.launch_error is not None:
            raise self.launch_error
        return self.launch_result

    @property
    def probed(self) -> list[str]:
        """Names looked up on PATH, in order."""
        return [argv[1] for argv in self.runs if argv[0] in ("which", "where")]


class RecordingScheduler:
    """Scheduler that records removals without starting timers."""

    def __init__(self):
        self.handles: list[CleanupHandle] = []

    def __call__(self, path: Path, delay: float) -> CleanupHandle:
        handle = CleanupHandle(path, delay)
        self.handles.append(handle)
        return handle


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def make_opener(scheduler):
    """Factory for an Opener on a given platform with a fake runner."""

    def _make(
        platform: str = "linux",
        config: Config | None = None,
        runner: FakeRunner | None = None,
        path_exists=None,
    ) -> Opener:
        kwargs = {}
        if path_exists is not None:
            kwargs["path_exists"] = path_exists
        return Opener(
            config=config or Config(),
            platform=platform,
            runner=runner or FakeRunner(),
            scheduler=scheduler,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_file(tmp_path):
    """A small HTML file to open."""
    path = tmp_path / "report.html"
    path.write_text("<h1>report</h1>")
    return path


@pytest.fixture(autouse=True)
def _no_real_processes(monkeypatch):
    """Fail loudly if a test reaches the real process layer through the engine."""

    def _refuse(*args, **kwargs):
        raise AssertionError("engine test tried to spawn a real process")

    monkeypatch.setattr("mcp_opener.opener.SubprocessRunner", _refuse)
