"""Process execution for probes and launchers.

Everything goes through argv lists. The one shell involved is cmd on Windows,
for its `start` builtin; plans escape targets for it. Launching an
opener does not wait for the opened application: the launcher gets a short
grace period to fail, after which it is assumed to have handed off.
"""

from __future__ import annotations

import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

PROBE_TIMEOUT = 2.0
LAUNCH_GRACE = 1.5


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a probe or launch."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    running: bool = False  # launch only: still alive when the grace period ended

    @property
    def ok(self) -> bool:
        return self.running or self.returncode == 0

    def describe_failure(self) -> str:
        """One-line description of a failed result for error messages."""
        detail = self.stderr.strip().splitlines()
        if detail:
            return f"exit status {self.returncode}: {detail[-1]}"
        return f"exit status {self.returncode}"


class Runner(Protocol):
    """The two process primitives the engine needs."""

    def run(self, argv: Sequence[str], timeout: float = PROBE_TIMEOUT) -> CommandResult:
        """Run to completion, capturing output.

        Raises OSError if the program can't be started and
        subprocess.TimeoutExpired if it outlives the timeout.
        """
        ...

    def launch(self, argv: Sequence[str]) -> CommandResult:
        """Start an opener without waiting for the opened application.

        Raises OSError if the program can't be started.
        """
        ...


class SubprocessRunner:
    """Runner backed by the subprocess module."""

    def __init__(self, grace: float = LAUNCH_GRACE):
        self.grace = grace

    def run(self, argv: Sequence[str], timeout: float = PROBE_TIMEOUT) -> CommandResult:
        proc = subprocess.run(
            list(argv),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return CommandResult(proc.returncode, proc.stdout, proc.stderr)

    def launch(self, argv: Sequence[str]) -> CommandResult:
        # stderr goes to a file so a chatty app can't block on a full pipe
        with tempfile.TemporaryFile() as err:
            proc = subprocess.Popen(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=err,
                start_new_session=True,
            )
            try:
                returncode = proc.wait(timeout=self.grace)
            except subprocess.TimeoutExpired:
                return CommandResult(0, running=True)
            err.seek(0)
            stderr = err.read().decode(errors="replace")
        return CommandResult(returncode, stderr=stderr)


# === Rendering for logs ===


def quote_arg(arg: str) -> str:
    """Quote one argument so a logged command line can be pasted into a shell.

    Plain words (alphanumerics and -_./=@:,+%) are left bare.
    """
    if not arg:
        return "''"
    if all(c.isalnum() or c in "-_./=@:,+%" for c in arg):
        return arg
    return "'" + arg.replace("'", "'\"'\"'") + "'"


def format_command(argv: Sequence[str]) -> str:
    """Render argv as a single command line."""
    return " ".join(quote_arg(a) for a in argv)
