"""Tests for the process layer."""

from __future__ import annotations

import subprocess
import sys

import pytest

from mcp_opener.core.proc import CommandResult, SubprocessRunner, format_command, quote_arg


class TestQuoteArg:
    def test_empty_string(self):
        assert quote_arg("") == "''"

    def test_plain_word(self):
        assert quote_arg("xdg-open") == "xdg-open"

    def test_path_and_url(self):
        assert quote_arg("/home/me/Documents") == "/home/me/Documents"
        assert quote_arg("https://example.com/a%20b") == "https://example.com/a%20b"

    def test_with_spaces(self):
        assert quote_arg("Google Chrome") == "'Google Chrome'"

    def test_with_single_quote(self):
        assert quote_arg("it's") == "'it'\"'\"'s'"

    def test_shell_metacharacters(self):
        assert quote_arg("a&b") == "'a&b'"
        assert quote_arg("$HOME") == "'$HOME'"


class TestFormatCommand:
    def test_simple(self):
        assert format_command(["xdg-open", "/tmp"]) == "xdg-open /tmp"

    def test_mixed(self):
        argv = ["open", "-a", "Google Chrome", "https://example.com"]
        assert format_command(argv) == "open -a 'Google Chrome' https://example.com"

    def test_windows_title_placeholder(self):
        assert format_command(["cmd", "/c", "start", "", "x"]) == "cmd /c start '' x"

    def test_empty(self):
        assert format_command([]) == ""


class TestCommandResult:
    def test_ok(self):
        assert CommandResult(0).ok
        assert not CommandResult(1).ok
        assert CommandResult(0, running=True).ok

    def test_describe_failure_uses_last_stderr_line(self):
        result = CommandResult(4, stderr="warning: x\ngio: file not found\n")
        assert result.describe_failure() == "exit status 4: gio: file not found"

    def test_describe_failure_without_stderr(self):
        assert CommandResult(2).describe_failure() == "exit status 2"


class TestSubprocessRunner:
    def test_run_captures_output(self):
        result = SubprocessRunner().run([sys.executable, "-c", "print('org.mozilla.firefox')"])
        assert result.returncode == 0
        assert "org.mozilla.firefox" in result.stdout

    def test_run_nonzero(self):
        result = SubprocessRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert result.returncode == 3

    def test_run_missing_program(self):
        with pytest.raises(OSError):
            SubprocessRunner().run(["definitely-not-a-real-program-xyz"])

    def test_run_timeout(self):
        with pytest.raises(subprocess.TimeoutExpired):
            SubprocessRunner().run([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)

    def test_launch_quick_success(self):
        result = SubprocessRunner(grace=5).launch([sys.executable, "-c", "pass"])
        assert result.returncode == 0
        assert not result.running

    def test_launch_failure_captures_stderr(self):
        code = "import sys; sys.stderr.write('no handler\\n'); sys.exit(4)"
        result = SubprocessRunner(grace=5).launch([sys.executable, "-c", code])
        assert result.returncode == 4
        assert not result.ok
        assert "no handler" in result.stderr

    def test_launch_does_not_wait_for_long_running_app(self):
        result = SubprocessRunner(grace=0.2).launch([sys.executable, "-c", "import time; time.sleep(2)"])
        assert result.running
        assert result.ok

    def test_launch_missing_program(self):
        with pytest.raises(OSError):
            SubprocessRunner().launch(["definitely-not-a-real-program-xyz"])
