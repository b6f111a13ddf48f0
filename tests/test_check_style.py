"""Tests for tools/check_style.py and the source tree it guards."""

from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="module")
def check_style():
    spec = importlib.util.spec_from_file_location("check_style", REPO_ROOT / "tools" / "check_style.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def write(tmp_path, source: str) -> str:
    path = tmp_path / "sample.py"
    path.write_text(source)
    return str(path)


def test_flags_os_system(check_style, tmp_path):
    errors = check_style.check_file(write(tmp_path, "import os\nos.system('xdg-open .')\n"))
    assert [lineno for lineno, _ in errors] == [2]


def test_flags_os_popen(check_style, tmp_path):
    errors = check_style.check_file(write(tmp_path, "import os\nos.popen('which firefox')\n"))
    assert len(errors) == 1


def test_flags_shell_true(check_style, tmp_path):
    source = "import subprocess\nsubprocess.run('start chrome', shell=True)\n"
    (error,) = check_style.check_file(write(tmp_path, source))
    assert "shell=True" in error[1]


def test_argv_lists_are_fine(check_style, tmp_path):
    source = "import subprocess\nsubprocess.run(['xdg-open', '.'], shell=False)\n"
    assert check_style.check_file(write(tmp_path, source)) == []


def test_source_tree_is_clean(check_style):
    files = check_style.find_python_files(str(REPO_ROOT / "src"))
    assert files
    for path in files:
        assert check_style.check_file(path) == [], path
