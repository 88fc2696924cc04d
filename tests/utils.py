from __future__ import annotations

import os
import stat
import sys
import textwrap
from pathlib import Path
from typing import Sequence

from runc_release.config import ReleaseConfig
from runc_release.subprocess_utils import CommandResult
from runc_release.tools import ToolCommands


def write_executable(directory: Path, name: str, body: str) -> Path:
    """Write a Python script that runs as an external command."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(
        f"#!{sys.executable}\n" + textwrap.dedent(body).lstrip(),
        encoding="utf-8",
    )
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def prepend_path(monkeypatch, directory: Path) -> None:
    monkeypatch.setenv("PATH", f"{directory}{os.pathsep}{os.environ.get('PATH', '')}")


def make_config(tmp_path: Path, **overrides) -> ReleaseConfig:
    """Return a ReleaseConfig rooted in tmp_path."""
    values = {
        "version": "1.2.3",
        "release_dir": tmp_path / "release" / "1.2.3",
        "project_root": tmp_path / "project",
        "arch": "amd64",
        "tools": ToolCommands(),
    }
    values.update(overrides)
    return ReleaseConfig(**values)


class RecordingRunner:
    """Stand-in for run_command that records calls and replays results."""

    def __init__(self, results: Sequence[CommandResult | int] = ()) -> None:
        self.calls: list[dict] = []
        self._results = list(results)

    def __call__(self, command, **kwargs) -> CommandResult:
        cmd_list = [str(item) for item in command]
        self.calls.append({"command": cmd_list, **kwargs})
        result = self._results.pop(0) if self._results else 0
        if isinstance(result, int):
            return CommandResult(cmd_list, result, "", "")
        return result
