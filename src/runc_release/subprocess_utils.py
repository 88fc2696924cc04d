"""Subprocess helpers for probing and running external release tools."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from runc_release.errors import CommandError, redact_command

LOGGER = logging.getLogger("runc_release.subprocess")


@dataclass(frozen=True)
class CommandResult:
    """Captured output from a command invocation."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def format_command(command: Sequence[str]) -> str:
    """Render a command the way a shell trace would print it, minus secrets."""
    return " ".join(
        item if item == "***" else shlex.quote(item) for item in redact_command(command)
    )


def _trace(command: Sequence[str], cwd: Path | None) -> None:
    """Log a command at DEBUG like a `set -x` shell trace."""
    if cwd:
        LOGGER.debug("+ (cd %s) %s", cwd, format_command(command))
    else:
        LOGGER.debug("+ %s", format_command(command))


def run_command(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    input_text: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command capturing its output; never raises on failure.

    A command that cannot be started is reported with return code 127, the
    same status a shell uses for a missing program.
    """
    cmd_list = [str(item) for item in command]
    _trace(cmd_list, cwd)
    try:
        result = subprocess.run(
            cmd_list,
            cwd=cwd,
            input=input_text,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raw_stdout = exc.stdout or ""
        raw_stderr = exc.stderr or ""
        stdout = (
            raw_stdout.decode("utf-8", errors="replace")
            if isinstance(raw_stdout, bytes)
            else raw_stdout
        )
        stderr = (
            raw_stderr.decode("utf-8", errors="replace")
            if isinstance(raw_stderr, bytes)
            else raw_stderr
        )
        timeout_message = f"Command timed out after {timeout} seconds."
        stderr = f"{stderr}\n{timeout_message}" if stderr else timeout_message
        return CommandResult(cmd_list, 124, stdout, stderr, timed_out=True)
    except OSError as exc:
        return CommandResult(cmd_list, 127, "", str(exc))
    return CommandResult(cmd_list, result.returncode, result.stdout, result.stderr)


def run_checked(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    stdout_path: Path | None = None,
    input_text: str | None = None,
) -> None:
    """Run a command with output passed through to the console.

    When ``stdout_path`` is given, standard output is written to that file
    instead. Raises CommandError if the command cannot start or exits
    non-zero.
    """
    cmd_list = [str(item) for item in command]
    _trace(cmd_list, cwd)
    stdout_handle = stdout_path.open("w", encoding="utf-8") if stdout_path else None
    try:
        result = subprocess.run(
            cmd_list,
            cwd=cwd,
            input=input_text,
            stdout=stdout_handle,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise CommandError(cmd_list, 127, str(exc)) from exc
    finally:
        if stdout_handle:
            stdout_handle.close()
    if result.returncode != 0:
        raise CommandError(cmd_list, result.returncode)


def run_pipeline(
    producer: Sequence[str],
    consumer: Sequence[str],
    *,
    output_path: Path,
    cwd: Path | None = None,
) -> None:
    """Run ``producer | consumer > output_path`` and check both exit codes."""
    producer_cmd = [str(item) for item in producer]
    consumer_cmd = [str(item) for item in consumer]
    LOGGER.debug(
        "+ %s | %s > %s",
        format_command(producer_cmd),
        format_command(consumer_cmd),
        output_path,
    )
    with output_path.open("wb") as output:
        try:
            upstream = subprocess.Popen(producer_cmd, cwd=cwd, stdout=subprocess.PIPE)
        except OSError as exc:
            raise CommandError(producer_cmd, 127, str(exc)) from exc
        try:
            downstream = subprocess.Popen(
                consumer_cmd, cwd=cwd, stdin=upstream.stdout, stdout=output
            )
        except OSError as exc:
            upstream.kill()
            upstream.wait()
            raise CommandError(consumer_cmd, 127, str(exc)) from exc
        # Let the producer see SIGPIPE if the consumer exits early.
        if upstream.stdout:
            upstream.stdout.close()
        downstream_code = downstream.wait()
        upstream_code = upstream.wait()
    if upstream_code != 0:
        raise CommandError(producer_cmd, upstream_code)
    if downstream_code != 0:
        raise CommandError(consumer_cmd, downstream_code)
