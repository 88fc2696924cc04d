"""Exception types raised by the release pipeline."""

from __future__ import annotations

from typing import Sequence

SECRET_FLAGS = frozenset({"--passphrase"})


def redact_command(command: Sequence[str]) -> list[str]:
    """Return the command with values of secret-bearing flags masked."""
    redacted: list[str] = []
    hide_next = False
    for item in command:
        redacted.append("***" if hide_next else str(item))
        hide_next = str(item) in SECRET_FLAGS
    return redacted


class ReleaseError(RuntimeError):
    """Base class for failures that abort a release."""


class UsageError(ReleaseError):
    """Invalid command-line input or missing release inputs."""


class ConfigError(ReleaseError):
    """Malformed tool configuration."""


class EnvironmentConflictError(ReleaseError):
    """The host provides a library that would leak into the static build."""


class CommandError(ReleaseError):
    """An external command failed to start or exited non-zero."""

    def __init__(self, command: Sequence[str], returncode: int, detail: str = "") -> None:
        self.command = redact_command(command)
        self.returncode = returncode
        self.detail = detail
        message = f"Command failed ({returncode}): {' '.join(self.command)}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


class BuildError(ReleaseError):
    """The static binary could not be built."""


class ArchiveError(ReleaseError):
    """The source archive could not be produced."""


class ChecksumError(ReleaseError):
    """The checksum file could not be produced."""


class SigningError(ReleaseError):
    """Signing failed after a usable key was found."""
