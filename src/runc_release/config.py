"""Release configuration resolved once from command-line options."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from runc_release.errors import UsageError
from runc_release.subprocess_utils import run_command
from runc_release.tools import ToolCommands

PROJECT = "runc"
DEFAULT_COMMIT = "HEAD"
DEFAULT_HASH_COMMAND = "sha256sum"
DEFAULT_ARCH = "amd64"
VERSION_FILE = "VERSION"
RELEASE_ROOT = Path("release")
ENV_PROJECT_ROOT = "RUNC_RELEASE_ROOT"

LOGGER = logging.getLogger("runc_release.config")


@dataclass(frozen=True)
class ReleaseConfig:
    """Immutable inputs shared by every pipeline stage."""

    version: str
    release_dir: Path
    commit: str = DEFAULT_COMMIT
    hash_command: str = DEFAULT_HASH_COMMAND
    key_id: str | None = None
    project: str = PROJECT
    project_root: Path = field(default_factory=Path.cwd)
    arch: str = DEFAULT_ARCH
    tools: ToolCommands = field(default_factory=ToolCommands)

    @property
    def binary_name(self) -> str:
        return f"{self.project}.{self.arch}"

    @property
    def archive_name(self) -> str:
        return f"{self.project}.tar.xz"

    @property
    def checksum_name(self) -> str:
        # A hash command given as a path still names the file after the tool.
        return f"{self.project}.{Path(self.hash_command).name}"

    @property
    def binary_path(self) -> Path:
        return self.release_dir / self.binary_name

    @property
    def archive_path(self) -> Path:
        return self.release_dir / self.archive_name

    @property
    def checksum_path(self) -> Path:
        return self.release_dir / self.checksum_name

    @property
    def archive_prefix(self) -> str:
        return f"{self.project}-{self.version}/"


def default_project_root() -> Path:
    """Return the project root from the environment or the working directory."""
    env_root = os.environ.get(ENV_PROJECT_ROOT)
    if env_root:
        return Path(env_root)
    return Path.cwd()


def read_version(project_root: Path) -> str:
    """Read the release version from the project's VERSION file."""
    version_path = project_root / VERSION_FILE
    try:
        version = version_path.read_text(encoding="utf-8").rstrip("\r\n")
    except OSError as exc:
        raise UsageError(f"Unable to read {version_path}: {exc.strerror or exc}") from exc
    if not version.strip():
        raise UsageError(f"{version_path} is empty; pass -v <version>.")
    return version


def default_release_dir(version: str) -> Path:
    """Return the release directory used when -r is not given."""
    return RELEASE_ROOT / version


def detect_arch(go: str = "go") -> str:
    """Return GOARCH from the Go toolchain, falling back to amd64."""
    result = run_command([go, "env", "GOARCH"])
    arch = result.stdout.strip()
    if not result.ok or not arch:
        LOGGER.debug("go env GOARCH unavailable; using %s", DEFAULT_ARCH)
        return DEFAULT_ARCH
    return arch


def resolve_config(
    *,
    key_id: str | None = None,
    commit: str | None = None,
    release_dir: str | Path | None = None,
    version: str | None = None,
    hash_command: str | None = None,
    project_root: Path | None = None,
    tools: ToolCommands | None = None,
    arch_detector: Callable[[str], str] | None = None,
) -> ReleaseConfig:
    """Apply defaults to the given options and return a ReleaseConfig."""
    root = project_root or default_project_root()
    tools = tools or ToolCommands()
    resolved_version = version or read_version(root)
    resolved_dir = Path(release_dir) if release_dir else default_release_dir(resolved_version)
    return ReleaseConfig(
        version=resolved_version,
        release_dir=resolved_dir,
        commit=commit or DEFAULT_COMMIT,
        hash_command=hash_command or DEFAULT_HASH_COMMAND,
        key_id=key_id or None,
        project_root=root,
        arch=(arch_detector or detect_arch)(tools.go),
        tools=tools,
    )
