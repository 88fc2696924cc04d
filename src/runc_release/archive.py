"""Create the xz-compressed source archive for a revision."""

from __future__ import annotations

import logging
from pathlib import Path

from runc_release.config import ReleaseConfig
from runc_release.errors import ArchiveError, CommandError
from runc_release.subprocess_utils import run_command, run_pipeline

LOGGER = logging.getLogger("runc_release.archive")

# Multi-threaded xz splits input into blocks and changes the output bytes.
XZ_ARGS = ("-T1", "-c")


def resolve_commit(config: ReleaseConfig) -> str:
    """Return the full object name of the configured commit-ish."""
    result = run_command(
        [
            config.tools.git,
            "-C",
            str(config.project_root),
            "rev-parse",
            "--verify",
            "--quiet",
            f"{config.commit}^{{commit}}",
        ]
    )
    if not result.ok or not result.stdout.strip():
        detail = result.stderr.strip()
        message = f"Unknown commit-ish {config.commit!r} in {config.project_root}"
        raise ArchiveError(f"{message}: {detail}" if detail else message)
    return result.stdout.strip()


def archive_command(config: ReleaseConfig, commit: str) -> list[str]:
    """Return the `git archive` command for the commit with the versioned prefix."""
    return [
        config.tools.git,
        "-C",
        str(config.project_root),
        "archive",
        "--format=tar",
        f"--prefix={config.archive_prefix}",
        commit,
    ]


def create_source_archive(config: ReleaseConfig, output_path: Path | None = None) -> Path:
    """Write ``git archive`` output for the commit through xz."""
    destination = output_path or config.archive_path
    commit = resolve_commit(config)
    LOGGER.debug("archiving %s (%s)", config.commit, commit, extra={"stage": "archive"})
    try:
        run_pipeline(
            archive_command(config, commit),
            [config.tools.xz, *XZ_ARGS],
            output_path=destination,
        )
    except CommandError as exc:
        destination.unlink(missing_ok=True)
        raise ArchiveError(f"Unable to archive {config.commit}: {exc}") from exc
    LOGGER.info("wrote %s", destination, extra={"stage": "archive"})
    return destination
