"""Checksum file generation with an external hash command."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from runc_release.config import ReleaseConfig
from runc_release.errors import ChecksumError, CommandError
from runc_release.subprocess_utils import run_checked

LOGGER = logging.getLogger("runc_release.checksums")

_PGP_SIGNED_HEADER = "-----BEGIN PGP SIGNED MESSAGE-----"
_PGP_SIGNATURE_HEADER = "-----BEGIN PGP SIGNATURE-----"


def write_checksums(config: ReleaseConfig) -> Path:
    """Hash the binary and archive, in that order, into the checksum file."""
    if not shutil.which(config.hash_command):
        raise ChecksumError(f"Hash command not found: {config.hash_command}")
    release_dir = config.release_dir
    destination = config.checksum_path
    try:
        run_checked(
            [config.hash_command, config.binary_name, config.archive_name],
            cwd=release_dir,
            stdout_path=destination,
        )
    except CommandError as exc:
        destination.unlink(missing_ok=True)
        raise ChecksumError(str(exc)) from exc
    LOGGER.info("wrote %s", destination, extra={"stage": "checksum"})
    return destination


def read_checksums(path: Path) -> list[tuple[str, str]]:
    """Parse ``<digest> <filename>`` lines, skipping any clear-sign armor."""
    lines = path.read_text(encoding="utf-8").splitlines()
    if lines and lines[0] == _PGP_SIGNED_HEADER:
        try:
            body_start = lines.index("", 1) + 1
        except ValueError as exc:
            raise ChecksumError(f"Malformed clear-signed checksum file: {path}") from exc
        lines = lines[body_start:]
    entries: list[tuple[str, str]] = []
    for line in lines:
        if line == _PGP_SIGNATURE_HEADER:
            break
        if not line.strip():
            continue
        digest, _, name = line.partition(" ")
        # Binary-mode entries carry a leading '*' on the filename.
        entries.append((digest, name.lstrip(" *")))
    return entries
