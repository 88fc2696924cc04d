"""Release pipeline: build, archive, checksum, then sign."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, replace
from pathlib import Path

from runc_release.archive import create_source_archive
from runc_release.builder import build_static_binary
from runc_release.checksums import write_checksums
from runc_release.config import ReleaseConfig
from runc_release.errors import ReleaseError
from runc_release.signing import SigningCapability, probe_signing, sign_release

LOGGER = logging.getLogger("runc_release.pipeline")


@dataclass(frozen=True)
class ReleaseResult:
    """Everything a release run wrote to the release directory."""

    release_dir: Path
    binary: Path
    archive: Path
    checksums: Path
    signing: SigningCapability
    provenance: tuple[Path, ...] = ()
    signatures: tuple[Path, ...] = ()

    @property
    def signed(self) -> bool:
        return bool(self.signatures)


def prepare_release_dir(release_dir: Path) -> Path:
    """Remove whatever is at the release path and create an empty directory."""
    try:
        if release_dir.is_symlink() or (release_dir.exists() and not release_dir.is_dir()):
            release_dir.unlink()
        elif release_dir.exists():
            shutil.rmtree(release_dir)
        release_dir.mkdir(parents=True)
    except OSError as exc:
        raise ReleaseError(f"Unable to prepare release directory {release_dir}: {exc}") from exc
    return release_dir


def log_summary(config: ReleaseConfig) -> None:
    """Log the resolved release inputs before any work starts."""
    LOGGER.info("creating %s release in '%s'", config.project, config.release_dir)
    LOGGER.info("  version: %s", config.version)
    LOGGER.info("   commit: %s", config.commit)
    LOGGER.info("      key: %s", config.key_id or "DEFAULT")
    LOGGER.info("     hash: %s", config.hash_command)


def run_release(config: ReleaseConfig) -> ReleaseResult:
    """Produce a full release; raises ReleaseError on any fatal failure."""
    log_summary(config)
    # Stages below run external tools from other directories.
    config = replace(
        config,
        release_dir=config.release_dir.absolute(),
        project_root=config.project_root.resolve(),
    )
    prepare_release_dir(config.release_dir)

    build = build_static_binary(config, config.binary_path)
    archive = create_source_archive(config)
    checksums = write_checksums(config)

    capability = probe_signing(config)
    signatures = sign_release(config, capability)

    return ReleaseResult(
        release_dir=config.release_dir,
        binary=build.binary,
        archive=archive,
        checksums=checksums,
        signing=capability,
        provenance=build.provenance,
        signatures=tuple(path for path in signatures if path.suffix == ".asc"),
    )
