"""Best-effort GPG signing of release artifacts."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from runc_release.config import ReleaseConfig
from runc_release.errors import CommandError, SigningError
from runc_release.subprocess_utils import run_checked, run_command

ENV_GPG_PASSPHRASE = "GPG_PASSPHRASE"
SKIP_MESSAGE = "Could not find suitable GPG key, skipping signing step."

LOGGER = logging.getLogger("runc_release.signing")


class SigningState(enum.Enum):
    AVAILABLE = "available"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SigningCapability:
    """Outcome of checking whether gpg can sign with the selected key."""

    state: SigningState
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.state is SigningState.AVAILABLE


def gpg_flags(config: ReleaseConfig) -> list[str]:
    """Return the key selection and passphrase flags shared by every gpg call."""
    flags: list[str] = []
    passphrase = os.environ.get(ENV_GPG_PASSPHRASE)
    if passphrase:
        flags.extend(["--batch", "--pinentry-mode", "loopback", "--passphrase", passphrase])
    if config.key_id:
        flags.extend(["--default-key", config.key_id])
    return flags


def probe_signing(config: ReleaseConfig) -> SigningCapability:
    """Clear-sign empty input to find out whether a usable key exists."""
    result = run_command(
        [config.tools.gpg, *gpg_flags(config), "--clear-sign"],
        input_text="",
    )
    if result.ok:
        return SigningCapability(SigningState.AVAILABLE)
    reason = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else ""
    return SigningCapability(SigningState.SKIPPED, reason or f"gpg exited {result.returncode}")


def _detach_sign(config: ReleaseConfig, path: Path) -> Path:
    """Write an armored detached signature next to ``path``."""
    run_checked(
        [config.tools.gpg, *gpg_flags(config), "--yes", "--detach-sign", "--armor", str(path)]
    )
    return path.with_name(f"{path.name}.asc")


def _clear_sign_in_place(config: ReleaseConfig, path: Path) -> Path:
    """Replace ``path`` with a clear-signed copy via a temporary file."""
    tmp_path = path.with_name(f"{path.name}.tmp")
    try:
        run_checked(
            [
                config.tools.gpg,
                *gpg_flags(config),
                "--yes",
                "--clear-sign",
                "--armor",
                "--output",
                str(tmp_path),
                str(path),
            ]
        )
    except CommandError:
        tmp_path.unlink(missing_ok=True)
        raise
    os.replace(tmp_path, path)
    return path


def sign_release(config: ReleaseConfig, capability: SigningCapability) -> list[Path]:
    """Sign the binary, archive and checksum file when a key is available.

    Returns the signature files written; the checksum file is clear-signed
    in place and is included as well.
    """
    if not capability.available:
        LOGGER.warning(SKIP_MESSAGE, extra={"stage": "sign"})
        if capability.reason:
            LOGGER.debug("gpg probe: %s", capability.reason, extra={"stage": "sign"})
        return []
    try:
        signed = [
            _detach_sign(config, config.binary_path),
            _detach_sign(config, config.archive_path),
            _clear_sign_in_place(config, config.checksum_path),
        ]
    except CommandError as exc:
        raise SigningError(str(exc)) from exc
    LOGGER.info(
        "signed release with %s", config.key_id or "default key", extra={"stage": "sign"}
    )
    return signed
