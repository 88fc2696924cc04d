"""Download and unpack pinned dependency source tarballs."""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path
from typing import Iterable

import httpx

from runc_release.errors import BuildError

DEFAULT_TIMEOUT = 60.0
LOGGER = logging.getLogger("runc_release.download")


def download_file(client: httpx.Client, url: str, destination: Path) -> Path:
    """Stream a URL to a local file."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.info("downloading %s", url)
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with destination.open("wb") as handle:
                for chunk in response.iter_bytes():
                    handle.write(chunk)
    except httpx.HTTPError as exc:
        destination.unlink(missing_ok=True)
        raise BuildError(f"Download failed for {url}: {exc}") from exc
    return destination


def download_files(
    urls: Iterable[str],
    destination_dir: Path,
    *,
    client: httpx.Client | None = None,
) -> list[Path]:
    """Download each URL into a directory, naming files after the URL path."""
    owns_client = client is None
    http = client or httpx.Client(follow_redirects=True, timeout=DEFAULT_TIMEOUT)
    try:
        return [
            download_file(http, url, destination_dir / url.rsplit("/", 1)[-1])
            for url in urls
        ]
    finally:
        if owns_client:
            http.close()


def _safe_extract_path(root: Path, member: Path) -> Path:
    """Ensure an archive member resolves inside the destination root."""
    root_resolved = root.resolve()
    candidate = (root / member).resolve()
    try:
        candidate.relative_to(root_resolved)
    except ValueError as exc:
        raise BuildError(f"Archive member escapes target directory: {member}") from exc
    return candidate


def extract_tarball(archive_path: Path, destination: Path) -> list[Path]:
    """Extract a tarball and return its top-level extracted roots."""
    destination.mkdir(parents=True, exist_ok=True)
    if not tarfile.is_tarfile(archive_path):
        raise BuildError(f"Unsupported archive format: {archive_path}")
    extracted_roots: set[Path] = set()
    with tarfile.open(archive_path) as archive:
        for member in archive.getmembers():
            if not member.name:
                continue
            member_path = Path(member.name)
            _safe_extract_path(destination, member_path)
            extracted_roots.add(destination / member_path.parts[0])
        try:
            archive.extractall(destination, filter="data")
        except TypeError:
            archive.extractall(destination)  # noqa: S202 - guarded by validation above
    return sorted(extracted_roots)
