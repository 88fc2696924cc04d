"""Build a statically linked release binary against a bundled libseccomp."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

import httpx

from runc_release.config import ReleaseConfig
from runc_release.download import download_files, extract_tarball
from runc_release.errors import BuildError, EnvironmentConflictError
from runc_release.subprocess_utils import run_checked, run_command

LOGGER = logging.getLogger("runc_release.builder")

LIBSECCOMP_VERSION = "2.5.1"
LIBSECCOMP_URL = (
    "https://github.com/seccomp/libseccomp/releases/download/v{version}/{tarball}"
)
LIBSECCOMP_PROBE = """\
#include <seccomp.h>
int main(void) { seccomp_version(); return 0; }
"""


@dataclass(frozen=True)
class DependencySpec:
    """A pinned C library built from source and linked into the binary."""

    name: str
    version: str
    url_template: str
    pkg_config_name: str
    probe_source: str
    static_package: str

    @property
    def tarball(self) -> str:
        return f"{self.name}-{self.version}.tar.gz"

    @property
    def source_dirname(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def url(self) -> str:
        return self.url_template.format(version=self.version, tarball=self.tarball)

    @property
    def signature_url(self) -> str:
        return f"{self.url}.asc"


LIBSECCOMP = DependencySpec(
    name="libseccomp",
    version=LIBSECCOMP_VERSION,
    url_template=LIBSECCOMP_URL,
    pkg_config_name="libseccomp",
    probe_source=LIBSECCOMP_PROBE,
    static_package="libseccomp-static",
)


@dataclass(frozen=True)
class BuildOutput:
    """Files the builder leaves behind."""

    binary: Path
    provenance: tuple[Path, ...]


def system_library_links(config: ReleaseConfig, dependency: DependencySpec) -> bool:
    """Return True if a distro copy of the dependency links statically.

    The probe is compiled directly rather than through the project's build,
    which may cache pkg-config results.
    """
    tools = config.tools
    query = run_command([tools.pkg_config, "--libs", "--cflags", dependency.pkg_config_name])
    if not query.ok:
        return False
    flags = shlex.split(query.stdout)
    probe = run_command(
        [tools.cc, "-static", "-x", "c", "-o", os.devnull, "-", *flags],
        input_text=dependency.probe_source,
    )
    return probe.ok


def check_system_conflict(config: ReleaseConfig, dependency: DependencySpec) -> None:
    """Abort if the build would silently link a distro static library."""
    if system_library_links(config, dependency):
        raise EnvironmentConflictError(
            f"Distro-provided {dependency.name} static library is installed.\n"
            f"Unable to build a static binary against own {dependency.name}.\n"
            f"Please uninstall {dependency.static_package} to fix."
        )


def install_dependency(
    config: ReleaseConfig,
    dependency: DependencySpec,
    *,
    workdir: Path,
    prefix: Path,
    client: httpx.Client | None = None,
) -> tuple[Path, Path]:
    """Download, configure and install the dependency into ``prefix``.

    Returns the downloaded tarball and its signature.
    """
    tarball, signature = download_files(
        [dependency.url, dependency.signature_url], workdir, client=client
    )
    extract_tarball(tarball, workdir)
    source_dir = workdir / dependency.source_dirname
    if not source_dir.is_dir():
        raise BuildError(f"{tarball.name} did not unpack to {dependency.source_dirname}/")
    run_checked(
        [
            "./configure",
            f"--prefix={prefix}",
            "--enable-static",
            "--disable-shared",
        ],
        cwd=source_dir,
    )
    run_checked([config.tools.make, "install"], cwd=source_dir)
    return tarball, signature


def build_project(config: ReleaseConfig, *, prefix: Path) -> Path:
    """Run the project's static make target against the isolated prefix."""
    root = config.project_root.resolve()
    pkg_config_path = prefix / "lib" / "pkgconfig"
    run_checked(
        [
            config.tools.make,
            "-C",
            str(root),
            f"PKG_CONFIG_PATH={pkg_config_path}",
            "COMMIT_NO=",
            "static",
        ]
    )
    binary = root / config.project
    if not binary.is_file():
        raise BuildError(f"Static build did not produce {binary}")
    return binary


def build_static_binary(
    config: ReleaseConfig,
    output_path: Path,
    *,
    dependency: DependencySpec = LIBSECCOMP,
    client: httpx.Client | None = None,
) -> BuildOutput:
    """Build the project statically and place the binary at ``output_path``.

    The dependency's tarball and signature are moved next to the binary.
    """
    check_system_conflict(config, dependency)
    build_dir = output_path.parent
    with tempfile.TemporaryDirectory(prefix=f"{config.project}-release-") as tmp:
        workdir = Path(tmp)
        prefix = workdir / "prefix"
        tarball, signature = install_dependency(
            config, dependency, workdir=workdir, prefix=prefix, client=client
        )
        binary = build_project(config, prefix=prefix)
        provenance = []
        try:
            for path in (tarball, signature):
                destination = build_dir / path.name
                shutil.move(str(path), destination)
                provenance.append(destination)
            shutil.move(str(binary), output_path)
        except OSError as exc:
            raise BuildError(f"Unable to move build outputs into {build_dir}: {exc}") from exc
    LOGGER.info("built %s", output_path, extra={"stage": "build"})
    return BuildOutput(binary=output_path, provenance=tuple(provenance))
