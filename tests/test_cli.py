from __future__ import annotations

from pathlib import Path

import pytest

from runc_release import cli
from runc_release import config as release_config
from runc_release.errors import EnvironmentConflictError
from runc_release.pipeline import ReleaseResult
from runc_release.signing import SigningCapability, SigningState


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "VERSION").write_text("1.0.0-rc93\n", encoding="utf-8")
    return root


@pytest.fixture
def captured(monkeypatch) -> dict:
    seen: dict = {}

    def fake_run_release(config):
        seen["config"] = config
        return ReleaseResult(
            release_dir=config.release_dir,
            binary=config.binary_path,
            archive=config.archive_path,
            checksums=config.checksum_path,
            signing=SigningCapability(SigningState.SKIPPED),
        )

    monkeypatch.setattr(cli, "run_release", fake_run_release)
    monkeypatch.setattr(release_config, "detect_arch", lambda _go: "arm64")
    return seen


@pytest.mark.parametrize(
    "argv",
    [
        ["-c"],
        ["-S"],
        ["-x"],
        ["-v", "1.2.3", "extra"],
        ["--bogus"],
    ],
)
def test_cli_usage_errors_exit_1(argv, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_cli_short_h_is_hash_command() -> None:
    args = cli.build_parser().parse_args(["-h", "sha512sum"])
    assert args.hash_command == "sha512sum"


def test_cli_long_help_exits_0(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--help"])
    assert excinfo.value.code == 0
    assert "-S KEY-ID" in capsys.readouterr().out


def test_cli_defaults(project_root: Path, captured: dict) -> None:
    assert cli.main(["--root", str(project_root)]) == 0

    config = captured["config"]
    assert config.version == "1.0.0-rc93"
    assert config.release_dir == Path("release/1.0.0-rc93")
    assert config.commit == "HEAD"
    assert config.hash_command == "sha256sum"
    assert config.key_id is None
    assert config.arch == "arm64"


def test_cli_explicit_options(project_root: Path, captured: dict, tmp_path: Path) -> None:
    out = tmp_path / "out"
    result = cli.main(
        [
            "-S",
            "0xDEADBEEF",
            "-c",
            "v1.2.3",
            "-r",
            str(out),
            "-v",
            "1.2.3",
            "-h",
            "sha512sum",
            "--root",
            str(project_root),
        ]
    )
    assert result == 0

    config = captured["config"]
    assert config.version == "1.2.3"
    assert config.release_dir == out
    assert config.commit == "v1.2.3"
    assert config.hash_command == "sha512sum"
    assert config.key_id == "0xDEADBEEF"


def test_cli_root_from_environment(monkeypatch, project_root: Path, captured: dict) -> None:
    monkeypatch.setenv(release_config.ENV_PROJECT_ROOT, str(project_root))
    assert cli.main([]) == 0
    assert captured["config"].project_root == project_root


def test_cli_missing_version_file(tmp_path: Path, captured: dict, capsys) -> None:
    assert cli.main(["--root", str(tmp_path)]) == 1
    assert "config" not in captured
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "VERSION" in err


def test_cli_tool_config_applies(project_root: Path, captured: dict, tmp_path: Path) -> None:
    tool_config = tmp_path / "tools.json"
    tool_config.write_text('{"gpg": "gpg2", "cc": "musl-gcc"}', encoding="utf-8")

    assert cli.main(["--root", str(project_root), "--tool-config", str(tool_config)]) == 0
    tools = captured["config"].tools
    assert tools.gpg == "gpg2"
    assert tools.cc == "musl-gcc"


def test_cli_bad_tool_config(project_root: Path, captured: dict, tmp_path: Path) -> None:
    tool_config = tmp_path / "tools.json"
    tool_config.write_text('{"svn": "svn"}', encoding="utf-8")

    assert cli.main(["--root", str(project_root), "--tool-config", str(tool_config)]) == 1
    assert "config" not in captured


def test_cli_release_error_returns_1(monkeypatch, project_root: Path, capsys) -> None:
    def conflict(_config):
        raise EnvironmentConflictError("Please uninstall libseccomp-static to fix.")

    monkeypatch.setattr(cli, "run_release", conflict)
    monkeypatch.setattr(release_config, "detect_arch", lambda _go: "amd64")

    assert cli.main(["--root", str(project_root)]) == 1
    assert "libseccomp-static" in capsys.readouterr().err


def test_cli_log_file(project_root: Path, captured: dict, tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "release.jsonl"
    assert cli.main(["--root", str(project_root), "--log-file", str(log_file)]) == 0
    assert log_file.exists()


def test_cli_usage_names_console_script(capsys) -> None:
    with pytest.raises(SystemExit):
        cli.main(["-x"])
    assert "usage: runc-release [-S <gpg-key-id>]" in capsys.readouterr().err
