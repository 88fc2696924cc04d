from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

import pytest  # noqa: E402

from runc_release import config as release_config  # noqa: E402
from runc_release import signing  # noqa: E402
from runc_release import tools as release_tools  # noqa: E402


def pytest_collection_modifyitems(config, items) -> None:
    """Skip integration tests unless explicitly selected via -m integration."""
    markexpr = config.option.markexpr or ""
    if "integration" in markexpr:
        return
    skip_integration = pytest.mark.skip(reason="integration tests run only with -m integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path) -> None:
    """Prevent local tool configs and signing setup from bleeding into tests."""
    for name in (
        release_tools.ENV_TOOL_PATHS,
        release_tools.ENV_GPG,
        release_config.ENV_PROJECT_ROOT,
        signing.ENV_GPG_PASSPHRASE,
    ):
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """configure_logging replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
