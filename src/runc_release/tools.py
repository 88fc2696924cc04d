"""External tool discovery and the JSON tool path configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import jsonschema

from runc_release.errors import ConfigError

ENV_TOOL_PATHS = "RUNC_RELEASE_TOOL_PATHS"
ENV_GPG = "GPG"
TOOL_PATHS_SCHEMA = "tool_paths.schema.json"


@dataclass(frozen=True)
class ToolCommands:
    """Commands used for each external tool the release shells out to."""

    git: str = "git"
    xz: str = "xz"
    gpg: str = "gpg"
    make: str = "make"
    cc: str = "gcc"
    pkg_config: str = "pkg-config"
    go: str = "go"


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema bundled in the package."""
    with resources.files("runc_release.schemas").joinpath(name).open(
        "r", encoding="utf-8"
    ) as handle:
        return json.load(handle)


def validate_tool_paths(payload: Any) -> None:
    """Validate a tool path mapping against the bundled schema."""
    schema = _load_schema(TOOL_PATHS_SCHEMA)
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Invalid tool config at {location}: {exc.message}") from exc


def _default_candidate_paths() -> list[Path]:
    """Return default tool config locations in priority order."""
    return [Path.cwd() / "tools" / "tool_paths.json"]


def _load_candidate(candidate: Path) -> dict[str, str]:
    try:
        data = json.loads(candidate.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read tool config {candidate}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Tool config {candidate} is not valid JSON: {exc}") from exc
    validate_tool_paths(data)
    return dict(data)


def load_tool_paths(path: Path | None = None) -> dict[str, str]:
    """Load tool overrides from JSON config, if one is configured or present."""
    if path:
        return _load_candidate(path)
    env_path = os.environ.get(ENV_TOOL_PATHS)
    if env_path:
        return _load_candidate(Path(env_path))
    for candidate in _default_candidate_paths():
        if candidate.exists():
            return _load_candidate(candidate)
    return {}


def resolve_tools(tool_paths: Mapping[str, str] | None = None) -> ToolCommands:
    """Build the tool command set from config overrides and the environment.

    ``GPG`` in the environment wins over the config file for the signing tool.
    """
    tools = replace(ToolCommands(), **dict(tool_paths or {}))
    gpg_override = os.environ.get(ENV_GPG)
    if gpg_override:
        tools = replace(tools, gpg=gpg_override)
    return tools
