"""Project configuration.

Settings are read, highest precedence first, from:

1. Environment variables (``API_SEMVER_LOG_LEVEL``, ``API_SEMVER_FAIL_ON_BREAKING``)
2. ``api-semver.toml`` in the project root
3. ``[tool.api-semver]`` in the project's ``pyproject.toml``
4. Built-in defaults (this file)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomli import TOMLDecodeError
from tomli import loads as load_toml

from .errors import ApiSemverError
from .versions import HEAD

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONFIG_FILE = "api-semver.toml"
PYPROJECT_SECTION = "api-semver"

_ENV_PREFIX = "API_SEMVER_"
_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(ApiSemverError):
    """Raised when a configuration file is unreadable or invalid."""


class LintConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ignore_packages: list[str] = Field(
        default_factory=list,
        description="fnmatch patterns of package paths left out of the comparison.",
    )
    fail_on_breaking: bool = False
    head_name: str = Field(
        default=HEAD,
        min_length=1,
        description="Name under which the checked-out commit is listed among the versions.",
    )
    log_level: LogLevel = "WARNING"
    log_format: Literal["console", "json"] = "console"


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> LintConfig:
    """Load configuration from ``path``, or discover it in the working directory."""

    data: dict[str, Any] = {}
    if path is not None:
        data = _read_file(Path(path))
    else:
        for candidate in (Path("pyproject.toml"), Path(CONFIG_FILE)):
            if candidate.is_file():
                data.update(_read_file(candidate))
    data.update(_env_overrides(os.environ if environ is None else environ))
    try:
        return LintConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def _read_file(path: Path) -> dict[str, Any]:
    try:
        document = load_toml(path.read_text())
    except (OSError, UnicodeDecodeError, TOMLDecodeError) as exc:
        raise ConfigError(f"unable to read configuration {path}: {exc}") from exc
    if path.name == "pyproject.toml":
        return dict(document.get("tool", {}).get(PYPROJECT_SECTION, {}))
    return document


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    level = environ.get(f"{_ENV_PREFIX}LOG_LEVEL")
    if level:
        overrides["log_level"] = level.upper()
    fail = environ.get(f"{_ENV_PREFIX}FAIL_ON_BREAKING")
    if fail:
        overrides["fail_on_breaking"] = fail.strip().lower() in _TRUTHY
    return overrides
