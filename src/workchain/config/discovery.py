"""Config file discovery and loading.

Walk-up finder locates the nearest workchain configuration, similar to how
git finds .git/. Two file shapes are recognised in each directory, checked
in this order:

- ``workchain.toml`` — settings at the top level.
- ``pyproject.toml`` — settings under ``[tool.workchain]``; a pyproject
  without that table is ignored and the walk continues upward.

The WORKCHAIN_CONFIG env var short-circuits the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from workchain.errors import ConfigurationError

CONFIG_FILENAME = "workchain.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "WORKCHAIN_CONFIG"


def _read_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigurationError(msg) from exc


def _has_tool_table(pyproject: Path) -> bool:
    # An unrelated pyproject that fails to parse is not ours to report.
    try:
        data = _read_toml(pyproject)
    except ConfigurationError:
        return False
    return "workchain" in data.get("tool", {})


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for workchain settings.

    Returns the path to the config file, or None if not found.
    Checks WORKCHAIN_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = current / PYPROJECT_FILENAME
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject
        if current.parent == current:
            return None
        current = current.parent


def load_table(path: Path | None) -> dict[str, Any]:
    """Return the workchain settings table stored in *path*.

    Missing files yield an empty table. For ``pyproject.toml`` only the
    ``[tool.workchain]`` table is returned.
    """
    if path is None or not path.is_file():
        return {}
    data = _read_toml(path)
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get("workchain", {})
        return dict(table)
    return data
