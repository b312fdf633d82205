# pyright: reportAny=false, reportExplicitAny=false
"""Raw configuration sources.

Reads the optional TOML file and the ``REPOSTATE_*`` environment into plain
nested dictionaries. Nothing here validates values; Settings does that.
"""

import copy
import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from repostate.exceptions import ConfigLoadError

ENV_PREFIX: Final = "REPOSTATE_"
# REPOSTATE_STORAGE__TMP_DIR -> storage.tmp_dir
ENV_NESTING: Final = "__"
# Shorthand variables; their values are used verbatim
ENV_ALIASES: Final = {"REPOSTATE_TMPDIR": "storage.tmp_dir"}

_BOOLEANS: Final = {"true": True, "1": True, "false": False, "0": False}

type RawConfig = dict[str, Any]


def read_toml_file(path: Path) -> RawConfig:
    """Parse a TOML configuration file.

    Raises:
        FileNotFoundError: If path does not exist.
        ConfigLoadError: If the file is not valid TOML. The error carries
            the line and column reported by the parser.
    """
    text = path.read_text(encoding="utf-8")
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file {path}: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> RawConfig:
    """Layer override on top of base.

    Tables present in both are merged key by key; any other value from
    override replaces the one in base. The result shares no mutable state
    with either input.
    """
    merged: RawConfig = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def set_nested_key(target: RawConfig, dotted_key: str, value: Any) -> None:
    """Assign value at a dotted path, creating (or replacing) parent tables.

    Example:
        >>> raw = {}
        >>> set_nested_key(raw, "storage.tmp_dir", "/srv/clones")
        >>> raw
        {'storage': {'tmp_dir': '/srv/clones'}}
    """
    *parents, leaf = dotted_key.split(".")
    for part in parents:
        child = target.get(part)
        if not isinstance(child, dict):
            child = target[part] = {}
        target = child
    target[leaf] = value


def coerce_env_value(raw: str) -> Any:
    """Infer the type of an environment variable value.

    true/false/1/0 become booleans, digits become int, decimals become float
    and JSON arrays or objects are decoded. Anything else is kept as a str.

    Example:
        >>> coerce_env_value("true"), coerce_env_value("42"), coerce_env_value("/tmp")
        (True, 42, '/tmp')
    """
    flag = _BOOLEANS.get(raw.strip().lower())
    if flag is not None:
        return flag
    try:
        return int(raw)
    except ValueError:
        pass
    if "." in raw:
        try:
            return float(raw)
        except ValueError:
            pass
    if raw.startswith(("[", "{")):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            pass
    return raw


def parse_env_vars(
    environ: Mapping[str, str] | None = None,
    *,
    prefix: str = ENV_PREFIX,
) -> RawConfig:
    """Collect configuration from environment variables.

    ``REPOSTATE_LOGGING__LEVEL=debug`` becomes ``{"logging": {"level":
    "debug"}}``. Aliases in ENV_ALIASES take precedence over the
    equivalent nested variable.

    Args:
        environ: Environment to read. Defaults to os.environ.
        prefix: Variable name prefix.

    Returns:
        Nested raw configuration.
    """
    env = os.environ if environ is None else environ
    result: RawConfig = {}
    aliased: list[tuple[str, str]] = []

    for name, raw in env.items():
        if name in ENV_ALIASES:
            aliased.append((ENV_ALIASES[name], raw))
            continue
        if not name.startswith(prefix) or name == prefix:
            continue
        dotted = name.removeprefix(prefix).replace(ENV_NESTING, ".").lower()
        set_nested_key(result, dotted, coerce_env_value(raw))

    for dotted, raw in aliased:
        if raw:
            set_nested_key(result, dotted, raw)
    return result
