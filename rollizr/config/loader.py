"""YAML configuration loading for Rollizr.

String values may embed environment placeholders of the form
``${VAR:default}``; ``VAR`` is looked up in the environment (after any
``.env`` file has been loaded by the CLI) and ``default`` is used when it is
unset. Placeholders are resolved anywhere in nested mappings and lists, so
thesis files loaded through the same function support them too.

A missing file is reported as :class:`FileNotFoundError`; a file that is not
a YAML mapping is reported as :class:`~rollizr.exceptions.ConfigError`.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict

import yaml

from ..exceptions import ConfigError

_PLACEHOLDER = re.compile(r"\${([^:}]+)(?::([^}]*))?}")


def _substitute(text: str) -> str:
    return _PLACEHOLDER.sub(lambda m: os.getenv(m.group(1), m.group(2) or ""), text)


def resolve_placeholders(value: Any) -> Any:
    """Return ``value`` with every string placeholder replaced."""
    if isinstance(value, str):
        return _substitute(value)
    if isinstance(value, dict):
        return {key: resolve_placeholders(item) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_placeholders(item) for item in value]
    return value


def load_config(path: str) -> Dict[str, Any]:
    """Read a YAML mapping from ``path`` and resolve its placeholders.

    Parameters
    ----------
    path: str
        Location of the YAML file.

    Returns
    -------
    Dict[str, Any]
        The resolved mapping; an empty file yields ``{}``.
    """
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")
    return resolve_placeholders(data)


def get_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return ``config[name]`` as a mapping, or ``{}`` when it is absent or empty."""
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")
    return section
