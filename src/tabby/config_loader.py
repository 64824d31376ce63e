"""Load SiteConfig from ``_config.yml`` if present.

Merges file config with command-line flags.  Flags override the file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml

from tabby._errors import ConfigError
from tabby.config import Flags, SiteConfig

_CONFIG_NAMES = ("_config.yml", "_config.yaml", "_config.toml")

# _config.yml key -> SiteConfig field
_FIELD_KEYS: dict[str, str] = {
    "destination": "destination",
    "layouts_dir": "layouts_dir",
    "includes_dir": "includes_dir",
    "data_dir": "data_dir",
    "include": "include",
    "exclude": "exclude",
    "keep_files": "keep_files",
    "plugins": "plugins",
    "gems": "plugins",
    "permalink": "permalink",
    "url": "absolute_url",
    "baseurl": "baseurl",
    "theme": "theme",
    "show_drafts": "drafts",
    "future": "future",
    "unpublished": "unpublished",
    "strict_routes": "strict_routes",
    "host": "host",
    "port": "port",
}

_LIST_FIELDS = frozenset({"include", "exclude", "keep_files", "plugins"})


def load_config(source: Path, flags: Flags | None = None) -> SiteConfig:
    """Load SiteConfig for the site at *source*, then apply *flags*.

    Looks for ``_config.yml``, ``_config.yaml`` or ``_config.toml``.  A
    missing file yields the defaults.

    Raises:
        ConfigError: If the config file cannot be parsed or has values of
            the wrong shape.

    """
    flags = flags or Flags()
    root = (flags.source or source).resolve()
    data = read_config_file(root)

    config = SiteConfig(source=root)
    for key, value in data.items():
        name = _FIELD_KEYS.get(key)
        if name is not None:
            _set_field(config, name, key, value)
    if "collections" in data:
        config.collections = {**config.collections, **_normalize_collections(data["collections"])}

    config.variables = dict(data)
    config.variables["url"] = config.absolute_url
    config.variables["baseurl"] = config.baseurl
    config.apply_flags(flags)
    return config


def read_config_file(root: Path) -> dict[str, Any]:
    """Read the site config from yaml/toml if present.  Returns empty dict otherwise."""
    for name in _CONFIG_NAMES:
        path = root / name
        if path.is_file():
            if path.suffix == ".toml":
                return _parse_toml(path)
            return _parse_yaml(path)
    return {}


def _parse_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        msg = f"{path}: invalid YAML: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level"
        raise ConfigError(msg)
    return data


def _parse_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"{path}: invalid TOML: {exc}"
        raise ConfigError(msg) from exc


def _set_field(config: SiteConfig, name: str, key: str, value: Any) -> None:
    if name in _LIST_FIELDS:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            msg = f"config key {key!r} must be a list, got {type(value).__name__}"
            raise ConfigError(msg)
        value = [str(v) for v in value]
    elif name == "destination":
        value = Path(str(value))
    elif name == "port":
        value = int(value)
    elif name in ("drafts", "future", "unpublished", "strict_routes"):
        value = bool(value)
    elif value is None:
        value = ""
    else:
        value = str(value)
    setattr(config, name, value)


def _normalize_collections(value: Any) -> dict[str, dict[str, Any]]:
    """Accept both the list and the mapping forms of ``collections``."""
    if isinstance(value, list):
        return {str(name): {} for name in value}
    if isinstance(value, dict):
        return {str(name): dict(opts or {}) for name, opts in value.items()}
    msg = f"config key 'collections' must be a list or mapping, got {type(value).__name__}"
    raise ConfigError(msg)
