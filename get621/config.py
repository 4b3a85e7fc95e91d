"""Runtime settings — base URL, content mode, cooldown and transport options.

Settings are resolved in layers: built-in defaults, then an optional YAML
file, then ``GET621_*`` environment variables, then CLI flags.

Example config file (``~/.config/get621/config.yaml``)::

    nsfw: false
    cooldown: 1.5
    timeout: 60
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Mapping

import yaml

from get621 import __version__
from get621.errors import InvalidArgumentError

SAFE_BASE_URL = "https://e926.net"
UNSAFE_BASE_URL = "https://e621.net"

DEFAULT_COOLDOWN = 1.2  # seconds
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_MAX_POOL_PAGES = 500
DEFAULT_USER_AGENT = f"get621/{__version__} (by nasso on e621)"

DEFAULT_CONFIG_PATH = Path("~/.config/get621/config.yaml")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

# field annotations are strings under postponed evaluation
_KINDS = {"bool": bool, "str": str, "int": int, "float": float}


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one run."""

    nsfw: bool = False
    url: str = ""  # explicit override, wins over nsfw
    cooldown: float = DEFAULT_COOLDOWN
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    max_pool_pages: int = DEFAULT_MAX_POOL_PAGES

    @property
    def base_url(self) -> str:
        if self.url:
            return self.url.rstrip("/")
        return UNSAFE_BASE_URL if self.nsfw else SAFE_BASE_URL


def _coerce(name: str, value, expected: type):
    """Convert a raw config value to the type of the matching Settings field."""
    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
            return value.strip().lower() in _TRUE
        raise InvalidArgumentError(f"Setting '{name}' should be a boolean, got {value!r}")

    if expected in (int, float):
        if isinstance(value, bool):
            raise InvalidArgumentError(f"Setting '{name}' should be a number, got {value!r}")
        try:
            number = expected(value)
        except (TypeError, ValueError):
            raise InvalidArgumentError(
                f"Setting '{name}' should be a number, got {value!r}"
            ) from None
        if number < 0:
            raise InvalidArgumentError(f"Setting '{name}' cannot be negative")
        return number

    if not isinstance(value, str):
        raise InvalidArgumentError(f"Setting '{name}' should be a string, got {value!r}")
    return value


def _apply(settings: Settings, values: Mapping[str, object], source: str) -> Settings:
    types = {f.name: f.type for f in fields(Settings)}
    changes = {}
    for name, value in values.items():
        if name not in types:
            raise InvalidArgumentError(f"Unknown setting '{name}' in {source}")
        changes[name] = _coerce(name, value, _KINDS[str(types[name])])
    return replace(settings, **changes)


def load_file(path: str | Path) -> dict:
    """Parse a YAML config file into a mapping of setting names to values."""
    path = Path(path).expanduser()
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise InvalidArgumentError(f"Cannot read config file {path}: {e.strerror}") from e
    except yaml.YAMLError as e:
        raise InvalidArgumentError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Config file {path} should contain a mapping")
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def _from_env(environ: Mapping[str, str]) -> dict:
    values = {}
    if environ.get("GET621_URL"):
        values["url"] = environ["GET621_URL"]
    if "GET621_NSFW" in environ:
        values["nsfw"] = environ["GET621_NSFW"]
    if environ.get("GET621_COOLDOWN"):
        values["cooldown"] = environ["GET621_COOLDOWN"]
    return values


def load_settings(
    config_path: str | Path | None = None,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings from file, environment and explicit overrides.

    Args:
        config_path: YAML file to read. Defaults to ``GET621_CONFIG`` or
                     ``~/.config/get621/config.yaml`` when that file exists.
        overrides: Values from the command line; ``None`` entries are ignored.
        environ: Environment mapping, ``os.environ`` when omitted.
    """
    environ = os.environ if environ is None else environ
    settings = Settings()

    if config_path is None:
        config_path = environ.get("GET621_CONFIG") or None
    if config_path is None and DEFAULT_CONFIG_PATH.expanduser().is_file():
        config_path = DEFAULT_CONFIG_PATH
    if config_path is not None:
        settings = _apply(settings, load_file(config_path), str(config_path))

    settings = _apply(settings, _from_env(environ), "environment")

    if overrides:
        explicit = {k: v for k, v in overrides.items() if v is not None}
        settings = _apply(settings, explicit, "command line")

    return settings
