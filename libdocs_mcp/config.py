"""Configuration loader - project defaults from .context7rc.json, server settings from ENV."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
import json
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".context7rc.json"

DEFAULT_MINIMUM_TOKENS = 10000
MAXIMUM_TOKENS = 100000
DEFAULT_API_URL = "https://context7.com/api"


def _freeze_versions(versions: Mapping[str, Any]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType({lang: frozenset(v) for lang, v in versions.items()})


@dataclass(frozen=True)
class DocsConfig:
    """Project documentation defaults. Built once at startup, never mutated."""

    default_lang: str = "python"
    default_version: str = "3.11"
    supported_langs: frozenset[str] = frozenset({"python"})
    supported_versions: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: _freeze_versions({"python": ["3.11"]})
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "defaultLang": self.default_lang,
            "defaultVersion": self.default_version,
            "supportedLangs": sorted(self.supported_langs),
            "supportedVersions": {
                lang: sorted(versions) for lang, versions in self.supported_versions.items()
            },
        }


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


# file key -> (dataclass field, type check, converter)
_FILE_KEYS: dict[str, tuple[str, Any, Any]] = {
    "defaultLang": ("default_lang", lambda v: isinstance(v, str), str),
    "defaultVersion": ("default_version", lambda v: isinstance(v, str), str),
    "supportedLangs": ("supported_langs", _is_str_list, frozenset),
    "supportedVersions": (
        "supported_versions",
        lambda v: isinstance(v, dict) and all(_is_str_list(x) for x in v.values()),
        _freeze_versions,
    ),
}


def load_config(config_path: str | Path | None = None) -> DocsConfig:
    """
    Load project documentation defaults.

    Top-level keys found in the file replace the built-in value wholesale
    (shallow merge); keys missing from the file keep their default. A missing
    file yields the defaults; an unreadable or malformed one is discarded
    with a warning.

    Args:
        config_path: Path to the JSON config. If None, uses ./.context7rc.json

    Returns:
        DocsConfig snapshot.
    """
    path = Path(config_path) if config_path is not None else Path.cwd() / CONFIG_FILENAME
    defaults = DocsConfig()

    if not path.exists():
        return defaults

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to parse {path}, using defaults: {e}")
        return defaults

    if not isinstance(data, dict):
        logger.warning(f"Failed to parse {path}, using defaults: top level is not an object")
        return defaults

    overrides: dict[str, Any] = {}
    for key, (attr, check, convert) in _FILE_KEYS.items():
        if key not in data:
            continue
        if not check(data[key]):
            logger.warning(f"Ignoring {key} in {path}: unexpected type {type(data[key]).__name__}")
            continue
        overrides[attr] = convert(data[key])

    return replace(defaults, **overrides)


@dataclass(frozen=True)
class ServerSettings:
    """Process settings taken from the environment."""

    minimum_tokens: int = DEFAULT_MINIMUM_TOKENS
    transport: str = "stdio"
    api_url: str = DEFAULT_API_URL
    log_level: str = "info"
    log_format: str = "text"  # "text" | "json"


def _parse_minimum_tokens(raw: str | None) -> int:
    if not raw:
        return DEFAULT_MINIMUM_TOKENS
    try:
        value = int(raw, 10)
    except ValueError:
        value = 0
    if value <= 0:
        logger.warning(
            f"Invalid DEFAULT_MINIMUM_TOKENS value {raw!r}; "
            f"using default value of {DEFAULT_MINIMUM_TOKENS}"
        )
        return DEFAULT_MINIMUM_TOKENS
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> ServerSettings:
    """Read server settings from the environment (os.environ by default)."""
    env = os.environ if environ is None else environ

    log_format = env.get("LIBDOCS_LOG_FORMAT", "text").lower()
    if log_format not in ("text", "json"):
        logger.warning(f"Invalid LIBDOCS_LOG_FORMAT {log_format!r}; using text")
        log_format = "text"

    return ServerSettings(
        minimum_tokens=_parse_minimum_tokens(env.get("DEFAULT_MINIMUM_TOKENS")),
        transport=env.get("TRANSPORT", "stdio"),
        api_url=env.get("LIBDOCS_API_URL", DEFAULT_API_URL).rstrip("/"),
        log_level=env.get("LIBDOCS_LOG_LEVEL", "info"),
        log_format=log_format,
    )
