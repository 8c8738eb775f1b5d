from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "sysd-manager"
CONFIG_PATH = CONFIG_DIR / "settings.yaml"

DEFAULT_CONFIG = {
    "systemctl": "systemctl",
    "elevation": {
        "primary": ["pkexec"],
        "fallback": ["sudo", "-S", "-p", ""],
    },
    "timeouts": {
        "listing": 60,
        "property": 10,
        "action": 300,
    },
}


@dataclass(frozen=True)
class Settings:
    systemctl: str = "systemctl"
    primary_elevation: Tuple[str, ...] = ("pkexec",)
    fallback_elevation: Tuple[str, ...] = ("sudo", "-S", "-p", "")
    listing_timeout: float = 60
    property_timeout: float = 10
    action_timeout: float = 300
    source: Optional[Path] = field(default=None, compare=False)

    @classmethod
    def from_config(cls, config: Dict, source: Optional[Path] = None) -> "Settings":
        defaults = cls()
        elevation = _section(config, "elevation")
        timeouts = _section(config, "timeouts")

        systemctl = config.get("systemctl", defaults.systemctl)
        if not isinstance(systemctl, str) or not systemctl.strip():
            logger.warning("Ignoring invalid systemctl setting: %r", systemctl)
            systemctl = defaults.systemctl

        return cls(
            systemctl=systemctl.strip(),
            primary_elevation=_command(elevation, "primary", defaults.primary_elevation),
            fallback_elevation=_command(elevation, "fallback", defaults.fallback_elevation),
            listing_timeout=_timeout(timeouts, "listing", defaults.listing_timeout),
            property_timeout=_timeout(timeouts, "property", defaults.property_timeout),
            action_timeout=_timeout(timeouts, "action", defaults.action_timeout),
            source=source,
        )


def _section(config: Dict, key: str) -> Dict:
    value = config.get(key) or {}
    if not isinstance(value, dict):
        logger.warning("Ignoring invalid %r section in settings", key)
        return {}
    return value


def _command(section: Dict, key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = section.get(key)
    if raw is None:
        return default
    if isinstance(raw, str):
        raw = raw.split()
    if not isinstance(raw, list) or not raw or not all(isinstance(a, str) for a in raw):
        logger.warning("Ignoring invalid elevation command %r: %r", key, raw)
        return default
    return tuple(raw)


def _timeout(section: Dict, key: str, default: float) -> float:
    raw = section.get(key, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid %r timeout: %r", key, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %r timeout: %r", key, raw)
        return default
    return value


def ensure_config(path: Optional[Path] = None) -> Dict:
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(
            yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False),
            encoding="utf-8",
        )
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.warning("Could not parse %s, using defaults: %s", path, exc)
        return dict(DEFAULT_CONFIG)
    if not isinstance(loaded, dict):
        return dict(DEFAULT_CONFIG)
    return loaded


def load_settings(path: Optional[Path] = None) -> Settings:
    path = path or CONFIG_PATH
    return Settings.from_config(ensure_config(path), source=path)

