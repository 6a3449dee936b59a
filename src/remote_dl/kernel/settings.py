"""Process settings for remote-dl.

Settings come from an optional ~/.remote-dl/settings.yaml; environment
variables override file values. Startup fails with ConfigError on values that
cannot be used.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml  # type: ignore

from ..paths import default_save_dir, ensure_home, remote_dl_home
from ..util.conv import coerce_bool
from ..util.fs import atomic_write_text
from .errors import ConfigError

DEFAULT_ARIA2_RPC_URL = "http://localhost:6398/jsonrpc"

DEFAULT_RELAYS: List[str] = [
    "wss://relay.damus.io",
    "wss://nos.lol",
    "wss://relay.snort.social",
    "wss://nostr-pub.wellorder.net",
    "wss://nostr.oxtr.dev",
    "wss://relay.nostr.band",
    "wss://nostr.wine",
    "wss://relay.primal.net",
    "wss://nostr.mom",
    "wss://relay.nostr.info",
]

# (settings.yaml key, environment variable)
_KEYS: Tuple[Tuple[str, str], ...] = (
    ("auth_code", "AUTHCODE"),
    ("telegram_token", "TELEGRAMBOT"),
    ("nostr_enabled", "NOSTR_ENABLED"),
    ("nsec", "NSEC"),
    ("nostr_relays", "NOSTR_RELAYS"),
    ("save_dir", "SAVE_DIR"),
    ("aria2_rpc_url", "ARIA2_RPC_URL"),
    ("aria2_rpc_secret", "ARIA2_RPC_SECRET"),
    ("aria2_timeout_seconds", "ARIA2_TIMEOUT"),
    ("auto_clean_days", "AUTO_CLEAN_DAYS"),
    ("auto_clean_interval_hours", "AUTO_CLEAN_INTERVAL_HOURS"),
    ("auto_clean_initial_delay_seconds", "AUTO_CLEAN_INITIAL_DELAY"),
    ("web_host", "WEB_HOST"),
    ("web_port", "WEB_PORT"),
    ("webdav_port", "WEBDAV_PORT"),
    ("log_level", "LOG_LEVEL"),
)


@dataclass(frozen=True)
class GatewaySettings:
    auth_code: str = ""
    telegram_token: str = ""
    nostr_enabled: bool = True
    nsec: str = ""
    nostr_relays: List[str] = field(default_factory=lambda: list(DEFAULT_RELAYS))
    save_dir: Path = field(default_factory=default_save_dir)
    aria2_rpc_url: str = DEFAULT_ARIA2_RPC_URL
    aria2_rpc_secret: str = ""
    aria2_timeout_seconds: float = 10.0
    auto_clean_days: int = 30
    auto_clean_interval_hours: float = 10.0
    auto_clean_initial_delay_seconds: float = 60.0
    web_host: str = "0.0.0.0"
    web_port: int = 6798
    webdav_port: int = 6799
    log_level: str = "INFO"

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_token)

    @property
    def auto_clean_interval_seconds(self) -> float:
        return self.auto_clean_interval_hours * 3600.0


def settings_path() -> Path:
    return remote_dl_home() / "settings.yaml"


def load_settings_file(path: Optional[Path] = None) -> Dict[str, Any]:
    p = path or settings_path()
    if not p.exists():
        return {}
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read {p}: {e}") from e
    if not isinstance(doc, dict):
        raise ConfigError(f"{p} must contain a mapping")
    return doc


def save_settings_file(doc: Dict[str, Any], path: Optional[Path] = None) -> Path:
    p = path or (ensure_home() / "settings.yaml")
    atomic_write_text(p, yaml.safe_dump(doc, allow_unicode=True, sort_keys=False))
    return p


def _merge(file_doc: Mapping[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    raw: Dict[str, Any] = {}
    for key, env_name in _KEYS:
        if key in file_doc and file_doc[key] is not None:
            raw[key] = file_doc[key]
        env_val = env.get(env_name)
        if env_val is not None and str(env_val).strip() != "":
            raw[key] = env_val
    return raw


def _number(raw: Dict[str, Any], key: str, default: float, *, kind: type = int, minimum: float = 0) -> Any:
    if key not in raw:
        return default
    try:
        value = kind(str(raw[key]).strip()) if isinstance(raw[key], str) else kind(raw[key])
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {raw[key]!r}") from None
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value


def _relays(value: Any) -> List[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(x) for x in value]
    else:
        raise ConfigError("nostr_relays must be a list or a comma-separated string")
    relays = [r.strip() for r in items if r.strip()]
    for r in relays:
        if not r.startswith(("ws://", "wss://")):
            raise ConfigError(f"invalid relay url: {r}")
    return relays


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
) -> GatewaySettings:
    raw = _merge(load_settings_file(path), os.environ if env is None else env)

    interval = _number(raw, "auto_clean_interval_hours", 10.0, kind=float)
    if interval <= 0:
        raise ConfigError("auto_clean_interval_hours must be > 0")

    relays = _relays(raw["nostr_relays"]) if "nostr_relays" in raw else list(DEFAULT_RELAYS)

    save_dir_raw = str(raw.get("save_dir") or "").strip()
    save_dir = Path(save_dir_raw).expanduser() if save_dir_raw else default_save_dir()

    return GatewaySettings(
        auth_code=str(raw.get("auth_code") or ""),
        telegram_token=str(raw.get("telegram_token") or "").strip(),
        nostr_enabled=coerce_bool(raw.get("nostr_enabled"), default=True),
        nsec=str(raw.get("nsec") or "").strip(),
        nostr_relays=relays,
        save_dir=save_dir,
        aria2_rpc_url=str(raw.get("aria2_rpc_url") or DEFAULT_ARIA2_RPC_URL).strip(),
        aria2_rpc_secret=str(raw.get("aria2_rpc_secret") or "").strip(),
        aria2_timeout_seconds=_number(raw, "aria2_timeout_seconds", 10.0, kind=float, minimum=1),
        auto_clean_days=_number(raw, "auto_clean_days", 30),
        auto_clean_interval_hours=interval,
        auto_clean_initial_delay_seconds=_number(raw, "auto_clean_initial_delay_seconds", 60.0, kind=float),
        web_host=str(raw.get("web_host") or "0.0.0.0").strip(),
        web_port=_number(raw, "web_port", 6798, minimum=1),
        webdav_port=_number(raw, "webdav_port", 6799, minimum=1),
        log_level=str(raw.get("log_level") or "INFO").strip().upper(),
    )
