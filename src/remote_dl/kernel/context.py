from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from .. import __version__
from ..engine.aria2 import Aria2Client
from .auth import AuthorizationGate, resolve_secret
from .dedup import EventDedupCache
from .settings import GatewaySettings


@dataclass
class GatewayContext:
    """Process-owned gateway state passed to every bridge and handler.

    `engine` is anything with the Aria2Client job methods; tests pass fakes.
    """

    settings: GatewaySettings
    gate: AuthorizationGate
    dedup: EventDedupCache
    engine: Any
    version: str = __version__
    started_at: float = field(default_factory=time.time)
    _identities: Dict[str, str] = field(default_factory=dict, repr=False)
    _enabled: Dict[str, bool] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "GatewayContext":
        engine = Aria2Client(
            settings.aria2_rpc_url,
            settings.save_dir,
            timeout_s=settings.aria2_timeout_seconds,
            secret=settings.aria2_rpc_secret,
        )
        return cls(
            settings=settings,
            gate=AuthorizationGate(resolve_secret(settings.auth_code)),
            dedup=EventDedupCache(),
            engine=engine,
        )

    def set_identity(self, key: str, value: str) -> None:
        with self._lock:
            self._identities[key] = str(value or "")

    def identity(self, key: str) -> str:
        with self._lock:
            return self._identities.get(key, "")

    def set_enabled(self, transport: str, enabled: bool) -> None:
        with self._lock:
            self._enabled[transport] = bool(enabled)

    def enabled(self, transport: str) -> bool:
        with self._lock:
            return self._enabled.get(transport, False)
