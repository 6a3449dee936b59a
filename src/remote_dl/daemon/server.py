"""remote-dl process wiring.

serve_forever() starts one bridge thread per enabled transport, the
retention janitor and the status page, then blocks until SIGINT/SIGTERM.
"""
from __future__ import annotations

import logging
import signal
import threading
from typing import Any, List, Optional

from ..kernel.context import GatewayContext
from ..kernel.settings import GatewaySettings, load_settings
from ..ports.im.adapters.base import IMAdapter
from ..ports.im.adapters.nostr import NostrAdapter, load_private_key
from ..ports.im.adapters.telegram import TelegramAdapter
from ..ports.im.bridge import IMBridge
from ..ports.web.app import WebServer
from ..util.obslog import setup_root_json_logging
from .janitor import RetentionJanitor

logger = logging.getLogger("remote_dl.daemon")

BRIDGE_POLL_INTERVAL_S = 0.5


def build_adapters(settings: GatewaySettings) -> List[IMAdapter]:
    """Adapters for every enabled transport. Raises ConfigError on bad key material."""
    adapters: List[IMAdapter] = []
    if settings.telegram_enabled:
        adapters.append(TelegramAdapter(settings.telegram_token))
    else:
        logger.info("telegram disabled: no TELEGRAMBOT token configured")
    if settings.nostr_enabled:
        adapters.append(NostrAdapter(load_private_key(settings.nsec), settings.nostr_relays))
    else:
        logger.info("nostr disabled")
    return adapters


def _bridge_thread(bridge: IMBridge, stop_event: threading.Event) -> threading.Thread:
    def _run() -> None:
        if not bridge.start():
            return
        try:
            bridge.run_forever(BRIDGE_POLL_INTERVAL_S, stop_event=stop_event)
        finally:
            bridge.stop()

    return threading.Thread(target=_run, name=f"remote-dl-{bridge.transport}", daemon=True)


def serve_forever(settings: Optional[GatewaySettings] = None, stop_event: Optional[threading.Event] = None) -> int:
    s = settings or load_settings()
    setup_root_json_logging(component="daemon", level=s.log_level)

    s.save_dir.mkdir(parents=True, exist_ok=True)
    ctx = GatewayContext.from_settings(s)
    logger.info("remote-dl %s starting, storage root %s", ctx.version, s.save_dir)
    if ctx.gate.secret != s.auth_code.strip():
        logger.warning("no usable AUTHCODE configured, generated auth code: %s", ctx.gate.secret)

    if not ctx.engine.health_check():
        logger.warning("aria2 is not reachable at %s; commands will fail until it is", s.aria2_rpc_url)

    stop = stop_event or threading.Event()

    def _signal_handler(signum: int, frame: Any) -> None:
        stop.set()

    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    threads = [_bridge_thread(IMBridge(ctx, a), stop) for a in build_adapters(s)]
    for t in threads:
        t.start()

    janitor = RetentionJanitor(
        s.save_dir,
        s.auto_clean_days,
        s.auto_clean_interval_seconds,
        initial_delay_s=s.auto_clean_initial_delay_seconds,
    )
    janitor.start()

    web = WebServer(ctx, s.web_host, s.web_port)
    web.start()

    while not stop.is_set():
        stop.wait(1.0)

    logger.info("shutting down")
    web.stop()
    janitor.stop()
    for t in threads:
        t.join(timeout=10.0)
    logger.info("stopped")
    return 0
