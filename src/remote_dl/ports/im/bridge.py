"""
IM bridge: one poll loop per transport adapter.

Inbound pipeline per message:
  dedup (transports that redeliver) -> authorization -> parse -> dispatch
  -> format -> reply on the same transport
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from ...kernel.context import GatewayContext
from .adapters.base import IMAdapter, InboundMessage
from .commands import parse_message
from .formatting import ACCESS_GRANTED, AUTH_REQUIRED, GENERIC_ERROR, format_result
from .handlers import dispatch

logger = logging.getLogger("remote_dl.im.bridge")


class IMBridge:
    """
    Coordinates one adapter with the shared gateway state.

    The bridge never raises out of message handling: every failure becomes a
    reply to the sender and a log line.
    """

    def __init__(self, ctx: GatewayContext, adapter: IMAdapter):
        self.ctx = ctx
        self.adapter = adapter
        self._running = False

    @property
    def transport(self) -> str:
        return self.adapter.platform

    def start(self) -> bool:
        """Connect the adapter and publish its identity."""
        if not self.adapter.connect():
            logger.error("bridge start failed: %s adapter did not connect", self.transport)
            self.ctx.set_enabled(self.transport, False)
            return False

        for key, value in self.adapter.identity().items():
            self.ctx.set_identity(f"{self.transport}_{key}", value)
        self.ctx.set_enabled(self.transport, True)
        self._running = True
        logger.info("bridge started", extra={"transport": self.transport})
        return True

    def stop(self) -> None:
        self._running = False
        self.adapter.disconnect()
        logger.info("bridge stopped", extra={"transport": self.transport})

    @property
    def running(self) -> bool:
        return self._running

    def run_once(self) -> int:
        """Poll the adapter once and handle everything it returned."""
        handled = 0
        for msg in self.adapter.poll():
            if self.handle_inbound(msg):
                handled += 1
        return handled

    def run_forever(self, poll_interval: float = 0.5, stop_event: Optional[threading.Event] = None) -> None:
        """Run the bridge loop until stop() or stop_event is set."""
        while self._running and not (stop_event is not None and stop_event.is_set()):
            try:
                self.run_once()
            except Exception:
                logger.exception("bridge loop error", extra={"transport": self.transport})

            if stop_event is not None:
                stop_event.wait(poll_interval)
            else:
                time.sleep(poll_interval)

    def handle_inbound(self, msg: InboundMessage) -> bool:
        """
        Handle one inbound message.

        Returns False when the message was dropped without a reply (empty
        text or an already seen event).
        """
        if not (msg.text or "").strip():
            return False

        if self.adapter.dedup_required:
            if self.ctx.dedup.seen(msg.event_id):
                logger.debug("duplicate event dropped", extra={"transport": msg.transport, "event_id": msg.event_id})
                return False
            self.ctx.dedup.mark_seen(msg.event_id)

        try:
            reply = self._respond(msg)
        except Exception:
            logger.exception(
                "message handling failed",
                extra={"transport": msg.transport, "principal": msg.sender_id},
            )
            reply = GENERIC_ERROR

        if not msg.reply(reply):
            logger.warning("reply not delivered", extra={"transport": msg.transport, "principal": msg.sender_id})
        return True

    def _respond(self, msg: InboundMessage) -> str:
        gate = self.ctx.gate
        if not gate.is_authorized(msg.transport, msg.sender_id):
            if gate.try_authorize(msg.transport, msg.sender_id, msg.text.strip()):
                logger.info("principal authorized", extra={"transport": msg.transport, "principal": msg.sender_id})
                return ACCESS_GRANTED
            return AUTH_REQUIRED

        parsed = parse_message(msg.text)
        if parsed is None:
            return GENERIC_ERROR
        result = dispatch(self.ctx, parsed, msg.sender_id)
        logger.info(
            "command %s -> %s",
            parsed.type.value,
            "ok" if result.ok else (result.error.code if result.error else "error"),
            extra={"transport": msg.transport, "principal": msg.sender_id, "op": parsed.type.value},
        )
        return format_result(result)
