"""
Nostr encrypted direct message adapter (NIP-04, kind 4).

Each poll opens the relay pool, subscribes to DMs addressed to the bot
pubkey since the newest event already seen, drains the message pool and
closes. Relays overlap, and the `since` bound is inclusive, so the same
event routinely arrives more than once; the bridge dedups on event id.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Dict, List, Optional

from pynostr.encrypted_dm import EncryptedDirectMessage
from pynostr.event import EventKind
from pynostr.filters import Filters, FiltersList
from pynostr.key import PrivateKey
from pynostr.relay_manager import RelayManager

from ....kernel.errors import ConfigError
from ....util.conv import short
from .base import IMAdapter, InboundMessage

logger = logging.getLogger("remote_dl.im.nostr")

DEFAULT_POLL_TIMEOUT_S = 5.0
DEFAULT_MAX_CHARS = 8000
DEFAULT_MAX_LINES = 200


def load_private_key(nsec: str = "") -> PrivateKey:
    """Parse an nsec, or generate a fresh key when none is configured."""
    raw = (nsec or "").strip()
    if not raw:
        key = PrivateKey()
        logger.warning(
            "nostr: no NSEC configured, generated a new identity %s. "
            "Set NSEC=%s to keep it across restarts.",
            key.public_key.bech32(),
            key.bech32(),
        )
        return key
    try:
        if raw.startswith("nsec"):
            return PrivateKey.from_nsec(raw)
        return PrivateKey(bytes.fromhex(raw))
    except (ValueError, TypeError) as e:
        raise ConfigError("Invalid Nostr private key", details={"error": str(e)}) from e


class NostrAdapter(IMAdapter):
    """Nostr DM adapter. The principal of a message is the sender pubkey (hex)."""

    platform = "nostr"
    dedup_required = True

    def __init__(
        self,
        key: PrivateKey,
        relays: List[str],
        *,
        poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
        max_chars: int = DEFAULT_MAX_CHARS,
        max_lines: int = DEFAULT_MAX_LINES,
    ):
        self.key = key
        self.relays = list(relays)
        self.poll_timeout_s = poll_timeout_s
        self.max_chars = max_chars
        self.max_lines = max_lines

        self._pubkey = key.public_key.hex()
        self._since = 0
        self._connected = False

    @property
    def npub(self) -> str:
        return self.key.public_key.bech32()

    def identity(self) -> Dict[str, str]:
        return {"npub": self.npub, "pubkey": self._pubkey}

    def _relay_manager(self) -> RelayManager:
        manager = RelayManager(timeout=self.poll_timeout_s)
        for url in self.relays:
            manager.add_relay(url)
        return manager

    def connect(self) -> bool:
        if not self.relays:
            logger.error("nostr: no relays configured")
            return False
        # Only DMs sent after startup are handled.
        self._since = int(time.time())
        self._connected = True
        logger.info("nostr connected as %s (%d relays)", self.npub, len(self.relays))
        return True

    def disconnect(self) -> None:
        self._connected = False
        logger.info("nostr disconnected")

    def poll(self) -> List[InboundMessage]:
        if not self._connected:
            return []

        filters = FiltersList(
            [
                Filters(
                    kinds=[EventKind.ENCRYPTED_DIRECT_MESSAGE],
                    pubkey_refs=[self._pubkey],
                    since=self._since,
                )
            ]
        )
        subscription_id = uuid.uuid4().hex
        manager = self._relay_manager()
        try:
            manager.add_subscription_on_all_relays(subscription_id, filters)
            manager.run_sync()
            events = []
            while manager.message_pool.has_events():
                events.append(manager.message_pool.get_event().event)
        finally:
            manager.close_all_relay_connections()

        messages: List[InboundMessage] = []
        now = int(time.time())
        for event in sorted(events, key=lambda e: int(e.created_at or 0)):
            if event.pubkey == self._pubkey:
                continue
            text = self._decrypt(event.content, event.pubkey)
            if text is None:
                continue
            # sender-controlled timestamp; never move the cursor past now
            self._since = max(self._since, min(int(event.created_at or 0), now))
            messages.append(self.make_inbound(event.pubkey, text, event_id=str(event.id)))
        return messages

    def _decrypt(self, content: str, sender: str) -> Optional[str]:
        try:
            return self.key.decrypt_message(content, sender)
        except (ValueError, TypeError) as e:
            logger.warning("nostr: cannot decrypt DM from %s: %s", short(sender), e)
            return None

    def send_message(self, target: str, text: str) -> bool:
        if not text:
            return True
        body = self.summarize(text, self.max_chars, self.max_lines)

        dm = EncryptedDirectMessage()
        dm.encrypt(self.key.hex(), recipient_pubkey=target, cleartext_content=body)
        event = dm.to_event()
        event.sign(self.key.hex())

        manager = self._relay_manager()
        try:
            manager.publish_event(event)
            manager.run_sync()
        except OSError as e:
            logger.warning("nostr: publish to %s failed: %s", short(target), e)
            return False
        finally:
            manager.close_all_relay_connections()
        return True
