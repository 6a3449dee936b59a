"""
Transport adapters.

Each adapter handles platform-specific communication:
- Telegram: Bot API long-poll getUpdates
- Nostr: NIP-04 encrypted direct messages over relays
"""

from .base import IMAdapter, InboundMessage
from .nostr import NostrAdapter
from .telegram import TelegramAdapter

__all__ = ["IMAdapter", "InboundMessage", "TelegramAdapter", "NostrAdapter"]
