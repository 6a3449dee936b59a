"""
Base class for transport adapters.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List

_BLANK_RUN = re.compile(r"\n{3,}")


@dataclass
class InboundMessage:
    """A normalized inbound chat message.

    `reply` sends text back to the sender on the same transport.
    """

    transport: str
    sender_id: str
    text: str
    reply: Callable[[str], bool] = field(repr=False)
    event_id: str = ""
    from_user: str = ""


class IMAdapter(ABC):
    """
    Abstract base class for transport adapters.

    Each adapter handles:
    - Connecting to the platform
    - Receiving messages (inbound), normalized to InboundMessage
    - Sending messages (outbound)
    - Platform-specific length limits
    """

    platform: str = "unknown"

    # Whether the transport can deliver the same event more than once.
    dedup_required: bool = False

    @abstractmethod
    def connect(self) -> bool:
        """
        Initialize connection to the platform.
        Returns True if successful.
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the platform."""

    @abstractmethod
    def poll(self) -> List[InboundMessage]:
        """Fetch messages received since the last poll."""

    @abstractmethod
    def send_message(self, target: str, text: str) -> bool:
        """
        Send a message to a principal.
        Returns True if successful.
        """

    def identity(self) -> Dict[str, str]:
        """Public identity of the bot on this platform (for the dashboard)."""
        return {}

    def make_inbound(self, sender_id: str, text: str, *, event_id: str = "", from_user: str = "") -> InboundMessage:
        target = str(sender_id)
        return InboundMessage(
            transport=self.platform,
            sender_id=target,
            text=text,
            reply=lambda body: self.send_message(target, body),
            event_id=event_id,
            from_user=from_user,
        )

    def summarize(self, text: str, max_chars: int = 900, max_lines: int = 8) -> str:
        """Fit reply text into a chat bubble.

        Line endings are normalized, runs of blank lines collapse to one, and
        the result is cut to `max_lines` lines and `max_chars` characters.
        """
        if not text:
            return ""
        t = text.replace("\r\n", "\n").replace("\r", "\n").expandtabs(2)
        t = _BLANK_RUN.sub("\n\n", "\n".join(ln.rstrip() for ln in t.split("\n"))).strip()
        out = "\n".join(t.split("\n")[:max_lines]).rstrip()
        if len(out) > max_chars:
            out = out[: max(0, max_chars - 1)] + "…"
        return out
