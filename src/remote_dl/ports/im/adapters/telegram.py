"""
Telegram Bot API adapter.

- _api(): call wrapper with JSON encoding, timeout, error handling
- poll(): long-poll getUpdates, text messages only
- Rate limiting and message length limits on send
"""

from __future__ import annotations

import json
import logging
import threading
import time
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional

from .base import IMAdapter, InboundMessage

logger = logging.getLogger("remote_dl.im.telegram")

# Telegram API limits
TELEGRAM_MAX_MESSAGE_LENGTH = 4096
DEFAULT_MAX_CHARS = 4096
DEFAULT_MAX_LINES = 64

API_BASE = "https://api.telegram.org"


class ChatThrottle:
    """Per-chat minimum spacing between outgoing messages.

    Telegram allows roughly one message per second into the same chat.
    """

    def __init__(self, min_interval_s: float = 1.0):
        self.min_interval_s = float(min_interval_s)
        self._next_ok: Dict[str, float] = {}
        self._lock = threading.Lock()

    def reserve(self, chat_id: str) -> float:
        """Claim the next send slot for `chat_id`; returns seconds to wait first."""
        with self._lock:
            now = time.monotonic()
            for stale in [c for c, t in self._next_ok.items() if t <= now]:
                del self._next_ok[stale]
            slot = max(now, self._next_ok.get(chat_id, 0.0))
            self._next_ok[chat_id] = slot + self.min_interval_s
            return slot - now

    def wait(self, chat_id: str) -> None:
        delay = self.reserve(chat_id)
        if delay > 0:
            time.sleep(delay)


class TelegramAdapter(IMAdapter):
    """
    Telegram Bot API adapter using long-poll getUpdates.

    The principal of a message is its chat id.
    """

    platform = "telegram"

    def __init__(
        self,
        token: str,
        *,
        api_base: str = API_BASE,
        poll_timeout_s: int = 25,
        max_chars: int = DEFAULT_MAX_CHARS,
        max_lines: int = DEFAULT_MAX_LINES,
    ):
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.poll_timeout_s = poll_timeout_s
        self.max_chars = max_chars
        self.max_lines = max_lines

        self._offset = 0
        self._throttle = ChatThrottle(min_interval_s=1.0)
        self._connected = False
        self._bot_username = ""

    def _api(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: int = 35,
    ) -> Dict[str, Any]:
        """
        Call Telegram Bot API.

        Uses JSON body for consistent encoding (handles non-ASCII text).
        Never raises; failures come back as {"ok": False, "error": ...}.
        """
        url = f"{self.api_base}/bot{self.token}/{method}"
        data = json.dumps(params or {}, ensure_ascii=False).encode("utf-8")

        req = urllib.request.Request(url, data=data, method="POST")
        req.add_header("Content-Type", "application/json; charset=utf-8")
        req.add_header("Accept", "application/json")

        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                body = resp.read().decode("utf-8", errors="replace")
                return json.loads(body)
        except urllib.error.HTTPError as e:
            err_text = ""
            try:
                err_text = e.read().decode("utf-8", "ignore")[:300]
            except OSError:
                pass
            logger.warning("telegram api %s: HTTP %s - %s", method, e.code, err_text)
            return {"ok": False, "error": str(e), "http_status": e.code}
        except (OSError, ValueError) as e:
            logger.warning("telegram api %s: %s", method, e)
            return {"ok": False, "error": str(e)}

    @property
    def bot_username(self) -> str:
        return self._bot_username

    def connect(self) -> bool:
        """Verify token and get bot info."""
        resp = self._api("getMe", timeout=10)
        if not resp.get("ok"):
            logger.error("telegram connect failed: %s", resp.get("error", "unknown error"))
            return False
        info = resp.get("result") or {}
        self._bot_username = str(info.get("username") or "").strip()
        self._connected = True
        logger.info("telegram connected as @%s", self._bot_username or "unknown")
        return True

    def disconnect(self) -> None:
        self._connected = False
        logger.info("telegram disconnected")

    def identity(self) -> Dict[str, str]:
        if not self._bot_username:
            return {}
        return {"username": self._bot_username, "link": f"https://t.me/{self._bot_username}"}

    def poll(self) -> List[InboundMessage]:
        """Long-poll for new text messages using getUpdates."""
        if not self._connected:
            return []

        resp = self._api(
            "getUpdates",
            {
                "offset": self._offset,
                "timeout": self.poll_timeout_s,
                # Edited messages are ignored so a command is never run twice.
                "allowed_updates": ["message"],
            },
            timeout=self.poll_timeout_s + 10,
        )

        messages: List[InboundMessage] = []
        if not (resp.get("ok") and isinstance(resp.get("result"), list)):
            return messages

        for update in resp["result"]:
            try:
                update_id = int(update.get("update_id", 0))
                self._offset = max(self._offset, update_id + 1)

                msg = update.get("message")
                if not isinstance(msg, dict):
                    continue
                text = msg.get("text") or ""
                if not text:
                    continue

                chat = msg.get("chat") or {}
                chat_id = int(chat.get("id", 0))
                sender = msg.get("from") or {}
                username = sender.get("username") or sender.get("first_name") or "user"

                messages.append(
                    self.make_inbound(
                        str(chat_id),
                        text,
                        event_id=str(update_id),
                        from_user=str(username),
                    )
                )
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("telegram: error parsing update: %s", e)
                continue

        return messages

    def send_message(self, target: str, text: str) -> bool:
        """
        Send a message to a chat.

        Handles:
        - Rate limiting
        - Message length limits
        - Retry on failure
        """
        if not text:
            return True
        safe_text = self._compose_safe(text)
        self._throttle.wait(str(target))
        return self._send_with_retry(str(target), safe_text)

    def _compose_safe(self, text: str) -> str:
        summarized = self.summarize(text, self.max_chars, self.max_lines)
        if len(summarized) > TELEGRAM_MAX_MESSAGE_LENGTH:
            summarized = summarized[: TELEGRAM_MAX_MESSAGE_LENGTH - 1] + "…"
        return summarized

    def _send_with_retry(self, chat_id: str, text: str, retries: int = 1) -> bool:
        params: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        resp = self._api("sendMessage", params, timeout=15)
        if resp.get("ok"):
            return True

        if retries > 0:
            time.sleep(1.0)
            return self._send_with_retry(chat_id, text, retries=retries - 1)

        logger.warning("telegram send to %s failed: %s", chat_id, resp.get("error", "unknown"))
        return False
