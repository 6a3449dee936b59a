"""Shared-secret authorization, one principal set per transport."""
from __future__ import annotations

import hmac
import secrets
import string
import threading
from typing import Dict, Iterable, Set

SECRET_ALPHABET = string.ascii_letters + string.digits
MIN_CONFIGURED_SECRET_LENGTH = 6

TRANSPORTS = ("telegram", "nostr")


def generate_secret(min_length: int = 10, max_length: int = 20) -> str:
    length = min_length + secrets.randbelow(max_length - min_length + 1)
    return "".join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def resolve_secret(configured: str) -> str:
    """Use the configured code when it is long enough, else generate one."""
    s = str(configured or "").strip()
    if len(s) >= MIN_CONFIGURED_SECRET_LENGTH:
        return s
    return generate_secret()


class AuthorizationGate:
    """Membership-only sets of authorized principals.

    Membership only grows: there is no revoke. Granting on one transport has
    no effect on any other.
    """

    def __init__(self, secret: str, transports: Iterable[str] = TRANSPORTS):
        if not secret:
            raise ValueError("secret must not be empty")
        self._secret = secret
        self._members: Dict[str, Set[str]] = {t: set() for t in transports}
        self._lock = threading.Lock()

    @property
    def secret(self) -> str:
        return self._secret

    def _set(self, transport: str) -> Set[str]:
        try:
            return self._members[transport]
        except KeyError:
            raise ValueError(f"unknown transport: {transport}") from None

    def is_authorized(self, transport: str, principal_id: str) -> bool:
        with self._lock:
            return str(principal_id) in self._set(transport)

    def try_authorize(self, transport: str, principal_id: str, supplied_text: str) -> bool:
        supplied = str(supplied_text or "")
        match = hmac.compare_digest(supplied.encode("utf-8"), self._secret.encode("utf-8"))
        with self._lock:
            members = self._set(transport)
            if not match:
                return False
            members.add(str(principal_id))
            return True

    def count(self, transport: str) -> int:
        with self._lock:
            return len(self._set(transport))
