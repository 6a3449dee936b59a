"""
Chat command parser.

Grammar (verb is case-insensitive, args are whitespace-delimited):

    help | start | stats | download <ref> | dl <ref> | downloading
    status_<gid> | cancel_<gid> | dl_<hash> | clean | ip | time

A leading "/" is accepted (Telegram clients add it) and a trailing
"@BotName" on the verb is ignored (Telegram group mentions).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ...kernel.errors import InvalidReference


class CommandType(str, Enum):
    HELP = "help"
    START = "start"
    STATS = "stats"
    DOWNLOAD = "download"
    DOWNLOADING = "downloading"
    STATUS = "status"
    CANCEL = "cancel"
    DOWNLOAD_HASH = "dl_hash"
    CLEAN = "clean"
    IP = "ip"
    TIME = "time"

    # Not a known verb
    UNKNOWN = "unknown"


@dataclass
class ParsedCommand:
    """Result of parsing one chat message."""

    type: CommandType
    verb: str  # As typed, without "/" and "@bot"
    args: List[str] = field(default_factory=list)
    text: str = ""  # Everything after the verb
    arg: str = ""  # Suffix of status_/cancel_/dl_ verbs


@dataclass(frozen=True)
class Reference:
    kind: str  # "magnet" | "url"
    url: str


MAGNET_RE = re.compile(r"magnet:\?xt=urn:btih:[a-zA-Z0-9]+[^\"\s]*")
URL_RE = re.compile(r"https?://[\w\-./?#&=:%]+")

MAGNET_PREFIX = "magnet:?xt=urn:btih:"

_VERBS = {
    "help": CommandType.HELP,
    "start": CommandType.START,
    "stats": CommandType.STATS,
    "download": CommandType.DOWNLOAD,
    "dl": CommandType.DOWNLOAD,  # Alias
    "downloading": CommandType.DOWNLOADING,
    "clean": CommandType.CLEAN,
    "ip": CommandType.IP,
    "time": CommandType.TIME,
}

# Checked after exact verbs, so "dl" never reaches the "dl_" prefix.
_PREFIXED: Tuple[Tuple[str, CommandType], ...] = (
    ("status_", CommandType.STATUS),
    ("cancel_", CommandType.CANCEL),
    ("dl_", CommandType.DOWNLOAD_HASH),
)

# (usage, description) in the order shown by `help`.
COMMANDS: Tuple[Tuple[str, str], ...] = (
    ("help", "Show available commands"),
    ("start", "Get bot info and status"),
    ("stats", "Show global download stats"),
    ("download <url>", "Start downloading a file"),
    ("dl <url>", "Alias for download"),
    ("downloading", "View active downloads"),
    ("status_<gid>", "Check download status"),
    ("cancel_<gid>", "Cancel a download"),
    ("dl_<hash>", "Download a torrent by info hash"),
    ("clean", "Delete oldest file"),
    ("ip", "Show server IP info"),
    ("time", "Show server time"),
)


def parse_message(text: str) -> Optional[ParsedCommand]:
    """
    Parse a chat message into a command.

    Returns None for empty input.

    Examples:
        "/help" -> CommandType.HELP
        "dl magnet:?xt=..." -> CommandType.DOWNLOAD, args=["magnet:?xt=..."]
        "status_2089b05ecca3d829" -> CommandType.STATUS, arg="2089b05ecca3d829"
        "/stats@MyBot" -> CommandType.STATS
    """
    text = (text or "").strip()
    if not text:
        return None

    parts = text.split(None, 1)
    verb = parts[0]
    rest = parts[1].strip() if len(parts) > 1 else ""

    if verb.startswith("/"):
        verb = verb[1:]
    verb = verb.split("@", 1)[0]

    args = rest.split() if rest else []
    low = verb.lower()

    cmd_type = _VERBS.get(low)
    if cmd_type is not None:
        return ParsedCommand(type=cmd_type, verb=verb, args=args, text=rest)

    for prefix, prefixed_type in _PREFIXED:
        if low.startswith(prefix):
            return ParsedCommand(type=prefixed_type, verb=verb, args=args, text=rest, arg=verb[len(prefix):])

    return ParsedCommand(type=CommandType.UNKNOWN, verb=verb, args=args, text=rest)


def extract_reference(text: str) -> Reference:
    """Find the download reference in `text`: a magnet link first, then an http(s) URL."""
    m = MAGNET_RE.search(text or "")
    if m:
        return Reference(kind="magnet", url=m.group(0))
    m = URL_RE.search(text or "")
    if m:
        return Reference(kind="url", url=m.group(0))
    raise InvalidReference("No valid magnet link or URL found")


def magnet_from_hash(info_hash: str) -> str:
    return f"{MAGNET_PREFIX}{info_hash}"
