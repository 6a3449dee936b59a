"""
Presentation of CommandResult as chat text.

Pure functions; adapters apply their own length limits afterwards.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from ...contracts.v1 import CommandResult

AUTH_REQUIRED = (
    "🔐 Authorization required.\n\n"
    "Please send the auth code to gain access.\n\n"
    "Contact the bot owner for the code."
)
ACCESS_GRANTED = "🔓 Access granted! You are now authorized.\n\nSend /help to see available commands."
GENERIC_ERROR = "An error occurred. Please try again later."

MAX_LISTED_DOWNLOADS = 5

# Shown without the "❌ Error:" prefix.
_PLAIN_ERRORS = ("missing_argument",)


def _help(r: Dict[str, Any]) -> str:
    lines = ["🤖 Available Commands", ""]
    for c in r.get("commands", []):
        lines.append(f"/{c['command']} - {c['description']}")
    return "\n".join(lines)


def _start(r: Dict[str, Any]) -> str:
    return "\n".join([
        f"🤖 {r.get('name')}",
        f"Version: {r.get('version')}",
        "",
        str(r.get("description", "")),
        "",
        "📊 Status",
        f"User ID: {r.get('user_id')}",
        f"Used Space: {r.get('used_space_formatted')}",
        f"Web Port: {r.get('web_port')}",
        "",
        f"Homepage: {r.get('homepage')}",
        "",
        "Send /help for commands.",
    ])


def _stats(r: Dict[str, Any]) -> str:
    return "\n".join([
        "📊 Global Statistics",
        "",
        f"🔽 Download: {r.get('download_speed_formatted')}",
        f"🔼 Upload: {r.get('upload_speed_formatted')}",
        f"📦 Active: {r.get('num_active')}",
        f"⏳ Waiting: {r.get('num_waiting')}",
        f"🛑 Stopped: {r.get('num_stopped')}",
    ])


def _download(r: Dict[str, Any]) -> str:
    icon = "🧲" if r.get("type") == "magnet" else "🔗"
    return f"{icon} Download started\n\nTrack: /status_{r.get('gid')}\nSee all: /downloading"


def _status(r: Dict[str, Any]) -> str:
    lines = [
        "📊 Download Status",
        "",
        f"Name: {r.get('name')}",
        f"Status: {r.get('status')}",
        f"Progress: {r.get('completed_mb')} MB / {r.get('total_mb')} MB ({r.get('progress')}%)",
        f"Speed: {r.get('download_speed_formatted')}",
    ]
    if r.get("status") == "active":
        lines += ["", f"Cancel: /cancel_{r.get('gid')}"]
    return "\n".join(lines)


def _downloading(r: Dict[str, Any]) -> str:
    downloads: List[Dict[str, Any]] = r.get("downloads", [])
    if not downloads:
        return "No ongoing downloads."
    lines = ["📥 Ongoing Downloads", ""]
    for d in downloads[:MAX_LISTED_DOWNLOADS]:
        lines.append(f"🆔 /status_{d.get('gid')}")
        lines.append(f"📊 {d.get('status')} - {d.get('progress')}%")
        lines.append(f"💾 {d.get('completed_mb')}/{d.get('total_mb')} MB")
        lines.append("")
    extra = len(downloads) - MAX_LISTED_DOWNLOADS
    if extra > 0:
        lines.append(f"... and {extra} more")
    return "\n".join(lines).rstrip()


def _cancel(r: Dict[str, Any]) -> str:
    return f"❌ {r.get('message')}"


def _clean(r: Dict[str, Any]) -> str:
    return f"🗑️ {r.get('message')}"


def _ip(r: Dict[str, Any]) -> str:
    return "\n".join([
        "🌐 Server IP Info",
        "",
        f"IP: {r.get('query')}",
        f"Country: {r.get('country')}",
        f"Region: {r.get('region_name')}",
        f"City: {r.get('city')}",
        f"ISP: {r.get('isp')}",
    ])


def _time(r: Dict[str, Any]) -> str:
    return f"⏰ Server Time\n\n{r.get('iso')}"


_FORMATTERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    "help": _help,
    "start": _start,
    "stats": _stats,
    "download": _download,
    "status": _status,
    "downloading": _downloading,
    "cancel": _cancel,
    "clean": _clean,
    "ip": _ip,
    "time": _time,
}


def format_result(result: CommandResult) -> str:
    if not result.ok:
        err = result.error
        message = err.message if err is not None else "unknown error"
        code = err.code if err is not None else ""
        if code == "unknown_command":
            return f"{message}\n\nSend /help for available commands."
        if code in _PLAIN_ERRORS:
            return message
        return f"❌ Error: {message}"

    fmt = _FORMATTERS.get(result.kind)
    if fmt is None:
        return str(result.result)
    return fmt(result.result)
