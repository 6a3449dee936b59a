"""Operator status page.

`collect_status` gathers everything the page shows into a plain dict;
`render_dashboard` turns it into HTML. The engine being down is a normal
state here, not an error.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Dict, List, Optional

from ...kernel.context import GatewayContext
from ...kernel.errors import GatewayError
from ...kernel.retention import oldest_file, used_space
from ...util.conv import bytes_to_size
from ...util.time import DAY_MS, format_eta, now_ms

logger = logging.getLogger("remote_dl.web")

REFRESH_SECONDS = 20


def oldest_file_eta(mtime_ms: int, days: int, *, at_ms: Optional[int] = None) -> str:
    """Time left until the retention sweep removes a file with this mtime."""
    if not mtime_ms or not days:
        return "N/A"
    now = now_ms() if at_ms is None else at_ms
    return format_eta(mtime_ms + days * DAY_MS - now)


def collect_status(ctx: GatewayContext, *, at_ms: Optional[int] = None) -> Dict[str, Any]:
    settings = ctx.settings
    root = settings.save_dir

    engine: Dict[str, Any] = {"online": False}
    downloads: List[Dict[str, Any]] = []
    try:
        stats = ctx.engine.global_stats()
        engine = {"online": True, **stats.model_dump()}
        for job in ctx.engine.active_jobs():
            downloads.append({
                "gid": job.gid,
                "name": job.name,
                "progress": job.progress,
                "speed": bytes_to_size(job.download_speed) + "/s",
            })
    except GatewayError as e:
        logger.debug("engine unavailable for dashboard: %s", e.message)

    oldest = oldest_file(root)
    return {
        "version": ctx.version,
        "auth_code": ctx.gate.secret,
        "telegram": {
            "enabled": ctx.enabled("telegram"),
            "username": ctx.identity("telegram_username"),
            "authorized": ctx.gate.count("telegram"),
        },
        "nostr": {
            "enabled": ctx.enabled("nostr"),
            "npub": ctx.identity("nostr_npub"),
            "authorized": ctx.gate.count("nostr"),
        },
        "engine": engine,
        "downloads": downloads,
        "storage": {
            "root": str(root),
            "used": bytes_to_size(used_space(root)),
            "auto_clean_days": settings.auto_clean_days,
            "oldest_name": oldest.path.name if oldest else "",
            "oldest_size": bytes_to_size(oldest.size_bytes) if oldest else "",
            "oldest_eta": oldest_file_eta(oldest.mtime_ms, settings.auto_clean_days, at_ms=at_ms) if oldest else "N/A",
        },
        "webdav_port": settings.webdav_port,
    }


def _row(label: str, value: Any) -> str:
    return f"<tr><th>{html.escape(label)}</th><td>{html.escape(str(value))}</td></tr>"


def _on_off(flag: bool) -> str:
    return "enabled" if flag else "disabled"


def render_dashboard(status: Dict[str, Any]) -> str:
    tg = status["telegram"]
    ns = status["nostr"]
    eng = status["engine"]
    st = status["storage"]

    transport_rows = [
        _row("Telegram", _on_off(tg["enabled"])),
        _row("Telegram bot", "@" + tg["username"] if tg["username"] else "-"),
        _row("Telegram users", tg["authorized"]),
        _row("Nostr", _on_off(ns["enabled"])),
        _row("Nostr npub", ns["npub"] or "-"),
        _row("Nostr users", ns["authorized"]),
        _row("Auth code", status["auth_code"]),
    ]

    if eng.get("online"):
        engine_rows = [
            _row("Download speed", bytes_to_size(eng["download_speed"]) + "/s"),
            _row("Upload speed", bytes_to_size(eng["upload_speed"]) + "/s"),
            _row("Active", eng["num_active"]),
            _row("Waiting", eng["num_waiting"]),
            _row("Stopped", eng["num_stopped"]),
        ]
    else:
        engine_rows = [_row("Engine", "offline")]

    if status["downloads"]:
        download_rows = [
            f"<tr><td>{html.escape(d['name'])}</td><td>{d['progress']}%</td><td>{html.escape(d['speed'])}</td></tr>"
            for d in status["downloads"]
        ]
    else:
        download_rows = ['<tr><td colspan="3">No ongoing downloads</td></tr>']

    storage_rows = [
        _row("Save directory", st["root"]),
        _row("Used", st["used"]),
        _row("Auto-clean after", f"{st['auto_clean_days']} days"),
        _row("Oldest file", f"{st['oldest_name']} ({st['oldest_size']})" if st["oldest_name"] else "-"),
        _row("Deletes in", st["oldest_eta"]),
        _row("WebDAV port", status["webdav_port"]),
    ]

    return "\n".join([
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="UTF-8">',
        f'<meta http-equiv="refresh" content="{REFRESH_SECONDS}">',
        "<title>Remote-Torrent-Downloader</title>",
        "<style>body{font-family:sans-serif;margin:2em}table{border-collapse:collapse;margin-bottom:1.5em}"
        "th,td{padding:4px 12px;text-align:left;border-bottom:1px solid #ddd}</style>",
        "</head>",
        "<body>",
        f"<h1>Remote-Torrent-Downloader <small>v{html.escape(status['version'])}</small></h1>",
        "<h2>Transports</h2>",
        "<table>", *transport_rows, "</table>",
        "<h2>Engine</h2>",
        "<table>", *engine_rows, "</table>",
        "<h2>Ongoing downloads</h2>",
        "<table><tr><th>Name</th><th>Progress</th><th>Speed</th></tr>", *download_rows, "</table>",
        "<h2>Storage</h2>",
        "<table>", *storage_rows, "</table>",
        "</body>",
        "</html>",
    ])
