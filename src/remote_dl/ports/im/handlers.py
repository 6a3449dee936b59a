"""
Command handlers and router.

Each handler returns a CommandResult. Gateway errors and unexpected
exceptions are turned into `ok=False` results here and never reach the
bridge loop.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from ...contracts.v1 import CommandResult
from ...engine.aria2 import owner_hash
from ...kernel.context import GatewayContext
from ...kernel.errors import GatewayError, MissingArgument, UnknownCommand
from ...kernel.retention import delete_oldest, used_space
from ...util.conv import bytes_to_size
from ...util.net import get_ip_data
from .commands import COMMANDS, CommandType, ParsedCommand, extract_reference, magnet_from_hash

logger = logging.getLogger("remote_dl.handlers")

BOT_NAME = "Remote-Torrent-Downloader Bot"
BOT_DESCRIPTION = (
    "A Telegram/Nostr bot to control Remote-Torrent-Downloader. "
    "Download torrents and stream media easily."
)
HOMEPAGE = "https://github.com/besoeasy/Remote-Torrent-Downloader"


def _speed(n: int) -> str:
    return bytes_to_size(n) + "/s"


def _mb(n: int) -> str:
    return f"{n / 1024 / 1024:.2f}"


def _guard(kind: str, fn: Callable[[], CommandResult], **messages: str) -> CommandResult:
    """Run a handler body; map errors to failures.

    `messages` overrides the user-facing text per error code.
    """
    try:
        return fn()
    except GatewayError as e:
        return CommandResult.failure(kind, e.code, messages.get(e.code, e.message), details=e.details)
    except Exception:
        logger.exception("command %s failed", kind, extra={"op": kind})
        return CommandResult.failure(kind, "internal_error", "An error occurred. Please try again later.")


def cmd_help() -> CommandResult:
    return CommandResult.success(
        "help",
        commands=[{"command": usage, "description": desc} for usage, desc in COMMANDS],
    )


def cmd_start(ctx: GatewayContext, sender_id: str) -> CommandResult:
    def body() -> CommandResult:
        size = used_space(ctx.settings.save_dir)
        return CommandResult.success(
            "start",
            name=BOT_NAME,
            version=ctx.version,
            description=BOT_DESCRIPTION,
            homepage=HOMEPAGE,
            user_id=str(sender_id)[:8],
            used_space=size,
            used_space_formatted=bytes_to_size(size),
            save_dir=str(ctx.settings.save_dir),
            web_port=ctx.settings.web_port,
            webdav_port=ctx.settings.webdav_port,
        )

    return _guard("start", body)


def cmd_stats(ctx: GatewayContext) -> CommandResult:
    def body() -> CommandResult:
        stats = ctx.engine.global_stats()
        return CommandResult.success(
            "stats",
            download_speed=stats.download_speed,
            upload_speed=stats.upload_speed,
            num_active=stats.num_active,
            num_waiting=stats.num_waiting,
            num_stopped=stats.num_stopped,
            download_speed_formatted=_speed(stats.download_speed),
            upload_speed_formatted=_speed(stats.upload_speed),
        )

    return _guard("stats", body, engine_unavailable="Could not fetch stats from Aria2")


def cmd_download(ctx: GatewayContext, sender_id: str, text: str) -> CommandResult:
    def body() -> CommandResult:
        if not (text or "").strip():
            raise MissingArgument("Please provide a URL or magnet link.")
        ref = extract_reference(text)
        gid = ctx.engine.add_job(owner_hash(sender_id), ref.url)
        return CommandResult.success("download", gid=gid, type=ref.kind, url=ref.url)

    return _guard(
        "download",
        body,
        engine_unavailable="Failed to start download. Check if Aria2 is running.",
        not_found="Failed to start download. Aria2 rejected the link.",
    )


def cmd_download_hash(ctx: GatewayContext, sender_id: str, info_hash: str) -> CommandResult:
    if not info_hash:
        return CommandResult.failure("download", MissingArgument.code, "Invalid download command. Hash missing.")
    return cmd_download(ctx, sender_id, magnet_from_hash(info_hash))


def cmd_downloading(ctx: GatewayContext) -> CommandResult:
    def body() -> CommandResult:
        downloads = [
            {
                "gid": job.gid,
                "name": job.name,
                "status": job.status,
                "completed_length": job.completed_length,
                "total_length": job.total_length,
                "completed_mb": _mb(job.completed_length),
                "total_mb": _mb(job.total_length),
                "progress": job.progress,
                "download_speed": job.download_speed,
                "download_speed_formatted": _speed(job.download_speed),
            }
            for job in ctx.engine.active_jobs()
        ]
        return CommandResult.success("downloading", downloads=downloads)

    return _guard("downloading", body, engine_unavailable="Failed to fetch downloads")


def cmd_status(ctx: GatewayContext, gid: str) -> CommandResult:
    def body() -> CommandResult:
        if not gid:
            raise MissingArgument("Download id missing. Use status_<gid>.")
        job = ctx.engine.job_status(gid)
        return CommandResult.success(
            "status",
            gid=gid,
            name=job.name,
            status=job.status,
            completed_length=job.completed_length,
            total_length=job.total_length,
            completed_mb=_mb(job.completed_length),
            total_mb=_mb(job.total_length),
            progress=job.progress,
            download_speed=job.download_speed,
            upload_speed=job.upload_speed,
            download_speed_formatted=_speed(job.download_speed),
            upload_speed_formatted=_speed(job.upload_speed),
            files=[f.model_dump() for f in job.files],
        )

    return _guard("status", body, not_found="Could not get status. Download may not exist.")


def cmd_cancel(ctx: GatewayContext, gid: str) -> CommandResult:
    def body() -> CommandResult:
        if not gid:
            raise MissingArgument("Download id missing. Use cancel_<gid>.")
        ctx.engine.cancel_job(gid)
        return CommandResult.success("cancel", gid=gid, message=f"Download {gid} canceled")

    return _guard("cancel", body, not_found="Failed to cancel. May not exist or already finished.")


def cmd_clean(ctx: GatewayContext) -> CommandResult:
    def body() -> CommandResult:
        removed = delete_oldest(ctx.settings.save_dir)
        return CommandResult.success(
            "clean",
            deleted=removed.path.name,
            path=str(removed.path),
            size_bytes=removed.size_bytes,
            message=f"Deleted: {removed.path.name}",
        )

    return _guard("clean", body)


def cmd_ip() -> CommandResult:
    try:
        data = get_ip_data()
    except (requests.RequestException, ValueError) as e:
        logger.warning("ip lookup failed: %s", e, extra={"op": "ip"})
        return CommandResult.failure("ip", "ip_lookup_failed", "Could not fetch IP info")
    return CommandResult.success("ip", **data)


def cmd_time(now: Optional[float] = None) -> CommandResult:
    ts = time.time() if now is None else now
    utc = datetime.fromtimestamp(ts, tz=timezone.utc)
    return CommandResult.success(
        "time",
        timestamp=int(ts * 1000),
        iso=utc.isoformat().replace("+00:00", "Z"),
        human=datetime.fromtimestamp(ts).astimezone().strftime("%a %b %d %Y %H:%M:%S %Z"),
    )


def dispatch(ctx: GatewayContext, parsed: ParsedCommand, sender_id: str) -> CommandResult:
    """Route one parsed command from an authorized sender to its handler."""
    t = parsed.type
    if t == CommandType.HELP:
        return cmd_help()
    if t == CommandType.START:
        return cmd_start(ctx, sender_id)
    if t == CommandType.STATS:
        return cmd_stats(ctx)
    if t == CommandType.DOWNLOAD:
        return cmd_download(ctx, sender_id, parsed.text)
    if t == CommandType.DOWNLOAD_HASH:
        return cmd_download_hash(ctx, sender_id, parsed.arg)
    if t == CommandType.DOWNLOADING:
        return cmd_downloading(ctx)
    if t == CommandType.STATUS:
        return cmd_status(ctx, parsed.arg)
    if t == CommandType.CANCEL:
        return cmd_cancel(ctx, parsed.arg)
    if t == CommandType.CLEAN:
        return cmd_clean(ctx)
    if t == CommandType.IP:
        return cmd_ip()
    if t == CommandType.TIME:
        return cmd_time()
    return CommandResult.failure(
        "unknown",
        UnknownCommand.code,
        f"Unknown command: {parsed.verb}",
        details={"verb": parsed.verb},
    )
