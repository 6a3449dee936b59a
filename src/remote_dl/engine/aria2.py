"""aria2 JSON-RPC client.

Every call is a bounded-timeout HTTP POST to the local aria2 daemon. Transport
failures raise EngineUnavailable; aria2 error objects raise NotFound, since
aria2 reports unknown and already-finished gids the same way.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..contracts.v1 import GlobalStats, JobStatus, RpcRequest, RpcResponse
from ..kernel.errors import EngineUnavailable, NotFound
from ..util.time import date_stamp

logger = logging.getLogger("remote_dl.aria2")

RPC_ID = "remote-dl"

PUBLIC_TRACKERS: List[str] = [
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.tracker.cl:1337/announce",
    "udp://tracker.torrent.eu.org:451/announce",
    "udp://open.stealth.si:80/announce",
    "udp://tracker.dler.org:6969/announce",
    "udp://exodus.desync.com:6969/announce",
    "udp://tracker.0x7c0.com:6969/announce",
    "udp://tracker.moeking.me:6969/announce",
    "udp://uploads.gamecoast.net:6969/announce",
    "udp://tracker.altrosky.nl:6969/announce",
    "udp://tracker.tiny-vps.com:6969/announce",
    "udp://tracker.theoks.net:6969/announce",
    "udp://bt.ktrackers.com:6666/announce",
    "udp://thouvenin.cloud:6969/announce",
    "udp://tracker.bittor.pw:1337/announce",
    "udp://tracker.swateam.org.uk:2710/announce",
    "http://tracker.openbittorrent.com:80/announce",
    "udp://opentracker.i2p.rocks:6969/announce",
]


def owner_hash(principal_id: str) -> str:
    return str(principal_id)[:16]


def job_dir(storage_root: Path, owner: str, day: Optional[str] = None) -> Path:
    """Per-principal, per-day download folder: <root>/<owner>/<YYYYMMDD>."""
    return storage_root / owner / (day or date_stamp())


class Aria2Client:
    def __init__(
        self,
        rpc_url: str,
        storage_root: Path,
        *,
        timeout_s: float = 10.0,
        secret: str = "",
        trackers: Sequence[str] = PUBLIC_TRACKERS,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self.storage_root = Path(storage_root)
        self.timeout_s = float(timeout_s)
        self.secret = secret
        self.trackers = list(trackers)
        self._http = session or requests

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Invoke one aria2 method and return its `result`."""
        args = list(params or [])
        if self.secret:
            args.insert(0, f"token:{self.secret}")
        req = RpcRequest(id=RPC_ID, method=method, params=args)

        try:
            resp = self._http.post(self.rpc_url, json=req.model_dump(), timeout=self.timeout_s)
        except requests.RequestException as e:
            logger.error("aria2 %s transport error: %s", method, e, extra={"op": method})
            raise EngineUnavailable(f"aria2 unreachable: {e}") from e

        try:
            body = RpcResponse.model_validate(resp.json())
        except ValueError as e:
            logger.error("aria2 %s bad response (HTTP %s)", method, resp.status_code, extra={"op": method})
            raise EngineUnavailable(f"aria2 returned an invalid response (HTTP {resp.status_code})") from e

        if body.error is not None:
            logger.info("aria2 %s error %s: %s", method, body.error.code, body.error.message, extra={"op": method})
            raise NotFound(body.error.message or "aria2 error", details={"code": body.error.code})
        if body.result is None:
            raise EngineUnavailable(f"aria2 {method} returned no result")
        return body.result

    def add_job(self, owner: str, ref: str) -> str:
        target = job_dir(self.storage_root, owner)
        options = {
            "dir": str(target),
            "bt-tracker": ",".join(self.trackers),
        }
        gid = self.call("aria2.addUri", [[ref], options])
        logger.info("added job into %s", target, extra={"op": "aria2.addUri", "gid": gid})
        return str(gid)

    def job_status(self, gid: str) -> JobStatus:
        return JobStatus.model_validate(self.call("aria2.tellStatus", [gid]))

    def active_jobs(self) -> List[JobStatus]:
        return [JobStatus.model_validate(d) for d in self.call("aria2.tellActive") or []]

    def waiting_jobs(self, offset: int = 0, num: int = 100) -> List[JobStatus]:
        return [JobStatus.model_validate(d) for d in self.call("aria2.tellWaiting", [offset, num]) or []]

    def stopped_jobs(self, offset: int = 0, num: int = 100) -> List[JobStatus]:
        return [JobStatus.model_validate(d) for d in self.call("aria2.tellStopped", [offset, num]) or []]

    def cancel_job(self, gid: str) -> str:
        return str(self.call("aria2.remove", [gid]))

    def global_stats(self) -> GlobalStats:
        return GlobalStats.model_validate(self.call("aria2.getGlobalStat"))

    def version(self) -> Dict[str, Any]:
        result = self.call("aria2.getVersion")
        return result if isinstance(result, dict) else {}

    def health_check(self) -> bool:
        try:
            return bool(self.version())
        except (EngineUnavailable, NotFound):
            return False
