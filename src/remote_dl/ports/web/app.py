from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from ...kernel.context import GatewayContext
from .dashboard import collect_status, render_dashboard

logger = logging.getLogger("remote_dl.web")


def create_app(ctx: GatewayContext) -> FastAPI:
    app = FastAPI(title="remote-dl", version=ctx.version)

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return render_dashboard(collect_status(ctx))

    @app.get("/api/v1/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint for monitoring."""
        engine_ok = ctx.engine.health_check()
        return {
            "ok": True,
            "result": {
                "version": ctx.version,
                "engine": "running" if engine_ok else "unreachable",
            },
        }

    return app


class WebServer:
    """uvicorn in a background thread; stop() asks it to exit."""

    def __init__(self, ctx: GatewayContext, host: str, port: int, log_level: str = "warning"):
        config = uvicorn.Config(create_app(ctx), host=host, port=int(port), log_level=log_level, log_config=None)
        self._server = uvicorn.Server(config)
        self._thread: Optional[threading.Thread] = None
        self.host = host
        self.port = int(port)

    def start(self) -> None:
        self._thread = threading.Thread(target=self._server.run, name="remote-dl-web", daemon=True)
        self._thread.start()
        logger.info("status page on http://%s:%d/", self.host, self.port)

    def stop(self, timeout: float = 5.0) -> None:
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=timeout)
