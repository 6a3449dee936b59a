"""Gateway error taxonomy.

Every error carries a stable `code`; command handlers turn them into
`CommandResult(ok=False, error=...)` so none escapes a message handler.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    code = "gateway_error"

    def __init__(self, message: str = "", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}


class Unauthenticated(GatewayError):
    code = "unauthenticated"


class InvalidReference(GatewayError):
    code = "invalid_reference"


class MissingArgument(GatewayError):
    code = "missing_argument"


class UnknownCommand(GatewayError):
    code = "unknown_command"


class EngineUnavailable(GatewayError):
    code = "engine_unavailable"


class NotFound(GatewayError):
    code = "not_found"


class NothingToDelete(GatewayError):
    code = "nothing_to_delete"


class FilesystemError(GatewayError):
    code = "filesystem_error"


class ConfigError(GatewayError):
    code = "config_error"
