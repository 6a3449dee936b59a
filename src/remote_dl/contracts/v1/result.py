from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommandError(BaseModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class CommandResult(BaseModel):
    """Transport-independent outcome of one chat command.

    `kind` names the command that produced it; `result` carries the
    kind-specific fields. Presentation happens later, per transport.
    """

    v: int = 1
    ok: bool
    kind: str
    result: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[CommandError] = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def success(cls, kind: str, **fields: Any) -> "CommandResult":
        return cls(ok=True, kind=kind, result=fields)

    @classmethod
    def failure(
        cls,
        kind: str,
        code: str,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> "CommandResult":
        return cls(ok=False, kind=kind, error=CommandError(code=code, message=message, details=details or {}))
