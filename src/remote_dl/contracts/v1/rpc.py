from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RpcRequest(BaseModel):
    """aria2 JSON-RPC 2.0 call envelope."""

    jsonrpc: str = "2.0"
    id: Union[int, str] = 1
    method: str
    params: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class RpcError(BaseModel):
    code: int = 0
    message: str = ""

    model_config = ConfigDict(extra="allow")


class RpcResponse(BaseModel):
    jsonrpc: str = "2.0"
    id: Optional[Union[int, str]] = None
    result: Any = None
    error: Optional[RpcError] = None

    model_config = ConfigDict(extra="allow")
