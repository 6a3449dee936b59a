from __future__ import annotations

from .job import GlobalStats, JobFile, JobStatus
from .result import CommandError, CommandResult
from .rpc import RpcError, RpcRequest, RpcResponse

__all__ = [
    "CommandError",
    "CommandResult",
    "GlobalStats",
    "JobFile",
    "JobStatus",
    "RpcError",
    "RpcRequest",
    "RpcResponse",
]
