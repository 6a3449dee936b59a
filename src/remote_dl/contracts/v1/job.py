from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...util.conv import coerce_int


class JobFile(BaseModel):
    path: str = ""
    length: int = 0
    completed_length: int = Field(default=0, alias="completedLength")
    selected: bool = True

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("length", "completed_length", mode="before")
    @classmethod
    def _int(cls, v: Any) -> int:
        return coerce_int(v)

    @field_validator("selected", mode="before")
    @classmethod
    def _selected(cls, v: Any) -> bool:
        return str(v).strip().lower() != "false"


class JobStatus(BaseModel):
    """One aria2 download as reported by tellStatus/tellActive.

    aria2 encodes every number as a string; validators coerce them.
    """

    gid: str = ""
    status: str = "unknown"
    completed_length: int = Field(default=0, alias="completedLength")
    total_length: int = Field(default=0, alias="totalLength")
    download_speed: int = Field(default=0, alias="downloadSpeed")
    upload_speed: int = Field(default=0, alias="uploadSpeed")
    dir: str = ""
    files: List[JobFile] = Field(default_factory=list)
    bittorrent: Dict[str, Any] = Field(default_factory=dict)
    error_message: str = Field(default="", alias="errorMessage")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("completed_length", "total_length", "download_speed", "upload_speed", mode="before")
    @classmethod
    def _int(cls, v: Any) -> int:
        return coerce_int(v)

    @property
    def progress(self) -> float:
        if self.total_length <= 0:
            return 0.0
        return round(self.completed_length / self.total_length * 100, 1)

    @property
    def name(self) -> str:
        for f in self.files:
            if f.path:
                return PurePosixPath(f.path).name
        info = self.bittorrent.get("info") if isinstance(self.bittorrent, dict) else None
        if isinstance(info, dict) and info.get("name"):
            return str(info["name"])
        return "Unknown"


class GlobalStats(BaseModel):
    download_speed: int = Field(default=0, alias="downloadSpeed")
    upload_speed: int = Field(default=0, alias="uploadSpeed")
    num_active: int = Field(default=0, alias="numActive")
    num_waiting: int = Field(default=0, alias="numWaiting")
    num_stopped: int = Field(default=0, alias="numStopped")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _int(cls, v: Any) -> int:
        return coerce_int(v)
