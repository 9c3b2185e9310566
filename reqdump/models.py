from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = Field(default=80, ge=0, le=65535)
    dir: str = "."
    prefix: str = "request_"
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_header_bytes: int = Field(default=1 << 20, gt=0)
