"""Pydantic schemas for crowny task requests and ternary results."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from crowny.header import ProtocolHeader
from crowny.trit import Trit


class TaskType(str, Enum):
    """Kinds of work the remote service accepts."""

    COMPILE = "compile"
    EXECUTE = "execute"
    WEB = "web"
    LLM = "llm"
    DB = "db"
    FILE = "file"
    SYSTEM = "system"


# --- Request Schemas ---


class AppTask(BaseModel):
    """A unit of work submitted to the remote service."""

    type: TaskType
    subject: str = Field(..., description="Actor or model handling the task")
    payload: str = ""
    params: dict[str, str] | None = None

    def to_request_body(self) -> dict[str, Any]:
        """Build the JSON body sent to the service."""
        return {
            "type": self.type.value,
            "subject": self.subject,
            "payload": self.payload,
            "params": dict(self.params or {}),
        }


# --- Result Schemas ---


def elapsed_ms_since(start: float) -> int:
    """Milliseconds elapsed since a time.monotonic() reading."""
    return max(int((time.monotonic() - start) * 1000), 0)


class TaskResult(BaseModel):
    """Outcome of a single task. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    state: Trit
    data: Any = None
    elapsed_ms: int = Field(default=0, ge=0)
    task_id: int = Field(default=0, ge=0)

    @property
    def is_success(self) -> bool:
        return self.state is Trit.SUCCESS

    @property
    def is_pending(self) -> bool:
        return self.state is Trit.PENDING

    @property
    def is_failed(self) -> bool:
        return self.state is Trit.FAILED


class SourceResult(BaseModel):
    """One source's contribution to a consensus call."""

    model_config = ConfigDict(frozen=True)

    source: str
    result: TaskResult


class ConsensusResult(BaseModel):
    """Aggregated outcome of a fan-out consensus call."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    consensus: Trit
    per_source: list[SourceResult] = Field(default_factory=list)
    trits: list[Trit] = Field(default_factory=list)
    header: ProtocolHeader = Field(default_factory=ProtocolHeader)
    elapsed_ms: int = Field(default=0, ge=0)

    @field_serializer("header")
    def _serialize_header(self, header: ProtocolHeader) -> str:
        return header.serialize()


class ClientStats(BaseModel):
    """State counts over the client's result history."""

    total: int = 0
    success: int = 0
    pending: int = 0
    failed: int = 0
