from __future__ import annotations

from pydantic import BaseModel, Field


class CycleModel(BaseModel):
    node: str
    floating_ip: str
    action: str = Field(..., description="reassigned|unchanged|planned|failed")
    node_address: str | None = None
    server_id: int | None = None
    server_name: str | None = None
    previous_assignee_id: int | None = None
    error: str | None = None
    error_kind: str | None = None
    started_at: str
    finished_at: str | None = None


class StatusResponse(BaseModel):
    version: str
    running: bool
    ready: bool
    started_at: str | None = None
    stopped_at: str | None = None
    cycles: int = Field(0, ge=0)
    reassignments: int = Field(0, ge=0)
    failures: int = Field(0, ge=0)
    last_cycle: CycleModel | None = None


class EventModel(BaseModel):
    ts: str
    level: str
    node: str | None = None
    floating_ip: str | None = None
    message: str
