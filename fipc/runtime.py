from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from .errors import FipcError
from .events import utc_now

# Cycle outcomes
REASSIGNED = "reassigned"
UNCHANGED = "unchanged"
PLANNED = "planned"  # dry-run: reassignment needed but not issued
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass
class CycleResult:
    node: str
    floating_ip: str
    action: str = ""
    node_address: str | None = None
    server_id: int | None = None
    server_name: str | None = None
    previous_assignee_id: int | None = None
    error: str | None = None
    error_kind: str | None = None
    started_at: str = field(default_factory=utc_now)
    finished_at: str | None = None
    exc: FipcError | None = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.action in {REASSIGNED, UNCHANGED, PLANNED}

    def to_dict(self) -> dict[str, Any]:
        return {
            "node": self.node,
            "floating_ip": self.floating_ip,
            "action": self.action,
            "node_address": self.node_address,
            "server_id": self.server_id,
            "server_name": self.server_name,
            "previous_assignee_id": self.previous_assignee_id,
            "error": self.error,
            "error_kind": self.error_kind,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


class RuntimeState:
    """In-memory view of the controller for the status API."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.running = False
        self.started_at: str | None = None
        self.stopped_at: str | None = None
        self.cycles = 0
        self.reassignments = 0
        self.failures = 0
        self.last_cycle: CycleResult | None = None

    def mark_started(self) -> None:
        with self.lock:
            self.running = True
            self.started_at = utc_now()
            self.stopped_at = None

    def mark_stopped(self) -> None:
        with self.lock:
            self.running = False
            self.stopped_at = utc_now()

    def record_cycle(self, result: CycleResult) -> None:
        with self.lock:
            self.cycles += 1
            if result.action == REASSIGNED:
                self.reassignments += 1
            elif result.action == FAILED:
                self.failures += 1
            self.last_cycle = result

    def snapshot(self) -> dict[str, Any]:
        with self.lock:
            return {
                "running": self.running,
                "started_at": self.started_at,
                "stopped_at": self.stopped_at,
                "cycles": self.cycles,
                "reassignments": self.reassignments,
                "failures": self.failures,
                "last_cycle": self.last_cycle.to_dict() if self.last_cycle else None,
            }

    def ready(self) -> bool:
        with self.lock:
            return self.running and self.last_cycle is not None and self.last_cycle.ok
