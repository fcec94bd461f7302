from __future__ import annotations

from dataclasses import dataclass

INTERNAL_IP = "InternalIP"


@dataclass(frozen=True)
class MemberAddress:
    type: str
    value: str


@dataclass(frozen=True)
class Member:
    """One cluster node as listed by the cluster API."""

    identity: str
    addresses: tuple[MemberAddress, ...] = ()


@dataclass(frozen=True)
class ComputeResource:
    id: int
    name: str
    public_address: str | None


@dataclass(frozen=True)
class FloatingIP:
    id: int
    address: str
    assignee_id: int | None
    name: str = ""
