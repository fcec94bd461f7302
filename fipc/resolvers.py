"""The three lookups that make up one reconciliation cycle.

Each resolver pairs a pure ``find_*`` function over an inventory snapshot
with a small class that fetches the snapshot from an injected inventory.
"""
from __future__ import annotations

from typing import Protocol, Sequence

from .errors import NotFoundError
from .matching import IPAddress, first_match, parse_address, same_address
from .models import INTERNAL_IP, ComputeResource, FloatingIP, Member


class ClusterInventory(Protocol):
    def list_members(self) -> Sequence[Member]: ...


class CloudInventory(Protocol):
    def list_compute_resources(self) -> Sequence[ComputeResource]: ...

    def list_floating_ips(self) -> Sequence[FloatingIP]: ...

    def assign_floating_ip(self, floating_ip: FloatingIP, server: ComputeResource) -> object: ...


def find_internal_address(members: Sequence[Member], identity: str) -> IPAddress:
    member = first_match(members, lambda m: m.identity == identity)
    if member is None:
        raise NotFoundError(f"node {identity!r} not found in cluster")

    addr = first_match(member.addresses, lambda a: a.type == INTERNAL_IP)
    if addr is None:
        raise NotFoundError(f"could not find address for node {identity!r}")
    ip = parse_address(addr.value)
    if ip is None:
        raise NotFoundError(f"node {identity!r} has invalid internal address {addr.value!r}")
    return ip


def find_compute_resource(resources: Sequence[ComputeResource], address: IPAddress | str) -> ComputeResource:
    server = first_match(resources, lambda r: same_address(r.public_address, address))
    if server is None:
        raise NotFoundError(f"no server with IP address {address} found")
    return server


def find_floating_ip(ips: Sequence[FloatingIP], address: IPAddress | str) -> FloatingIP:
    fip = first_match(ips, lambda ip: same_address(ip.address, address))
    if fip is None:
        raise NotFoundError(f"IP address {address} not allocated")
    return fip


class RoleAddressResolver:
    def __init__(self, cluster: ClusterInventory):
        self.cluster = cluster

    def resolve(self, role_target: str) -> IPAddress:
        return find_internal_address(self.cluster.list_members(), role_target)


class ComputeResolver:
    def __init__(self, cloud: CloudInventory):
        self.cloud = cloud

    def resolve(self, address: IPAddress | str) -> ComputeResource:
        return find_compute_resource(self.cloud.list_compute_resources(), address)


class FloatingIPResolver:
    def __init__(self, cloud: CloudInventory):
        self.cloud = cloud

    def resolve(self, configured_address: str) -> FloatingIP:
        return find_floating_ip(self.cloud.list_floating_ips(), configured_address)
