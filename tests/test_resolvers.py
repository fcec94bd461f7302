import ipaddress

import pytest

from conftest import FakeCloud, FakeCluster, node
from fipc.errors import NotFoundError
from fipc.matching import first_match, parse_address, same_address
from fipc.models import ComputeResource, FloatingIP, Member, MemberAddress
from fipc.resolvers import (
    ComputeResolver,
    FloatingIPResolver,
    RoleAddressResolver,
    find_compute_resource,
    find_floating_ip,
    find_internal_address,
)


def test_same_address_is_exact_equality():
    assert same_address("10.0.0.5", "10.0.0.5")
    assert same_address("10.0.0.5", ipaddress.ip_address("10.0.0.5"))
    assert not same_address("10.0.0.5", "10.0.0.50")
    assert not same_address("10.0.0.0/24", "10.0.0.5")
    assert not same_address(None, "10.0.0.5")
    assert not same_address("not-an-ip", "not-an-ip")


def test_same_address_handles_ipv6_forms():
    assert same_address("2001:db8::/64", "2001:db8::")
    assert same_address("2001:DB8:0::1", "2001:db8::1")
    assert same_address("::ffff:10.0.0.5", "10.0.0.5")


def test_parse_address_rejects_garbage():
    assert parse_address("nope") is None
    assert parse_address("") is None
    assert parse_address(" 10.1.2.3 ") == ipaddress.ip_address("10.1.2.3")


def test_first_match_returns_first_in_order():
    assert first_match([1, 2, 3, 4], lambda x: x % 2 == 0) == 2
    assert first_match([], lambda x: True) is None


def test_internal_address_found():
    members = [node("node-1", internal="10.0.0.5", external="203.0.113.50")]
    assert find_internal_address(members, "node-1") == ipaddress.ip_address("10.0.0.5")


def test_internal_address_missing_node():
    with pytest.raises(NotFoundError, match="node-9"):
        find_internal_address([node("node-1", internal="10.0.0.5")], "node-9")


def test_internal_address_missing_internal_ip():
    with pytest.raises(NotFoundError, match="could not find address"):
        find_internal_address([node("node-1", external="203.0.113.50")], "node-1")


def test_internal_address_invalid_value():
    members = [Member("node-1", (MemberAddress("InternalIP", "bogus"),))]
    with pytest.raises(NotFoundError, match="invalid internal address"):
        find_internal_address(members, "node-1")


def test_compute_resource_first_match_wins_on_duplicates():
    servers = [
        ComputeResource(1, "a", None),
        ComputeResource(2, "b", "10.0.0.5"),
        ComputeResource(3, "c", "10.0.0.5"),
    ]
    assert find_compute_resource(servers, ipaddress.ip_address("10.0.0.5")).id == 2


def test_compute_resource_not_found():
    with pytest.raises(NotFoundError, match="no server with IP address 10.0.0.9"):
        find_compute_resource([ComputeResource(1, "a", "10.0.0.5")], "10.0.0.9")


def test_floating_ip_not_allocated():
    with pytest.raises(NotFoundError, match="IP address 203.0.113.9 not allocated"):
        find_floating_ip([FloatingIP(1, "198.51.100.1", None)], "203.0.113.9")


def test_resolvers_query_injected_inventories(cluster, cloud):
    address = RoleAddressResolver(cluster).resolve("node-1")
    server = ComputeResolver(cloud).resolve(address)
    fip = FloatingIPResolver(cloud).resolve("203.0.113.9")

    assert str(address) == "10.0.0.5"
    assert server.name == "srv-7"
    assert fip.id == 101
    assert cluster.calls == 1


def test_floating_ip_resolver_is_idempotent(cloud):
    resolver = FloatingIPResolver(cloud)
    assert resolver.resolve("203.0.113.9") == resolver.resolve("203.0.113.9")


def test_role_resolver_propagates_transport_error(transport_error):
    with pytest.raises(type(transport_error)):
        RoleAddressResolver(FakeCluster(error=transport_error)).resolve("node-1")


def test_compute_resolver_empty_inventory():
    with pytest.raises(NotFoundError):
        ComputeResolver(FakeCloud()).resolve("10.0.0.5")
