from __future__ import annotations

import ipaddress
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_address(value: str | IPAddress | None) -> IPAddress | None:
    """Parse an address value; returns None when it is not an IP.

    A prefix suffix is accepted and dropped ("2001:db8::/64" -> 2001:db8::),
    since the cloud API reports IPv6 allocations as networks.
    """
    if value is None:
        return None
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value
    try:
        return ipaddress.ip_interface(str(value).strip()).ip
    except ValueError:
        return None


def same_address(a: str | IPAddress | None, b: str | IPAddress | None) -> bool:
    """Exact value equality of two addresses (no subnet matching)."""
    pa = parse_address(a)
    pb = parse_address(b)
    if pa is None or pb is None:
        return False
    # IPv4-mapped IPv6 compares equal to its IPv4 form.
    if isinstance(pa, ipaddress.IPv6Address) and pa.ipv4_mapped is not None:
        pa = pa.ipv4_mapped
    if isinstance(pb, ipaddress.IPv6Address) and pb.ipv4_mapped is not None:
        pb = pb.ipv4_mapped
    return pa == pb


def first_match(items: Iterable[T], predicate: Callable[[T], bool]) -> T | None:
    """Linear scan; the first item in listing order wins."""
    for item in items:
        if predicate(item):
            return item
    return None
