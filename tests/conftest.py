import os as _os
import sys

import pytest

# Ensure project root is importable (so `import fipc` / `import main` work without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fipc.errors import TransportError  # noqa: E402
from fipc.events import clear_events  # noqa: E402
from fipc.models import ComputeResource, FloatingIP, Member, MemberAddress  # noqa: E402


class FakeCluster:
    def __init__(self, members=None, error=None):
        self.members = list(members or [])
        self.error = error
        self.calls = 0

    def list_members(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.members)


class FakeCloud:
    def __init__(self, servers=None, floating_ips=None, assign_error=None):
        self.servers = list(servers or [])
        self.floating_ips = list(floating_ips or [])
        self.assign_error = assign_error
        self.list_servers_error = None
        self.assign_calls = []

    def list_compute_resources(self):
        if self.list_servers_error:
            raise self.list_servers_error
        return list(self.servers)

    def list_floating_ips(self):
        return list(self.floating_ips)

    def assign_floating_ip(self, floating_ip, server):
        self.assign_calls.append((floating_ip.address, server.id))
        if self.assign_error:
            raise self.assign_error
        self.floating_ips = [
            FloatingIP(id=f.id, address=f.address, assignee_id=server.id, name=f.name) if f.id == floating_ip.id else f
            for f in self.floating_ips
        ]
        return {"id": 1, "command": "assign_floating_ip", "status": "running"}


def node(name, internal=None, external=None):
    addrs = []
    if external:
        addrs.append(MemberAddress("ExternalIP", external))
    if internal:
        addrs.append(MemberAddress("InternalIP", internal))
    addrs.append(MemberAddress("Hostname", name))
    return Member(identity=name, addresses=tuple(addrs))


@pytest.fixture(autouse=True)
def _clean_events():
    clear_events()
    yield
    clear_events()


@pytest.fixture
def cluster():
    return FakeCluster([node("node-1", internal="10.0.0.5"), node("node-2", internal="10.0.0.6")])


@pytest.fixture
def cloud():
    return FakeCloud(
        servers=[
            ComputeResource(id=3, name="srv-3", public_address="10.0.0.3"),
            ComputeResource(id=7, name="srv-7", public_address="10.0.0.5"),
        ],
        floating_ips=[
            FloatingIP(id=100, address="198.51.100.1", assignee_id=None, name="other"),
            FloatingIP(id=101, address="203.0.113.9", assignee_id=3, name="vip"),
        ],
    )


@pytest.fixture
def transport_error():
    return TransportError("could not fetch servers: ConnectError: boom")
