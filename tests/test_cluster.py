from types import SimpleNamespace

import pytest
from kubernetes.client.rest import ApiException

from fipc.cluster import KubeClusterInventory
from fipc.errors import TransportError
from fipc.models import Member, MemberAddress


def _node(name, *addresses):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name),
        status=SimpleNamespace(addresses=[SimpleNamespace(type=t, address=a) for t, a in addresses]),
    )


class FakeCoreApi:
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.kwargs = None

    def list_node(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(items=self.items)


def test_list_members_maps_node_addresses():
    api = FakeCoreApi([
        _node("node-1", ("InternalIP", "10.0.0.5"), ("Hostname", "node-1")),
        SimpleNamespace(metadata=SimpleNamespace(name="node-2"), status=SimpleNamespace(addresses=None)),
    ])
    members = KubeClusterInventory(api, timeout_s=3).list_members()

    assert members == [
        Member("node-1", (MemberAddress("InternalIP", "10.0.0.5"), MemberAddress("Hostname", "node-1"))),
        Member("node-2", ()),
    ]
    assert api.kwargs == {"_request_timeout": 3}


def test_api_exception_becomes_transport_error():
    api = FakeCoreApi(error=ApiException(status=403, reason="Forbidden"))
    with pytest.raises(TransportError, match="could not list nodes: 403 Forbidden") as exc:
        KubeClusterInventory(api).list_members()
    assert exc.value.status_code == 403
