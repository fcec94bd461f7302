from __future__ import annotations

from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from .errors import TransportError
from .events import log_event
from .models import Member, MemberAddress


def load_core_api(kubeconfig: str | None = None) -> client.CoreV1Api:
    """Build a CoreV1Api client: in-cluster first, then a kubeconfig file."""
    try:
        config.load_incluster_config()
        log_event("DEBUG", "Using in-cluster Kubernetes config")
    except config.ConfigException:
        try:
            config.load_kube_config(config_file=kubeconfig)
        except (config.ConfigException, OSError) as e:
            raise TransportError(f"could not get kubeconfig: {e}") from e
        log_event("DEBUG", "Using local kubeconfig")
    return client.CoreV1Api()


class KubeClusterInventory:
    """Lists cluster nodes as ``Member`` records."""

    def __init__(self, core_api: Any, timeout_s: float = 10.0):
        self.core_api = core_api
        self.timeout_s = timeout_s

    def list_members(self) -> list[Member]:
        try:
            nodes = self.core_api.list_node(_request_timeout=self.timeout_s)
        except ApiException as e:
            raise TransportError(f"could not list nodes: {e.status} {e.reason}", status_code=e.status) from e
        except Urllib3HTTPError as e:
            raise TransportError(f"could not list nodes: {type(e).__name__}: {e}") from e
        return [_member_from_node(n) for n in nodes.items or []]


def _member_from_node(node: Any) -> Member:
    status = getattr(node, "status", None)
    addresses = tuple(
        MemberAddress(type=a.type, value=a.address)
        for a in (getattr(status, "addresses", None) or [])
    )
    return Member(identity=node.metadata.name, addresses=addresses)
