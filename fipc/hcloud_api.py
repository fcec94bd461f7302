from __future__ import annotations

from typing import Any, Iterator

import httpx

from . import __version__
from .errors import TransportError
from .models import ComputeResource, FloatingIP

PER_PAGE = 50


class HCloudClient:
    """Minimal Hetzner Cloud API client covering what reconciliation needs.

    Every request carries its own timeout so a hung call cannot stall a
    cycle past ``timeout_s``.
    """

    def __init__(
        self,
        token: str,
        endpoint: str = "https://api.hetzner.cloud/v1",
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._http = httpx.Client(
            base_url=endpoint.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": f"fipc/{__version__}",
            },
            timeout=timeout_s,
            follow_redirects=False,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> HCloudClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {type(e).__name__}: {e}") from e

        if resp.status_code >= 400:
            raise TransportError(
                f"{method} {path} returned HTTP {resp.status_code}: {_error_detail(resp)}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned invalid JSON", status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise TransportError(f"{method} {path} returned unexpected payload", status_code=resp.status_code)
        return data

    def _paginate(self, path: str, key: str) -> Iterator[dict[str, Any]]:
        page: int | None = 1
        while page:
            data = self._request("GET", path, params={"page": page, "per_page": PER_PAGE})
            yield from data.get(key) or []
            pagination = (data.get("meta") or {}).get("pagination") or {}
            page = pagination.get("next_page")

    def list_compute_resources(self) -> list[ComputeResource]:
        try:
            servers = list(self._paginate("/servers", "servers"))
        except TransportError as e:
            raise TransportError(f"could not fetch servers: {e}", status_code=e.status_code) from e
        return [_server_from_api(s) for s in servers]

    def list_floating_ips(self) -> list[FloatingIP]:
        try:
            ips = list(self._paginate("/floating_ips", "floating_ips"))
        except TransportError as e:
            raise TransportError(f"could not fetch floating IPs: {e}", status_code=e.status_code) from e
        return [_floating_ip_from_api(ip) for ip in ips]

    def assign_floating_ip(self, floating_ip: FloatingIP, server: ComputeResource) -> dict[str, Any]:
        """Assign ``floating_ip`` to ``server``; returns the provider action."""
        try:
            data = self._request(
                "POST",
                f"/floating_ips/{floating_ip.id}/actions/assign",
                json={"server": server.id},
            )
        except TransportError as e:
            raise TransportError(f"could not update floating IP: {e}", status_code=e.status_code) from e

        action = data.get("action") or {}
        if action.get("status") == "error":
            err = action.get("error") or {}
            raise TransportError(
                f"could not update floating IP: assign action failed: "
                f"{err.get('code', 'unknown')}: {err.get('message', '')}".rstrip(": ")
            )
        return action


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase or "error"
    err = body.get("error") if isinstance(body, dict) else None
    if not isinstance(err, dict):
        return str(err or resp.reason_phrase or "error")
    code = err.get("code")
    message = err.get("message")
    if code and message:
        return f"{code}: {message}"
    return str(message or code or resp.reason_phrase or "error")


def _server_from_api(raw: dict[str, Any]) -> ComputeResource:
    ipv4 = (raw.get("public_net") or {}).get("ipv4") or {}
    return ComputeResource(id=int(raw["id"]), name=str(raw.get("name", "")), public_address=ipv4.get("ip"))


def _floating_ip_from_api(raw: dict[str, Any]) -> FloatingIP:
    server = raw.get("server")
    return FloatingIP(
        id=int(raw["id"]),
        address=str(raw.get("ip", "")),
        assignee_id=int(server) if server is not None else None,
        name=str(raw.get("name") or ""),
    )
