from __future__ import annotations

from dataclasses import dataclass
from threading import Event
from typing import Callable

from .errors import FipcError, TransportError
from .events import log_event, utc_now
from .models import ComputeResource, FloatingIP
from .resolvers import CloudInventory, ClusterInventory, ComputeResolver, FloatingIPResolver, RoleAddressResolver
from .runtime import CANCELLED, FAILED, PLANNED, REASSIGNED, UNCHANGED, CycleResult, RuntimeState
from .settings import Settings

# (error, consecutive failed cycles) -> seconds to wait before the next cycle, or None to stop.
ErrorPolicy = Callable[[FipcError, int], float | None]


def fail_fast(error: FipcError, attempt: int) -> float | None:
    """Every error ends the loop."""
    return None


@dataclass(frozen=True)
class RetryTransport:
    """Retry transport failures with capped exponential backoff.

    Missing records stay fatal: retrying cannot make them appear.
    """

    initial_s: float = 1.0
    max_s: float = 60.0
    max_attempts: int = 5

    def __call__(self, error: FipcError, attempt: int) -> float | None:
        if not isinstance(error, TransportError) or attempt > self.max_attempts:
            return None
        return min(self.max_s, self.initial_s * (2 ** (attempt - 1)))


def policy_from_settings(settings: Settings) -> ErrorPolicy:
    if not settings.retry_transport:
        return fail_fast
    return RetryTransport(
        initial_s=settings.retry_initial_backoff_s,
        max_s=settings.retry_max_backoff_s,
        max_attempts=settings.retry_max_attempts,
    )


def needs_reassignment(floating_ip: FloatingIP, server: ComputeResource) -> bool:
    return floating_ip.assignee_id != server.id


class _Cancelled(Exception):
    pass


class Reconciler:
    """Keeps the floating IP assigned to the server behind ``node_name``.

    One cycle resolves node address -> server -> floating IP and issues a
    single assign call on mismatch. ``run`` repeats cycles every
    ``poll_interval_s`` until ``stop`` is called or the error policy gives up.
    """

    def __init__(
        self,
        cluster: ClusterInventory,
        cloud: CloudInventory,
        node_name: str,
        floating_ip: str,
        poll_interval_s: float = 30,
        policy: ErrorPolicy = fail_fast,
        runtime: RuntimeState | None = None,
        dry_run: bool = False,
        sleeper: Callable[[float], bool] | None = None,
    ):
        self.cloud = cloud
        self.node_name = node_name
        self.floating_ip = floating_ip
        self.poll_interval_s = poll_interval_s
        self.policy = policy
        self.runtime = runtime or RuntimeState()
        self.dry_run = dry_run

        self.role_resolver = RoleAddressResolver(cluster)
        self.compute_resolver = ComputeResolver(cloud)
        self.floating_ip_resolver = FloatingIPResolver(cloud)

        self._stop = Event()
        # sleeper(seconds) -> True when cancelled during the wait
        self._sleep = sleeper or self._stop.wait

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def run(self) -> None:
        """Reconcile until cancelled. Raises the error that ended the loop."""
        self.runtime.mark_started()
        log_event("INFO", "Reconciler started", node=self.node_name, floating_ip=self.floating_ip)
        attempt = 0
        try:
            while not self.cancelled:
                result = self.run_cycle()
                if result.action == CANCELLED:
                    break
                if result.ok:
                    attempt = 0
                    delay = self.poll_interval_s
                else:
                    attempt += 1
                    delay = self.policy(result.exc, attempt)
                    if delay is None:
                        raise result.exc
                    log_event(
                        "WARN",
                        f"Retrying in {delay:g}s after failed cycle {attempt}: {result.error}",
                        node=self.node_name,
                        floating_ip=self.floating_ip,
                    )
                if self._sleep(delay) or self.cancelled:
                    break
        finally:
            self.runtime.mark_stopped()
            log_event("INFO", "Reconciler stopped", node=self.node_name, floating_ip=self.floating_ip)

    def run_cycle(self) -> CycleResult:
        """Run one resolve-compare-correct pass. Errors are returned, not raised."""
        result = CycleResult(node=self.node_name, floating_ip=self.floating_ip)
        try:
            self._reconcile(result)
        except _Cancelled:
            result.action = CANCELLED
        except FipcError as e:
            if self.cancelled:
                result.action = CANCELLED
            else:
                result.action = FAILED
                result.error = str(e)
                result.error_kind = type(e).__name__
                result.exc = e
                log_event("ERROR", f"Reconcile cycle failed: {result.error_kind}: {e}",
                          node=self.node_name, floating_ip=self.floating_ip)
        result.finished_at = utc_now()
        if result.action != CANCELLED:
            self.runtime.record_cycle(result)
        return result

    def _check_cancelled(self) -> None:
        if self.cancelled:
            raise _Cancelled()

    def _reconcile(self, result: CycleResult) -> None:
        self._check_cancelled()
        address = self.role_resolver.resolve(self.node_name)
        result.node_address = str(address)

        self._check_cancelled()
        server = self.compute_resolver.resolve(address)
        result.server_id = server.id
        result.server_name = server.name

        self._check_cancelled()
        fip = self.floating_ip_resolver.resolve(self.floating_ip)
        result.previous_assignee_id = fip.assignee_id

        if not needs_reassignment(fip, server):
            result.action = UNCHANGED
            log_event(
                "INFO",
                f"Address {fip.address} already assigned to server {server.name}. Nothing to do.",
                node=self.node_name,
                floating_ip=self.floating_ip,
            )
            return

        if self.dry_run:
            result.action = PLANNED
            log_event(
                "INFO",
                f"Dry run: would switch address {fip.address} from server {fip.assignee_id} to server {server.name}.",
                node=self.node_name,
                floating_ip=self.floating_ip,
            )
            return

        self._check_cancelled()
        log_event(
            "INFO",
            f"Switching address {fip.address} to server {server.name}.",
            node=self.node_name,
            floating_ip=self.floating_ip,
        )
        self.cloud.assign_floating_ip(fip, server)
        result.action = REASSIGNED
