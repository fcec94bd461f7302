"""Process entry point: wire the controller together and run it."""
from __future__ import annotations

import argparse
import dataclasses
import signal
import sys
import threading
from typing import Any

import uvicorn

from fipc import __version__
from fipc.cluster import KubeClusterInventory, load_core_api
from fipc.errors import ConfigError, FipcError
from fipc.events import configure_logging, log_event
from fipc.hcloud_api import HCloudClient
from fipc.reconciler import Reconciler, policy_from_settings
from fipc.runtime import CycleResult, RuntimeState
from fipc.settings import Settings, load_settings
from fipc.status_api import create_app


def cloud_client(settings: Settings) -> HCloudClient:
    return HCloudClient(settings.hcloud_token, settings.hcloud_endpoint, timeout_s=settings.request_timeout_s)


def build_reconciler(
    settings: Settings,
    cloud: HCloudClient,
    runtime: RuntimeState | None = None,
    core_api: Any = None,
) -> Reconciler:
    if core_api is None:
        core_api = load_core_api(settings.kubeconfig)
    return Reconciler(
        cluster=KubeClusterInventory(core_api, timeout_s=settings.request_timeout_s),
        cloud=cloud,
        node_name=settings.node_name,
        floating_ip=settings.floating_ip,
        poll_interval_s=settings.poll_interval_s,
        policy=policy_from_settings(settings),
        runtime=runtime,
        dry_run=settings.dry_run,
    )


def start_status_server(settings: Settings, runtime: RuntimeState) -> threading.Thread:
    server = uvicorn.Server(
        uvicorn.Config(create_app(runtime), host=settings.status_host, port=settings.status_port, log_level="warning")
    )
    thr = threading.Thread(target=server.run, name="fipc-status", daemon=True)
    thr.start()
    log_event("INFO", f"Status API listening on {settings.status_host}:{settings.status_port}")
    return thr


def install_signal_handlers(reconciler: Reconciler) -> None:
    def _handle(signum, frame) -> None:
        log_event("INFO", f"Received {signal.Signals(signum).name}, shutting down")
        reconciler.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def setup(config_path: str | None = None, dry_run: bool = False) -> Settings:
    configure_logging()
    settings = load_settings(config_path)
    if dry_run and not settings.dry_run:
        settings = dataclasses.replace(settings, dry_run=True)
    configure_logging(settings.log_level)
    return settings


def run(config_path: str | None = None, dry_run: bool = False) -> int:
    """Run the controller until a signal arrives or an error ends the loop."""
    try:
        settings = setup(config_path, dry_run)
    except ConfigError as e:
        print(f"could not load configuration: {e}", file=sys.stderr)
        return 2

    runtime = RuntimeState()
    with cloud_client(settings) as cloud:
        try:
            reconciler = build_reconciler(settings, cloud, runtime=runtime)
        except FipcError as e:
            print(f"could not initialise client: {e}", file=sys.stderr)
            return 1

        log_event("INFO", f"fipc {__version__} managing {settings.floating_ip} for node {settings.node_name}")
        if settings.status_enabled:
            start_status_server(settings, runtime)
        install_signal_handlers(reconciler)

        try:
            reconciler.run()
        except FipcError as e:
            print(f"could not run client: {e}", file=sys.stderr)
            return 1
    return 0


def run_once(config_path: str | None = None, dry_run: bool = False) -> tuple[int, CycleResult | None]:
    """Run a single cycle. Returns (exit_code, result)."""
    try:
        settings = setup(config_path, dry_run)
    except ConfigError as e:
        print(f"could not load configuration: {e}", file=sys.stderr)
        return 2, None

    with cloud_client(settings) as cloud:
        try:
            reconciler = build_reconciler(settings, cloud)
        except FipcError as e:
            print(f"could not initialise client: {e}", file=sys.stderr)
            return 1, None
        result = reconciler.run_cycle()
    return (0 if result.ok else 1), result


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Floating IP controller")
    p.add_argument("--config", default=None, help="JSON config file (default: config/config.json)")
    p.add_argument("--dry-run", action="store_true", help="Report reassignments without issuing them")
    args = p.parse_args(argv)
    return run(args.config, dry_run=args.dry_run)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
