from __future__ import annotations

import argparse
import json
import sys

import requests

import main as controller


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Floating IP Controller CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_run = sub.add_parser("run", help="Run the controller loop")
    s_run.add_argument("--config", default=None, help="JSON config file")
    s_run.add_argument("--dry-run", action="store_true", help="Report reassignments without issuing them")

    s_once = sub.add_parser("once", help="Run one reconciliation cycle and print the result")
    s_once.add_argument("--config", default=None, help="JSON config file")
    s_once.add_argument("--dry-run", action="store_true", help="Report reassignments without issuing them")

    s_status = sub.add_parser("status", help="Show a running controller's status")
    s_status.add_argument("--api", default="http://localhost:8080", help="Status API base URL")

    s_ev = sub.add_parser("events", help="Show recent controller events")
    s_ev.add_argument("--api", default="http://localhost:8080", help="Status API base URL")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)

    if args.cmd == "run":
        return controller.run(args.config, dry_run=args.dry_run)

    if args.cmd == "once":
        code, result = controller.run_once(args.config, dry_run=args.dry_run)
        if result is not None:
            _print(result.to_dict())
        return code

    base = args.api.rstrip("/")
    try:
        if args.cmd == "status":
            r = requests.get(f"{base}/status", timeout=10)
        else:
            r = requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10)
    except requests.RequestException as e:
        print(f"could not reach {base}: {e}", file=sys.stderr)
        return 1
    _print(r.json())
    return 0 if r.ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
