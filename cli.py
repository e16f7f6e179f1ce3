from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Docker Subdomain Proxy CLI")
    p.add_argument("--api", default="http://localhost:8080", help="Management API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_create = sub.add_parser("create", help="Create and start a container")
    s_create.add_argument("--image", required=True)
    s_create.add_argument("--tag", default="latest")

    sub.add_parser("routes", help="List registered routes")

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "routes":
        _print(requests.get(f"{base}/routes", timeout=10).json())
        return 0

    if args.cmd == "events":
        _print(requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10).json())
        return 0

    if args.cmd == "create":
        # Image pulls can take a while.
        r = requests.post(f"{base}/containers", json={"image": args.image, "tag": args.tag}, timeout=600)
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
