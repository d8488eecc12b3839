#!/usr/bin/env python3
"""
Send N snippets in parallel to a running API's POST /execute.

The runner evaluates one snippet at a time, so a batch of infinite loops
shows how requests queue behind the execution deadline.

Usage:
  python scripts/execute_concurrent.py [--url URL] [--concurrent N] [--code CODE]
  Or set env: API_URL, CONCURRENT
"""

import argparse
import os
from concurrent.futures import ThreadPoolExecutor, as_completed

import httpx


def do_request(url: str, code: str, index: int) -> tuple[int, int, str]:
    """POST one snippet; return (index, status_code, error or result)."""
    try:
        r = httpx.post(url, json={"code": code}, timeout=30)
    except httpx.HTTPError as e:
        return (index, -1, str(e))
    body = r.json() if r.headers.get("content-type", "").startswith("application/json") else {}
    return (index, r.status_code, body.get("error") or body.get("result") or "")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Send N parallel snippets to POST /execute."
    )
    parser.add_argument(
        "--url",
        default=os.environ.get("API_URL", "http://localhost:3000/execute"),
    )
    parser.add_argument(
        "--concurrent",
        type=int,
        default=int(os.environ.get("CONCURRENT", "5")),
        help="Number of concurrent requests (default 5)",
    )
    parser.add_argument(
        "--code",
        default="while True: pass",
        help="Snippet to send (default: an infinite loop)",
    )
    args = parser.parse_args()

    print(f"Sending {args.concurrent} concurrent POST requests to {args.url}")
    print("---")

    results: list[tuple[int, int, str]] = []
    with ThreadPoolExecutor(max_workers=args.concurrent) as executor:
        futures = {
            executor.submit(do_request, args.url, args.code, i): i
            for i in range(1, args.concurrent + 1)
        }
        for fut in as_completed(futures):
            idx, status, detail = fut.result()
            results.append((idx, status, detail))
            status_str = str(status) if status >= 0 else "ERR"
            print(f"{idx} HTTP {status_str} {detail}")

    print("---")
    ok = sum(1 for _, s, _ in results if s == 200)
    upstream = sum(1 for _, s, _ in results if s in (502, 503, 504))
    err = sum(1 for _, s, _ in results if s < 0)
    print(f"Done. 200={ok} runner-errors={upstream} errors={err}")


if __name__ == "__main__":
    main()
