from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from typing import Any
import urllib.request
import urllib.error


DEFAULT_BASE_URL = os.getenv("HUB_BASE_URL", "http://localhost:8000")
DEFAULT_ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")

DEFAULT_TIMEOUT_SECONDS = 120
MAX_ROWS_PER_REQUEST = 1000


def http_post(url: str, payload: dict[str, Any], token: str) -> dict[str, Any]:
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(
        url=url,
        data=data,
        method="POST",
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=DEFAULT_TIMEOUT_SECONDS) as resp:
            raw = resp.read().decode("utf-8")
            return json.loads(raw) if raw else {}
    except urllib.error.HTTPError as e:
        # 400 (every row failed) and 503 (store down mid-batch) still carry a report body
        body = e.read().decode("utf-8", errors="replace")
        try:
            parsed = json.loads(body) if body else {}
        except json.JSONDecodeError:
            parsed = {}
        if isinstance(parsed, dict) and "data" in parsed:
            return parsed
        print(f"HTTP {e.code} {e.reason} for {url}", file=sys.stderr)
        if body:
            print(body, file=sys.stderr)
        return {"error": {"status": e.code, "reason": e.reason, "body": body}}
    except urllib.error.URLError as e:
        print(f"Network error for {url}: {e}", file=sys.stderr)
        return {"error": {"reason": str(e)}}


def read_rows(path: str) -> list[dict[str, str]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        return [
            {k: v for k, v in row.items() if k is not None}
            for row in reader
            if any((v or "").strip() for k, v in row.items() if k is not None)
        ]


def chunked(rows: list[dict[str, str]], size: int) -> list[list[dict[str, str]]]:
    return [rows[i : i + size] for i in range(0, len(rows), size)]


def main() -> int:
    p = argparse.ArgumentParser(description="Bulk-import an MLS CSV export (preview/apply).")
    p.add_argument("--file", required=True, help="path to csv export")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL)
    p.add_argument("--token", default=DEFAULT_ADMIN_TOKEN)
    p.add_argument("--mode", choices=["preview", "apply"], default="preview")
    p.add_argument("--chunk-size", type=int, default=MAX_ROWS_PER_REQUEST)
    p.add_argument("--yes", action="store_true", help="required for apply mode (safety)")
    args = p.parse_args()

    if not args.token:
        print("Missing ADMIN_TOKEN (env) or --token", file=sys.stderr)
        return 2

    if args.mode == "apply" and not args.yes:
        print("Refusing to apply without --yes (safety).", file=sys.stderr)
        return 2

    if not 1 <= args.chunk_size <= MAX_ROWS_PER_REQUEST:
        print(f"--chunk-size must be 1-{MAX_ROWS_PER_REQUEST}", file=sys.stderr)
        return 2

    try:
        rows = read_rows(args.file)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        print(f"Failed to read CSV file: {e}", file=sys.stderr)
        return 2

    if not rows:
        print("CSV file has no data rows.", file=sys.stderr)
        return 2

    suffix = "bulk:preview" if args.mode == "preview" else "bulk"
    endpoint = f"{args.base_url.rstrip('/')}/v1/listings/{suffix}"

    totals = {"total": 0, "created": 0, "updated": 0, "errors": 0}
    exit_code = 0

    for index, chunk in enumerate(chunked(rows, args.chunk_size)):
        offset = index * args.chunk_size
        resp = http_post(endpoint, {"listings": chunk}, args.token)
        if "error" in resp:
            return 1

        data = resp.get("data", {})
        for key in ("total", "created", "updated"):
            totals[key] += data.get(key, 0)
        for err in data.get("errors", []):
            totals["errors"] += 1
            # server rows are 1-based within the chunk
            row = offset + err["row"]
            print(f"row {row} ({err.get('mlsNumber') or '-'}): {err['error']}", file=sys.stderr)

        print(f"chunk {index + 1}: {resp.get('message')}")

        if data.get("incomplete"):
            print("Store became unavailable; stopping. Re-run to finish the remaining rows.", file=sys.stderr)
            exit_code = 1
            break

    print(json.dumps(totals, indent=2))
    return exit_code

if __name__ == "__main__":
    raise SystemExit(main())
