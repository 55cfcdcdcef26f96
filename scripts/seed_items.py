#!/usr/bin/env python3
"""
Seed sample items into a running NexTrade API.

Usage:
    # Start the API first:
    # uvicorn transports.http_server:app --port 5000

    python scripts/seed_items.py
    python scripts/seed_items.py --api-url https://nextrade.example.com
    python scripts/seed_items.py --dry-run
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

import requests

DEFAULT_API_URL = "http://127.0.0.1:5000"

SAMPLE_ITEMS: list[dict[str, Any]] = [
    {"name": "Widget", "price": "9.5", "category": "hardware"},
    {"name": "Gadget", "price": 24.99, "category": "hardware", "tags": ["new"]},
    {"name": "Sprocket", "price": "3.75", "category": "parts"},
    {"name": "Gift card", "category": "vouchers"},
]


def seed(api_url: str, items: list[dict[str, Any]], *, timeout: float) -> list[str]:
    inserted: list[str] = []
    for item in items:
        resp = requests.post(f"{api_url.rstrip('/')}/api/items", json=item, timeout=timeout)
        resp.raise_for_status()
        inserted_id = resp.json()["insertedId"]
        print(f"created {item['name']!r} -> {inserted_id}")
        inserted.append(inserted_id)
    return inserted


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--api-url", default=DEFAULT_API_URL, help="Base URL of the API")
    parser.add_argument("--timeout", type=float, default=10.0, help="Per-request timeout in seconds")
    parser.add_argument("--dry-run", action="store_true", help="Print the payloads without sending them")
    args = parser.parse_args(argv)

    if args.dry_run:
        print(json.dumps(SAMPLE_ITEMS, indent=2))
        return 0

    try:
        seed(args.api_url, SAMPLE_ITEMS, timeout=args.timeout)
    except requests.RequestException as exc:
        print(f"seeding failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
