"""Concurrent scan race against a running verifier.

Fires N simultaneous scans of the same token at the verify endpoint and
reports the outcome counts and latency percentiles. Against a fresh
token exactly one scan should succeed and the rest report
ALREADY_VERIFIED.

Usage:
    python scripts/load_test.py --token VOTE_DEMO_99 --scans 50
"""

import argparse
import asyncio
import statistics
import time
from collections import Counter

import httpx


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for the scan race."""
    parser = argparse.ArgumentParser(description="Concurrent scan race against BoothGuard")
    parser.add_argument("--token", type=str, required=True, help="Token to scan")
    parser.add_argument("--scans", type=int, default=50, help="Number of concurrent scans")
    parser.add_argument("--api-url", type=str, default="http://localhost:8000", help="API base URL")
    parser.add_argument("--api-key", type=str, default="", help="Scanner API key")
    return parser.parse_args()


async def _scan(client: httpx.AsyncClient, token: str) -> tuple[str, float]:
    start = time.monotonic()
    resp = await client.post("/api/v1/verify", json={"token": token})
    return resp.json().get("outcome", f"HTTP_{resp.status_code}"), time.monotonic() - start


async def main() -> None:
    """Run the scan race and print a summary."""
    args = parse_args()
    headers = {"Authorization": f"Bearer {args.api_key}"} if args.api_key else {}
    async with httpx.AsyncClient(base_url=args.api_url, headers=headers, timeout=30.0) as client:
        results = await asyncio.gather(*(_scan(client, args.token) for _ in range(args.scans)))

    outcomes = Counter(outcome for outcome, _ in results)
    latencies = sorted(latency for _, latency in results)
    print("Outcomes:")
    for outcome, count in outcomes.most_common():
        print(f"  {outcome:<20} {count}")
    print(f"Latency p50={statistics.median(latencies) * 1000:.1f}ms "
          f"max={latencies[-1] * 1000:.1f}ms")
    if outcomes.get("SUCCESS", 0) > 1:
        print("ERROR: more than one scan succeeded")


if __name__ == "__main__":
    asyncio.run(main())
