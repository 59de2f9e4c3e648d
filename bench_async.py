"""
Load generator for the ``/decision`` endpoint.

Each client cycles through a fixed request mix (public read, owner write,
cross-user private read, root claim) for the given duration. The report
gives p50/p95/p99 latency, throughput, and a tally of the decisions the
server returned, so a misrouted rule shows up as a skewed tally.

Start the API first, e.g. ``uvicorn docrules.api:app``, then:

    python bench_async.py --clients 50 --seconds 30
"""

from __future__ import annotations

import asyncio
import itertools
import statistics
import time
from collections import Counter

import httpx
import typer

MIX = [
    {"path": "/users/apple", "operation": "read", "before": {"exists": True}},
    {"path": "/users/apple", "operation": "update", "uid": "apple", "proposed": {"name": "Apple"}},
    {"path": "/users/apple/user_meta/private", "operation": "read", "uid": "banana"},
    {"path": "/settings/admins", "operation": "create", "uid": "apple", "proposed": {"apple": ["root"]}},
]


async def _client(url: str, stop_at: float, latencies: list[float], tally: Counter[str]) -> None:
    bodies = itertools.cycle(MIX)
    async with httpx.AsyncClient(timeout=10) as http:
        while time.perf_counter() < stop_at:
            t0 = time.perf_counter()
            resp = await http.post(url, json=next(bodies))
            latencies.append((time.perf_counter() - t0) * 1000)
            tally[resp.json().get("decision", f"HTTP {resp.status_code}")] += 1


def main(
    url: str = typer.Option("http://127.0.0.1:8000/decision", help="Decision endpoint"),
    clients: int = typer.Option(100, "--clients", "-c", help="Concurrent clients"),
    seconds: int = typer.Option(60, "--seconds", "-s", help="Run duration"),
) -> None:
    latencies: list[float] = []
    tally: Counter[str] = Counter()
    stop_at = time.perf_counter() + seconds

    async def run() -> None:
        await asyncio.gather(*(_client(url, stop_at, latencies, tally) for _ in range(clients)))

    asyncio.run(run())
    if len(latencies) < 2:
        typer.echo("not enough samples")
        raise typer.Exit(code=1)

    cuts = statistics.quantiles(latencies, n=100)
    typer.echo(f"requests   {len(latencies):,}  ({len(latencies) / seconds:,.0f} req/s)")
    typer.echo(f"latency    p50={cuts[49]:.2f} ms  p95={cuts[94]:.2f} ms  p99={cuts[98]:.2f} ms")
    for decision, n in tally.most_common():
        typer.echo(f"  {decision:<28} {n:,}")


if __name__ == "__main__":
    typer.run(main)
