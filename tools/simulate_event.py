"""
Post a batch of sample log entries to the log API so the analyser has something to read.

Usage:
  python -m tools.simulate_event --scenario warning --count 20
  python -m tools.simulate_event --url http://localhost:4000/api/write-log --scenario critical

Scenarios: healthy (INFO only), warning (some WARN/ERROR), critical (error burst).
"""
import argparse
import json
import random
import requests

SAMPLES = {
    "INFO": [
        ("GET /api/users 200 in 84ms", "200"),
        ("POST /api/orders 201 in 132ms", "201"),
        ("Health check passed", "200"),
        ("Cache warmed: 1200 keys", None),
    ],
    "WARN": [
        ("Slow query on orders table: 1840ms", None),
        ("Memory usage at 82%", None),
        ("Rate limit reached for client 10.0.0.12", "429"),
    ],
    "ERROR": [
        ("Database connection timeout after 30000ms", "500"),
        ("Upstream payment service returned 502", "502"),
        ("Authentication failed for user admin from 10.0.0.7", "401"),
        ("Unhandled exception in worker: OutOfMemoryError", "500"),
    ],
}

# (INFO, WARN, ERROR) weights per scenario
WEIGHTS = {
    "healthy": (1.0, 0.0, 0.0),
    "warning": (0.75, 0.2, 0.05),
    "critical": (0.3, 0.2, 0.5),
}


def build_entries(scenario: str, count: int, seed=None):
    rng = random.Random(seed)
    levels = rng.choices(["INFO", "WARN", "ERROR"], weights=WEIGHTS[scenario], k=count)
    entries = []
    for level in levels:
        message, status = rng.choice(SAMPLES[level])
        entry = {"level": level, "message": message}
        if status:
            entry["status"] = status
        entries.append(entry)
    return entries


def post_entries(url: str, entries, timeout: float = 5):
    written = 0
    for entry in entries:
        resp = requests.post(url, json=entry, timeout=timeout)
        resp.raise_for_status()
        written += 1
    return written


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--url", default="http://localhost:4000/api/write-log")
    parser.add_argument("--scenario", choices=sorted(WEIGHTS), default="warning")
    parser.add_argument("--count", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--dry-run", action="store_true", help="print entries instead of posting")
    args = parser.parse_args()

    entries = build_entries(args.scenario, args.count, args.seed)
    if args.dry_run:
        print(json.dumps(entries, indent=2))
    else:
        n = post_entries(args.url, entries)
        print(f"Wrote {n} {args.scenario} entries to {args.url}")
