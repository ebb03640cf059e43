#!/usr/bin/env python3
"""
Scan and optionally delete Redis keys matching a pattern.
Default pattern targets the discovery result cache:
  discovery:{nearby|text}:{lat}:{lng}:...

Usage:
  # dry-run (default) - list keys only
  REDIS_HOST=localhost REDIS_PORT=6379 python3 scripts/clear_redis_cache.py --pattern "discovery:nearby:19.07*"

  # actually delete found keys (careful)
  REDIS_HOST=localhost REDIS_PORT=6379 python3 scripts/clear_redis_cache.py --pattern "discovery:*" --delete

If REDIS_PASSWORD is set, it will be used.
"""

import os
import argparse
import redis


def parse_args():
    p = argparse.ArgumentParser(description="Scan and optionally delete Redis keys for the discovery cache")
    p.add_argument("--pattern", default="discovery:*", help="Redis SCAN pattern to match keys")
    p.add_argument("--delete", action="store_true", help="Delete matched keys (use with caution)")
    p.add_argument("--count", type=int, default=100, help="SCAN count hint")
    return p.parse_args()


def main():
    args = parse_args()

    host = os.environ.get("REDIS_HOST", "localhost")
    port = int(os.environ.get("REDIS_PORT", 6379))
    password = os.environ.get("REDIS_PASSWORD") or None

    print(f"Connecting to Redis {host}:{port} (password set: {'yes' if password else 'no'})")
    try:
        r = redis.Redis(host=host, port=port, password=password, decode_responses=True)
        r.ping()
    except Exception as e:
        print(f"ERROR: cannot connect to Redis: {e}")
        return 2

    found = []
    try:
        found = list(r.scan_iter(match=args.pattern, count=args.count))
    except Exception as e:
        print(f"ERROR while scanning: {e}")
        return 3

    if not found:
        print(f"No keys match {args.pattern}.")
        return 0

    print(f"Found {len(found)} key(s) for {args.pattern}:")
    for k in found:
        print("  ", k)

    if not args.delete:
        print("Dry-run: no keys were deleted. Re-run with --delete to remove them.")
        return 0

    deleted = 0
    for k in found:
        try:
            deleted += r.delete(k)
        except Exception as e:
            print(f"Failed to delete {k}: {e}")
    print(f"Deleted {deleted} keys (requested {len(found)})")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
