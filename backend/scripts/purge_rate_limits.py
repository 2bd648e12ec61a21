#!/usr/bin/env python3
"""
Remove stale rate limit counters from the database.

Counters are never deleted during normal operation; a missing row behaves
exactly like a row with count 0, so rows whose window ended long ago can be
dropped at any time.

Run from backend container:
    python scripts/purge_rate_limits.py --older-than 86400

Options:
    --older-than    Age in seconds of the window start to purge (default: 1 day)
"""

import argparse
import asyncio
import sys

from authguard.core.exceptions import StoreUnavailableError
from authguard.core.logging import setup_logging
from authguard.db.session import async_session_maker, engine
from authguard.stores.sql import SqlCounterStore


async def main(older_than: int) -> int:
    store = SqlCounterStore(async_session_maker)
    try:
        deleted = await store.purge_expired(older_than)
    except StoreUnavailableError as e:
        print(f"Purge failed: {e}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    print(f"Deleted {deleted} rate limit counters")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--older-than", type=int, default=86400)
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(main(args.older_than)))
