#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from fedi.api import AuthenticatedClient, Data


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Walk the home timeline (credentials from FEDI_* env vars)")
    p.add_argument("limit", nargs="?", type=int, default=40)
    p.add_argument("--max-pages", type=int, default=3)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    client = AuthenticatedClient.from_data(Data.from_env("FEDI_"))
    try:
        count = 0
        async for status in client.items_iter("/api/v1/timelines/home", max_pages=args.max_pages):
            account = status["account"]["acct"]
            print(f"{status['created_at']:25} | @{account:30} | {status['id']}")
            count += 1
            if count >= args.limit:
                break
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
