#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from fedi.api import Unregistered


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Register an app and authorize a user (out-of-band code)")
    p.add_argument("base_url", help="Instance URL, e.g. https://mastodon.social")
    p.add_argument("--name", default="fedi-api example")
    p.add_argument("--scopes", default="read")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    registered = await Unregistered(args.base_url).register(args.name, scopes=args.scopes)
    pending = registered.authorize()
    print(f"Open this URL and approve the app:\n  {pending.url}")
    code = input("Paste the authorization code: ").strip()

    authorized = await pending.complete(code)
    async with authorized.client as client:
        account = await client.verify_credentials()
        print(f"Authorized as @{account.get('acct')}")
        print("Save these credentials (e.g. as FEDI_* environment variables):")
        print(client.to_data().model_dump_json(indent=2))


if __name__ == "__main__":
    asyncio.run(main())
