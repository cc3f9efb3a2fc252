#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from fedi.api import (
    AuthenticatedClient,
    Data,
    Delete,
    Notification,
    StreamError,
    Unknown,
    Update,
)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Print events from the user stream")
    p.add_argument("--websocket", action="store_true", help="Use the websocket streaming API")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    async with AuthenticatedClient.from_data(Data.from_env("FEDI_")) as client:
        try:
            async with client.stream_user(websocket=args.websocket) as events:
                async for event in events:
                    if isinstance(event, Update):
                        print(f"update       | {event.entity['account']['acct']}: {event.entity['id']}")
                    elif isinstance(event, Notification):
                        print(f"notification | {event.entity['type']}")
                    elif isinstance(event, Delete):
                        print(f"delete       | {event.status_id}")
                    elif isinstance(event, Unknown):
                        print(f"unknown      | {event.event_name}")
                    else:
                        print(f"{event.type.value}")
        except StreamError as e:
            print(f"Stream ended: {e} (status={e.status}, last_event_id={e.last_event_id})")


if __name__ == "__main__":
    asyncio.run(main())
