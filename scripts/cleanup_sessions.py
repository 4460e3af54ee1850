#!/usr/bin/env python3
"""
Purge sessions that expired or were revoked long ago.

Usage:
    python scripts/cleanup_sessions.py            # default retention: 7 days
    python scripts/cleanup_sessions.py --days 30
"""

import argparse
import asyncio
import logging
from datetime import timedelta

from educrm.config import get_settings
from educrm.container import Container
from educrm.main import configure_logging


async def main():
    parser = argparse.ArgumentParser(description="Delete long-dead sessions")
    parser.add_argument("--days", type=int, default=7, help="Retention in days after expiry or revocation")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    container = Container(settings)
    try:
        deleted = await container.sessions.cleanup(timedelta(days=args.days))
        logging.getLogger("educrm.scripts").info(f"Deleted {deleted} session(s)")
    finally:
        await container.close()


if __name__ == "__main__":
    asyncio.run(main())
