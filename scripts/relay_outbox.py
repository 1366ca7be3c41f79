"""Re-deliver fraud alerts left pending in the notification outbox.

Entries are retried until they succeed or reach the attempt cap.
Run: python -m scripts.relay_outbox [--limit N]
"""

import argparse
import asyncio
import logging

from app.config import get_settings
from app.dependencies import create_engine, create_session_factory
from app.services.email_relay import EmailRelay
from app.services.notification_outbox import OutboxRelay

logger = logging.getLogger(__name__)


async def main(limit: int) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    settings = get_settings()
    engine = create_engine(settings)
    email_relay = EmailRelay.from_settings(settings)
    relay = OutboxRelay(create_session_factory(engine), email_relay, settings)

    try:
        delivered = await relay.deliver(limit=limit)
        logger.info("Delivered %d pending fraud alert(s)", delivered)
    finally:
        await email_relay.close()
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--limit", type=int, default=100)
    asyncio.run(main(parser.parse_args().limit))
