"""Worker process for the scheduled contract status job.

Runs an asyncio loop that reconciles contract statuses and purges expired
session tokens every ``RECONCILE_INTERVAL_SECONDS`` (daily by default).
The POST /contracts/cron endpoint does the same work for deployments that
prefer an external scheduler.
"""

from __future__ import annotations

import asyncio
import logging

from contracthub.config import get_settings
from contracthub.db import get_session_factory

logger = logging.getLogger(__name__)


async def run_once() -> None:
    """One pass of the scheduled jobs. Failures are logged and the loop carries on."""
    from contracthub.services.auth import cleanup_expired_tokens
    from contracthub.services.status import reconcile_all

    session_factory = get_session_factory()

    try:
        async with session_factory() as session:
            result = await reconcile_all(session)
        logger.info(
            "Status run complete: processed=%d updated=%d errors=%d",
            result.processed,
            result.updated_count,
            result.errors,
        )
    except Exception:
        logger.exception("Contract status run failed")

    try:
        async with session_factory() as session:
            await cleanup_expired_tokens(session)
    except Exception:
        logger.exception("Session token cleanup failed")


async def run_status_loop() -> None:
    """Main worker loop."""
    interval = get_settings().reconcile_interval_seconds
    logger.info("Contract status worker started (interval=%ds)", interval)

    while True:
        await run_once()
        await asyncio.sleep(interval)


def main() -> None:
    """Entry point for the worker process."""
    level = getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(run_status_loop())


if __name__ == "__main__":
    main()
