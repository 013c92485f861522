#!/usr/bin/env python3
"""
Backfill UFC events, fights and fight stats from ESPN.

Walks INGEST_START_YEAR..INGEST_END_YEAR in weekly windows and upserts
everything it finds. Writes go to the hosted REST endpoint when
SUPABASE_URL is set, otherwise to the local DATABASE_URL store.

Usage:
    python run_ingest.py

Ctrl+C (or SIGTERM) stops the run after the current call; the partial
total is still logged. The process always exits 0.
"""
import asyncio
import signal
import sys
import uuid
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from dotenv import load_dotenv
load_dotenv(dotenv_path=Path(__file__).parent / ".env")

from sportsfeed.core.config import settings
from sportsfeed.core.database import SessionLocal, init_db
from sportsfeed.core.logging import configure_logging, get_logger, run_context
from sportsfeed.services.core.espn_service import ESPNApiService
from sportsfeed.services.core.rate_limiter import CancellationToken
from sportsfeed.services.ingest.scheduler import BackfillScheduler
from sportsfeed.services.ingest.upsert_client import (
    DatabaseUpsertClient,
    RestUpsertClient,
    UpsertClient,
)

logger = get_logger(__name__)


def build_upserter() -> UpsertClient:
    """REST upserts when the hosted endpoint is configured, else the local store."""
    if settings.SUPABASE_URL:
        logger.info("Writing to REST endpoint", extra={"url": settings.SUPABASE_URL})
        return RestUpsertClient()

    logger.info("SUPABASE_URL not set - writing to local database", extra={"url": settings.DATABASE_URL})
    init_db()
    return DatabaseUpsertClient(SessionLocal())


def install_signal_handlers(token: CancellationToken) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, token.cancel)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda *_: token.cancel())


async def main() -> None:
    years = settings.ingest_years()
    logger.info(f"Starting UFC backfill for {years[0]}-{years[-1]}" if years else "No years to backfill")

    token = CancellationToken()
    install_signal_handlers(token)

    fetcher = ESPNApiService()
    upserter = build_upserter()
    try:
        scheduler = BackfillScheduler(fetcher, upserter, token=token)
        report = await scheduler.run(years)
    finally:
        await fetcher.close()
        await upserter.close()
        if isinstance(upserter, DatabaseUpsertClient):
            upserter.db.close()

    logger.info(
        f"Import complete! Total: {report.total_events} events",
        extra={"report": report.to_dict()},
    )


def run() -> int:
    configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    with run_context(uuid.uuid4().hex[:12]):
        try:
            asyncio.run(main())
        except Exception as e:
            logger.exception(f"Backfill failed: {e}")
    return 0


if __name__ == "__main__":
    sys.exit(run())
