"""
Date-window backfill scheduler.

Walks each requested year from Jan 1 to Dec 31 in 7-day windows (fight
cards are weekly at most, so a daily walk would mostly hit empty
scoreboards). For every window:

1. list events on the scoreboard for the window date
2. upsert each Event; count it when the write succeeds
3. for completed events, fetch the summary, parse the outcome and upsert
   participants, outcome and per-fighter stats

Everything runs sequentially with DelayGate pauses between calls. An event
that fails is logged and counted and the window moves on to the next event.
A window whose listing fails is recorded and the run moves on to the next
window. Only cancellation (IngestCancelled) stops a run early.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sportsfeed.core.logging import get_logger
from sportsfeed.services.core.espn_service import ESPNApiService
from sportsfeed.services.core.rate_limiter import (
    CancellationToken,
    DelayGate,
    IngestCancelled,
    EVENT_DETAIL_DELAY_MS,
    EVENT_LIST_DELAY_MS,
    WINDOW_DELAY_MS,
    YEAR_BATCH_DELAY_MS,
)
from sportsfeed.services.ingest.outcome_parser import NotePrecedence, parse_outcome
from sportsfeed.services.ingest.upsert_client import UpsertClient

logger = get_logger(__name__)

WINDOW_STEP_DAYS = 7


def window_dates(start: date, end: date, step_days: int = WINDOW_STEP_DAYS) -> Iterator[date]:
    """
    Yield window dates from ``start`` to ``end`` (inclusive) every ``step_days``.

    Each call returns a fresh generator, so the sequence can be replayed.
    """
    if step_days <= 0:
        raise ValueError("step_days must be positive")
    current = start
    step = timedelta(days=step_days)
    while current <= end:
        yield current
        current += step


def weekly_windows(year: int) -> Iterator[date]:
    """
    Weekly window dates for a calendar year.

    Examples:
        >>> [d.isoformat() for d in weekly_windows(2024)][:2]
        ['2024-01-01', '2024-01-08']
        >>> len(list(weekly_windows(2024)))
        53
    """
    return window_dates(date(year, 1, 1), date(year, 12, 31))


@dataclass
class WindowReport:
    """Result of one weekly window."""
    window: date
    events_upserted: int = 0
    fights_parsed: int = 0
    failed_writes: int = 0
    failed_events: int = 0
    error: Optional[str] = None


@dataclass
class YearReport:
    year: int
    windows: List[WindowReport] = field(default_factory=list)

    @property
    def events_upserted(self) -> int:
        return sum(w.events_upserted for w in self.windows)

    @property
    def failed_windows(self) -> int:
        return sum(1 for w in self.windows if w.error)

    @property
    def failed_events(self) -> int:
        return sum(w.failed_events for w in self.windows)


@dataclass
class BackfillReport:
    years: List[YearReport] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total_events(self) -> int:
        return sum(y.events_upserted for y in self.years)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_events": self.total_events,
            "cancelled": self.cancelled,
            "years": {
                y.year: {
                    "events_upserted": y.events_upserted,
                    "failed_windows": y.failed_windows,
                    "failed_events": y.failed_events,
                }
                for y in self.years
            },
        }


class BackfillScheduler:
    """
    Drive Fetcher -> Parser -> Upsert over weekly windows.

    Usage:
        scheduler = BackfillScheduler(ESPNApiService(), RestUpsertClient())
        report = await scheduler.run([2020, 2021])
    """

    def __init__(
        self,
        fetcher: ESPNApiService,
        upserter: UpsertClient,
        gate: Optional[DelayGate] = None,
        token: Optional[CancellationToken] = None,
        precedence: NotePrecedence = NotePrecedence.LAST_MATCH,
    ):
        self.fetcher = fetcher
        self.upserter = upserter
        self.token = token
        self.gate = gate or DelayGate(token)
        self.precedence = precedence

    def _check_cancelled(self) -> None:
        if self.token is not None:
            self.token.raise_if_cancelled()

    async def _upsert(self, collection: str, row: Dict[str, Any], report: WindowReport) -> bool:
        saved = await self.upserter.upsert(collection, row)
        if not saved:
            report.failed_writes += 1
        return saved

    async def import_event_details(self, event_id: str, event_name: str, report: WindowReport) -> bool:
        """
        Fetch, parse and store one completed event.

        Returns:
            True if the detail payload was parsed (writes may still have failed)
        """
        detail = await self.fetcher.fetch_event_detail(event_id)
        if detail is None:
            return False

        parsed = parse_outcome(event_id, detail, event_name=event_name, precedence=self.precedence)
        if parsed is None:
            return False

        for participant in parsed.participants:
            await self._upsert("participants", participant.to_row(), report)
        await self._upsert("outcomes", parsed.outcome.to_row(), report)
        for stat in parsed.stats:
            await self._upsert("stats", stat.to_row(), report)

        report.fights_parsed += 1
        await self.gate.wait(EVENT_DETAIL_DELAY_MS)
        return True

    async def run_window(self, window: date) -> WindowReport:
        """Process every event listed on the scoreboard for ``window``."""
        report = WindowReport(window=window)
        date_str = window.strftime("%Y%m%d")

        try:
            events = await self.fetcher.list_events_for_date(date_str)
        except IngestCancelled:
            raise
        except Exception as e:
            report.error = str(e)
            logger.error(f"Error importing events for {date_str}: {e}", extra={"date": date_str})
            return report

        for raw_event in events:
            await self.run_event(raw_event, date_str, report)
            await self.gate.wait(EVENT_LIST_DELAY_MS)

        return report

    async def run_event(self, raw_event: Dict[str, Any], date_str: str, report: WindowReport) -> None:
        """Upsert one listed event and, when completed, its details. Errors stay on ``report``."""
        event_id = ""
        try:
            event = self.fetcher.parse_event(raw_event)
            event_id = event.id
            if not event_id:
                logger.warning(f"Skipping event without id on {date_str}", extra={"date": date_str})
                return

            if await self._upsert("events", event.to_row(), report):
                report.events_upserted += 1
                logger.info(f"{date_str}: {event.name}", extra={"date": date_str, "event_id": event_id})

                if self.fetcher.is_completed(raw_event):
                    await self.import_event_details(event_id, event.name, report)
        except IngestCancelled:
            raise
        except Exception as e:
            report.failed_events += 1
            logger.error(
                f"Error importing event {event_id or '?'} on {date_str}: {e}",
                extra={"date": date_str, "event_id": event_id},
            )

    async def run_year(self, year: int, year_report: Optional[YearReport] = None) -> YearReport:
        """
        Walk one year in weekly windows.

        Window reports are appended to ``year_report`` as they finish, so a
        cancelled run keeps the windows it completed.
        """
        logger.info(f"Importing {year}...")
        if year_report is None:
            year_report = YearReport(year=year)

        for window in weekly_windows(year):
            self._check_cancelled()
            year_report.windows.append(await self.run_window(window))
            await self.gate.wait(WINDOW_DELAY_MS)

        logger.info(
            f"{year} complete: {year_report.events_upserted} events imported",
            extra={
                "year": year,
                "failed_windows": year_report.failed_windows,
                "failed_events": year_report.failed_events,
            },
        )
        return year_report

    async def run(self, years: Iterable[int]) -> BackfillReport:
        """
        Backfill several years, pausing between year batches.

        A cancelled run returns the partial report with ``cancelled=True``.
        """
        report = BackfillReport()
        try:
            for year in years:
                year_report = YearReport(year=year)
                report.years.append(year_report)
                await self.run_year(year, year_report)
                logger.info(f"Running total: {report.total_events} events")
                await self.gate.wait(YEAR_BATCH_DELAY_MS)
        except IngestCancelled:
            report.cancelled = True
            logger.warning(f"Backfill cancelled after {report.total_events} events")
        return report
