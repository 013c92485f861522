"""
ESPN API Service for MMA (UFC) schedule and result data.

ESPN API Endpoints:
- Base URL: https://site.api.espn.com/apis/site/v2/sports/
- Scoreboard (events on a date): {base}/mma/ufc/scoreboard?dates=YYYYMMDD
- Summary (per-event detail):    {base}/mma/ufc/summary?event=<id>
- Documentation: Unofficial, community-maintained

Rate Limits: No official limits, but calls are spaced by the DelayGate.

Failure policy: network errors, HTTP errors and malformed JSON are logged
with the date / event id and turned into an empty result, so the caller can
move on to the next unit of work.
"""
from typing import List, Dict, Optional, Any
import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from sportsfeed.core.config import settings
from sportsfeed.core.logging import get_logger
from sportsfeed.models.records import Event

logger = get_logger(__name__)

# ESPN API base URL
ESPN_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports"

# Sport mappings
ESPN_SPORT_PATHS = {
    'ufc': 'mma/ufc',
}

DEFAULT_MAX_ATTEMPTS = 3


def _is_retryable(exc: BaseException) -> bool:
    """Transport errors, timeouts, 429 and 5xx are worth another attempt."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, (httpx.RequestError, httpx.TimeoutException))


def _text(value: Any) -> str:
    """Upstream strings that may be absent or null become ''."""
    return value if isinstance(value, str) else ""


class ESPNApiService:
    """
    ESPN API service for fetching fight cards and fight details.

    Usage:
        service = ESPNApiService()
        events = await service.list_events_for_date('20240413')
        detail = await service.fetch_event_detail(events[0]['id'])
        await service.close()
    """

    def __init__(
        self,
        sport_id: str = "ufc",
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_wait: Optional[wait_base] = None,
    ):
        """
        Initialize ESPN API service.

        Args:
            sport_id: Key into ESPN_SPORT_PATHS (default: 'ufc')
            client: Optional pre-built HTTP client (tests pass a MockTransport client)
            timeout: Per-call timeout in seconds (default: settings.HTTP_TIMEOUT_SECONDS)
            max_attempts: Attempts per call for retryable failures
            retry_wait: tenacity wait strategy between attempts
        """
        if sport_id not in ESPN_SPORT_PATHS:
            raise ValueError(f"Unknown sport_id: {sport_id}. Must be one of: {list(ESPN_SPORT_PATHS.keys())}")

        self.sport_path = ESPN_SPORT_PATHS[sport_id]
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={
                    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
                    "Accept": "application/json",
                }
            )
        return self._client

    async def close(self):
        """Close the HTTP client (only if this service created it)."""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def _fetch(self, endpoint: str, params: Dict[str, str]) -> Dict:
        """
        Fetch JSON from an ESPN endpoint with bounded retries.

        Args:
            endpoint: 'scoreboard' or 'summary'
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            httpx.HTTPError: when the last attempt still fails
            ValueError: on a body that is not valid JSON
        """
        url = f"{ESPN_BASE_URL}/{self.sport_path}/{endpoint}"
        client = await self._get_client()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                response = await client.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

    # ==================== SCOREBOARD ====================

    async def list_events_for_date(self, date: str) -> List[Dict[str, Any]]:
        """
        Get raw events listed on the scoreboard for a date.

        Args:
            date: Date in YYYYMMDD format

        Returns:
            List of raw event dicts (empty if none, or on any failure)
        """
        try:
            data = await self._fetch("scoreboard", {"dates": date})
        except Exception as e:
            logger.error(f"Error fetching events for {date}: {e}", extra={"date": date})
            return []

        events = data.get('events') if isinstance(data, dict) else None
        if not isinstance(events, list) or not events:
            logger.debug(f"No events listed for {date}")
            return []

        return [event for event in events if isinstance(event, dict)]

    # ==================== SUMMARY ====================

    async def fetch_event_detail(self, event_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the summary payload for an event.

        Returns None (a no-op for the caller, not an error) when the payload
        has no competitions[0] or fewer than two competitors.
        """
        try:
            data = await self._fetch("summary", {"event": str(event_id)})
        except Exception as e:
            logger.error(f"Error fetching event detail for {event_id}: {e}", extra={"event_id": event_id})
            return None

        if not isinstance(data, dict):
            return None

        competitions = data.get('competitions')
        if not isinstance(competitions, list) or not competitions or not isinstance(competitions[0], dict):
            logger.debug(f"Event {event_id} has no competitions in summary")
            return None

        competitors = competitions[0].get('competitors')
        if not isinstance(competitors, list) or len(competitors) < 2:
            logger.debug(f"Event {event_id} has fewer than two competitors")
            return None

        return data

    # ==================== PARSING HELPERS ====================

    @staticmethod
    def is_completed(raw_event: Dict[str, Any]) -> bool:
        """True when status.type.completed is true on a scoreboard event."""
        status = raw_event.get('status')
        if not isinstance(status, dict):
            return False
        status_type = status.get('type')
        if not isinstance(status_type, dict):
            return False
        return status_type.get('completed') is True

    @staticmethod
    def parse_event(raw_event: Dict[str, Any]) -> Event:
        """
        Convert a scoreboard event into an Event record.

        Venue fields come from competitions[0].venue; every missing field
        defaults to ''. Numeric ids are stringified; a null id becomes ''.
        """
        venue: Dict[str, Any] = {}
        competitions = raw_event.get('competitions')
        if isinstance(competitions, list) and competitions and isinstance(competitions[0], dict):
            raw_venue = competitions[0].get('venue')
            if isinstance(raw_venue, dict):
                venue = raw_venue

        address = venue.get('address') if isinstance(venue.get('address'), dict) else {}

        raw_id = raw_event.get('id')
        return Event(
            id=str(raw_id) if raw_id is not None else '',
            name=_text(raw_event.get('name')),
            date=_text(raw_event.get('date')),
            venue=_text(venue.get('fullName')),
            city=_text(address.get('city')),
            country=_text(address.get('country')),
        )
