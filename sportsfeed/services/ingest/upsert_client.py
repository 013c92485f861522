"""
Upsert clients for the persistence collaborator.

Contract: ``await client.upsert(collection, row) -> bool``.

Every write requests merge-on-conflict, so re-ingesting the same date range
updates existing rows instead of duplicating them. A failed write is logged
and reported as False; the caller moves on to sibling records.

Implementations:
- RestUpsertClient: PostgREST-style endpoint (POST /rest/v1/<table> with
  ``Prefer: resolution=merge-duplicates``). Transport errors, 429 and 5xx
  are retried with exponential backoff; other 4xx rejections are not.
- DatabaseUpsertClient: local SQLAlchemy store using Session.merge().
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from sportsfeed.core.config import settings
from sportsfeed.core.logging import get_logger
from sportsfeed.models.tables import Base, Fighter, FightEvent, Fight, FightStats

logger = get_logger(__name__)

# Record kind -> upstream table
COLLECTION_TABLES = {
    "participants": "ufc_fighters",
    "events": "ufc_events",
    "outcomes": "ufc_fights",
    "stats": "ufc_fight_stats",
}


def resolve_table(collection: str) -> str:
    """Map a record kind (or a table name) to its table name."""
    if collection in COLLECTION_TABLES:
        return COLLECTION_TABLES[collection]
    if collection in COLLECTION_TABLES.values():
        return collection
    raise ValueError(f"Unknown collection: {collection}. Must be one of: {list(COLLECTION_TABLES.keys())}")


class RetryableWriteError(Exception):
    """A write the persistence endpoint may accept on a later attempt."""


class UpsertClient(ABC):
    """Base class for merge-on-conflict writers."""

    @abstractmethod
    async def upsert(self, collection: str, record: Dict[str, Any]) -> bool:
        """Write one flat record; True when it was saved."""

    async def close(self) -> None:
        return None


class RestUpsertClient(UpsertClient):
    """
    Upsert rows through the REST endpoint of the hosted database.

    Usage:
        client = RestUpsertClient()
        ok = await client.upsert("events", event.to_row())
        await client.close()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.SUPABASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SUPABASE_KEY
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.UPSERT_MAX_ATTEMPTS
        self.retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=0.5, max=8)
        self._client = client
        self._owns_client = client is None

        if not self.base_url:
            logger.warning("SUPABASE_URL is not configured - upserts will fail")

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "resolution=merge-duplicates",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def _post(self, client: httpx.AsyncClient, url: str, record: Dict[str, Any]) -> httpx.Response:
        try:
            response = await client.post(url, json=record, headers=self._headers(), timeout=self.timeout)
        except httpx.HTTPError as e:
            raise RetryableWriteError(str(e)) from e

        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableWriteError(f"HTTP {response.status_code}")
        return response

    async def upsert(self, collection: str, record: Dict[str, Any]) -> bool:
        """
        POST one record with merge-duplicates resolution.

        Returns:
            True on a 2xx response, False otherwise (after retries)
        """
        table = resolve_table(collection)
        url = f"{self.base_url}/rest/v1/{table}"
        client = await self._get_client()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self.retry_wait,
                retry=retry_if_exception_type(RetryableWriteError),
            ):
                with attempt:
                    response = await self._post(client, url, record)
        except RetryError as e:
            logger.error(
                f"Error upserting to {table} after {self.max_attempts} attempts: {e.last_attempt.exception()}",
                extra={"table": table},
            )
            return False

        if response.is_success:
            return True

        logger.error(
            f"Upsert to {table} rejected: HTTP {response.status_code} {response.text[:200]}",
            extra={"table": table},
        )
        return False


class DatabaseUpsertClient(UpsertClient):
    """
    Upsert rows into the local SQLAlchemy store.

    Session.merge() loads the row with the same primary key (if any) and
    copies the new values onto it, so repeated writes converge to one row
    with the latest values.
    """

    MODELS: Dict[str, Type[Base]] = {
        "ufc_fighters": Fighter,
        "ufc_events": FightEvent,
        "ufc_fights": Fight,
        "ufc_fight_stats": FightStats,
    }

    def __init__(self, db: Session):
        self.db = db

    async def upsert(self, collection: str, record: Dict[str, Any]) -> bool:
        table = resolve_table(collection)
        model = self.MODELS[table]
        columns = set(model.__table__.columns.keys())

        try:
            self.db.merge(model(**{k: v for k, v in record.items() if k in columns}))
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error upserting to {table}: {e}", extra={"table": table})
            return False
