"""
Supabase Record Store Implementation

DESIGN DECISION: Supabase (PostgREST over Postgres) is the production backend:
1. Row-level security enforces ownership at the database too
2. Embedded resources fetch an entity with its items in one round trip
3. Secure lookups (user search, shared users) live in SQL functions

TRADEOFFS:
- Writes are never retried (an insert might have landed before a timeout)
- Reads and RPCs are retried on transport failures only; a 4xx/5xx answer
  from PostgREST is a real answer and is surfaced immediately

The implementation follows the abstract interface, so entity services
never see supabase-py types.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

import httpx
import structlog
from postgrest.exceptions import APIError
from pydantic_core import to_jsonable_python
from supabase import AsyncClient, AsyncClientOptions, acreate_client
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shephard.config import Settings, StoreSettings, get_settings
from shephard.models.query import Filter, FilterOperator, RecordQuery
from shephard.services.storage.interface import (
    UNIQUE_VIOLATION,
    ConflictError,
    RecordStore,
    StoreError,
)


logger = structlog.get_logger("shephard.store")


def to_filter_value(value: Any) -> Any:
    """Convert a Python value into the text PostgREST expects in a filter."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple, set)):
        return [to_filter_value(item) for item in value]
    return value


def apply_filters(builder: Any, filters: list[Filter]) -> Any:
    """Chain filters onto a supabase-py filter builder."""
    for item in filters:
        value = to_filter_value(item.value)
        if item.operator == FilterOperator.IN:
            builder = builder.in_(item.column, value)
        else:
            builder = getattr(builder, item.operator.value)(item.column, value)
    return builder


def translate_error(error: APIError) -> StoreError:
    """
    Map a PostgREST error onto the store error taxonomy.
    
    Unique violations become ConflictError with the constraint name
    parsed from the message or details; everything else is a plain
    StoreError carrying the backend code.
    """
    message = error.message or str(error)
    if error.code == UNIQUE_VIOLATION:
        return ConflictError(message, details=error.details, hint=error.hint)
    return StoreError(message, code=error.code, details=error.details, hint=error.hint)


class SupabaseRecordStore(RecordStore):
    """
    Supabase implementation of the record store.
    
    Wraps an async supabase-py client.
    """
    
    def __init__(
        self,
        client: AsyncClient,
        settings: Optional[StoreSettings] = None,
    ):
        self._client = client
        self._settings = settings or get_settings().store
    
    @classmethod
    async def connect(cls, settings: Optional[Settings] = None) -> "SupabaseRecordStore":
        """Create a client from configuration and wrap it."""
        settings = settings or get_settings()
        supabase_settings = settings.supabase
        client = await acreate_client(
            supabase_settings.url,
            supabase_settings.key,
            options=AsyncClientOptions(schema=supabase_settings.schema_name),
        )
        return cls(client, settings.store)
    
    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=self._settings.retry_max_wait),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
    
    async def _execute(self, builder: Any, operation: str, target: str, retry: bool) -> Any:
        """Run a built request, translating backend errors."""
        try:
            if not retry:
                return (await builder.execute()).data
            async for attempt in self._retrying():
                with attempt:
                    response = await builder.execute()
            return response.data
        except APIError as e:
            logger.warning(
                "store_request_failed",
                operation=operation,
                target=target,
                code=e.code,
                error=e.message,
            )
            raise translate_error(e) from e
        except httpx.HTTPError as e:
            logger.warning(
                "store_transport_failed",
                operation=operation,
                target=target,
                error=str(e),
            )
            raise StoreError(f"Record store unreachable: {e}") from e
    
    async def select(self, query: RecordQuery) -> list[dict]:
        builder = self._client.table(query.table).select(query.select_clause())
        builder = apply_filters(builder, query.filters)
        for order in query.order:
            builder = builder.order(order.column, desc=order.descending)
        if query.limit is not None:
            builder = builder.limit(query.limit)
        
        data = await self._execute(builder, "select", query.table, retry=True)
        return list(data or [])
    
    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        builder = self._client.table(table).insert(to_jsonable_python(rows))
        data = await self._execute(builder, "insert", table, retry=False)
        return list(data or [])
    
    async def update(self, table: str, values: dict, filters: list[Filter]) -> list[dict]:
        builder = self._client.table(table).update(to_jsonable_python(values))
        builder = apply_filters(builder, filters)
        data = await self._execute(builder, "update", table, retry=False)
        return list(data or [])
    
    async def upsert(self, table: str, rows: list[dict], on_conflict: str = "id") -> list[dict]:
        builder = self._client.table(table).upsert(
            to_jsonable_python(rows),
            on_conflict=on_conflict,
            ignore_duplicates=False,
        )
        data = await self._execute(builder, "upsert", table, retry=False)
        return list(data or [])
    
    async def delete(self, table: str, filters: list[Filter]) -> list[dict]:
        builder = apply_filters(self._client.table(table).delete(), filters)
        data = await self._execute(builder, "delete", table, retry=False)
        return list(data or [])
    
    async def rpc(self, name: str, params: Optional[dict] = None) -> Any:
        builder = self._client.rpc(name, to_jsonable_python(params or {}))
        return await self._execute(builder, "rpc", name, retry=True)
