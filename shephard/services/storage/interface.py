"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for the relational store.
This allows us to:
1. Keep the entity services free of any client-library types
2. Use in-memory storage for testing
3. Put retries and timeouts in the adapter, not in business logic

The interface is intentionally small - we're not building an ORM.
Just filtered selects with embedded relations, batch writes and RPC.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from shephard.models.query import Filter, RecordQuery


UNIQUE_VIOLATION = "23505"
SINGLE_ROW_EXPECTED = "PGRST116"

_CONSTRAINT_PATTERN = re.compile(r'constraint "([^"]+)"')


class RecordStore(ABC):
    """
    Abstract interface for relational store operations.
    
    Any backend (Supabase, an in-memory double, ...) must implement
    these methods. Rows are plain dicts keyed by column name; embedded
    relations appear under the relation name.
    """
    
    @abstractmethod
    async def select(self, query: RecordQuery) -> list[dict]:
        """
        Run a filtered select.
        
        Returns:
            Matching rows (possibly empty), in the requested order
            
        Raises:
            StoreError: If the backend rejects the query
        """
        pass
    
    async def select_one(self, query: RecordQuery) -> Optional[dict]:
        """
        Run a select expected to match at most one row.
        
        Returns:
            The row, or None when nothing matched
            
        Raises:
            StoreError: If more than one row matched (code PGRST116)
        """
        rows = await self.select(query.limit_to(2))
        if not rows:
            return None
        if len(rows) > 1:
            raise StoreError(
                f"Expected at most one row from {query.table}, got several",
                code=SINGLE_ROW_EXPECTED,
            )
        return rows[0]
    
    @abstractmethod
    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        """
        Insert rows and return them as stored (defaults filled in).
        
        Raises:
            ConflictError: If a unique constraint is violated
            StoreError: For any other failure
        """
        pass
    
    @abstractmethod
    async def update(
        self,
        table: str,
        values: dict,
        filters: list[Filter],
    ) -> list[dict]:
        """
        Update every row matching all filters.
        
        Returns:
            The updated rows (empty if nothing matched)
        """
        pass
    
    @abstractmethod
    async def upsert(
        self,
        table: str,
        rows: list[dict],
        on_conflict: str = "id",
    ) -> list[dict]:
        """Insert rows, updating those whose `on_conflict` column exists."""
        pass
    
    @abstractmethod
    async def delete(self, table: str, filters: list[Filter]) -> list[dict]:
        """
        Delete every row matching all filters.
        
        Returns:
            The deleted rows (empty if nothing matched)
        """
        pass
    
    @abstractmethod
    async def rpc(self, name: str, params: Optional[dict] = None) -> Any:
        """
        Call a named remote procedure.
        
        Returns:
            Whatever the procedure returns (usually a list of rows or None)
        """
        pass


class StoreError(Exception):
    """
    Base exception for record store operations.
    
    Carries the backend's error code and detail text unchanged so
    callers can inspect them.
    """
    
    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint


class ConflictError(StoreError):
    """A unique constraint was violated."""
    
    def __init__(
        self,
        message: str,
        constraint: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message, code=UNIQUE_VIOLATION, details=details, hint=hint)
        self.constraint = constraint or extract_constraint_name(message, details)


def extract_constraint_name(message: str, details: Optional[str] = None) -> Optional[str]:
    """
    Pull the constraint identifier out of a Postgres error text.
    
    'duplicate key value violates unique constraint "unique_plan_name_per_user"'
    yields 'unique_plan_name_per_user'.
    """
    for text in (message, details):
        if not text:
            continue
        match = _CONSTRAINT_PATTERN.search(text)
        if match:
            return match.group(1)
    return None
