"""
Storage Services Package

Provides the abstract record store interface and the Supabase adapter.
"""

from shephard.services.storage.interface import (
    ConflictError,
    RecordStore,
    StoreError,
    extract_constraint_name,
)
from shephard.services.storage.supabase_store import SupabaseRecordStore

__all__ = [
    # Interface
    "RecordStore",
    "extract_constraint_name",
    # Exceptions
    "ConflictError",
    "StoreError",
    # Supabase implementation
    "SupabaseRecordStore",
]
