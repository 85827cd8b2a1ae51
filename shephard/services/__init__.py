"""Services package."""

from shephard.services.entities import (
    AccessDeniedError,
    AlreadySharedError,
    CategoryService,
    DuplicateNameError,
    EntityService,
    EntityServiceError,
    ExpenseService,
    ItemsUnsupportedError,
    PlanService,
    SharingUnsupportedError,
    TemplateService,
    UserNotFoundError,
)
from shephard.services.storage import (
    ConflictError,
    RecordStore,
    StoreError,
    SupabaseRecordStore,
)

__all__ = [
    # Entity services
    "CategoryService",
    "EntityService",
    "ExpenseService",
    "PlanService",
    "TemplateService",
    # Entity errors
    "AccessDeniedError",
    "AlreadySharedError",
    "DuplicateNameError",
    "EntityServiceError",
    "ItemsUnsupportedError",
    "SharingUnsupportedError",
    "UserNotFoundError",
    # Storage services
    "ConflictError",
    "RecordStore",
    "StoreError",
    "SupabaseRecordStore",
]
