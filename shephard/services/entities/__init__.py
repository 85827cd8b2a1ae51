"""
Entity services package.

A generic entity service parameterized by per-kind configuration, and
the facades binding it to templates, plans, categories and expenses.
"""

from shephard.services.entities.access import (
    AccessDecision,
    AccessLevel,
    authorize,
    newest_first,
)
from shephard.services.entities.base import EntityFacade, EntityService
from shephard.services.entities.categories import CategoryService
from shephard.services.entities.config import (
    ENTITY_REGISTRY,
    EntityConfig,
    EntityKind,
    SharingProcedures,
    get_entity_config,
)
from shephard.services.entities.errors import (
    AccessDeniedError,
    AlreadySharedError,
    DuplicateNameError,
    EntityServiceError,
    ItemsUnsupportedError,
    SharingUnsupportedError,
    UserNotFoundError,
)
from shephard.services.entities.expenses import ExpenseService
from shephard.services.entities.plans import PlanService
from shephard.services.entities.templates import TemplateService

__all__ = [
    # Access resolution
    "AccessDecision",
    "AccessLevel",
    "authorize",
    "newest_first",
    # Configuration
    "ENTITY_REGISTRY",
    "EntityConfig",
    "EntityKind",
    "SharingProcedures",
    "get_entity_config",
    # Services
    "CategoryService",
    "EntityFacade",
    "EntityService",
    "ExpenseService",
    "PlanService",
    "TemplateService",
    # Exceptions
    "AccessDeniedError",
    "AlreadySharedError",
    "DuplicateNameError",
    "EntityServiceError",
    "ItemsUnsupportedError",
    "SharingUnsupportedError",
    "UserNotFoundError",
]
