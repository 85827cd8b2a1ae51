"""
Data Models Package

This package contains all Pydantic models used by Shephard.
Rows read from the record store are validated into these models.
"""

from shephard.models.budget import (
    AccessAnnotations,
    Category,
    Expense,
    ExpenseWithCategory,
    Plan,
    PlanExpenseSummary,
    PlanItem,
    PlanWithItems,
    StoredRecord,
    Template,
    TemplateItem,
    TemplateWithItems,
)
from shephard.models.sharing import (
    PermissionLevel,
    Share,
    SharedUser,
    UserCandidate,
)
from shephard.models.query import (
    Embed,
    Filter,
    FilterOperator,
    Order,
    RecordQuery,
)
from shephard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "AccessAnnotations",
    "Category",
    "Expense",
    "ExpenseWithCategory",
    "Plan",
    "PlanExpenseSummary",
    "PlanItem",
    "PlanWithItems",
    "StoredRecord",
    "Template",
    "TemplateItem",
    "TemplateWithItems",
    # Sharing models
    "PermissionLevel",
    "Share",
    "SharedUser",
    "UserCandidate",
    # Query models
    "Embed",
    "Filter",
    "FilterOperator",
    "Order",
    "RecordQuery",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
