"""
Core Budget Models for Shephard

These models describe rows of the relational store as the service hands
them back to callers.

DESIGN DECISION: Models allow extra fields. The store owns the schema;
a column added there must survive a round trip through the service
rather than being silently dropped.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shephard.models.sharing import PermissionLevel


class StoredRecord(BaseModel):
    """Columns every table in the store carries."""
    model_config = ConfigDict(extra="allow")
    
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AccessAnnotations(BaseModel):
    """
    Read-time projection added to an entity.
    
    Exactly one of the two is set when the entity came from a listing:
    - is_shared for rows the caller owns
    - permission_level for rows shared with the caller
    Both stay None on an owner's single-entity read.
    """
    permission_level: Optional[PermissionLevel] = None
    is_shared: Optional[bool] = None


# =============================================================================
# CATEGORIES
# =============================================================================

class Category(StoredRecord):
    """Expense category used to group items and expenses."""
    
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = None
    icon: Optional[str] = None
    owner_id: Optional[str] = None


# =============================================================================
# TEMPLATES
# =============================================================================

class TemplateItem(StoredRecord):
    """Line item of an expense template."""
    
    template_id: str
    name: str
    category_id: str
    amount: Decimal
    is_fixed_payment: bool = False


class Template(StoredRecord, AccessAnnotations):
    """Reusable budget template."""
    
    name: str
    owner_id: str
    duration: str
    total: Optional[Decimal] = None
    currency: Optional[str] = None


class TemplateWithItems(Template):
    template_items: list[TemplateItem] = Field(default_factory=list)


# =============================================================================
# PLANS
# =============================================================================

class PlanItem(StoredRecord):
    """Line item of a spending plan."""
    
    plan_id: str
    name: str
    category_id: str
    amount: Decimal
    is_fixed_payment: bool = False
    is_completed: bool = False


class Plan(StoredRecord, AccessAnnotations):
    """A spending plan covering a date range."""
    
    name: str
    owner_id: str
    template_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    total: Optional[Decimal] = None
    currency: Optional[str] = None


class PlanWithItems(Plan):
    plan_items: list[PlanItem] = Field(default_factory=list)


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(StoredRecord):
    """A recorded expense against a plan."""
    
    plan_id: Optional[str] = None
    user_id: str
    name: str
    amount: Decimal
    category_id: str
    plan_item_id: Optional[str] = None
    expense_date: date
    currency: Optional[str] = None
    original_amount: Optional[Decimal] = None
    original_currency: Optional[str] = None


class ExpenseWithCategory(Expense):
    categories: Optional[Category] = None


class PlanExpenseSummary(BaseModel):
    """Planned versus actual spend for one category of a plan."""
    
    category_id: str
    planned_amount: Decimal = Decimal("0")
    actual_amount: Decimal = Decimal("0")
    remaining_amount: Decimal = Decimal("0")
    expense_count: int = 0
