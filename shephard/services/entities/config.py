"""
Entity Configuration

Static descriptors binding the generic entity service to one entity kind:
table names, the share table and its foreign key column, the items table,
the unique-name constraint and the remote procedures used for sharing.

DESIGN DECISION: Every entity kind is registered once in ENTITY_REGISTRY.
Facades look their configuration up at construction time; the generic
service never branches on table names.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from shephard.models.budget import (
    Category,
    Expense,
    Plan,
    PlanItem,
    PlanWithItems,
    Template,
    TemplateItem,
    TemplateWithItems,
)


class EntityKind(str, Enum):
    TEMPLATE = "template"
    PLAN = "plan"
    CATEGORY = "category"
    EXPENSE = "expense"


class SharingProcedures(BaseModel):
    """Remote procedures backing the sharing operations of one entity kind."""
    model_config = ConfigDict(frozen=True)
    
    shared_users: str
    entity_id_param: str
    search_users: str = "search_users_for_sharing"
    search_query_param: str = "q"


class EntityConfig(BaseModel):
    """Descriptor for one entity kind."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    
    kind: EntityKind
    table_name: str
    entity_type_name: str
    model: type[BaseModel]
    owner_column: str = "owner_id"
    unique_constraint_name: Optional[str] = None
    
    # Sharing
    share_table_name: Optional[str] = None
    share_foreign_key: Optional[str] = None
    share_unique_constraint_name: Optional[str] = None
    procedures: Optional[SharingProcedures] = None
    
    # Child items
    items_table_name: Optional[str] = None
    items_foreign_key: Optional[str] = None
    items_relation: Optional[str] = None
    item_model: Optional[type[BaseModel]] = None
    with_items_model: Optional[type[BaseModel]] = None
    
    @model_validator(mode="after")
    def validate_sharing_and_items(self) -> "EntityConfig":
        """A share table needs its foreign key column spelled out, likewise items."""
        if self.share_table_name and not self.share_foreign_key:
            raise ValueError(
                f"{self.table_name}: share_foreign_key is required with share_table_name"
            )
        if self.items_table_name and not self.items_foreign_key:
            raise ValueError(
                f"{self.table_name}: items_foreign_key is required with items_table_name"
            )
        return self
    
    @property
    def supports_sharing(self) -> bool:
        return self.share_table_name is not None
    
    @property
    def supports_items(self) -> bool:
        return self.items_table_name is not None


TEMPLATE_CONFIG = EntityConfig(
    kind=EntityKind.TEMPLATE,
    table_name="templates",
    entity_type_name="TEMPLATE",
    model=Template,
    unique_constraint_name="unique_template_name_per_user",
    share_table_name="template_shares",
    share_foreign_key="template_id",
    share_unique_constraint_name="template_shares_template_id_shared_with_user_id_key",
    procedures=SharingProcedures(
        shared_users="get_template_shared_users",
        entity_id_param="p_template_id",
    ),
    items_table_name="template_items",
    items_foreign_key="template_id",
    items_relation="template_items!template_items_template_id_fkey",
    item_model=TemplateItem,
    with_items_model=TemplateWithItems,
)

PLAN_CONFIG = EntityConfig(
    kind=EntityKind.PLAN,
    table_name="plans",
    entity_type_name="PLAN",
    model=Plan,
    unique_constraint_name="unique_plan_name_per_user",
    share_table_name="plan_shares",
    share_foreign_key="plan_id",
    share_unique_constraint_name="plan_shares_plan_id_shared_with_user_id_key",
    procedures=SharingProcedures(
        shared_users="get_plan_shared_users",
        entity_id_param="p_plan_id",
    ),
    items_table_name="plan_items",
    items_foreign_key="plan_id",
    items_relation="plan_items!plan_items_plan_id_fkey",
    item_model=PlanItem,
    with_items_model=PlanWithItems,
)

CATEGORY_CONFIG = EntityConfig(
    kind=EntityKind.CATEGORY,
    table_name="categories",
    entity_type_name="CATEGORY",
    model=Category,
    unique_constraint_name="unique_expense_category_name_per_user",
)

EXPENSE_CONFIG = EntityConfig(
    kind=EntityKind.EXPENSE,
    table_name="expenses",
    entity_type_name="EXPENSE",
    model=Expense,
    owner_column="user_id",
)

ENTITY_REGISTRY: dict[EntityKind, EntityConfig] = {
    EntityKind.TEMPLATE: TEMPLATE_CONFIG,
    EntityKind.PLAN: PLAN_CONFIG,
    EntityKind.CATEGORY: CATEGORY_CONFIG,
    EntityKind.EXPENSE: EXPENSE_CONFIG,
}


def get_entity_config(kind: EntityKind) -> EntityConfig:
    """Look up the registered configuration for an entity kind."""
    try:
        return ENTITY_REGISTRY[EntityKind(kind)]
    except (KeyError, ValueError):
        raise KeyError(f"No entity configuration registered for {kind!r}")
