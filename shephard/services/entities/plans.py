"""
Spending plan facade.

Plans share the template lifecycle and add item tracking: completion
flags, per-item edits and batch upserts of the item list.
"""

from typing import Optional

from shephard.models.budget import Plan, PlanItem, PlanWithItems
from shephard.models.query import Filter, RecordQuery
from shephard.models.sharing import PermissionLevel, SharedUser
from shephard.services.entities.base import EntityFacade, RowInput, as_row
from shephard.services.entities.config import EntityKind
from shephard.services.storage.interface import SINGLE_ROW_EXPECTED, StoreError


class PlanService(EntityFacade):
    """Plans owned by or shared with a user, and their items."""
    
    kind = EntityKind.PLAN
    
    async def get_plans(self, user_id: str) -> list[Plan]:
        """Owned and shared plans, newest first."""
        return await self.get_entities_with_permissions(user_id)
    
    async def get_plan(self, plan_id: str) -> Optional[Plan]:
        return await self.find_by_id(plan_id)
    
    async def create_plan(self, plan: RowInput) -> Plan:
        return await self.create(plan)
    
    async def update_plan(self, plan_id: str, updates: RowInput) -> Plan:
        return await self.update(plan_id, updates)
    
    async def delete_plan(self, plan_id: str) -> None:
        await self.delete(plan_id)
    
    async def get_plan_with_items(self, plan_id: str, user_id: str) -> Optional[PlanWithItems]:
        """The plan with `plan_items` embedded, if the user may see it."""
        return await self.get_entity_with_items(plan_id, user_id)
    
    async def get_plan_shared_users(self, plan_id: str) -> list[SharedUser]:
        return await self.get_shared_users(plan_id)
    
    async def share_plan(
        self,
        plan_id: str,
        user_email: str,
        permission: PermissionLevel,
        shared_by_user_id: str,
    ) -> None:
        await self.share_entity(plan_id, user_email, permission, shared_by_user_id)
    
    async def unshare_plan(self, plan_id: str, user_id: str) -> None:
        await self.unshare_entity(plan_id, user_id)
    
    async def update_plan_share_permission(
        self,
        plan_id: str,
        user_id: str,
        permission: PermissionLevel,
    ) -> None:
        await self.update_share_permission(plan_id, user_id, permission)
    
    # =========================================================================
    # PLAN ITEMS
    # =========================================================================
    
    async def create_plan_items(self, items: list[RowInput]) -> list[PlanItem]:
        return await self.create_items(items)
    
    async def delete_plan_items(self, ids: list[str]) -> None:
        await self.delete_items(ids)
    
    async def get_plan_items(self, plan_id: str) -> list[PlanItem]:
        """Items of a plan in creation order."""
        query = (
            RecordQuery(table=self.config.items_table_name)
            .where(self.config.items_foreign_key, plan_id)
            .order_by("created_at")
        )
        rows = await self.store.select(query)
        return [PlanItem.model_validate(row) for row in rows]
    
    async def get_plan_items_by_category(self, plan_id: str, category_id: str) -> list[PlanItem]:
        items = await self.get_plan_items(plan_id)
        return [item for item in items if item.category_id == category_id]
    
    async def update_plan_item_completion(self, item_id: str, is_completed: bool) -> None:
        await self.store.update(
            self.config.items_table_name,
            {"is_completed": is_completed},
            [Filter.eq("id", item_id)],
        )
    
    async def update_plan_items_completion(self, item_ids: list[str], is_completed: bool) -> None:
        """Mark several items at once. An empty list does nothing."""
        if not item_ids:
            return
        
        await self.store.update(
            self.config.items_table_name,
            {"is_completed": is_completed},
            [Filter.in_("id", item_ids)],
        )
    
    async def update_plan_item(self, item_id: str, updates: RowInput) -> PlanItem:
        """
        Edit one item's name, category or amount.
        
        Raises:
            StoreError: No item matched (code PGRST116)
        """
        rows = await self.store.update(
            self.config.items_table_name,
            as_row(updates),
            [Filter.eq("id", item_id)],
        )
        if not rows:
            raise StoreError(f"No plan item matched id {item_id}", code=SINGLE_ROW_EXPECTED)
        return PlanItem.model_validate(rows[0])
    
    async def batch_update_plan_items(self, items: list[RowInput]) -> list[PlanItem]:
        """Upsert items keyed by id."""
        if not items:
            return []
        
        rows = await self.store.upsert(
            self.config.items_table_name,
            [as_row(item) for item in items],
            on_conflict="id",
        )
        return [PlanItem.model_validate(row) for row in rows]
