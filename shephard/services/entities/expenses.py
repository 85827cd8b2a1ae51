"""
Expense facade.

Expenses are recorded against plans. Reads embed the expense's category
and support the historical filters the plan overview needs (date range,
single category).
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

import structlog

from shephard.models.budget import Expense, ExpenseWithCategory, PlanExpenseSummary
from shephard.models.query import Filter, RecordQuery
from shephard.services.entities.base import EntityFacade, RowInput, as_row
from shephard.services.entities.config import EntityKind, PLAN_CONFIG
from shephard.services.storage.interface import StoreError


PLAN_EXPENSE_SUMMARY_PROCEDURE = "get_plan_expense_summary"

logger = structlog.get_logger("shephard.expenses")


class ExpenseService(EntityFacade):
    """Expenses of a plan."""
    
    kind = EntityKind.EXPENSE
    
    def _plan_expenses(self, plan_id: str) -> RecordQuery:
        return (
            RecordQuery(table=self.config.table_name)
            .embed("categories")
            .where("plan_id", plan_id)
        )
    
    async def _select_with_category(self, query: RecordQuery) -> list[ExpenseWithCategory]:
        rows = await self.store.select(query.order_by("expense_date", descending=True))
        return [ExpenseWithCategory.model_validate(row) for row in rows]
    
    async def get_expenses_by_plan(self, plan_id: str) -> list[ExpenseWithCategory]:
        """Every expense of a plan, most recent expense date first."""
        return await self._select_with_category(self._plan_expenses(plan_id))
    
    async def get_expenses_by_date_range(
        self,
        plan_id: str,
        start_date: Union[date, str],
        end_date: Union[date, str],
    ) -> list[ExpenseWithCategory]:
        """Expenses dated within [start_date, end_date], both inclusive."""
        query = (
            self._plan_expenses(plan_id)
            .where_gte("expense_date", start_date)
            .where_lte("expense_date", end_date)
        )
        return await self._select_with_category(query)
    
    async def get_expenses_by_category(
        self,
        plan_id: str,
        category_id: str,
    ) -> list[ExpenseWithCategory]:
        query = self._plan_expenses(plan_id).where("category_id", category_id)
        return await self._select_with_category(query)
    
    async def get_last_expense_for_plan(self, plan_id: str) -> Optional[Expense]:
        """The most recently recorded expense of a plan."""
        query = (
            RecordQuery(table=self.config.table_name)
            .where("plan_id", plan_id)
            .order_by("created_at", descending=True)
            .limit_to(1)
        )
        rows = await self.store.select(query)
        return Expense.model_validate(rows[0]) if rows else None
    
    async def create_expense(self, expense: RowInput) -> Expense:
        """
        Record an expense.
        
        The parent plan's updated_at is bumped so plan listings reflect
        recent activity. That bump is best-effort: a failure is logged and
        the created expense is still returned.
        """
        created = await self.create(expense)
        
        plan_id = as_row(expense).get("plan_id")
        if plan_id:
            try:
                await self.store.update(
                    PLAN_CONFIG.table_name,
                    {"updated_at": datetime.now(timezone.utc)},
                    [Filter.eq("id", plan_id)],
                )
            except StoreError as e:
                # The expense is saved; a stale plan timestamp is not a failed create
                logger.warning(
                    "plan_touch_failed",
                    plan_id=plan_id,
                    expense_id=created.id,
                    code=e.code,
                    error=e.message,
                )
        
        return created
    
    async def update_expense(self, expense_id: str, updates: RowInput) -> Expense:
        return await self.update(expense_id, updates)
    
    async def delete_expense(self, expense_id: str) -> None:
        await self.delete(expense_id)
    
    async def get_plan_expense_summary(self, plan_id: str) -> list[PlanExpenseSummary]:
        """Planned versus actual spend per category, computed by the store."""
        data = await self.store.rpc(PLAN_EXPENSE_SUMMARY_PROCEDURE, {"p_plan_id": plan_id})
        return [PlanExpenseSummary.model_validate(row) for row in data or []]
