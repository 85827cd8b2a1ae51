"""
Category facade.

Categories are plain owned entities: no sharing, no child items.
"""

from shephard.models.budget import Category
from shephard.models.query import RecordQuery
from shephard.services.entities.base import EntityFacade
from shephard.services.entities.config import EntityKind


class CategoryService(EntityFacade):
    kind = EntityKind.CATEGORY
    
    async def get_categories(self) -> list[Category]:
        """All categories visible to the caller, alphabetically."""
        query = RecordQuery(table=self.config.table_name).order_by("name")
        rows = await self.store.select(query)
        return [Category.model_validate(row) for row in rows]
