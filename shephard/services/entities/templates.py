"""
Expense template facade.

Templates are shareable and carry line items; everything here is
configuration plus query shape over the generic entity service.
"""

from typing import Optional

from shephard.models.budget import Template, TemplateItem, TemplateWithItems
from shephard.models.sharing import PermissionLevel, SharedUser
from shephard.services.entities.base import EntityFacade, RowInput
from shephard.services.entities.config import EntityKind


class TemplateService(EntityFacade):
    """Templates owned by or shared with a user."""
    
    kind = EntityKind.TEMPLATE
    
    async def get_templates(self, user_id: str) -> list[Template]:
        """Owned and shared templates, newest first."""
        return await self.get_entities_with_permissions(user_id)
    
    async def get_template(self, template_id: str) -> Optional[Template]:
        return await self.find_by_id(template_id)
    
    async def create_template(self, template: RowInput) -> Template:
        return await self.create(template)
    
    async def update_template(self, template_id: str, updates: RowInput) -> Template:
        return await self.update(template_id, updates)
    
    async def delete_template(self, template_id: str) -> None:
        await self.delete(template_id)
    
    async def get_template_with_items(
        self,
        template_id: str,
        user_id: str,
    ) -> Optional[TemplateWithItems]:
        """The template with `template_items` embedded, if the user may see it."""
        return await self.get_entity_with_items(template_id, user_id)
    
    async def get_template_shared_users(self, template_id: str) -> list[SharedUser]:
        return await self.get_shared_users(template_id)
    
    async def share_template(
        self,
        template_id: str,
        user_email: str,
        permission: PermissionLevel,
        shared_by_user_id: str,
    ) -> None:
        await self.share_entity(template_id, user_email, permission, shared_by_user_id)
    
    async def unshare_template(self, template_id: str, user_id: str) -> None:
        await self.unshare_entity(template_id, user_id)
    
    async def update_template_share_permission(
        self,
        template_id: str,
        user_id: str,
        permission: PermissionLevel,
    ) -> None:
        await self.update_share_permission(template_id, user_id, permission)
    
    async def create_template_items(self, items: list[RowInput]) -> list[TemplateItem]:
        return await self.create_items(items)
    
    async def delete_template_items(self, ids: list[str]) -> None:
        await self.delete_items(ids)
    
    async def replace_template_items(
        self,
        template_id: str,
        items: list[RowInput],
    ) -> list[TemplateItem]:
        """Swap the template's whole item set for a new batch."""
        return await self.replace_items(template_id, items)
