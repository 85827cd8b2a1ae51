"""
Generic Entity Service

One implementation of ownership-scoped CRUD, owned+shared listing,
permission-checked reads and the share lifecycle, shared by every entity
kind. The kind-specific parts (tables, foreign keys, constraint names,
procedures, models) come from an EntityConfig.

GUARANTEES:
- Nothing is cached; every read goes to the store
- Store errors pass through unchanged, except a violation of the
  configured unique-name constraint, which becomes DuplicateNameError
- No retries here; the store adapter owns transport concerns
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel

from shephard.audit import AuditLogger
from shephard.models.query import Embed, Filter, RecordQuery
from shephard.models.sharing import PermissionLevel, Share, SharedUser, UserCandidate
from shephard.services.entities.access import (
    AccessDecision,
    AccessLevel,
    annotate_owned,
    annotate_shared,
    authorize,
    newest_first,
)
from shephard.services.entities.config import EntityConfig, EntityKind, get_entity_config
from shephard.services.entities.errors import (
    AccessDeniedError,
    AlreadySharedError,
    DuplicateNameError,
    ItemsUnsupportedError,
    SharingUnsupportedError,
    UserNotFoundError,
)
from shephard.services.storage.interface import (
    SINGLE_ROW_EXPECTED,
    ConflictError,
    RecordStore,
    StoreError,
)


DEFAULT_SEARCH_PROCEDURE = "search_users_for_sharing"

RowInput = Union[Mapping[str, Any], BaseModel]


def as_row(values: RowInput) -> dict:
    """Accept either a plain mapping or a pydantic model as a row payload."""
    if isinstance(values, BaseModel):
        return values.model_dump(exclude_unset=True)
    return dict(values)


class EntityService:
    """
    Generic service over one entity kind.

    Usage:
        service = EntityService(store, TEMPLATE_CONFIG)
        templates = await service.get_entities_with_permissions(user_id)
    """

    def __init__(
        self,
        store: RecordStore,
        config: EntityConfig,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._config = config
        self._audit_logger = audit_logger

    @property
    def config(self) -> EntityConfig:
        return self._config

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def _kind(self) -> str:
        return self._config.kind.value

    async def _audit(self, method: str, *args: Any, **kwargs: Any) -> None:
        if self._audit_logger:
            await getattr(self._audit_logger, method)(*args, **kwargs)

    def _to_model(self, row: dict, model: Optional[type[BaseModel]] = None) -> BaseModel:
        return (model or self._config.model).model_validate(row)

    def _require_sharing(self) -> str:
        if not self._config.share_table_name:
            raise SharingUnsupportedError(self._config.entity_type_name)
        return self._config.share_table_name

    def _require_items(self) -> str:
        if not self._config.items_table_name:
            raise ItemsUnsupportedError(self._config.entity_type_name)
        return self._config.items_table_name

    def _share_filters(self, entity_id: str, user_id: str) -> list[Filter]:
        return [
            Filter.eq(self._config.share_foreign_key, entity_id),
            Filter.eq("shared_with_user_id", user_id),
        ]

    def _share_query(self, entity_id: str, user_id: str, columns: str) -> RecordQuery:
        query = RecordQuery(table=self._require_sharing(), columns=columns)
        return query.model_copy(update={"filters": self._share_filters(entity_id, user_id)})

    async def _raise_duplicate_name(self, error: ConflictError) -> None:
        """Raise DuplicateNameError if the conflict is on the unique-name constraint."""
        constraint = self._config.unique_constraint_name
        if constraint and error.constraint == constraint:
            await self._audit("log_duplicate_name", self._kind, constraint)
            raise DuplicateNameError(self._config.entity_type_name, constraint) from error

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create(self, values: RowInput) -> BaseModel:
        """
        Insert one entity and return it as stored.

        Raises:
            DuplicateNameError: The owner already has an entity with this name
            StoreError: Any other store failure
        """
        try:
            rows = await self._store.insert(self._config.table_name, [as_row(values)])
        except ConflictError as e:
            await self._raise_duplicate_name(e)
            raise

        if not rows:
            raise StoreError(
                f"Insert into {self._config.table_name} returned no row",
                code=SINGLE_ROW_EXPECTED,
            )
        entity = self._to_model(rows[0])
        await self._audit("log_entity_created", self._kind, rows[0].get("id"))
        return entity

    async def update(self, entity_id: str, patch: RowInput) -> BaseModel:
        """
        Update one entity by id and return the new row.

        Raises:
            DuplicateNameError: The new name collides with another entity
            StoreError: No row matched (code PGRST116) or any other failure
        """
        values = as_row(patch)
        try:
            rows = await self._store.update(
                self._config.table_name,
                values,
                [Filter.eq("id", entity_id)],
            )
        except ConflictError as e:
            await self._raise_duplicate_name(e)
            raise

        if not rows:
            raise StoreError(
                f"No {self._kind} row matched id {entity_id}",
                code=SINGLE_ROW_EXPECTED,
            )
        await self._audit("log_entity_updated", self._kind, entity_id, list(values))
        return self._to_model(rows[0])

    async def delete(self, entity_id: str) -> None:
        """
        Delete one entity by id.

        Children and shares are not touched here; the store's foreign
        keys decide whether the delete cascades or fails.
        """
        deleted = await self._store.delete(self._config.table_name, [Filter.eq("id", entity_id)])
        if deleted:
            await self._audit("log_entity_deleted", self._kind, entity_id)

    async def find_by_id(self, entity_id: str) -> Optional[BaseModel]:
        """Unchecked read by id. Callers must already hold owner rights."""
        query = RecordQuery(table=self._config.table_name).where("id", entity_id)
        row = await self._store.select_one(query)
        return self._to_model(row) if row is not None else None

    # =========================================================================
    # PERMISSION-AWARE READS
    # =========================================================================

    async def get_entities_with_permissions(
        self,
        user_id: str,
        entity_column_name: Optional[str] = None,
    ) -> list[BaseModel]:
        """
        List entities the user owns plus those shared with them.

        Owned entities carry is_shared, shared ones carry permission_level.
        The merged list is ordered by created_at, newest first.
        """
        share_table = self._require_sharing()
        owner_column = self._config.owner_column

        owned_query = (
            RecordQuery(table=self._config.table_name)
            .where(owner_column, user_id)
            .embed(share_table, columns="id", join="left")
            .order_by("created_at", descending=True)
        )
        entity_embed = Embed.parse(entity_column_name or self._config.table_name)
        shared_query = RecordQuery(
            table=share_table,
            columns="permission_level",
            embeds=[entity_embed],
        ).where("shared_with_user_id", user_id)

        owned_rows, shared_rows = await asyncio.gather(
            self._store.select(owned_query),
            self._store.select(shared_query),
        )

        owned = [self._to_model(annotate_owned(row, share_table)) for row in owned_rows]

        shared = []
        for share in shared_rows:
            entity = share.get(entity_embed.relation)
            if not isinstance(entity, Mapping):
                # Hidden by row-level security or dangling
                continue
            decision = authorize(entity.get(owner_column), user_id, share)
            if decision.level == AccessLevel.OWNER:
                row = {**entity, "is_shared": True}
            else:
                row = annotate_shared(dict(entity), decision)
            shared.append(self._to_model(row))

        return newest_first(owned + shared)

    async def _resolve_access(self, row: dict, entity_id: str, user_id: str) -> AccessDecision:
        """
        Decide access to a fetched entity.

        Owners are decided without touching the share table.
        """
        owner_id = row.get(self._config.owner_column)
        decision = authorize(owner_id, user_id)
        if decision.level == AccessLevel.OWNER:
            return decision

        share_row = await self._store.select_one(self._share_query(entity_id, user_id, columns="*"))
        share = Share.model_validate(share_row) if share_row is not None else None
        decision = authorize(owner_id, user_id, share.model_dump() if share else None)
        if not decision.granted:
            await self._audit("log_access_denied", self._kind, entity_id, user_id)
            raise AccessDeniedError(self._config.entity_type_name, entity_id)
        return decision

    def _with_access(self, row: dict, decision: AccessDecision) -> dict:
        if decision.level == AccessLevel.SHARED:
            return annotate_shared(row, decision)
        return row

    async def get_entity_with_permission(
        self,
        entity_id: str,
        user_id: str,
    ) -> Optional[BaseModel]:
        """
        Read one entity if the user owns it or holds a share for it.

        Returns:
            None when the entity does not exist

        Raises:
            AccessDeniedError: The entity exists but the user has no access
        """
        query = RecordQuery(table=self._config.table_name).where("id", entity_id)
        row = await self._store.select_one(query)
        if row is None:
            return None
        decision = await self._resolve_access(row, entity_id, user_id)
        return self._to_model(self._with_access(row, decision))

    async def get_entity_with_items(
        self,
        entity_id: str,
        user_id: str,
        items_relation: Optional[str] = None,
    ) -> Optional[BaseModel]:
        """
        Read one entity with its child items embedded.

        Owners get the entity as stored. Share recipients get it annotated
        with their permission_level.

        Args:
            entity_id: Entity to read
            user_id: The caller
            items_relation: Embedded relation (`table[!fkey]`); defaults to
                the configured items relation

        Raises:
            ItemsUnsupportedError: No items relation given or configured
            SharingUnsupportedError: Caller is not the owner and the kind
                cannot be shared
            AccessDeniedError: Caller is not the owner and holds no share
        """
        relation = items_relation or self._config.items_relation
        if relation is None:
            raise ItemsUnsupportedError(self._config.entity_type_name)

        query = (
            RecordQuery(table=self._config.table_name)
            .embed_spec(relation)
            .where("id", entity_id)
        )
        row = await self._store.select_one(query)
        if row is None:
            return None

        decision = await self._resolve_access(row, entity_id, user_id)
        model = self._config.with_items_model or self._config.model
        return self._to_model(self._with_access(row, decision), model)

    # =========================================================================
    # SHARING
    # =========================================================================

    async def get_shared_users(self, entity_id: str) -> list[SharedUser]:
        """Users an entity is shared with, via the kind's remote procedure."""
        procedures = self._config.procedures
        if procedures is None:
            raise SharingUnsupportedError(self._config.entity_type_name)

        data = await self._store.rpc(
            procedures.shared_users,
            {procedures.entity_id_param: entity_id},
        )
        return [SharedUser.model_validate(row) for row in data or []]

    async def search_users(self, query: str) -> list[UserCandidate]:
        """Candidate recipients matching a partial email or name."""
        self._require_sharing()
        procedures = self._config.procedures
        name = procedures.search_users if procedures else DEFAULT_SEARCH_PROCEDURE
        param = procedures.search_query_param if procedures else "q"

        data = await self._store.rpc(name, {param: query})
        return [UserCandidate.model_validate(row) for row in data or []]

    async def share_entity(
        self,
        entity_id: str,
        user_email: str,
        permission: Union[PermissionLevel, str],
        shared_by_user_id: str,
    ) -> None:
        """
        Grant a user access to an entity.

        The recipient is resolved through the sharing search: an exact
        (case-insensitive) email match wins, otherwise the first candidate.

        Raises:
            UserNotFoundError: The search found nobody
            AlreadySharedError: A share for this user already exists
        """
        share_table = self._require_sharing()
        permission = PermissionLevel(permission)

        candidates = await self.search_users(user_email)
        target = next(
            (candidate for candidate in candidates if candidate.matches_email(user_email)),
            candidates[0] if candidates else None,
        )
        if target is None:
            await self._audit(
                "log_share_rejected", self._kind, entity_id, "user_not_found", shared_by_user_id
            )
            raise UserNotFoundError(user_email)

        # Check-then-insert spans two round trips; the unique index on the
        # share edge catches the concurrent case below.
        existing = await self._store.select(
            self._share_query(entity_id, target.id, columns="id").limit_to(1)
        )
        if existing:
            await self._audit(
                "log_share_rejected", self._kind, entity_id, "already_shared", shared_by_user_id
            )
            raise AlreadySharedError(self._config.entity_type_name, user_email)

        try:
            await self._store.insert(share_table, [{
                self._config.share_foreign_key: entity_id,
                "shared_with_user_id": target.id,
                "shared_by_user_id": shared_by_user_id,
                "permission_level": permission.value,
            }])
        except ConflictError as e:
            constraint = self._config.share_unique_constraint_name
            if constraint and e.constraint == constraint:
                raise AlreadySharedError(self._config.entity_type_name, user_email) from e
            raise

        await self._audit(
            "log_share_granted",
            self._kind,
            entity_id,
            target.id,
            shared_by_user_id,
            permission.value,
        )

    async def unshare_entity(self, entity_id: str, user_id: str) -> None:
        """Revoke a user's share. No error when there was none."""
        share_table = self._require_sharing()
        deleted = await self._store.delete(share_table, self._share_filters(entity_id, user_id))
        if deleted:
            await self._audit("log_share_revoked", self._kind, entity_id, user_id)

    async def update_share_permission(
        self,
        entity_id: str,
        user_id: str,
        permission: Union[PermissionLevel, str],
    ) -> None:
        """Change a recipient's permission level. No error when there is no share."""
        share_table = self._require_sharing()
        permission = PermissionLevel(permission)
        updated = await self._store.update(
            share_table,
            {"permission_level": permission.value},
            self._share_filters(entity_id, user_id),
        )
        if updated:
            await self._audit(
                "log_share_permission_changed", self._kind, entity_id, user_id, permission.value
            )

    # =========================================================================
    # CHILD ITEMS
    # =========================================================================

    async def create_items(self, items: list[RowInput]) -> list[BaseModel]:
        """
        Batch insert child items.

        No validation happens here; callers check names and amounts first.
        """
        items_table = self._require_items()
        if not items:
            return []

        rows = await self._store.insert(items_table, [as_row(item) for item in items])
        await self._audit("log_items_changed", self._kind, True, len(rows))
        model = self._config.item_model
        return [model.model_validate(row) for row in rows] if model else rows

    async def delete_items(self, ids: list[str]) -> None:
        """Batch delete child items by id."""
        items_table = self._require_items()
        if not ids:
            return

        await self._store.delete(items_table, [Filter.in_("id", ids)])
        await self._audit("log_items_changed", self._kind, False, len(ids))

    async def replace_items(self, entity_id: str, items: list[RowInput]) -> list[BaseModel]:
        """
        Replace all items of an entity: delete the current set, insert the new.

        Not atomic: a failed insert leaves the entity without items.
        """
        items_table = self._require_items()
        foreign_key = self._config.items_foreign_key

        await self._store.delete(items_table, [Filter.eq(foreign_key, entity_id)])
        rows = [{**as_row(item), foreign_key: entity_id} for item in items]
        return await self.create_items(rows)


class EntityFacade(EntityService):
    """
    Entity service bound to a registered entity kind.
    
    Subclasses set `kind`; the configuration is resolved once, here.
    """
    
    kind: EntityKind
    
    def __init__(self, store: RecordStore, audit_logger: Optional[AuditLogger] = None):
        super().__init__(store, get_entity_config(self.kind), audit_logger)
