"""
Ownership and sharing resolution.

Pure functions: no store access. Every read path of the entity service
asks `authorize` who the caller is with respect to an entity, and the
listing merge goes through `newest_first`.

Access is decided as:
    caller owns the entity            -> OWNER (full access, no share needed)
    caller holds a share for it       -> SHARED at the share's permission
    otherwise                         -> DENIED
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from shephard.models.budget import AccessAnnotations
from shephard.models.sharing import PermissionLevel


class AccessLevel(str, Enum):
    OWNER = "owner"
    SHARED = "shared"
    DENIED = "denied"


class AccessDecision(BaseModel):
    """Outcome of an access check."""
    model_config = ConfigDict(frozen=True)
    
    level: AccessLevel
    permission_level: Optional[PermissionLevel] = None
    
    @property
    def granted(self) -> bool:
        return self.level != AccessLevel.DENIED
    
    @property
    def can_edit(self) -> bool:
        return self.level == AccessLevel.OWNER or self.permission_level == PermissionLevel.EDIT


def authorize(
    owner_id: Optional[str],
    caller_id: str,
    share: Optional[Mapping[str, Any]] = None,
) -> AccessDecision:
    """
    Decide the caller's access to one entity.
    
    Args:
        owner_id: The entity's owner column value
        caller_id: The user asking
        share: The share row linking the entity to the caller, if any
    """
    if owner_id is not None and owner_id == caller_id:
        return AccessDecision(level=AccessLevel.OWNER)
    if share is None:
        return AccessDecision(level=AccessLevel.DENIED)
    return AccessDecision(
        level=AccessLevel.SHARED,
        permission_level=PermissionLevel(share["permission_level"]),
    )


def annotate_shared(row: dict, decision: AccessDecision) -> dict:
    """Attach the recipient's permission level to a shared entity row."""
    return {**row, "permission_level": decision.permission_level}


def annotate_owned(row: dict, share_relation: str) -> dict:
    """
    Replace the embedded share rows with an is_shared flag.
    
    The embed is removed from the result; only its cardinality matters.
    """
    shares = row.get(share_relation)
    annotated = {key: value for key, value in row.items() if key != share_relation}
    annotated["is_shared"] = isinstance(shares, list) and len(shares) > 0
    return annotated


EntityT = TypeVar("EntityT", bound=AccessAnnotations)


def _created_at_key(entity: Any) -> tuple[bool, float]:
    created_at = getattr(entity, "created_at", None)
    if created_at is None:
        return (False, 0.0)
    return (True, created_at.timestamp())


def newest_first(entities: Iterable[EntityT]) -> list[EntityT]:
    """
    Sort by created_at descending.
    
    Stable: entities with equal timestamps keep their input order.
    Entities without created_at go last.
    """
    return sorted(entities, key=_created_at_key, reverse=True)
