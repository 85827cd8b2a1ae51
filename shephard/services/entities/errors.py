"""
Entity service errors.

Store failures are not wrapped: they reach the caller as StoreError
(see shephard.services.storage). Only the cases below are raised by the
service itself.
"""

from typing import Optional


class EntityServiceError(Exception):
    """Base exception for entity service errors."""
    pass


class DuplicateNameError(EntityServiceError):
    """The entity's name is already used by the same owner."""
    
    def __init__(self, entity_type: str, constraint: Optional[str] = None):
        self.entity_type = entity_type
        self.constraint = constraint
        self.code = f"DUPLICATE_{entity_type}_NAME"
        super().__init__(self.code)


class SharingUnsupportedError(EntityServiceError):
    """The entity kind has no share table configured."""
    
    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__("Sharing is not supported for this entity")


class ItemsUnsupportedError(EntityServiceError):
    """The entity kind has no child items table configured."""
    
    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__("Items table not configured for this entity type")


class UserNotFoundError(EntityServiceError):
    """The sharing search returned no candidate."""
    
    def __init__(self, query: str):
        self.query = query
        super().__init__(f"User not found: {query}")


class AlreadySharedError(EntityServiceError):
    """A share between this entity and this user already exists."""
    
    def __init__(self, entity_type: str, user: str):
        self.entity_type = entity_type
        self.user = user
        super().__init__(f"{entity_type} is already shared with {user}")


class AccessDeniedError(EntityServiceError):
    """The caller neither owns the entity nor holds a share for it."""
    
    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.lower()} not found or access denied")
