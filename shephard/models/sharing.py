"""
Sharing Models

A share grants one non-owner access to one entity at a permission level.
Owners never need a share row; they always have full access.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PermissionLevel(str, Enum):
    """Access granted to a share recipient."""
    VIEW = "view"  # Read-only
    EDIT = "edit"  # Read-write


class Share(BaseModel):
    """
    A row in an entity-specific share table.
    
    The column naming the shared entity differs per table
    (template_id, plan_id, ...) so it is kept as an extra field.
    """
    model_config = ConfigDict(extra="allow")
    
    id: Optional[str] = None
    shared_with_user_id: str
    shared_by_user_id: str
    permission_level: PermissionLevel
    created_at: Optional[datetime] = None


class SharedUser(BaseModel):
    """
    A share recipient joined with their identity.
    
    Produced by the per-kind "shared users" remote procedure.
    """
    user_id: str
    user_name: str = ""
    user_email: str = ""
    permission_level: PermissionLevel
    shared_at: Optional[datetime] = None


class UserCandidate(BaseModel):
    """A user returned by the sharing search procedure."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: str
    email: str = Field(..., min_length=1)
    name: Optional[str] = None
    
    def matches_email(self, email: str) -> bool:
        """Case-insensitive exact email comparison."""
        return self.email.lower() == email.strip().lower()
