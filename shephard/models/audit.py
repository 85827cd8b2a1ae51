"""
Audit Models for Shephard

Every mutation of an entity or of its sharing state is described by an
audit event. This provides:
1. Traceability of who shared what with whom
2. Debugging information when access is refused
3. A record of rejected operations (duplicates, unknown users)

DESIGN DECISION: Audit events are diagnostic. They are never shown to
end users; the UI layer owns every user-facing message.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entity lifecycle
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    DUPLICATE_NAME_REJECTED = "duplicate_name_rejected"
    
    # Items
    ITEMS_CREATED = "items_created"
    ITEMS_DELETED = "items_deleted"
    
    # Sharing
    SHARE_GRANTED = "share_granted"
    SHARE_REVOKED = "share_revoked"
    SHARE_PERMISSION_CHANGED = "share_permission_changed"
    SHARE_REJECTED = "share_rejected"
    
    # Access
    ACCESS_DENIED = "access_denied"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    
    This is the core unit of our audit trail.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    
    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Entity kind (e.g., 'template', 'plan')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    actor_id: Optional[str] = Field(
        default=None,
        description="User who triggered the event, when known"
    )
    
    description: str = Field(
        ...,
        max_length=500,
        description="Short description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "description": self.description,
            "details": self.details,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.entity_created("template", template_id)
        event = AuditEventBuilder.share_granted("plan", plan_id, ...)
    """
    
    @staticmethod
    def entity_created(entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_CREATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type} created",
        )
    
    @staticmethod
    def entity_updated(entity_type: str, entity_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_UPDATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type} updated",
            details={"fields": sorted(fields)},
        )
    
    @staticmethod
    def entity_deleted(entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type} deleted",
        )
    
    @staticmethod
    def duplicate_name_rejected(entity_type: str, constraint: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_NAME_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            description=f"{entity_type} name already in use",
            details={"constraint": constraint},
        )
    
    @staticmethod
    def items_changed(entity_type: str, created: bool, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.ITEMS_CREATED if created else AuditEventType.ITEMS_DELETED
            ),
            entity_type=entity_type,
            description=f"{count} {entity_type} item(s) {'created' if created else 'deleted'}",
            details={"count": count},
        )
    
    @staticmethod
    def share_granted(
        entity_type: str,
        entity_id: str,
        shared_with_user_id: str,
        shared_by_user_id: str,
        permission: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHARE_GRANTED,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=shared_by_user_id,
            description=f"{entity_type} shared with {permission} access",
            details={
                "shared_with_user_id": shared_with_user_id,
                "permission_level": permission,
            },
        )
    
    @staticmethod
    def share_revoked(entity_type: str, entity_id: str, user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHARE_REVOKED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type} share revoked",
            details={"shared_with_user_id": user_id},
        )
    
    @staticmethod
    def share_permission_changed(
        entity_type: str,
        entity_id: str,
        user_id: str,
        permission: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHARE_PERMISSION_CHANGED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type} share changed to {permission}",
            details={
                "shared_with_user_id": user_id,
                "permission_level": permission,
            },
        )
    
    @staticmethod
    def share_rejected(
        entity_type: str,
        entity_id: str,
        reason: str,
        shared_by_user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHARE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=shared_by_user_id,
            description=f"{entity_type} share rejected: {reason}",
            details={"reason": reason},
        )
    
    @staticmethod
    def access_denied(entity_type: str, entity_id: str, user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=user_id,
            description=f"{entity_type} access denied",
        )
