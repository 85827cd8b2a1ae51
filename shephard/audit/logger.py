"""
Audit Logger

DESIGN DECISION: Every mutation of an entity or its sharing state is
logged as a structured event. This provides:
1. Traceability of sharing decisions
2. Debugging capability when access is refused
3. A trail of rejected operations

The audit logger:
- Never raises (a failed log line must not fail the operation)
- Only writes structured diagnostics, never user-facing messages
"""

import logging
from typing import Optional

import structlog

from shephard.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog and the stdlib root logger.
    
    Call once at startup (BudgetApi.connect does this).
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.
    
    Entity services receive one of these; when omitted they run silently.
    """
    
    def __init__(self, logger_name: str = "shephard.audit"):
        self._logger = structlog.get_logger(logger_name)
        self._last_event: Optional[AuditEvent] = None
    
    @property
    def last_event(self) -> Optional[AuditEvent]:
        """The most recent event logged (handy for tests and debugging)."""
        return self._last_event
    
    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Returns False if the log call itself failed.
        """
        self._last_event = event
        log_dict = event.to_log_dict()
        
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        
        return True
    
    async def log_entity_created(self, entity_type: str, entity_id: str) -> None:
        await self.log(AuditEventBuilder.entity_created(entity_type, entity_id))
    
    async def log_entity_updated(
        self,
        entity_type: str,
        entity_id: str,
        fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.entity_updated(entity_type, entity_id, fields))
    
    async def log_entity_deleted(self, entity_type: str, entity_id: str) -> None:
        await self.log(AuditEventBuilder.entity_deleted(entity_type, entity_id))
    
    async def log_duplicate_name(self, entity_type: str, constraint: str) -> None:
        await self.log(AuditEventBuilder.duplicate_name_rejected(entity_type, constraint))
    
    async def log_items_changed(self, entity_type: str, created: bool, count: int) -> None:
        await self.log(AuditEventBuilder.items_changed(entity_type, created, count))
    
    async def log_share_granted(
        self,
        entity_type: str,
        entity_id: str,
        shared_with_user_id: str,
        shared_by_user_id: str,
        permission: str,
    ) -> None:
        """Log a new share edge."""
        event = AuditEventBuilder.share_granted(
            entity_type=entity_type,
            entity_id=entity_id,
            shared_with_user_id=shared_with_user_id,
            shared_by_user_id=shared_by_user_id,
            permission=permission,
        )
        await self.log(event)
    
    async def log_share_revoked(self, entity_type: str, entity_id: str, user_id: str) -> None:
        await self.log(AuditEventBuilder.share_revoked(entity_type, entity_id, user_id))
    
    async def log_share_permission_changed(
        self,
        entity_type: str,
        entity_id: str,
        user_id: str,
        permission: str,
    ) -> None:
        event = AuditEventBuilder.share_permission_changed(
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            permission=permission,
        )
        await self.log(event)
    
    async def log_share_rejected(
        self,
        entity_type: str,
        entity_id: str,
        reason: str,
        shared_by_user_id: Optional[str] = None,
    ) -> None:
        """Log a share attempt that was refused (unknown user, duplicate)."""
        event = AuditEventBuilder.share_rejected(
            entity_type=entity_type,
            entity_id=entity_id,
            reason=reason,
            shared_by_user_id=shared_by_user_id,
        )
        await self.log(event)
    
    async def log_access_denied(self, entity_type: str, entity_id: str, user_id: str) -> None:
        await self.log(AuditEventBuilder.access_denied(entity_type, entity_id, user_id))
