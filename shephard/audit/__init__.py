"""Audit logging package."""

from shephard.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
