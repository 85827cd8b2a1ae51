"""
Application wiring for Shephard.

Builds the entity facades over one shared record store and audit logger.

DESIGN DECISION: Callers (HTTP handlers, jobs, tests) receive a single
BudgetApi object rather than constructing services themselves:
- One store client per process
- One audit logger, so every operation is logged the same way
- Tests inject an in-memory store through the same constructor
"""

from typing import Optional

from shephard.audit import AuditLogger, configure_logging
from shephard.config import Settings, get_settings
from shephard.services.entities import (
    CategoryService,
    ExpenseService,
    PlanService,
    TemplateService,
)
from shephard.services.storage import RecordStore, SupabaseRecordStore


class BudgetApi:
    """
    Entry point to the budgeting services.
    
    Usage:
        api = await BudgetApi.connect()
        templates = await api.templates.get_templates(user_id)
    """
    
    def __init__(
        self,
        store: RecordStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        
        self.templates = TemplateService(store, self._audit_logger)
        self.plans = PlanService(store, self._audit_logger)
        self.categories = CategoryService(store, self._audit_logger)
        self.expenses = ExpenseService(store, self._audit_logger)
    
    @property
    def store(self) -> RecordStore:
        return self._store
    
    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger
    
    @classmethod
    async def connect(cls, settings: Optional[Settings] = None) -> "BudgetApi":
        """
        Create the production wiring from configuration.
        
        Configures logging first so connection problems are reported in
        the configured format.
        """
        settings = settings or get_settings()
        configure_logging(settings.app.log_level, settings.app.log_json)
        store = await SupabaseRecordStore.connect(settings)
        return cls(store, AuditLogger())
