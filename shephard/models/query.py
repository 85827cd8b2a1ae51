"""
Record Store Query Model

A small, backend-neutral description of a filtered select.
Store adapters translate it to their own query language.

The builder methods never mutate; each returns an updated copy so a
base query can be shared and specialised.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilterOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


class Filter(BaseModel):
    """A single column predicate."""
    model_config = ConfigDict(frozen=True)
    
    column: str
    operator: FilterOperator = FilterOperator.EQ
    value: Any = None
    
    @classmethod
    def eq(cls, column: str, value: Any) -> "Filter":
        return cls(column=column, operator=FilterOperator.EQ, value=value)
    
    @classmethod
    def in_(cls, column: str, values: list) -> "Filter":
        return cls(column=column, operator=FilterOperator.IN, value=list(values))


class Embed(BaseModel):
    """
    A related table fetched in the same round trip.
    
    hint disambiguates between several foreign keys linking the same
    pair of tables (PostgREST `relation!fkey_name`).
    """
    model_config = ConfigDict(frozen=True)
    
    relation: str
    columns: str = "*"
    hint: Optional[str] = None
    join: Optional[Literal["left", "inner"]] = None
    
    @classmethod
    def parse(cls, spec: str, columns: str = "*") -> "Embed":
        """
        Build an embed from a `relation[!hint][!join]` string.
        
        >>> Embed.parse("plan_items!plan_items_plan_id_fkey").hint
        'plan_items_plan_id_fkey'
        """
        relation, *modifiers = [part.strip() for part in spec.split("!")]
        if not relation:
            raise ValueError(f"Empty relation in embed spec: {spec!r}")
        
        hint = None
        join = None
        for modifier in modifiers:
            if modifier in ("left", "inner"):
                join = modifier
            elif modifier:
                hint = modifier
        return cls(relation=relation, columns=columns, hint=hint, join=join)
    
    def render(self) -> str:
        """Render as a PostgREST embedded resource."""
        parts = [self.relation]
        if self.hint:
            parts.append(self.hint)
        if self.join:
            parts.append(self.join)
        return f"{'!'.join(parts)}({self.columns})"


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    column: str
    descending: bool = False


class RecordQuery(BaseModel):
    """
    A select against one table.
    
    Usage:
        query = (
            RecordQuery(table="templates")
            .where("owner_id", user_id)
            .embed("template_shares", columns="id", join="left")
            .order_by("created_at", descending=True)
        )
    """
    
    table: str = Field(..., min_length=1)
    columns: str = "*"
    filters: list[Filter] = Field(default_factory=list)
    embeds: list[Embed] = Field(default_factory=list)
    order: list[Order] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, ge=1)
    
    def _with(self, **changes: Any) -> "RecordQuery":
        return self.model_copy(update=changes)
    
    def select(self, columns: str) -> "RecordQuery":
        return self._with(columns=columns)
    
    def where(self, column: str, value: Any) -> "RecordQuery":
        return self._with(filters=[*self.filters, Filter.eq(column, value)])
    
    def where_in(self, column: str, values: list) -> "RecordQuery":
        return self._with(filters=[*self.filters, Filter.in_(column, values)])
    
    def where_gte(self, column: str, value: Any) -> "RecordQuery":
        return self._with(filters=[
            *self.filters,
            Filter(column=column, operator=FilterOperator.GTE, value=value),
        ])
    
    def where_lte(self, column: str, value: Any) -> "RecordQuery":
        return self._with(filters=[
            *self.filters,
            Filter(column=column, operator=FilterOperator.LTE, value=value),
        ])
    
    def embed(
        self,
        relation: str,
        columns: str = "*",
        hint: Optional[str] = None,
        join: Optional[Literal["left", "inner"]] = None,
    ) -> "RecordQuery":
        item = Embed(relation=relation, columns=columns, hint=hint, join=join)
        return self._with(embeds=[*self.embeds, item])
    
    def embed_spec(self, spec: str, columns: str = "*") -> "RecordQuery":
        return self._with(embeds=[*self.embeds, Embed.parse(spec, columns)])
    
    def order_by(self, column: str, descending: bool = False) -> "RecordQuery":
        return self._with(order=[*self.order, Order(column=column, descending=descending)])
    
    def limit_to(self, limit: int) -> "RecordQuery":
        return self._with(limit=limit)
    
    def select_clause(self) -> str:
        """The column list including embedded relations."""
        return ", ".join([self.columns, *(embed.render() for embed in self.embeds)])
