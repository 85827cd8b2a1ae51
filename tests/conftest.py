"""
Shared test fixtures.

Tests never talk to a real Supabase project. InMemoryRecordStore
implements the RecordStore interface over plain dicts, with just enough
PostgREST behaviour for the entity services: filters, ordering, limits,
embedded relations, unique constraints and the sharing procedures.
"""

import asyncio
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional
from uuid import uuid4

import pytest

from shephard.api import BudgetApi
from shephard.audit import AuditLogger
from shephard.models.query import Filter, FilterOperator, RecordQuery
from shephard.services.storage.interface import ConflictError, RecordStore, StoreError


ALICE = {"id": "user-alice", "email": "alice@example.com", "name": "Alice"}
BOB = {"id": "user-bob", "email": "bob@example.com", "name": "Bob"}
BOBBY = {"id": "user-bobby", "email": "bobby@example.org", "name": "Bobby"}
CAROL = {"id": "user-carol", "email": "Carol@Example.com", "name": "Carol"}

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _comparable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _matches(row: dict, item: Filter) -> bool:
    actual = _comparable(row.get(item.column))
    expected = item.value
    if item.operator == FilterOperator.IN:
        return actual in [_comparable(value) for value in expected]

    expected = _comparable(expected)
    if item.operator == FilterOperator.EQ:
        return actual == expected
    if item.operator == FilterOperator.NEQ:
        return actual != expected
    if actual is None:
        return False
    if item.operator == FilterOperator.GT:
        return actual > expected
    if item.operator == FilterOperator.GTE:
        return actual >= expected
    if item.operator == FilterOperator.LT:
        return actual < expected
    return actual <= expected


def _stored(values: dict) -> dict:
    """Serialize a payload the way PostgREST would store and echo it."""
    stored = {}
    for key, value in values.items():
        if isinstance(value, Decimal):
            value = str(value)
        stored[key] = _comparable(value)
    return stored


def _project(row: dict, columns: str) -> dict:
    if columns.strip() == "*":
        return dict(row)
    names = [name.strip() for name in columns.split(",")]
    return {name: row.get(name) for name in names}


class InMemoryRecordStore(RecordStore):
    """
    Dict-backed record store.

    relations maps (table, relation) to one of:
        ("many", foreign_key)  child rows whose foreign_key equals the row id
        ("one", local_column)  the single row whose id equals row[local_column]
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = defaultdict(list)
        self.relations: dict[tuple[str, str], tuple[str, str]] = {}
        self.unique_constraints: dict[str, list[tuple[str, tuple[str, ...]]]] = defaultdict(list)
        self.procedures: dict[str, Callable[["InMemoryRecordStore", dict], Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], Exception] = {}
        self._clock = 0

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def next_timestamp(self) -> str:
        self._clock += 1
        return (EPOCH + timedelta(seconds=self._clock)).isoformat()

    def seed(self, table: str, **row: Any) -> dict:
        """Add a row directly, bypassing constraints."""
        row.setdefault("id", str(uuid4()))
        row.setdefault("created_at", self.next_timestamp())
        self.tables[table].append(row)
        return row

    def fail_next(self, operation: str, target: str, error: Exception) -> None:
        """Make the next `operation` against `target` raise `error`."""
        self._failures[(operation, target)] = error

    def calls_to(self, target: str) -> list[str]:
        return [operation for operation, name in self.calls if name == target]

    def _enter(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        error = self._failures.pop((operation, target), None)
        if error is not None:
            raise error

    def _check_unique(self, table: str, candidate: dict, others: list[dict]) -> None:
        for name, columns in self.unique_constraints[table]:
            key = tuple(_comparable(candidate.get(column)) for column in columns)
            for other in others:
                if other is candidate:
                    continue
                if tuple(_comparable(other.get(column)) for column in columns) == key:
                    raise ConflictError(
                        f'duplicate key value violates unique constraint "{name}"',
                        details=f"Key {columns}=({key}) already exists.",
                    )

    def _embed(self, table: str, row: dict, relation: str, columns: str) -> Any:
        kind, column = self.relations[(table, relation)]
        if kind == "many":
            return [
                _project(child, columns)
                for child in self.tables[relation]
                if child.get(column) == row.get("id")
            ]
        parent = next(
            (other for other in self.tables[relation] if other.get("id") == row.get(column)),
            None,
        )
        return _project(parent, columns) if parent is not None else None

    # -------------------------------------------------------------------------
    # RecordStore
    # -------------------------------------------------------------------------

    async def select(self, query: RecordQuery) -> list[dict]:
        self._enter("select", query.table)
        rows = [
            row for row in self.tables[query.table]
            if all(_matches(row, item) for item in query.filters)
        ]
        for order in reversed(query.order):
            rows.sort(
                key=lambda row: (
                    row.get(order.column) is None,
                    _comparable(row.get(order.column)),
                ),
                reverse=order.descending,
            )
        if query.limit is not None:
            rows = rows[:query.limit]

        results = []
        for row in rows:
            result = _project(row, query.columns)
            for embed in query.embeds:
                result[embed.relation] = self._embed(query.table, row, embed.relation, embed.columns)
            results.append(result)
        return results

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        self._enter("insert", table)
        new_rows = []
        for values in rows:
            row = _stored(values)
            row.setdefault("id", str(uuid4()))
            row.setdefault("created_at", self.next_timestamp())
            self._check_unique(table, row, self.tables[table] + new_rows)
            new_rows.append(row)
        self.tables[table].extend(new_rows)
        return [dict(row) for row in new_rows]

    async def update(self, table: str, values: dict, filters: list[Filter]) -> list[dict]:
        self._enter("update", table)
        matched = [row for row in self.tables[table] if all(_matches(row, f) for f in filters)]
        for row in matched:
            candidate = {**row, **_stored(values)}
            self._check_unique(table, candidate, [r for r in self.tables[table] if r is not row])
            row.update(candidate)
        return [dict(row) for row in matched]

    async def upsert(self, table: str, rows: list[dict], on_conflict: str = "id") -> list[dict]:
        self._enter("upsert", table)
        results = []
        for values in rows:
            existing = next(
                (row for row in self.tables[table] if row.get(on_conflict) == values.get(on_conflict)),
                None,
            )
            if existing is None:
                row = _stored(values)
                row.setdefault("id", str(uuid4()))
                row.setdefault("created_at", self.next_timestamp())
                self.tables[table].append(row)
            else:
                existing.update(_stored(values))
                row = existing
            results.append(dict(row))
        return results

    async def delete(self, table: str, filters: list[Filter]) -> list[dict]:
        self._enter("delete", table)
        removed = [row for row in self.tables[table] if all(_matches(row, f) for f in filters)]
        self.tables[table] = [row for row in self.tables[table] if row not in removed]
        return [dict(row) for row in removed]

    async def rpc(self, name: str, params: Optional[dict] = None) -> Any:
        self._enter("rpc", name)
        if name not in self.procedures:
            raise StoreError(f"Could not find the function public.{name}", code="PGRST202")
        return self.procedures[name](self, params or {})


# =============================================================================
# PROCEDURES
# =============================================================================

def search_users_for_sharing(store: InMemoryRecordStore, params: dict) -> list[dict]:
    query = params["q"].strip().lower()
    return [
        {"id": user["id"], "email": user["email"], "name": user["name"]}
        for user in store.tables["users"]
        if query in user["email"].lower() or query in (user.get("name") or "").lower()
    ]


def shared_users_procedure(share_table: str, foreign_key: str, param: str) -> Callable:
    def procedure(store: InMemoryRecordStore, params: dict) -> list[dict]:
        users = {user["id"]: user for user in store.tables["users"]}
        result = []
        for share in store.tables[share_table]:
            if share.get(foreign_key) != params[param]:
                continue
            user = users.get(share["shared_with_user_id"], {})
            result.append({
                "user_id": share["shared_with_user_id"],
                "user_name": user.get("name", ""),
                "user_email": user.get("email", ""),
                "permission_level": share["permission_level"],
                "shared_at": share.get("created_at"),
            })
        return result
    return procedure


def plan_expense_summary(store: InMemoryRecordStore, params: dict) -> list[dict]:
    plan_id = params["p_plan_id"]
    planned: dict[str, Decimal] = defaultdict(Decimal)
    actual: dict[str, Decimal] = defaultdict(Decimal)
    counts: dict[str, int] = defaultdict(int)
    for item in store.tables["plan_items"]:
        if item["plan_id"] == plan_id:
            planned[item["category_id"]] += Decimal(str(item["amount"]))
    for expense in store.tables["expenses"]:
        if expense.get("plan_id") == plan_id:
            actual[expense["category_id"]] += Decimal(str(expense["amount"]))
            counts[expense["category_id"]] += 1
    return [
        {
            "category_id": category_id,
            "planned_amount": str(planned[category_id]),
            "actual_amount": str(actual[category_id]),
            "remaining_amount": str(planned[category_id] - actual[category_id]),
            "expense_count": counts[category_id],
        }
        for category_id in sorted(set(planned) | set(actual))
    ]


def build_budget_store() -> InMemoryRecordStore:
    """A store laid out like the production schema, with four users."""
    store = InMemoryRecordStore()

    store.relations.update({
        ("templates", "template_shares"): ("many", "template_id"),
        ("templates", "template_items"): ("many", "template_id"),
        ("template_shares", "templates"): ("one", "template_id"),
        ("plans", "plan_shares"): ("many", "plan_id"),
        ("plans", "plan_items"): ("many", "plan_id"),
        ("plan_shares", "plans"): ("one", "plan_id"),
        ("expenses", "categories"): ("one", "category_id"),
    })
    store.unique_constraints["templates"].append(
        ("unique_template_name_per_user", ("owner_id", "name"))
    )
    store.unique_constraints["plans"].append(
        ("unique_plan_name_per_user", ("owner_id", "name"))
    )
    store.unique_constraints["categories"].append(
        ("unique_expense_category_name_per_user", ("owner_id", "name"))
    )
    store.unique_constraints["template_shares"].append(
        ("template_shares_template_id_shared_with_user_id_key", ("template_id", "shared_with_user_id"))
    )
    store.unique_constraints["plan_shares"].append(
        ("plan_shares_plan_id_shared_with_user_id_key", ("plan_id", "shared_with_user_id"))
    )

    store.procedures.update({
        "search_users_for_sharing": search_users_for_sharing,
        "get_template_shared_users": shared_users_procedure(
            "template_shares", "template_id", "p_template_id"
        ),
        "get_plan_shared_users": shared_users_procedure("plan_shares", "plan_id", "p_plan_id"),
        "get_plan_expense_summary": plan_expense_summary,
    })

    for user in (ALICE, BOB, BOBBY, CAROL):
        store.seed("users", **user)
    return store


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def run():
    """Drive a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def store():
    return build_budget_store()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def api(store, audit_logger):
    return BudgetApi(store, audit_logger)


@pytest.fixture
def template_row(store):
    """A template owned by Alice with two items."""
    row = store.seed("templates", name="Monthly", owner_id=ALICE["id"], duration="monthly")
    store.seed(
        "template_items",
        template_id=row["id"],
        name="Rent",
        category_id="cat-housing",
        amount="1200.00",
        is_fixed_payment=True,
    )
    store.seed(
        "template_items",
        template_id=row["id"],
        name="Food",
        category_id="cat-food",
        amount="400.00",
    )
    return row
