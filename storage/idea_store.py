"""Record store collaborator for persisted daily ideas."""

from __future__ import annotations

from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import date
from threading import Lock
from typing import Any, Dict, List, Optional
from uuid import uuid4

from utils.exceptions import ConfigurationError, DuplicateRecordError, StoreError

from .supabase_rest import SupabaseRestClient


INTEGER_SCORE_COLUMNS = ("opportunity_score", "trending_score")
INVALID_TEXT_REPRESENTATION = "22P02"


def _date_key(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value or "").strip()


class BaseIdeaStore(ABC):
    """Insert-with-generated-id plus a by-date existence check."""

    @abstractmethod
    async def find_by_date(self, featured_date: date) -> Optional[str]:
        """Id of the idea featured on `featured_date`, or None."""

    @abstractmethod
    async def insert(self, row: Dict[str, Any]) -> str:
        """Insert a row and return its generated id."""

    @abstractmethod
    async def get(self, idea_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a stored row."""

    async def aclose(self) -> None:
        return None


class InMemoryIdeaStore(BaseIdeaStore):
    """
    Thread-safe in-process store.

    Enforces one row per featured date. With `integer_score_columns` it
    rejects non-integer scores the way an integer-typed deployment does.
    """

    def __init__(self, *, integer_score_columns: bool = False) -> None:
        self.integer_score_columns = integer_score_columns
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._by_date: Dict[str, str] = {}
        self._lock = Lock()
        self.insert_calls = 0

    async def find_by_date(self, featured_date: date) -> Optional[str]:
        with self._lock:
            return self._by_date.get(_date_key(featured_date))

    async def insert(self, row: Dict[str, Any]) -> str:
        with self._lock:
            self.insert_calls += 1
            if self.integer_score_columns:
                self._check_integer_columns(row)

            key = _date_key(row.get("featured_date"))
            if key in self._by_date:
                raise DuplicateRecordError(
                    "duplicate key value violates unique constraint on featured_date",
                    code="23505",
                    featured_date=key,
                )

            idea_id = str(uuid4())
            stored = deepcopy(dict(row))
            stored["id"] = idea_id
            self._rows[idea_id] = stored
            self._by_date[key] = idea_id
            return idea_id

    async def get(self, idea_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._rows.get(idea_id)
            return deepcopy(row) if row else None

    def list_rows(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [deepcopy(row) for row in self._rows.values()]

    @staticmethod
    def _check_integer_columns(row: Dict[str, Any]) -> None:
        for column in INTEGER_SCORE_COLUMNS:
            value = row.get(column)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise StoreError(
                    f'invalid input syntax for type integer: "{value}"',
                    code=INVALID_TEXT_REPRESENTATION,
                    column=column,
                )


class SupabaseIdeaStore(BaseIdeaStore):
    """Ideas table behind Supabase PostgREST; uniqueness comes from the table constraint."""

    def __init__(self, rest: SupabaseRestClient, *, table: str = "daily_niche_ideas") -> None:
        self._rest = rest
        self.table = table

    @classmethod
    def from_settings(cls) -> "SupabaseIdeaStore":
        from config import get_store_settings

        settings = get_store_settings()
        rest = SupabaseRestClient(
            settings.supabase_url,
            settings.supabase_service_key,
            timeout=settings.request_timeout,
        )
        return cls(rest, table=settings.ideas_table)

    async def find_by_date(self, featured_date: date) -> Optional[str]:
        rows = await self._rest.select(
            self.table,
            {"select": "id", "featured_date": f"eq.{_date_key(featured_date)}", "limit": "1"},
        )
        return str(rows[0]["id"]) if rows else None

    async def insert(self, row: Dict[str, Any]) -> str:
        rows = await self._rest.insert(self.table, row)
        if not rows or "id" not in rows[0]:
            raise StoreError("Insert returned no row", code="no_row", table=self.table)
        return str(rows[0]["id"])

    async def get(self, idea_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._rest.select(self.table, {"select": "*", "id": f"eq.{idea_id}", "limit": "1"})
        return rows[0] if rows else None

    async def aclose(self) -> None:
        await self._rest.aclose()


def build_idea_store() -> BaseIdeaStore:
    """Store selected by ``STORE_PROVIDER``."""
    from config import get_store_settings

    settings = get_store_settings()
    provider = str(settings.provider or "").strip().lower()
    if provider == "supabase":
        return SupabaseIdeaStore.from_settings()
    if provider == "memory":
        return InMemoryIdeaStore(integer_score_columns=settings.integer_score_columns)
    raise ConfigurationError(f"Unknown store provider: {settings.provider}")
