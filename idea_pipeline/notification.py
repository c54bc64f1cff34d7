"""Notification fan-out: queue one pending message per recipient for a new idea."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from storage.supabase_rest import SupabaseRestClient
from utils.exceptions import StoreError


logger = logging.getLogger(__name__)


def _event(channel: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "channel": channel,
        "payload": dict(payload or {}),
        "queued_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "status": "pending",
    }


class BaseNotificationDispatcher(ABC):
    """Returns how many notifications were queued; 0 is a valid outcome."""

    @abstractmethod
    async def queue_for_idea(self, idea_id: str) -> int:
        ...

    async def aclose(self) -> None:
        return None


class NullNotificationDispatcher(BaseNotificationDispatcher):
    async def queue_for_idea(self, idea_id: str) -> int:
        return 0


class JsonlNotificationDispatcher(BaseNotificationDispatcher):
    """Append pending email events to ``<out_dir>/notifications.jsonl``."""

    def __init__(self, recipients: Sequence[str], *, out_dir: str | Path) -> None:
        self.recipients = [str(r).strip() for r in recipients if str(r or "").strip()]
        self.out_dir = Path(out_dir)

    @property
    def log_path(self) -> Path:
        return self.out_dir / "notifications.jsonl"

    async def queue_for_idea(self, idea_id: str) -> int:
        if not self.recipients:
            logger.info("No notification recipients configured")
            return 0

        self.out_dir.mkdir(parents=True, exist_ok=True)
        with self.log_path.open("a", encoding="utf-8") as fh:
            for user_id in self.recipients:
                entry = _event("daily_idea_email", {"user_id": user_id, "idea_id": str(idea_id)})
                fh.write(json.dumps(entry, ensure_ascii=False) + "\n")

        logger.info(f"Queued {len(self.recipients)} notifications in {self.log_path}")
        return len(self.recipients)


class SupabaseEmailQueueDispatcher(BaseNotificationDispatcher):
    """
    Insert ``pending`` rows into the email queue table for every subscribed profile.

    Subscribers are profiles with an email address that have not
    unsubscribed. Inserts are batched; a failed batch is logged and the
    remaining batches still run.
    """

    def __init__(
        self,
        rest: SupabaseRestClient,
        *,
        queue_table: str = "daily_idea_email_queue",
        profiles_table: str = "profiles",
        batch_size: int = 1000,
    ) -> None:
        self._rest = rest
        self.queue_table = queue_table
        self.profiles_table = profiles_table
        self.batch_size = max(1, int(batch_size))

    @classmethod
    def from_settings(cls, rest: Optional[SupabaseRestClient] = None) -> "SupabaseEmailQueueDispatcher":
        from config import get_notification_settings, get_store_settings

        notify = get_notification_settings()
        if rest is None:
            store = get_store_settings()
            rest = SupabaseRestClient(store.supabase_url, store.supabase_service_key, timeout=store.request_timeout)
        return cls(
            rest,
            queue_table=notify.queue_table,
            profiles_table=notify.profiles_table,
            batch_size=notify.batch_size,
        )

    async def _subscribers(self) -> List[str]:
        rows = await self._rest.select(
            self.profiles_table,
            {"select": "id", "email_unsubscribed": "eq.false", "email": "not.is.null"},
        )
        return [str(row["id"]) for row in rows if row.get("id")]

    async def queue_for_idea(self, idea_id: str) -> int:
        try:
            user_ids = await self._subscribers()
        except StoreError as exc:
            logger.error(f"Failed to fetch subscribers: {exc}")
            return 0

        if not user_ids:
            logger.info("No subscribers to notify")
            return 0

        queued = 0
        for start in range(0, len(user_ids), self.batch_size):
            batch = [
                {"user_id": user_id, "idea_id": str(idea_id), "status": "pending"}
                for user_id in user_ids[start : start + self.batch_size]
            ]
            try:
                await self._rest.insert(self.queue_table, batch, returning=False)
            except StoreError as exc:
                logger.error(f"Failed to queue notification batch at offset {start}: {exc}")
                continue
            queued += len(batch)

        logger.info(f"Queued {queued} emails for idea {idea_id}")
        return queued

    async def aclose(self) -> None:
        await self._rest.aclose()


def build_dispatcher() -> BaseNotificationDispatcher:
    """Dispatcher selected by ``NOTIFY_PROVIDER``."""
    from config import get_notification_settings

    settings = get_notification_settings()
    provider = str(settings.provider or "").strip().lower()
    if provider == "supabase":
        return SupabaseEmailQueueDispatcher.from_settings()
    if provider == "jsonl":
        recipients = [item for item in settings.recipients.split(",") if item.strip()]
        return JsonlNotificationDispatcher(recipients, out_dir=settings.out_dir)
    return NullNotificationDispatcher()
