from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from ticketvault.errors import PersistenceError, ValidationError
from ticketvault.storage.kv import KeyValueStore

from .models import Comment

logger = logging.getLogger(__name__)


def comments_key(ticket_id: str) -> str:
    return f"comments:{ticket_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommentStore:
    """Append-only comment log per ticket id.

    Logs are independent of the ticket itself; deleting a ticket leaves its
    comments in place. Concurrent appends to the same ticket id must be
    serialized by the caller since each append is a read-modify-write.
    """

    def __init__(self, store: KeyValueStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    async def append(self, ticket_id: str, author: str, text: str) -> Comment:
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationError("Comment text must not be empty", fields=("text",))
        if not ticket_id:
            raise ValidationError("Ticket id is required", fields=("ticket_id",))

        records = await self._load(ticket_id)
        created_at = self._clock()
        comment = Comment(
            id=self._next_id(records, created_at),
            author=author,
            text=cleaned,
            created_at=created_at,
        )
        records.append(
            {
                "id": comment.id,
                "author": comment.author,
                "text": comment.text,
                "created_at": comment.created_at.isoformat(),
            }
        )
        await self._store.set(comments_key(ticket_id), records)
        logger.debug("Appended comment %s to ticket %s", comment.id, ticket_id)
        return comment

    async def list(self, ticket_id: str) -> list[Comment]:
        records = await self._load(ticket_id)
        try:
            return [self._record_to_comment(record) for record in records]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Corrupted comment log for {ticket_id}: {exc}") from exc

    async def count(self, ticket_id: str) -> int:
        return len(await self._load(ticket_id))

    async def _load(self, ticket_id: str) -> list[Any]:
        payload = await self._store.get(comments_key(ticket_id))
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise PersistenceError(f"Comment log for {ticket_id} is not a list")
        return list(payload)

    @staticmethod
    def _next_id(records: list[Any], created_at: datetime) -> str:
        # Millisecond timestamps, bumped so ids stay strictly increasing.
        candidate = int(created_at.timestamp() * 1000)
        if records:
            try:
                last = int(records[-1]["id"])
            except (KeyError, TypeError, ValueError):
                last = 0
            candidate = max(candidate, last + 1)
        return str(candidate)

    @staticmethod
    def _record_to_comment(record: Mapping[str, Any]) -> Comment:
        created_at = datetime.fromisoformat(str(record["created_at"]).replace("Z", "+00:00"))
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return Comment(
            id=str(record["id"]),
            author=str(record["author"]),
            text=str(record["text"]),
            created_at=created_at,
        )
