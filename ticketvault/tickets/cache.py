from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Mapping

from ticketvault.errors import PersistenceError
from ticketvault.storage.kv import KeyValueStore

from .models import Provenance, Ticket, TicketMetadata, TicketType

logger = logging.getLogger(__name__)


def tickets_key(holder: str) -> str:
    return f"tickets:{holder}"


class TicketCache:
    """Local record of tickets minted on this device, keyed by owner."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def list(self, holder: str) -> list[Ticket]:
        records = await self._load(holder)
        try:
            return [self._record_to_ticket(record) for record in records]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Corrupted ticket cache for {holder}: {exc}") from exc

    async def add(self, holder: str, ticket: Ticket) -> None:
        records = await self._load(holder)
        records.append(self._ticket_to_record(ticket))
        await self._store.set(tickets_key(holder), records)

    async def remove(self, holder: str, asset_code: str, ticket_id: str) -> list[Ticket]:
        """Drop the entry matching ``(asset_code, ticket_id)`` and return what is left."""

        current = await self.list(holder)
        remaining = [
            ticket
            for ticket in current
            if not (ticket.asset_code == asset_code and ticket.ticket_id == ticket_id)
        ]
        if len(remaining) == len(current):
            logger.warning("Ticket %s (%s) not found in cache for %s", asset_code, ticket_id, holder)
        await self._store.set(tickets_key(holder), [self._ticket_to_record(ticket) for ticket in remaining])
        return remaining

    async def _load(self, holder: str) -> list[Any]:
        payload = await self._store.get(tickets_key(holder))
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise PersistenceError(f"Ticket cache for {holder} is not a list")
        return list(payload)

    @staticmethod
    def _ticket_to_record(ticket: Ticket) -> dict[str, Any]:
        metadata = ticket.metadata
        if not isinstance(metadata, TicketMetadata):
            raise PersistenceError("Only tickets with authoritative metadata can be cached")
        return {
            "asset_code": ticket.asset_code,
            "issuer": ticket.issuer,
            "balance": ticket.balance,
            "metadata": {
                "ticket_id": metadata.ticket_id,
                "type": metadata.type.value,
                "event_name": metadata.event_name,
                "event_date": metadata.event_date.isoformat(),
                "location": metadata.location,
                "organizer": metadata.organizer,
                "description": metadata.description,
                "minted_at": metadata.minted_at.isoformat(),
            },
        }

    @staticmethod
    def _record_to_ticket(record: Mapping[str, Any]) -> Ticket:
        metadata = record["metadata"]
        return Ticket(
            asset_code=str(record["asset_code"]),
            issuer=str(record["issuer"]),
            balance=str(record.get("balance", "1")),
            metadata=TicketMetadata(
                ticket_id=str(metadata["ticket_id"]),
                type=TicketType(metadata["type"]),
                event_name=str(metadata["event_name"]),
                event_date=date.fromisoformat(str(metadata["event_date"])[:10]),
                minted_at=_ensure_datetime(metadata["minted_at"]),
                location=metadata.get("location"),
                organizer=metadata.get("organizer"),
                description=metadata.get("description"),
            ),
            provenance=Provenance.LOCAL,
        )


def _ensure_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
