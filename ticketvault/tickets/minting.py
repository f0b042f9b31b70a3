from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable

from ticketvault.errors import ValidationError
from ticketvault.ledger.gateway import ExplorerKind, IssuerCredential, LedgerGateway

from .cache import TicketCache
from .codec import encode_asset_code
from .models import Provenance, Ticket, TicketDraft, TicketMetadata, TicketType

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
TICKET_UNIT = "1"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_ticket_id(ticket_type: TicketType, *, now_ms: int | None = None) -> str:
    """``<type>_<epoch millis>_<random suffix>``, unique enough for one issuer."""

    millis = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{ticket_type.value}_{millis}_{suffix}"


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _parse_event_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise ValidationError(f"Event date {value!r} is not an ISO 8601 date", fields=("event_date",)) from exc


@dataclass(frozen=True, slots=True)
class MintReceipt:
    """Outcome of minting a ticket through the ledger."""

    ticket: Ticket
    transaction_hash: str
    explorer_url: str


class MintingWorkflow:
    """Validate ticket details, derive identifiers and record the ticket."""

    def __init__(
        self,
        cache: TicketCache,
        *,
        gateway: LedgerGateway | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[TicketType], str] = generate_ticket_id,
    ) -> None:
        self._cache = cache
        self._gateway = gateway
        self._clock = clock
        self._id_factory = id_factory

    async def mint(self, issuer: str, draft: TicketDraft) -> Ticket:
        """Mint a ticket into the issuer's local cache."""

        ticket = self._build_ticket(issuer, draft)
        await self._cache.add(issuer, ticket)
        logger.info("Minted local ticket %s (%s) for %s", ticket.asset_code, ticket.ticket_id, issuer)
        return ticket

    async def mint_on_ledger(
        self,
        credential: IssuerCredential,
        recipient: str,
        draft: TicketDraft,
    ) -> MintReceipt:
        """Mint a ticket by transferring one unit of a new asset to ``recipient``.

        The recipient must already trust the asset; trustline management and
        signing belong to the gateway side. Gateway errors propagate unchanged.
        """

        if self._gateway is None:
            raise RuntimeError("Ledger minting requires a configured ledger gateway")

        ticket = self._build_ticket(credential.identity, draft, provenance=Provenance.LEDGER)
        receipt = await self._gateway.submit_asset_transfer(
            credential,
            recipient,
            ticket.asset_code,
            TICKET_UNIT,
        )
        logger.info(
            "Minted ledger ticket %s for %s in transaction %s",
            ticket.asset_code,
            recipient,
            receipt.transaction_hash,
        )
        return MintReceipt(
            ticket=ticket,
            transaction_hash=receipt.transaction_hash,
            explorer_url=self._gateway.get_explorer_link(receipt.transaction_hash, ExplorerKind.TRANSACTION),
        )

    def _build_ticket(
        self,
        issuer: str,
        draft: TicketDraft,
        *,
        provenance: Provenance = Provenance.LOCAL,
    ) -> Ticket:
        event_name = (draft.event_name or "").strip()
        raw_date = draft.event_date.strip() if isinstance(draft.event_date, str) else draft.event_date

        missing = [name for name, value in (("event_name", event_name), ("event_date", raw_date)) if not value]
        if missing:
            raise ValidationError(f"Missing mandatory field(s): {', '.join(missing)}", fields=missing)
        if not issuer:
            raise ValidationError("Issuer identity is required", fields=("issuer",))

        ticket_type = TicketType(draft.type)
        ticket_id = self._id_factory(ticket_type)
        metadata = TicketMetadata(
            ticket_id=ticket_id,
            type=ticket_type,
            event_name=event_name,
            event_date=_parse_event_date(raw_date),
            minted_at=self._clock(),
            location=_clean_optional(draft.location),
            organizer=_clean_optional(draft.organizer),
            description=_clean_optional(draft.description),
        )
        return Ticket(
            asset_code=encode_asset_code(ticket_type, event_name, ticket_id),
            issuer=issuer,
            balance=TICKET_UNIT,
            metadata=metadata,
            provenance=provenance,
        )
