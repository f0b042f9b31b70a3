from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence, Union

from opentelemetry import trace

from ticketvault.errors import PolicyViolation, SourceUnavailable, ValidationError
from ticketvault.ledger.gateway import Holding, LedgerGateway

from .cache import TicketCache
from .codec import infer_metadata, is_likely_ticket
from .models import Provenance, Ticket, TicketType

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ALL_TYPES = "all"
TypeFilter = Union[TicketType, str]


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """State after removing a local ticket."""

    cache: list[Ticket]
    collection: list[Ticket]


def _has_positive_balance(holding: Holding) -> bool:
    try:
        return float(holding.balance) > 0
    except (TypeError, ValueError):
        return False


def filter_collection(collection: Iterable[Ticket], type_or_all: TypeFilter = ALL_TYPES) -> list[Ticket]:
    """Return the tickets of one type, or all of them, keeping their order."""

    if isinstance(type_or_all, str) and type_or_all == ALL_TYPES:
        return list(collection)
    try:
        wanted = TicketType(type_or_all)
    except ValueError as exc:
        raise ValidationError(f"Unknown ticket type: {type_or_all!r}", fields=("type",)) from exc
    return [ticket for ticket in collection if ticket.metadata.type == wanted]


def is_deletable(ticket: Ticket, holder: str) -> bool:
    return ticket.provenance is Provenance.LOCAL and ticket.issuer == holder


class ReconciliationEngine:
    """Merge ledger holdings and the local cache into one ticket collection."""

    def __init__(self, gateway: LedgerGateway, cache: TicketCache) -> None:
        self._gateway = gateway
        self._cache = cache

    async def fetch_collection(self, holder: str) -> list[Ticket]:
        try:
            ledger_tickets = await self._fetch_ledger_tickets(holder)
        except SourceUnavailable as exc:
            logger.warning("Ledger unavailable for %s, showing cached tickets only: %s", holder, exc)
            ledger_tickets = []

        local_tickets = await self._cache.list(holder)
        # Ledger and cache entries are not cross-checked, so a ticket minted
        # locally and later observed on the ledger appears twice.
        return [*ledger_tickets, *local_tickets]

    async def _fetch_ledger_tickets(self, holder: str) -> list[Ticket]:
        with tracer.start_as_current_span("reconciliation.fetch_ledger"):
            try:
                holdings: Sequence[Holding] = await self._gateway.get_holdings(holder)
            except Exception as exc:
                raise SourceUnavailable(str(exc) or exc.__class__.__name__) from exc

        tickets: list[Ticket] = []
        for holding in holdings:
            if not _has_positive_balance(holding):
                continue
            if not is_likely_ticket(holding.asset_code):
                logger.debug("Skipping non-ticket asset %s:%s", holding.asset_code, holding.issuer)
                continue
            tickets.append(
                Ticket(
                    asset_code=holding.asset_code,
                    issuer=holding.issuer,
                    balance=holding.balance,
                    metadata=infer_metadata(holding.asset_code),
                    provenance=Provenance.LEDGER,
                )
            )
        return tickets

    def filter(self, collection: Iterable[Ticket], type_or_all: TypeFilter = ALL_TYPES) -> list[Ticket]:
        return filter_collection(collection, type_or_all)

    async def delete(self, collection: Sequence[Ticket], ticket: Ticket, holder: str) -> DeletionResult:
        """Remove a local ticket from the holder's cache.

        Ledger-sourced tickets, and tickets issued by someone else, are
        read-only here and raise :class:`PolicyViolation` without touching
        any state. Confirmation is left to the caller.
        """

        if not is_deletable(ticket, holder):
            raise PolicyViolation(
                f"Ticket {ticket.asset_code} is recorded on the ledger and cannot be deleted; "
                "only locally minted tickets can be removed"
            )

        remaining = await self._cache.remove(holder, ticket.asset_code, ticket.ticket_id)
        logger.info("Deleted local ticket %s for %s", ticket.asset_code, holder)
        updated = [
            entry
            for entry in collection
            if not (
                entry.provenance is Provenance.LOCAL
                and entry.asset_code == ticket.asset_code
                and entry.ticket_id == ticket.ticket_id
            )
        ]
        return DeletionResult(cache=remaining, collection=updated)
