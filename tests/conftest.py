from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from ticketvault.ledger.gateway import (
    ExplorerKind,
    Holding,
    IssuerCredential,
    NetworkError,
    TransferReceipt,
)
from ticketvault.storage.kv import InMemoryKeyValueStore
from ticketvault.tickets.cache import TicketCache
from ticketvault.tickets.comments import CommentStore
from ticketvault.tickets.models import Provenance, Ticket, TicketMetadata, TicketType

HOLDER = "GHOLDERAAAABBBBCCCCDDDDEEEEFFFF"
OTHER_ISSUER = "GISSUERZZZZYYYYXXXXWWWWVVVVUUUU"


class FakeLedgerGateway:
    def __init__(self, holdings: list[Holding] | None = None, *, error: Exception | None = None):
        self.holdings = list(holdings or [])
        self.error = error
        self.transfers: list[tuple[IssuerCredential, str, str, str]] = []
        self.holdings_calls: list[str] = []

    async def get_holdings(self, identity: str) -> list[Holding]:
        self.holdings_calls.append(identity)
        if self.error is not None:
            raise self.error
        return list(self.holdings)

    async def submit_asset_transfer(self, credential, recipient, asset_code, amount) -> TransferReceipt:
        self.transfers.append((credential, recipient, asset_code, amount))
        if self.error is not None:
            raise self.error
        return TransferReceipt(transaction_hash="abc123")

    def get_explorer_link(self, value: str, kind=ExplorerKind.TRANSACTION) -> str:
        return f"https://explorer.test/{ExplorerKind(kind).value}/{value}"


def make_local_ticket(
    *,
    asset_code: str = "CONTARKA1CON",
    ticket_id: str = "concert_1700000000000_q1w2e3",
    issuer: str = HOLDER,
    ticket_type: TicketType = TicketType.CONCERT,
    event_name: str = "Tarkan Harbiye",
) -> Ticket:
    return Ticket(
        asset_code=asset_code,
        issuer=issuer,
        balance="1",
        metadata=TicketMetadata(
            ticket_id=ticket_id,
            type=ticket_type,
            event_name=event_name,
            event_date=date(2025, 7, 12),
            minted_at=datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
            location="Harbiye Açıkhava",
        ),
        provenance=Provenance.LOCAL,
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(store) -> TicketCache:
    return TicketCache(store)


@pytest.fixture
def comment_store(store) -> CommentStore:
    return CommentStore(store)


@pytest.fixture
def gateway() -> FakeLedgerGateway:
    return FakeLedgerGateway(
        holdings=[
            Holding(asset_code="FOOTGALATABC", issuer=OTHER_ISSUER, balance="1.0000000"),
            Holding(asset_code="USDC", issuer=OTHER_ISSUER, balance="25.0000000"),
        ]
    )


@pytest.fixture
def unreachable_gateway() -> FakeLedgerGateway:
    return FakeLedgerGateway(error=NetworkError("connection refused"))
