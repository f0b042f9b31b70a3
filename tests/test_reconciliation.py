from __future__ import annotations

import logging

import pytest

from conftest import HOLDER, OTHER_ISSUER, FakeLedgerGateway, make_local_ticket
from ticketvault.errors import PersistenceError, PolicyViolation, ValidationError
from ticketvault.ledger.gateway import Holding
from ticketvault.storage.kv import InMemoryKeyValueStore
from ticketvault.tickets.cache import TicketCache, tickets_key
from ticketvault.tickets.models import Provenance, TicketType
from ticketvault.tickets.reconciliation import ReconciliationEngine, filter_collection


@pytest.mark.asyncio
async def test_fetch_collection_merges_ledger_then_local(gateway, cache):
    local = make_local_ticket()
    await cache.add(HOLDER, local)
    engine = ReconciliationEngine(gateway, cache)

    collection = await engine.fetch_collection(HOLDER)

    assert [ticket.asset_code for ticket in collection] == ["FOOTGALATABC", local.asset_code]
    ledger_ticket = collection[0]
    assert ledger_ticket.provenance is Provenance.LEDGER
    assert ledger_ticket.issuer == OTHER_ISSUER
    assert ledger_ticket.metadata.type is TicketType.FOOTBALL
    assert ledger_ticket.metadata.is_approximate
    assert collection[1] == local
    assert gateway.holdings_calls == [HOLDER]


@pytest.mark.asyncio
async def test_zero_balances_and_unrelated_assets_are_excluded(cache):
    gateway = FakeLedgerGateway(
        holdings=[
            Holding(asset_code="TICKOLD", issuer=OTHER_ISSUER, balance="0.0000000"),
            Holding(asset_code="EVENFEST", issuer=OTHER_ISSUER, balance="1"),
            Holding(asset_code="USD", issuer=OTHER_ISSUER, balance="10"),
        ]
    )
    engine = ReconciliationEngine(gateway, cache)

    collection = await engine.fetch_collection(HOLDER)

    assert [ticket.asset_code for ticket in collection] == ["EVENFEST"]


@pytest.mark.asyncio
async def test_ledger_failure_degrades_to_cache(unreachable_gateway, cache, caplog):
    local = make_local_ticket()
    await cache.add(HOLDER, local)
    engine = ReconciliationEngine(unreachable_gateway, cache)
    caplog.set_level(logging.WARNING)

    collection = await engine.fetch_collection(HOLDER)

    assert collection == [local]
    assert "Ledger unavailable" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_gateway_exception_is_masked(cache):
    engine = ReconciliationEngine(FakeLedgerGateway(error=ValueError("boom")), cache)

    assert await engine.fetch_collection(HOLDER) == []


@pytest.mark.asyncio
async def test_cache_failure_propagates(gateway):
    store = InMemoryKeyValueStore({tickets_key(HOLDER): "garbage"})
    engine = ReconciliationEngine(gateway, TicketCache(store))

    with pytest.raises(PersistenceError):
        await engine.fetch_collection(HOLDER)


@pytest.mark.asyncio
async def test_ledger_tickets_cannot_be_deleted(gateway, cache, store):
    local = make_local_ticket()
    await cache.add(HOLDER, local)
    engine = ReconciliationEngine(gateway, cache)
    collection = await engine.fetch_collection(HOLDER)
    before = await store.get(tickets_key(HOLDER))

    with pytest.raises(PolicyViolation):
        await engine.delete(collection, collection[0], HOLDER)

    assert await store.get(tickets_key(HOLDER)) == before


@pytest.mark.asyncio
async def test_self_issued_ledger_ticket_is_still_read_only(cache):
    gateway = FakeLedgerGateway(holdings=[Holding(asset_code="CONCSELF", issuer=HOLDER, balance="1")])
    engine = ReconciliationEngine(gateway, cache)
    collection = await engine.fetch_collection(HOLDER)

    with pytest.raises(PolicyViolation):
        await engine.delete(collection, collection[0], HOLDER)


@pytest.mark.asyncio
async def test_cached_ticket_from_another_issuer_is_rejected(gateway, cache):
    foreign = make_local_ticket(issuer=OTHER_ISSUER)
    engine = ReconciliationEngine(gateway, cache)

    with pytest.raises(PolicyViolation):
        await engine.delete([foreign], foreign, HOLDER)


@pytest.mark.asyncio
async def test_deleting_local_ticket_leaves_ledger_ticket(gateway, cache):
    keep = make_local_ticket(ticket_id="concert_1_keep")
    drop = make_local_ticket(ticket_id="concert_2_drop")
    await cache.add(HOLDER, keep)
    await cache.add(HOLDER, drop)
    engine = ReconciliationEngine(gateway, cache)
    collection = await engine.fetch_collection(HOLDER)

    result = await engine.delete(collection, drop, HOLDER)

    assert result.cache == [keep]
    assert [ticket.ticket_id for ticket in result.collection] == ["FOOTGALATABC", "concert_1_keep"]
    refreshed = await engine.fetch_collection(HOLDER)
    assert refreshed == result.collection
    assert gateway.transfers == []


def test_filter_returns_ordered_subsequence():
    concert = make_local_ticket(ticket_id="c1")
    museum = make_local_ticket(ticket_id="m1", ticket_type=TicketType.MUSEUM)
    concert_two = make_local_ticket(ticket_id="c2")
    collection = [concert, museum, concert_two]

    assert filter_collection(collection, "all") == collection
    assert filter_collection(collection, TicketType.CONCERT) == [concert, concert_two]
    assert filter_collection(collection, "museum") == [museum]
    assert filter_collection(collection, TicketType.FOOTBALL) == []


def test_filter_rejects_unknown_type():
    with pytest.raises(ValidationError):
        filter_collection([], "opera")
