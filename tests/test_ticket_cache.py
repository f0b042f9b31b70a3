from __future__ import annotations

import pytest

from conftest import HOLDER, make_local_ticket
from ticketvault.errors import PersistenceError
from ticketvault.storage.kv import InMemoryKeyValueStore
from ticketvault.tickets.cache import TicketCache, tickets_key
from ticketvault.tickets.codec import infer_metadata
from ticketvault.tickets.models import Provenance, Ticket


@pytest.mark.asyncio
async def test_cache_round_trips_tickets_per_holder(cache, store):
    first = make_local_ticket()
    second = make_local_ticket(asset_code="MUSTOPKA1MUS", ticket_id="museum_1700000000001_abcdef")

    await cache.add(HOLDER, first)
    await cache.add(HOLDER, second)

    assert await cache.list(HOLDER) == [first, second]
    assert await cache.list("GSOMEONEELSE") == []
    stored = await store.get(tickets_key(HOLDER))
    assert stored[0]["metadata"]["event_date"] == "2025-07-12"
    assert "provenance" not in stored[0]


@pytest.mark.asyncio
async def test_remove_only_drops_matching_entry(cache):
    keep = make_local_ticket(ticket_id="concert_1_keep")
    drop = make_local_ticket(ticket_id="concert_2_drop")
    await cache.add(HOLDER, keep)
    await cache.add(HOLDER, drop)

    remaining = await cache.remove(HOLDER, drop.asset_code, drop.ticket_id)

    assert remaining == [keep]
    assert await cache.list(HOLDER) == [keep]


@pytest.mark.asyncio
async def test_corrupted_payload_raises_persistence_error():
    store = InMemoryKeyValueStore({tickets_key(HOLDER): {"not": "a list"}})
    cache = TicketCache(store)

    with pytest.raises(PersistenceError):
        await cache.list(HOLDER)

    await store.set(tickets_key(HOLDER), [{"asset_code": "X"}])
    with pytest.raises(PersistenceError):
        await cache.list(HOLDER)


@pytest.mark.asyncio
async def test_inferred_tickets_are_not_cacheable(cache):
    inferred = Ticket(
        asset_code="FOOTGALATA",
        issuer=HOLDER,
        balance="1",
        metadata=infer_metadata("FOOTGALATA"),
        provenance=Provenance.LEDGER,
    )

    with pytest.raises(PersistenceError):
        await cache.add(HOLDER, inferred)
