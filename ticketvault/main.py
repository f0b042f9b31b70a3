from __future__ import annotations

from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI

from ticketvault.api.routes import comments, ping, tickets
from ticketvault.core.config import Settings, get_settings
from ticketvault.core.logging import configure_logging, init_tracer, shutdown_tracer
from ticketvault.ledger.horizon import HorizonLedgerGateway
from ticketvault.storage.kv import InMemoryKeyValueStore, KeyValueStore, PostgresKeyValueStore
from ticketvault.tickets.cache import TicketCache
from ticketvault.tickets.comments import CommentStore
from ticketvault.tickets.minting import MintingWorkflow
from ticketvault.tickets.reconciliation import ReconciliationEngine


async def _build_store(settings: Settings) -> tuple[KeyValueStore, asyncpg.Pool | None]:
    if settings.storage_backend == "postgres":
        pool = await asyncpg.create_pool(dsn=settings.postgres_dsn, min_size=1, max_size=5)
        store = PostgresKeyValueStore(pool, table=settings.kv_table_name)
        await store.ensure_schema()
        return store, pool
    return InMemoryKeyValueStore(), None


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider

    gateway = HorizonLedgerGateway.from_url(
        settings.horizon_url,
        timeout=settings.ledger_timeout,
        network=settings.network,
        explorer_url=settings.explorer_url,
    )
    store, pool = await _build_store(settings)
    cache = TicketCache(store)

    app.state.ledger_gateway = gateway
    app.state.reconciliation_engine = ReconciliationEngine(gateway, cache)
    app.state.minting_workflow = MintingWorkflow(cache, gateway=gateway)
    app.state.comment_store = CommentStore(store)
    logger.info("Started %s with %s storage on %s", settings.app_name, settings.storage_backend, settings.network)
    try:
        yield
    finally:
        await gateway.close()
        if pool is not None:
            await pool.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    app.include_router(comments.router)
    return app


app = create_app()
