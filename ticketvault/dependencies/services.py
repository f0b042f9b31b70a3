from __future__ import annotations

from fastapi import HTTPException, Request

from ticketvault.ledger.gateway import LedgerGateway
from ticketvault.tickets.comments import CommentStore
from ticketvault.tickets.minting import MintingWorkflow
from ticketvault.tickets.reconciliation import ReconciliationEngine


def _from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return service


async def get_reconciliation_engine(request: Request) -> ReconciliationEngine:
    return _from_state(request, "reconciliation_engine", "Ticket collection")


async def get_minting_workflow(request: Request) -> MintingWorkflow:
    return _from_state(request, "minting_workflow", "Ticket minting")


async def get_comment_store(request: Request) -> CommentStore:
    return _from_state(request, "comment_store", "Comment store")


async def get_ledger_gateway(request: Request) -> LedgerGateway:
    return _from_state(request, "ledger_gateway", "Ledger gateway")
