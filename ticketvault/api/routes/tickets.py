from __future__ import annotations

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ticketvault.dependencies.services import (
    get_comment_store,
    get_ledger_gateway,
    get_minting_workflow,
    get_reconciliation_engine,
)
from ticketvault.errors import PersistenceError, PolicyViolation, ValidationError
from ticketvault.ledger.gateway import ExplorerKind, LedgerGateway
from ticketvault.tickets.comments import CommentStore
from ticketvault.tickets.minting import MintingWorkflow
from ticketvault.tickets.models import Ticket, TicketDraft, TicketType
from ticketvault.tickets.reconciliation import ALL_TYPES, ReconciliationEngine, is_deletable

router = APIRouter(prefix="/holders/{holder}/tickets", tags=["tickets"])


class TicketMintRequest(BaseModel):
    type: TicketType = Field(default=TicketType.EVENT)
    event_name: str = Field(..., max_length=255)
    event_date: str = Field(..., max_length=32)
    location: str | None = Field(default=None, max_length=255)
    organizer: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=2000)


class TicketMetadataResponse(BaseModel):
    ticket_id: str
    type: TicketType
    type_label: str
    type_icon: str
    event_name: str
    event_date: date | None
    minted_at: datetime | None
    location: str | None
    organizer: str | None
    description: str | None
    approximate: bool


class TicketResponse(BaseModel):
    asset_code: str
    issuer: str
    balance: str
    provenance: str
    deletable: bool
    comment_count: int
    issuer_explorer_url: str
    metadata: TicketMetadataResponse


EngineDep = Annotated[ReconciliationEngine, Depends(get_reconciliation_engine)]
MintingDep = Annotated[MintingWorkflow, Depends(get_minting_workflow)]
CommentsDep = Annotated[CommentStore, Depends(get_comment_store)]
GatewayDep = Annotated[LedgerGateway, Depends(get_ledger_gateway)]


async def _to_response(
    ticket: Ticket,
    *,
    holder: str,
    comments: CommentStore,
    gateway: LedgerGateway,
) -> TicketResponse:
    metadata = ticket.metadata
    info = metadata.type.display_info
    return TicketResponse(
        asset_code=ticket.asset_code,
        issuer=ticket.issuer,
        balance=ticket.balance,
        provenance=ticket.provenance.value,
        deletable=is_deletable(ticket, holder),
        comment_count=await comments.count(ticket.ticket_id),
        issuer_explorer_url=gateway.get_explorer_link(ticket.issuer, ExplorerKind.ACCOUNT),
        metadata=TicketMetadataResponse(
            ticket_id=metadata.ticket_id,
            type=metadata.type,
            type_label=info.label,
            type_icon=info.icon,
            event_name=metadata.event_name,
            event_date=metadata.event_date,
            minted_at=metadata.minted_at,
            location=metadata.location,
            organizer=metadata.organizer,
            description=metadata.description,
            approximate=metadata.is_approximate,
        ),
    )


@router.get("", response_model=list[TicketResponse])
async def list_tickets(
    holder: str,
    engine: EngineDep,
    comments: CommentsDep,
    gateway: GatewayDep,
    type_filter: str = Query(default=ALL_TYPES, alias="type"),
) -> list[TicketResponse]:
    try:
        collection = await engine.fetch_collection(holder)
        selected = engine.filter(collection, type_filter)
        return [await _to_response(ticket, holder=holder, comments=comments, gateway=gateway) for ticket in selected]
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def mint_ticket(
    holder: str,
    payload: TicketMintRequest,
    workflow: MintingDep,
    comments: CommentsDep,
    gateway: GatewayDep,
) -> TicketResponse:
    draft = TicketDraft(
        type=payload.type,
        event_name=payload.event_name,
        event_date=payload.event_date,
        location=payload.location,
        organizer=payload.organizer,
        description=payload.description,
    )
    try:
        ticket = await workflow.mint(holder, draft)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return await _to_response(ticket, holder=holder, comments=comments, gateway=gateway)


@router.delete("/{asset_code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(
    holder: str,
    asset_code: str,
    engine: EngineDep,
    ticket_id: str = Query(..., min_length=1),
) -> None:
    try:
        collection = await engine.fetch_collection(holder)
        matches = [
            ticket for ticket in collection if ticket.asset_code == asset_code and ticket.ticket_id == ticket_id
        ]
        if not matches:
            raise HTTPException(status_code=404, detail=f"Ticket {asset_code} not found")
        await engine.delete(collection, matches[0], holder)
    except PolicyViolation as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
