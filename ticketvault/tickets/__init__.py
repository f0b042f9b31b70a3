"""Ticket domain models and services."""

from .cache import TicketCache
from .codec import (
    encode_asset_code,
    infer_metadata,
    infer_ticket_type,
    is_likely_ticket,
    parse_event_name,
)
from .comments import CommentStore
from .minting import MintingWorkflow, MintReceipt, generate_ticket_id
from .models import (
    Comment,
    InferredMetadata,
    Provenance,
    Ticket,
    TicketDraft,
    TicketMetadata,
    TicketType,
    TicketTypeInfo,
    format_identity,
)
from .reconciliation import ALL_TYPES, DeletionResult, ReconciliationEngine, filter_collection

__all__ = [
    "ALL_TYPES",
    "Comment",
    "CommentStore",
    "DeletionResult",
    "InferredMetadata",
    "MintReceipt",
    "MintingWorkflow",
    "Provenance",
    "ReconciliationEngine",
    "Ticket",
    "TicketCache",
    "TicketDraft",
    "TicketMetadata",
    "TicketType",
    "TicketTypeInfo",
    "encode_asset_code",
    "filter_collection",
    "format_identity",
    "generate_ticket_id",
    "infer_metadata",
    "infer_ticket_type",
    "is_likely_ticket",
    "parse_event_name",
]
