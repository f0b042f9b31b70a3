"""Asset code encoding for ticket metadata.

Ledger asset codes are limited to twelve alphanumeric characters, so the
encoding keeps only short fragments of the type, event name and ticket id.
Decoding is a best-effort reconstruction and never a true inverse.
"""

from __future__ import annotations

import re

from .models import InferredMetadata, TicketType

MAX_ASSET_CODE_LENGTH = 12

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")
_UPPER_RE = re.compile(r"([A-Z])")

# Order matters: the first matching prefix decides the inferred type.
_TYPE_PREFIXES: tuple[tuple[str, TicketType], ...] = (
    ("FOOT", TicketType.FOOTBALL),
    ("UNIV", TicketType.UNIVERSITY),
    ("MUSE", TicketType.MUSEUM),
    ("CONC", TicketType.CONCERT),
)

TICKET_PREFIXES: tuple[str, ...] = ("FOOT", "UNIV", "MUSE", "CONC", "EVEN", "TICK")

_EVENT_NAME_PREFIX_RE = re.compile(r"^(FOOT|UNIV|MUSE|CONC|EVEN)")


def _alphanumeric(value: str) -> str:
    return _NON_ALNUM_RE.sub("", value)


def encode_asset_code(ticket_type: TicketType | str, event_name: str, ticket_id: str) -> str:
    """Derive the ledger asset code for a ticket.

    ``FOO`` + ``GALAT`` + ``ABCD`` for a football ticket named
    "Galatasaray vs Fenerbahçe" whose id starts with ``abcd``.
    """

    type_value = TicketType(ticket_type).value
    prefix = type_value[:3].upper()
    event_fragment = _alphanumeric(event_name or "")[:5].upper()
    id_fragment = _alphanumeric((ticket_id or "")[:4]).upper()
    return f"{prefix}{event_fragment}{id_fragment}"[:MAX_ASSET_CODE_LENGTH]


def infer_ticket_type(asset_code: str) -> TicketType:
    for prefix, ticket_type in _TYPE_PREFIXES:
        if asset_code.startswith(prefix):
            return ticket_type
    return TicketType.EVENT


def is_likely_ticket(asset_code: str) -> bool:
    """Return whether a ledger asset looks like one of our tickets."""

    return asset_code.startswith(TICKET_PREFIXES)


def parse_event_name(asset_code: str) -> str:
    """Approximate the event name hidden in an asset code.

    Spacing, casing and punctuation of the original name are not recoverable.
    """

    stripped = _EVENT_NAME_PREFIX_RE.sub("", asset_code, count=1)
    return _UPPER_RE.sub(r" \1", stripped).strip()


def infer_metadata(asset_code: str) -> InferredMetadata:
    return InferredMetadata(
        ticket_id=asset_code,
        type=infer_ticket_type(asset_code),
        event_name=parse_event_name(asset_code),
    )
