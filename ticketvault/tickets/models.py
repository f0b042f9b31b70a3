from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Union


class TicketType(str, Enum):
    """Kinds of events a ticket can commemorate."""

    FOOTBALL = "football"
    UNIVERSITY = "university"
    MUSEUM = "museum"
    CONCERT = "concert"
    EVENT = "event"

    @property
    def display_info(self) -> "TicketTypeInfo":
        return _TYPE_INFO[self]


@dataclass(frozen=True, slots=True)
class TicketTypeInfo:
    """Presentation hints attached to a ticket type."""

    icon: str
    label: str
    color: str


_TYPE_INFO: dict[TicketType, TicketTypeInfo] = {
    TicketType.FOOTBALL: TicketTypeInfo(icon="⚽", label="Maç Katılım Rozeti", color="green"),
    TicketType.UNIVERSITY: TicketTypeInfo(icon="🎓", label="Etkinlik Hatıra NFT'si", color="blue"),
    TicketType.MUSEUM: TicketTypeInfo(icon="🏛️", label="Dijital Müze Bileti", color="purple"),
    TicketType.CONCERT: TicketTypeInfo(icon="🎵", label="Konser Bileti", color="pink"),
    TicketType.EVENT: TicketTypeInfo(icon="🎫", label="Etkinlik Bileti", color="orange"),
}


class Provenance(str, Enum):
    """Which source produced a ticket in a merged collection."""

    LOCAL = "local"
    LEDGER = "ledger"


@dataclass(frozen=True, slots=True)
class TicketMetadata:
    """Authoritative metadata recorded when a ticket is minted."""

    ticket_id: str
    type: TicketType
    event_name: str
    event_date: date
    minted_at: datetime
    location: str | None = None
    organizer: str | None = None
    description: str | None = None

    @property
    def is_approximate(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class InferredMetadata:
    """Best-effort metadata reconstructed from an asset code alone.

    Only ``type`` and an approximate ``event_name`` can be recovered; the
    ledger carries no date, location, organizer or description.
    """

    ticket_id: str
    type: TicketType
    event_name: str
    event_date: date | None = None
    minted_at: datetime | None = None
    location: str | None = None
    organizer: str | None = None
    description: str | None = None

    @property
    def is_approximate(self) -> bool:
        return True


AnyMetadata = Union[TicketMetadata, InferredMetadata]


@dataclass(frozen=True, slots=True)
class Ticket:
    """A ticket held by an account, one per (issuer, asset code) pair."""

    asset_code: str
    issuer: str
    balance: str
    metadata: AnyMetadata
    provenance: Provenance = Provenance.LOCAL

    @property
    def ticket_id(self) -> str:
        return self.metadata.ticket_id

    @property
    def type(self) -> TicketType:
        return self.metadata.type


@dataclass(frozen=True, slots=True)
class TicketDraft:
    """Holder-supplied details for a ticket that has not been minted yet."""

    type: TicketType
    event_name: str
    event_date: date | str | None
    location: str | None = None
    organizer: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class Comment:
    """Single entry in a ticket's comment log."""

    id: str
    author: str
    text: str
    created_at: datetime


def format_identity(identity: str, start: int = 4, end: int = 4) -> str:
    """Shorten an account identity for display, e.g. ``GABC...WXYZ``."""

    if len(identity) <= start + end:
        return identity
    return f"{identity[:start]}...{identity[-end:]}"
