from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, Sequence


class LedgerGatewayError(RuntimeError):
    """Base error for ledger access failures."""


class NetworkError(LedgerGatewayError):
    """Raised when the ledger endpoint could not be reached."""


class RejectedError(LedgerGatewayError):
    """Raised when the ledger refuses a submitted transaction."""

    def __init__(self, message: str, *, result_codes: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.result_codes = dict(result_codes or {})


class ExplorerKind(str, Enum):
    TRANSACTION = "tx"
    ACCOUNT = "account"


@dataclass(frozen=True, slots=True)
class Holding:
    """Non-native asset balance held by an account."""

    asset_code: str
    issuer: str
    balance: str


@dataclass(frozen=True, slots=True)
class IssuerCredential:
    """Opaque signing material for the account that issues tickets."""

    identity: str
    secret: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class TransferReceipt:
    transaction_hash: str


class LedgerGateway(Protocol):
    async def get_holdings(self, identity: str) -> Sequence[Holding]:
        ...

    async def submit_asset_transfer(
        self,
        credential: IssuerCredential,
        recipient: str,
        asset_code: str,
        amount: str,
    ) -> TransferReceipt:
        ...

    def get_explorer_link(self, value: str, kind: ExplorerKind | str = ExplorerKind.TRANSACTION) -> str:
        ...


class TransactionSigner(Protocol):
    """Builds and signs a payment envelope; key handling lives outside this package."""

    async def sign_payment(
        self,
        credential: IssuerCredential,
        *,
        recipient: str,
        asset_code: str,
        asset_issuer: str,
        amount: str,
    ) -> str:
        ...
