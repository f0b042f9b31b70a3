"""Ledger gateway contract and the Horizon-backed implementation."""

from .gateway import (
    ExplorerKind,
    Holding,
    IssuerCredential,
    LedgerGateway,
    LedgerGatewayError,
    NetworkError,
    RejectedError,
    TransactionSigner,
    TransferReceipt,
)
from .horizon import HorizonLedgerGateway

__all__ = [
    "ExplorerKind",
    "Holding",
    "HorizonLedgerGateway",
    "IssuerCredential",
    "LedgerGateway",
    "LedgerGatewayError",
    "NetworkError",
    "RejectedError",
    "TransactionSigner",
    "TransferReceipt",
]
