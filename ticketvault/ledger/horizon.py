from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from opentelemetry import trace

from .gateway import (
    ExplorerKind,
    Holding,
    IssuerCredential,
    NetworkError,
    RejectedError,
    TransactionSigner,
    TransferReceipt,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_HORIZON_URL = "https://horizon-testnet.stellar.org"
DEFAULT_EXPLORER_URL = "https://stellar.expert/explorer"


def _extract_result_codes(response: httpx.Response) -> dict[str, object]:
    try:
        data = response.json()
    except ValueError:
        return {}
    if not isinstance(data, Mapping):
        return {}
    extras = data.get("extras")
    if isinstance(extras, Mapping) and isinstance(extras.get("result_codes"), Mapping):
        return dict(extras["result_codes"])
    return {}


def _parse_amount(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class HorizonLedgerGateway:
    """Ledger gateway backed by a Horizon REST endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        network: str = "testnet",
        explorer_url: str = DEFAULT_EXPLORER_URL,
        signer: TransactionSigner | None = None,
    ) -> None:
        self._client = client
        self._network = network
        self._explorer_url = explorer_url.rstrip("/")
        self._signer = signer

    @classmethod
    def from_url(
        cls,
        base_url: str = DEFAULT_HORIZON_URL,
        *,
        timeout: float = 10.0,
        **kwargs: Any,
    ) -> "HorizonLedgerGateway":
        client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        return cls(client, **kwargs)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_holdings(self, identity: str) -> list[Holding]:
        with tracer.start_as_current_span("horizon.get_holdings"):
            try:
                response = await self._client.get(f"/accounts/{identity}")
            except httpx.HTTPError as exc:
                raise NetworkError(f"Horizon request failed: {exc}") from exc

        # Unfunded accounts do not exist on the ledger yet.
        if response.status_code == 404:
            logger.debug("Account %s not found on ledger; treating as empty", identity)
            return []
        if response.status_code >= 400:
            raise NetworkError(f"Horizon returned HTTP {response.status_code} for account {identity}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError("Horizon returned a malformed account payload") from exc
        if not isinstance(payload, Mapping):
            raise NetworkError("Horizon returned a malformed account payload")

        holdings: list[Holding] = []
        for balance in payload.get("balances", []):
            if balance.get("asset_type") == "native":
                continue
            if _parse_amount(balance.get("balance")) <= 0:
                continue
            holdings.append(
                Holding(
                    asset_code=str(balance.get("asset_code", "")),
                    issuer=str(balance.get("asset_issuer", "")),
                    balance=str(balance.get("balance")),
                )
            )
        return holdings

    async def submit_asset_transfer(
        self,
        credential: IssuerCredential,
        recipient: str,
        asset_code: str,
        amount: str,
    ) -> TransferReceipt:
        if self._signer is None:
            raise RejectedError("No transaction signer configured for ledger submissions")

        envelope = await self._signer.sign_payment(
            credential,
            recipient=recipient,
            asset_code=asset_code,
            asset_issuer=credential.identity,
            amount=amount,
        )

        with tracer.start_as_current_span("horizon.submit_transaction"):
            try:
                response = await self._client.post("/transactions", data={"tx": envelope})
            except httpx.HTTPError as exc:
                raise NetworkError(f"Horizon submission failed: {exc}") from exc

        if response.status_code == 400:
            codes = _extract_result_codes(response)
            logger.error("Ledger rejected transfer of %s to %s: %s", asset_code, recipient, codes)
            raise RejectedError("Transaction rejected by the ledger", result_codes=codes)
        if response.status_code >= 400:
            raise NetworkError(f"Horizon returned HTTP {response.status_code} on submission")

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError("Horizon returned a malformed submission payload") from exc
        if not isinstance(payload, Mapping) or not payload.get("hash"):
            raise NetworkError("Horizon submission response carried no transaction hash")

        transaction_hash = str(payload["hash"])
        logger.info("Transferred %s %s to %s in %s", amount, asset_code, recipient, transaction_hash)
        return TransferReceipt(transaction_hash=transaction_hash)

    def get_explorer_link(self, value: str, kind: ExplorerKind | str = ExplorerKind.TRANSACTION) -> str:
        segment = ExplorerKind(kind).value
        network = "testnet" if self._network == "testnet" else "public"
        return f"{self._explorer_url}/{network}/{segment}/{value}"
