"""Read-only client for the Bitquery chain-indexing GraphQL API."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import httpx
import structlog

from config import IndexerSettings, get_settings
from tipjar.services._helpers import to_decimal
from tipjar.services.errors import MalformedResponseError, UpstreamUnavailableError
from tipjar.services.schemas.chain import (
    OnChainTransfer,
    TransactionVerification,
    TransferAggregate,
)

logger = structlog.get_logger(__name__)

BITQUERY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_VERIFY_TX_QUERY = """
query ($network: EthereumNetwork!, $hash: String!) {
  ethereum(network: $network) {
    transactions(txHash: {is: $hash}) {
      hash
      from { address }
      to { address }
      value
      success
      timestamp { time(format: "%Y-%m-%d %H:%M:%S") }
    }
  }
}
"""

_AGGREGATE_QUERY = """
query ($network: EthereumNetwork!, $token: String!, $receiver: String!{since_var}) {{
  ethereum(network: $network) {{
    transfers(
      currency: {{is: $token}}
      receiver: {{is: $receiver}}{since_filter}
    ) {{
      count
      senders: count(uniq: senders)
      amount
      currency {{ symbol }}
      days: count(uniq: dates)
    }}
  }}
}}
"""

_TRANSFERS_QUERY = """
query ($network: EthereumNetwork!, $token: String!, $receiver: String!, $limit: Int!) {
  ethereum(network: $network) {
    transfers(
      options: {limit: $limit, desc: "block.timestamp.time"}
      currency: {is: $token}
      receiver: {is: $receiver}
    ) {
      block { timestamp { time(format: "%Y-%m-%d %H:%M:%S") } }
      sender { address }
      receiver { address }
      transaction { hash }
      amount
      currency { symbol }
    }
  }
}
"""


def _aggregate_query(with_since: bool) -> str:
    if with_since:
        return _AGGREGATE_QUERY.format(
            since_var=", $since: ISO8601DateTime",
            since_filter="\n      time: {since: $since}",
        )
    return _AGGREGATE_QUERY.format(since_var="", since_filter="")


def _parse_time(node: object) -> datetime | None:
    if not isinstance(node, dict) or not node.get("time"):
        return None
    return datetime.strptime(str(node["time"]), BITQUERY_TIME_FORMAT).replace(tzinfo=UTC)


def _address(node: object) -> str | None:
    if isinstance(node, dict) and node.get("address"):
        return str(node["address"])
    return None


class ChainQueryClient:
    """Verifies transactions and fetches transfer statistics from Bitquery.

    No retries here; callers decide whether a failure matters.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        network: str | None = None,
        token_address: str | None = None,
        currency: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings: IndexerSettings = get_settings().indexer
        self.api_key: str = api_key if api_key is not None else (settings.api_key or "")
        self.api_url: str = api_url or settings.api_url
        self.network: str = network or settings.network
        self.token_address: str = token_address or settings.token_address
        self.currency: str = currency or settings.currency
        self.timeout: float = timeout or settings.timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "X-API-KEY": self.api_key,
                },
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None

    def __enter__(self) -> "ChainQueryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL query and return the `ethereum` node."""
        try:
            resp: httpx.Response = self._get_client().post(
                self.api_url,
                json={"query": query, "variables": variables},
            )
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(
                f"Bitquery request timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"Bitquery request failed: {e}") from e

        if not resp.is_success:
            raise UpstreamUnavailableError(
                f"Bitquery API error: {resp.status_code} {resp.reason_phrase}"
            )

        try:
            payload: object = resp.json()
        except ValueError as e:
            raise MalformedResponseError("Bitquery response is not JSON") from e
        if not isinstance(payload, dict):
            raise MalformedResponseError("Bitquery response is not an object")

        data: object = payload.get("data")
        errors: object = payload.get("errors")
        if errors and not data:
            first: object = errors[0] if isinstance(errors, list) and errors else errors
            message: object = first.get("message") if isinstance(first, dict) else first
            raise UpstreamUnavailableError(f"Bitquery query rejected: {message}")
        if not isinstance(data, dict) or not isinstance(data.get("ethereum"), dict):
            raise MalformedResponseError("Bitquery response missing data.ethereum")
        return data["ethereum"]

    @staticmethod
    def _rows(ethereum: dict[str, Any], key: str) -> list[dict[str, Any]]:
        rows: object = ethereum.get(key)
        if rows is None:
            return []
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise MalformedResponseError(f"Bitquery field '{key}' is not a list of objects")
        return rows

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def verify_transaction(self, tx_hash: str) -> TransactionVerification | None:
        """Look up a transaction. None means the indexer has no such transaction (yet)."""
        ethereum = self._query(_VERIFY_TX_QUERY, {"network": self.network, "hash": tx_hash})
        rows = self._rows(ethereum, "transactions")
        if not rows:
            logger.debug("Transaction not indexed", tx_hash=tx_hash)
            return None

        row: dict[str, Any] = rows[0]
        if not isinstance(row.get("success"), bool):
            raise MalformedResponseError("Transaction row lacks a boolean 'success'")
        try:
            return TransactionVerification(
                tx_hash=str(row.get("hash") or tx_hash),
                success=row["success"],
                from_address=_address(row.get("from")),
                to_address=_address(row.get("to")),
                value=to_decimal(row.get("value")),
                timestamp=_parse_time(row.get("timestamp")),
            )
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Unparseable transaction row: {e}") from e

    def get_aggregate_transfers(
        self,
        address: str,
        token_address: str | None = None,
        since: datetime | None = None,
    ) -> TransferAggregate:
        """Transfer count, distinct senders, volume and active days received by `address`."""
        variables: dict[str, Any] = {
            "network": self.network,
            "token": token_address or self.token_address,
            "receiver": address,
        }
        if since is not None:
            variables["since"] = since.astimezone(UTC).isoformat()

        ethereum = self._query(_aggregate_query(since is not None), variables)
        rows = self._rows(ethereum, "transfers")
        if not rows:
            return TransferAggregate(
                count=0,
                unique_senders=0,
                total_amount=Decimal(0),
                active_days=0,
                currency=self.currency,
            )

        row: dict[str, Any] = rows[0]
        currency: object = row.get("currency")
        symbol: object = currency.get("symbol") if isinstance(currency, dict) else None
        try:
            return TransferAggregate(
                count=int(row.get("count") or 0),
                unique_senders=int(row.get("senders") or 0),
                total_amount=to_decimal(row.get("amount")),
                active_days=int(row.get("days") or 0),
                currency=str(symbol or self.currency),
            )
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Unparseable transfer aggregate: {e}") from e

    def get_transfers(
        self,
        address: str,
        token_address: str | None = None,
        limit: int = 100,
    ) -> list[OnChainTransfer]:
        """Most recent token transfers received by `address`, newest first."""
        ethereum = self._query(
            _TRANSFERS_QUERY,
            {
                "network": self.network,
                "token": token_address or self.token_address,
                "receiver": address,
                "limit": limit,
            },
        )
        transfers: list[OnChainTransfer] = []
        for row in self._rows(ethereum, "transfers"):
            block: object = row.get("block")
            tx: object = row.get("transaction")
            currency: object = row.get("currency")
            if not isinstance(tx, dict) or not tx.get("hash"):
                raise MalformedResponseError("Transfer row lacks transaction.hash")
            try:
                transfers.append(
                    OnChainTransfer(
                        transaction_hash=str(tx["hash"]),
                        sender_address=_address(row.get("sender")) or "",
                        receiver_address=_address(row.get("receiver")) or address,
                        amount=to_decimal(row.get("amount")),
                        currency=str(
                            (currency.get("symbol") if isinstance(currency, dict) else None)
                            or self.currency
                        ),
                        timestamp=_parse_time(
                            block.get("timestamp") if isinstance(block, dict) else None
                        ),
                    )
                )
            except (TypeError, ValueError) as e:
                raise MalformedResponseError(f"Unparseable transfer row: {e}") from e
        return transfers
