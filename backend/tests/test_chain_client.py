"""Tests for tipjar.services.chain_client against a mocked Bitquery endpoint."""

import json
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import httpx
import pytest

from tipjar.services.chain_client import ChainQueryClient
from tipjar.services.errors import MalformedResponseError, UpstreamUnavailableError
from tipjar.services.schemas.chain import (
    OnChainTransfer,
    TransactionVerification,
    TransferAggregate,
)

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, api_key: str = "test-key") -> ChainQueryClient:
    return ChainQueryClient(
        api_key=api_key,
        api_url="https://graphql.example.test",
        network="base",
        token_address="0xtoken",
        currency="USDC",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def _ethereum(**nodes: Any) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"ethereum": nodes}})

    return handler


class TestConfiguration:
    def test_blank_key_is_unconfigured(self) -> None:
        assert _client(_ethereum(), api_key="").is_configured is False
        assert _client(_ethereum(), api_key="  ").is_configured is False

    def test_key_is_configured(self) -> None:
        assert _client(_ethereum()).is_configured is True


class TestVerifyTransaction:
    def test_success(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "data": {
                        "ethereum": {
                            "transactions": [
                                {
                                    "hash": "0xabc",
                                    "from": {"address": "0xsender"},
                                    "to": {"address": "0xtoken"},
                                    "value": 0,
                                    "success": True,
                                    "timestamp": {"time": "2026-03-01 12:30:00"},
                                }
                            ]
                        }
                    }
                },
            )

        with _client(handler) as client:
            result: TransactionVerification | None = client.verify_transaction("0xabc")

        assert result is not None
        assert result.success is True
        assert result.from_address == "0xsender"
        assert result.to_address == "0xtoken"
        assert result.timestamp == datetime(2026, 3, 1, 12, 30, tzinfo=UTC)

        (request,) = seen
        assert request.headers["X-API-KEY"] == "test-key"
        body: dict[str, Any] = json.loads(request.content)
        assert body["variables"] == {"network": "base", "hash": "0xabc"}

    def test_failed_transaction(self) -> None:
        client = _client(_ethereum(transactions=[{"hash": "0xabc", "success": False}]))
        result: TransactionVerification | None = client.verify_transaction("0xabc")
        assert result is not None
        assert result.success is False

    def test_not_indexed(self) -> None:
        assert _client(_ethereum(transactions=[])).verify_transaction("0xabc") is None
        assert _client(_ethereum(transactions=None)).verify_transaction("0xabc") is None

    def test_missing_success_flag(self) -> None:
        client = _client(_ethereum(transactions=[{"hash": "0xabc"}]))
        with pytest.raises(MalformedResponseError):
            client.verify_transaction("0xabc")


class TestTransportFailures:
    def test_http_error_status(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(UpstreamUnavailableError, match="500"):
            client.verify_transaction("0xabc")

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamUnavailableError, match="timed out"):
            _client(handler).verify_transaction("0xabc")

    def test_connection_refused(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamUnavailableError):
            _client(handler).get_aggregate_transfers("0xreceiver")

    def test_non_json_body(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(MalformedResponseError):
            client.verify_transaction("0xabc")

    def test_missing_ethereum_node(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"data": {}}))
        with pytest.raises(MalformedResponseError):
            client.get_transfers("0xreceiver")

    def test_graphql_errors(self) -> None:
        client = _client(
            lambda request: httpx.Response(
                200, json={"errors": [{"message": "Unauthorized"}]}
            )
        )
        with pytest.raises(UpstreamUnavailableError, match="Unauthorized"):
            client.verify_transaction("0xabc")

    def test_rows_not_a_list(self) -> None:
        client = _client(_ethereum(transfers={"count": 1}))
        with pytest.raises(MalformedResponseError):
            client.get_aggregate_transfers("0xreceiver")


class TestAggregateTransfers:
    def test_parses_aggregate(self) -> None:
        client = _client(
            _ethereum(
                transfers=[
                    {
                        "count": 10,
                        "senders": 7,
                        "amount": 100.5,
                        "currency": {"symbol": "USDC"},
                        "days": 4,
                    }
                ]
            )
        )
        agg: TransferAggregate = client.get_aggregate_transfers("0xreceiver")
        assert agg.count == 10
        assert agg.unique_senders == 7
        assert agg.total_amount == Decimal("100.5")
        assert agg.active_days == 4
        assert agg.currency == "USDC"

    def test_empty_is_zero(self) -> None:
        agg: TransferAggregate = _client(_ethereum(transfers=[])).get_aggregate_transfers("0xr")
        assert agg.count == 0
        assert agg.total_amount == Decimal(0)
        assert agg.currency == "USDC"

    def test_since_is_sent_as_variable(self) -> None:
        bodies: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"ethereum": {"transfers": []}}})

        client = _client(handler)
        client.get_aggregate_transfers("0xreceiver", since=datetime(2026, 3, 1, tzinfo=UTC))
        client.get_aggregate_transfers("0xreceiver")

        with_since, without_since = bodies
        assert with_since["variables"]["since"] == "2026-03-01T00:00:00+00:00"
        assert "$since" in with_since["query"]
        assert with_since["variables"]["token"] == "0xtoken"
        assert "since" not in without_since["variables"]
        assert "$since" not in without_since["query"]


class TestGetTransfers:
    def test_parses_rows(self) -> None:
        client = _client(
            _ethereum(
                transfers=[
                    {
                        "block": {"timestamp": {"time": "2026-03-02 08:00:00"}},
                        "sender": {"address": "0xa"},
                        "receiver": {"address": "0xreceiver"},
                        "transaction": {"hash": "0x01"},
                        "amount": 3,
                        "currency": {"symbol": "USDC"},
                    },
                    {
                        "sender": {"address": "0xb"},
                        "transaction": {"hash": "0x02"},
                        "amount": "0.25",
                    },
                ]
            )
        )
        transfers: list[OnChainTransfer] = client.get_transfers("0xreceiver", limit=2)
        assert [t.transaction_hash for t in transfers] == ["0x01", "0x02"]
        assert transfers[0].timestamp == datetime(2026, 3, 2, 8, 0, tzinfo=UTC)
        assert transfers[1].receiver_address == "0xreceiver"
        assert transfers[1].amount == Decimal("0.25")
        assert transfers[1].currency == "USDC"
        assert transfers[1].timestamp is None

    def test_row_without_hash(self) -> None:
        client = _client(_ethereum(transfers=[{"amount": 1}]))
        with pytest.raises(MalformedResponseError):
            client.get_transfers("0xreceiver")
