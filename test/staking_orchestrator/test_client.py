import asyncio
import json

import httpx
import pytest

from staking_orchestrator.client import StakingApiClient
from staking_orchestrator.config import StakingSettings
from staking_orchestrator.errors import APIError

ADDRESS = "0x000000000000000000000000000000000000beef"

OPERATION = {
    "id": "op-1",
    "network_id": "ethereum-holesky",
    "address_id": ADDRESS,
    "status": "pending",
    "transactions": [{"unsigned_payload": "7b7d", "status": "pending"}],
}


def _client(handler, **kwargs) -> StakingApiClient:
    return StakingApiClient("https://staking.example/", transport=httpx.MockTransport(handler), **kwargs)


def test_build_posts_request_and_parses_snapshot():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=OPERATION)

    async def runner() -> None:
        model = await _client(handler, api_key="secret").build_staking_operation(
            network_id="ethereum-holesky",
            address_id=ADDRESS,
            asset_id="eth",
            action="stake",
            options={"amount": "1", "mode": "default"},
        )
        assert model.id == "op-1"
        assert model.transactions[0].unsigned_payload == "7b7d"

    asyncio.run(runner())
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/v1/stake/build"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content)["options"] == {"amount": "1", "mode": "default"}


def test_wallet_broadcast_targets_the_operation():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=OPERATION)

    asyncio.run(
        _client(handler).broadcast_staking_operation(
            "wallet-1", ADDRESS, "op-1", signed_payload="02ff", transaction_index=1
        )
    )
    (request,) = seen
    assert request.url.path == f"/v1/wallets/wallet-1/addresses/{ADDRESS}/staking_operations/op-1/broadcast"
    assert json.loads(request.content) == {"signed_payload": "02ff", "transaction_index": 1}


def test_staking_context_returns_the_inner_context():
    balance = {"amount": "5", "asset": {"network_id": "ethereum-holesky", "asset_id": "eth", "decimals": 18}}
    body = {
        "context": {
            "stakeable_balance": balance,
            "unstakeable_balance": balance,
            "pending_claimable_balance": balance,
            "claimable_balance": balance,
        }
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/stake/context"
        return httpx.Response(200, json=body)

    context = asyncio.run(
        _client(handler).get_staking_context(
            network_id="ethereum-holesky", address_id=ADDRESS, asset_id="eth", options={}
        )
    )
    assert context.stakeable_balance.amount == "5"


def test_error_responses_become_api_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            422,
            json={"code": "invalid_request", "message": "amount too small"},
            headers={"x-correlation-id": "corr-1"},
        )

    with pytest.raises(APIError) as excinfo:
        asyncio.run(_client(handler).get_asset("ethereum-holesky", "eth"))
    error = excinfo.value
    assert error.http_code == 422
    assert error.api_code == "invalid_request"
    assert error.api_message == "amount too small"
    assert error.correlation_id == "corr-1"
    assert "apiCode: invalid_request" in str(error)


def test_transport_failures_and_bad_payloads_become_api_errors():
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    def not_json(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    def wrong_shape(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "op-1"})

    for handler in (unreachable, not_json, wrong_shape):
        with pytest.raises(APIError):
            asyncio.run(_client(handler).get_external_staking_operation("ethereum-holesky", ADDRESS, "op-1"))


def test_from_settings_carries_headers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"transaction_hash": "0xfeed"})

    settings = StakingSettings(api_url="https://staking.example", headers={"X-Team": "staking"})
    client = StakingApiClient.from_settings(settings, transport=httpx.MockTransport(handler))
    response = asyncio.run(client.broadcast_external_transaction("ethereum-holesky", ADDRESS, signed_payload="0x02"))

    assert response.transaction_hash == "0xfeed"
    assert response.transaction_link is None
    assert seen[0].headers["X-Team"] == "staking"
    assert "Authorization" not in seen[0].headers
