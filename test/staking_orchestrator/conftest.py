"""Shared fakes for the staking orchestration suites."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from staking_orchestrator.models import (
    AssetModel,
    BalanceModel,
    BroadcastExternalTransactionResponse,
    StakingContextModel,
    StakingOperationModel,
)

NETWORK = "ethereum-holesky"
ADDRESS = "0x000000000000000000000000000000000000beef"
WALLET = "wallet-1"


def unsigned_payload(nonce: int) -> str:
    body = {
        "chainId": "0x4268",
        "nonce": hex(nonce),
        "maxPriorityFeePerGas": "0x3b9aca00",
        "maxFeePerGas": "0x77359400",
        "gas": "0x5208",
        "to": "0x" + "ab" * 20,
        "value": "0xde0b6b3a7640000",
        "input": "0x",
    }
    return json.dumps(body).encode("utf-8").hex()


def operation_model(
    status: str = "pending",
    nonces: Optional[List[int]] = None,
    *,
    operation_id: str = "op-1",
    wallet_id: Optional[str] = None,
    **extra: Any,
) -> StakingOperationModel:
    transactions = [
        {"network_id": NETWORK, "unsigned_payload": unsigned_payload(nonce), "status": "pending"}
        for nonce in (nonces or [])
    ]
    return StakingOperationModel.model_validate(
        {
            "id": operation_id,
            "network_id": NETWORK,
            "address_id": ADDRESS,
            "status": status,
            "wallet_id": wallet_id,
            "transactions": transactions,
            **extra,
        }
    )


def _eth_model(asset_id: str = "eth", decimals: int = 18) -> AssetModel:
    return AssetModel(network_id=NETWORK, asset_id=asset_id, decimals=decimals)


class FakeStakingBackend:
    """In-memory stand-in for :class:`StakingApiClient`.

    ``snapshots`` feeds reloads and broadcasts in order; the last snapshot is
    repeated once the queue is exhausted.
    """

    def __init__(self) -> None:
        self.balances: Dict[str, int] = {
            "stakeable": 0,
            "unstakeable": 0,
            "claimable": 0,
            "pending_claimable": 0,
        }
        self.assets: Dict[str, AssetModel] = {"eth": _eth_model()}
        self.snapshots: List[StakingOperationModel] = []
        self.built: Optional[StakingOperationModel] = None
        self.calls: List[tuple] = []

    def _next_snapshot(self) -> StakingOperationModel:
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]

    async def get_asset(self, network_id: str, asset_id: str) -> AssetModel:
        self.calls.append(("get_asset", network_id, asset_id))
        return self.assets[asset_id]

    async def get_staking_context(self, **kwargs: Any) -> StakingContextModel:
        self.calls.append(("get_staking_context", kwargs))
        asset = self.assets[kwargs["asset_id"]]

        def balance(key: str) -> BalanceModel:
            return BalanceModel(amount=str(self.balances[key]), asset=asset)

        return StakingContextModel(
            stakeable_balance=balance("stakeable"),
            unstakeable_balance=balance("unstakeable"),
            claimable_balance=balance("claimable"),
            pending_claimable_balance=balance("pending_claimable"),
        )

    async def build_staking_operation(self, **kwargs: Any) -> StakingOperationModel:
        self.calls.append(("build_staking_operation", kwargs))
        return self.built or operation_model(nonces=[0])

    async def create_staking_operation(self, wallet_id: str, address_id: str, **kwargs: Any) -> StakingOperationModel:
        self.calls.append(("create_staking_operation", wallet_id, address_id, kwargs))
        return self.built or operation_model(nonces=[0], wallet_id=wallet_id)

    async def get_external_staking_operation(
        self, network_id: str, address_id: str, operation_id: str
    ) -> StakingOperationModel:
        self.calls.append(("get_external_staking_operation", operation_id))
        return self._next_snapshot()

    async def get_staking_operation(
        self, wallet_id: str, address_id: str, operation_id: str
    ) -> StakingOperationModel:
        self.calls.append(("get_staking_operation", wallet_id, operation_id))
        return self._next_snapshot()

    async def broadcast_staking_operation(
        self,
        wallet_id: str,
        address_id: str,
        operation_id: str,
        *,
        signed_payload: str,
        transaction_index: int,
    ) -> StakingOperationModel:
        self.calls.append(("broadcast_staking_operation", transaction_index, signed_payload))
        return self._next_snapshot()

    async def broadcast_external_transaction(
        self, network_id: str, address_id: str, *, signed_payload: str
    ) -> BroadcastExternalTransactionResponse:
        self.calls.append(("broadcast_external_transaction", signed_payload))
        return BroadcastExternalTransactionResponse(
            transaction_hash="0xfeed",
            transaction_link="https://explorer.example/tx/0xfeed",
        )

    def named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeSigningKey:
    """Signs by echoing the nonce; records every transaction dict it saw."""

    def __init__(self) -> None:
        self.signed: List[Dict[str, Any]] = []

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> SimpleNamespace:
        self.signed.append(transaction_dict)
        nonce = transaction_dict["nonce"]
        return SimpleNamespace(
            raw_transaction=bytes([0x02, nonce]),
            hash=bytes([nonce]) * 32,
        )


class FakeClock:
    """Monotonic clock advanced only by :meth:`sleep`."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def backend() -> FakeStakingBackend:
    return FakeStakingBackend()


@pytest.fixture
def signing_key() -> FakeSigningKey:
    return FakeSigningKey()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_operation():
    return operation_model


@pytest.fixture
def make_payload():
    return unsigned_payload
