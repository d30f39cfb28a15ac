"""Address level entry points for staking."""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Dict, Optional, Union

import httpx

from .asset import AmountLike
from .balances import BalanceGate, StakingBalances
from .client import StakingApiClient
from .config import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, StakingSettings
from .errors import ArgumentError
from .models import StakeOptionsMode, StakingAction
from .operation import StakingOperation
from .options import ModeLike, OptionsLike, is_amount_exempt, require_positive_amount
from .poller import SignBroadcastPoller
from .polling import Clock, PollOptions, Sleep
from .request_builder import StakingRequestBuilder
from .transaction import SigningKey, signing_key_from_hex

logger = logging.getLogger(__name__)

DEFAULT_POLL_OPTIONS = PollOptions(interval_seconds=DEFAULT_POLL_INTERVAL, timeout_seconds=DEFAULT_POLL_TIMEOUT)


class Address:
    """Balance lookups shared by external and wallet addresses."""

    def __init__(self, client: StakingApiClient, network_id: str, address_id: str) -> None:
        self._client = client
        self.network_id = network_id
        self.address_id = address_id
        self._gate = BalanceGate(client, network_id, address_id)

    @property
    def id(self) -> str:
        return self.address_id

    async def staking_balances(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingBalances:
        return await self._gate.fetch_balances(asset_id, mode, options)

    async def stakeable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return await self._gate.stakeable_balance(asset_id, mode, options)

    async def unstakeable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return await self._gate.unstakeable_balance(asset_id, mode, options)

    async def claimable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return await self._gate.claimable_balance(asset_id, mode, options)

    async def pending_claimable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return await self._gate.pending_claimable_balance(asset_id, mode, options)

    def __str__(self) -> str:
        return f"{type(self).__name__} {{ network_id: '{self.network_id}', id: '{self.address_id}' }}"

class ExternalAddress(Address):
    """An address whose key is held by the caller.

    Operations are built here and returned unsigned; the caller signs them,
    broadcasts the result and may :meth:`StakingOperation.wait` for completion.
    ``wait`` defaults come from ``settings`` when given.
    """

    def __init__(
        self,
        client: StakingApiClient,
        network_id: str,
        address_id: str,
        *,
        settings: Optional[StakingSettings] = None,
    ) -> None:
        super().__init__(client, network_id, address_id)
        wait_options = settings.wait_options() if settings is not None else None
        self._builder = StakingRequestBuilder(client, network_id, address_id, wait_options=wait_options)

    @classmethod
    def from_settings(
        cls,
        settings: StakingSettings,
        network_id: str,
        address_id: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ExternalAddress":
        client = StakingApiClient.from_settings(settings, transport=transport)
        return cls(client, network_id, address_id, settings=settings)

    async def build_stake_operation(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingOperation:
        require_positive_amount(amount)
        await self._gate.validate_can_stake(amount, asset_id, mode, options)
        return await self._builder.build(amount, asset_id, StakingAction.STAKE, mode, options)

    async def build_unstake_operation(
        self,
        amount: Optional[AmountLike],
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingOperation:
        if not is_amount_exempt(asset_id, StakingAction.UNSTAKE, mode, options):
            require_positive_amount(amount)
            await self._gate.validate_can_unstake(amount, asset_id, mode, options)
        return await self._builder.build(amount, asset_id, StakingAction.UNSTAKE, mode, options)

    async def build_claim_stake_operation(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingOperation:
        require_positive_amount(amount)
        await self._gate.validate_can_claim_stake(amount, asset_id, mode, options)
        return await self._builder.build(amount, asset_id, StakingAction.CLAIM_STAKE, mode, options)

    async def broadcast_external_transaction(self, signed_payload: str) -> Dict[str, Optional[str]]:
        """Submit a transaction the caller signed outside any staking operation."""

        if not signed_payload:
            raise ArgumentError("Signed payload required")
        response = await self._client.broadcast_external_transaction(
            self.network_id,
            self.address_id,
            signed_payload=signed_payload,
        )
        logger.info("Broadcast external transaction %s", response.transaction_hash)
        return {
            "transaction_hash": response.transaction_hash,
            "transaction_link": response.transaction_link,
        }


class WalletAddress(Address):
    """An address of a wallet whose signing key is held locally.

    ``key`` is a :class:`SigningKey` or a hex encoded private key. Poller
    interval and timeout default to ``settings`` when given.
    """

    def __init__(
        self,
        client: StakingApiClient,
        network_id: str,
        address_id: str,
        wallet_id: str,
        key: Union[SigningKey, str],
        *,
        settings: Optional[StakingSettings] = None,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if not wallet_id:
            raise ArgumentError("Invalid wallet ID")
        super().__init__(client, network_id, address_id)
        self.wallet_id = wallet_id
        self._key = signing_key_from_hex(key) if isinstance(key, str) else key
        self._builder = StakingRequestBuilder(client, network_id, address_id, wallet_id)
        self._poll_options = settings.poll_options() if settings is not None else DEFAULT_POLL_OPTIONS
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: StakingSettings,
        network_id: str,
        address_id: str,
        wallet_id: str,
        key: Union[SigningKey, str],
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "WalletAddress":
        client = StakingApiClient.from_settings(settings, transport=transport)
        return cls(client, network_id, address_id, wallet_id, key, settings=settings)

    def _poller(self, interval_seconds: Optional[float], timeout_seconds: Optional[float]) -> SignBroadcastPoller:
        return SignBroadcastPoller(
            self._gate,
            self._builder,
            self._key,
            interval_seconds=self._poll_options.interval_seconds if interval_seconds is None else interval_seconds,
            timeout_seconds=self._poll_options.timeout_seconds if timeout_seconds is None else timeout_seconds,
            clock=self._clock,
            sleep=self._sleep,
        )

    async def create_stake(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
        timeout_seconds: Optional[float] = None,
        interval_seconds: Optional[float] = None,
    ) -> StakingOperation:
        poller = self._poller(interval_seconds, timeout_seconds)
        return await poller.run(amount, asset_id, StakingAction.STAKE, mode, options)

    async def create_unstake(
        self,
        amount: Optional[AmountLike],
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
        timeout_seconds: Optional[float] = None,
        interval_seconds: Optional[float] = None,
    ) -> StakingOperation:
        poller = self._poller(interval_seconds, timeout_seconds)
        return await poller.run(amount, asset_id, StakingAction.UNSTAKE, mode, options)

    async def create_claim_stake(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
        timeout_seconds: Optional[float] = None,
        interval_seconds: Optional[float] = None,
    ) -> StakingOperation:
        poller = self._poller(interval_seconds, timeout_seconds)
        return await poller.run(amount, asset_id, StakingAction.CLAIM_STAKE, mode, options)

    async def staking_operation(self, operation_id: str) -> StakingOperation:
        """Load one of this wallet address's staking operations."""

        return await StakingOperation.fetch(
            self._client,
            self.network_id,
            self.address_id,
            operation_id,
            wallet_id=self.wallet_id,
        )
