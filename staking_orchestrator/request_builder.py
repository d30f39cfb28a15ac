"""Assembly of build/create requests for staking operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

from .asset import AmountLike, Asset
from .errors import ArgumentError
from .models import StakeOptionsMode
from .operation import StakingOperation
from .options import (
    ActionLike,
    ModeLike,
    OptionsLike,
    StakingOptions,
    action_value,
    is_amount_exempt,
    mode_value,
    require_positive_amount,
)
from .polling import PollOptions

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .client import StakingApiClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StakingRequest:
    network_id: str
    address_id: str
    asset_id: str
    action: str
    options: StakingOptions

    def options_payload(self) -> Dict[str, str]:
        return self.options.to_payload()


class StakingRequestBuilder:
    """Turn a caller's amount and options into a backend snapshot wrapped as an operation."""

    def __init__(
        self,
        client: "StakingApiClient",
        network_id: str,
        address_id: str,
        wallet_id: Optional[str] = None,
        *,
        wait_options: Optional[PollOptions] = None,
    ) -> None:
        self._client = client
        self.network_id = network_id
        self.address_id = address_id
        self.wallet_id = wallet_id
        self._wait_options = wait_options

    async def prepare(
        self,
        amount: Optional[AmountLike],
        asset_id: str,
        action: ActionLike,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingRequest:
        request_options = StakingOptions.coerce(options)
        exempt = is_amount_exempt(asset_id, action, mode, request_options)
        if not exempt:
            require_positive_amount(amount)
        asset = await Asset.fetch(self._client, self.network_id, asset_id)
        if not exempt:
            request_options = request_options.merged(amount=str(asset.to_atomic_amount(amount)))
        request_options = request_options.merged(mode=mode_value(mode))
        return StakingRequest(
            network_id=self.network_id,
            address_id=self.address_id,
            asset_id=asset.primary_denomination(),
            action=action_value(action),
            options=request_options,
        )

    async def build(
        self,
        amount: Optional[AmountLike],
        asset_id: str,
        action: ActionLike,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingOperation:
        """Build an operation for an external address; nothing is signed or broadcast."""

        request = await self.prepare(amount, asset_id, action, mode, options)
        model = await self._client.build_staking_operation(
            network_id=request.network_id,
            address_id=request.address_id,
            asset_id=request.asset_id,
            action=request.action,
            options=request.options_payload(),
        )
        operation = StakingOperation(model, self._client, wait_options=self._wait_options)
        logger.info("Built %s staking operation %s", request.action, operation.id)
        return operation

    async def create(
        self,
        amount: Optional[AmountLike],
        asset_id: str,
        action: ActionLike,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingOperation:
        """Create an operation owned by the builder's wallet."""

        if not self.wallet_id:
            raise ArgumentError("Creating a staking operation requires a wallet ID")
        request = await self.prepare(amount, asset_id, action, mode, options)
        model = await self._client.create_staking_operation(
            self.wallet_id,
            request.address_id,
            network_id=request.network_id,
            asset_id=request.asset_id,
            action=request.action,
            options=request.options_payload(),
        )
        operation = StakingOperation(model, self._client, wait_options=self._wait_options)
        logger.info("Created %s staking operation %s for wallet %s", request.action, operation.id, self.wallet_id)
        return operation
