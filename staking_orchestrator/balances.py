"""Staking balance lookups and the pre-flight checks built on them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from .asset import ETH, AmountLike, Asset, primary_denomination, to_decimal
from .errors import ArgumentError, InsufficientFundsError
from .models import BalanceModel, StakeOptionsMode, StakingAction
from .options import ActionLike, ModeLike, OptionsLike, StakingOptions, action_value, mode_value

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .client import StakingApiClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StakingBalances:
    """The four balance categories of one (asset, mode, options) lookup."""

    stakeable: Decimal
    unstakeable: Decimal
    claimable: Decimal
    pending_claimable: Decimal


def _whole_amount(balance: BalanceModel, asset_id: str) -> Decimal:
    return Asset.from_model(balance.asset, asset_id).from_atomic_amount(balance.amount)


class BalanceGate:
    """Fetch staking balances for an address and reject requests they cannot cover."""

    def __init__(self, client: "StakingApiClient", network_id: str, address_id: str) -> None:
        self._client = client
        self.network_id = network_id
        self.address_id = address_id

    async def fetch_balances(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingBalances:
        request_options = StakingOptions.coerce(options)
        if mode:
            request_options = request_options.merged(mode=mode_value(mode))
        context = await self._client.get_staking_context(
            network_id=self.network_id,
            address_id=self.address_id,
            asset_id=primary_denomination(asset_id),
            options=request_options.to_payload(),
        )
        return StakingBalances(
            stakeable=_whole_amount(context.stakeable_balance, asset_id),
            unstakeable=_whole_amount(context.unstakeable_balance, asset_id),
            claimable=_whole_amount(context.claimable_balance, asset_id),
            pending_claimable=_whole_amount(context.pending_claimable_balance, asset_id),
        )

    async def stakeable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return (await self.fetch_balances(asset_id, mode, options)).stakeable

    async def unstakeable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return (await self.fetch_balances(asset_id, mode, options)).unstakeable

    async def claimable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return (await self.fetch_balances(asset_id, mode, options)).claimable

    async def pending_claimable_balance(
        self,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> Decimal:
        return (await self.fetch_balances(asset_id, mode, options)).pending_claimable

    async def validate_can_stake(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> None:
        available = await self.stakeable_balance(asset_id, mode, options)
        _require_covered(StakingAction.STAKE, amount, available)

    async def validate_can_unstake(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> None:
        available = await self.unstakeable_balance(asset_id, mode, options)
        _require_covered(StakingAction.UNSTAKE, amount, available)

    async def validate_can_claim_stake(
        self,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> None:
        if asset_id == ETH and mode_value(mode) == StakeOptionsMode.NATIVE.value:
            raise ArgumentError("Claiming stake for ETH is not supported in native mode.")
        available = await self.claimable_balance(asset_id, mode, options)
        _require_covered(StakingAction.CLAIM_STAKE, amount, available)

    async def validate(
        self,
        action: ActionLike,
        amount: AmountLike,
        asset_id: str,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> None:
        """Dispatch to the check matching ``action``."""

        checks = {
            StakingAction.STAKE.value: self.validate_can_stake,
            StakingAction.UNSTAKE.value: self.validate_can_unstake,
            StakingAction.CLAIM_STAKE.value: self.validate_can_claim_stake,
        }
        await checks[action_value(action)](amount, asset_id, mode, options)


def _require_covered(action: StakingAction, amount: AmountLike, available: Decimal) -> None:
    requested = to_decimal(amount)
    if available < requested:
        logger.info(
            "Rejecting %s of %s: only %s available",
            action.value,
            requested,
            available,
        )
        raise InsufficientFundsError(action.value, requested, available)
