"""Sign, broadcast and poll loop for operations of wallet held keys."""

from __future__ import annotations

import logging
import time
from typing import Optional

from .asset import AmountLike
from .balances import BalanceGate
from .config import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT
from .errors import ArgumentError
from .models import StakeOptionsMode
from .operation import StakingOperation
from .options import ActionLike, ModeLike, OptionsLike, action_value, is_amount_exempt, require_positive_amount
from .polling import Clock, PollOptions, Sleep, poll_until_terminal
from .request_builder import StakingRequestBuilder
from .transaction import SigningKey

logger = logging.getLogger(__name__)


class SignBroadcastPoller:
    """Drive a wallet staking operation until the backend reports a terminal status.

    Every iteration signs and broadcasts each unsigned transaction in list
    order, reloads the operation and stops once it is complete or failed.
    Transactions that appear in later snapshots are picked up by the next
    iteration; already signed ones are skipped.
    """

    def __init__(
        self,
        gate: BalanceGate,
        builder: StakingRequestBuilder,
        key: SigningKey,
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL,
        timeout_seconds: float = DEFAULT_POLL_TIMEOUT,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._gate = gate
        self._builder = builder
        self._key = key
        self._options = PollOptions(interval_seconds=interval_seconds, timeout_seconds=timeout_seconds)
        self._clock = clock
        self._sleep = sleep

    async def run(
        self,
        amount: Optional[AmountLike],
        asset_id: str,
        action: ActionLike,
        mode: Optional[ModeLike] = StakeOptionsMode.DEFAULT,
        options: OptionsLike = None,
    ) -> StakingOperation:
        if not is_amount_exempt(asset_id, action, mode, options):
            require_positive_amount(amount)
            await self._gate.validate(action, amount, asset_id, mode, options)
        operation = await self._builder.create(amount, asset_id, action, mode, options)
        logger.info("Driving %s staking operation %s", action_value(action), operation.id)
        return await self.drive(operation)

    async def drive(self, operation: StakingOperation) -> StakingOperation:
        if operation.wallet_id is None:
            raise ArgumentError("Only wallet staking operations can be broadcast by the poller")

        async def _step() -> bool:
            await self.sign_and_broadcast(operation)
            await operation.reload()
            return operation.is_terminal_state()

        await poll_until_terminal(
            _step,
            self._options,
            clock=self._clock,
            sleep=self._sleep,
            operation_id=operation.id,
        )
        logger.info("Staking operation %s finished with status %s", operation.id, operation.status)
        return operation

    async def sign_and_broadcast(self, operation: StakingOperation) -> int:
        """Sign and broadcast every unsigned transaction; returns how many were sent."""

        sent = 0
        index = 0
        while index < len(operation.transactions) and not operation.is_terminal_state():
            transaction = operation.transactions[index]
            if not transaction.is_signed():
                await transaction.sign(self._key)
                await operation.broadcast_transaction(index)
                sent += 1
            index += 1
        return sent
