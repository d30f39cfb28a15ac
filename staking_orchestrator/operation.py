"""State container for a multi-step staking operation."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from .config import DEFAULT_WAIT_INTERVAL, DEFAULT_WAIT_TIMEOUT
from .errors import ArgumentError, NotSignedError
from .models import StakingOperationModel, StakingOperationStatus
from .polling import Clock, PollOptions, Sleep, poll_until_terminal
from .transaction import SigningKey, Transaction

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .client import StakingApiClient

logger = logging.getLogger(__name__)

DEFAULT_WAIT_OPTIONS = PollOptions(interval_seconds=DEFAULT_WAIT_INTERVAL, timeout_seconds=DEFAULT_WAIT_TIMEOUT)

_TERMINAL_STATUSES = {StakingOperationStatus.COMPLETE.value, StakingOperationStatus.FAILED.value}

ModelLike = Union[StakingOperationModel, Mapping[str, Any]]


class _ExternalPath:
    """Operations built for an externally owned address; the caller signs and broadcasts."""

    wallet_id: Optional[str] = None

    async def fetch(
        self,
        client: "StakingApiClient",
        network_id: str,
        address_id: str,
        operation_id: str,
    ) -> StakingOperationModel:
        return await client.get_external_staking_operation(network_id, address_id, operation_id)

    async def broadcast(
        self,
        client: "StakingApiClient",
        address_id: str,
        operation_id: str,
        signed_payload: str,
        transaction_index: int,
    ) -> StakingOperationModel:
        raise ArgumentError("Staking operations of external addresses are broadcast by their owner")


class _WalletPath:
    """Operations created through a wallet; the backend tracks broadcast state."""

    def __init__(self, wallet_id: str) -> None:
        self.wallet_id = wallet_id

    async def fetch(
        self,
        client: "StakingApiClient",
        network_id: str,
        address_id: str,
        operation_id: str,
    ) -> StakingOperationModel:
        return await client.get_staking_operation(self.wallet_id, address_id, operation_id)

    async def broadcast(
        self,
        client: "StakingApiClient",
        address_id: str,
        operation_id: str,
        signed_payload: str,
        transaction_index: int,
    ) -> StakingOperationModel:
        return await client.broadcast_staking_operation(
            self.wallet_id,
            address_id,
            operation_id,
            signed_payload=signed_payload,
            transaction_index=transaction_index,
        )


def _path_for(wallet_id: Optional[str]) -> Union[_ExternalPath, _WalletPath]:
    if wallet_id is None:
        return _ExternalPath()
    if wallet_id == "":
        raise ArgumentError("Invalid wallet ID")
    return _WalletPath(wallet_id)


def _coerce_model(model: Optional[ModelLike]) -> StakingOperationModel:
    if model is None:
        raise ArgumentError("Invalid model type")
    if isinstance(model, StakingOperationModel):
        return model
    return StakingOperationModel.model_validate(dict(model))


class StakingOperation:
    """A stake, unstake or claim-stake operation made of one or more transactions.

    The backend path used by :meth:`reload` is fixed at construction by the
    presence of a wallet id. The local transaction list only ever grows:
    reloads append transactions whose unsigned payload has not been seen yet,
    so a signature produced locally is never overwritten by a stale snapshot.
    """

    def __init__(
        self,
        model: Optional[ModelLike],
        client: "StakingApiClient",
        *,
        wait_options: Optional[PollOptions] = None,
    ) -> None:
        self._model = _coerce_model(model)
        self._client = client
        self._wait_options = wait_options or DEFAULT_WAIT_OPTIONS
        self._path = _path_for(self._model.wallet_id)
        self._transactions: List[Transaction] = []
        self._load_transactions_from_model()

    @classmethod
    async def fetch(
        cls,
        client: "StakingApiClient",
        network_id: str,
        address_id: str,
        operation_id: str,
        wallet_id: Optional[str] = None,
        *,
        wait_options: Optional[PollOptions] = None,
    ) -> "StakingOperation":
        path = _path_for(wallet_id)
        model = await path.fetch(client, network_id, address_id, operation_id)
        return cls(model, client, wait_options=wait_options)

    @property
    def id(self) -> str:
        return self._model.id

    @property
    def status(self) -> str:
        return self._model.status

    @property
    def wallet_id(self) -> Optional[str]:
        return self._path.wallet_id

    @property
    def address_id(self) -> str:
        return self._model.address_id

    @property
    def network_id(self) -> str:
        return self._model.network_id

    @property
    def model(self) -> StakingOperationModel:
        return self._model

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    def is_terminal_state(self) -> bool:
        return self.status in _TERMINAL_STATUSES

    def is_complete_state(self) -> bool:
        return self.status == StakingOperationStatus.COMPLETE.value

    def is_failed_state(self) -> bool:
        return self.status == StakingOperationStatus.FAILED.value

    def get_signed_voluntary_exit_messages(self) -> List[str]:
        """Decode the signed voluntary exit messages attached to a native unstake."""

        messages: List[str] = []
        for entry in self._model.metadata or []:
            if not entry.signed_voluntary_exit:
                continue
            try:
                decoded = base64.b64decode(entry.signed_voluntary_exit, validate=True)
                messages.append(decoded.decode("utf-8"))
            except (binascii.Error, UnicodeDecodeError) as exc:
                raise ArgumentError("Invalid signed voluntary exit message encoding") from exc
        return messages

    async def reload(self) -> None:
        """Replace the snapshot with the backend's latest view and merge new transactions."""

        fresh = await self._path.fetch(self._client, self.network_id, self.address_id, self.id)
        self.apply_snapshot(fresh)

    def apply_snapshot(self, model: ModelLike) -> None:
        fresh = _coerce_model(model)
        if fresh.id != self.id:
            raise ArgumentError(f"Snapshot {fresh.id} does not belong to staking operation {self.id}")
        if self.is_terminal_state() and fresh.status != self.status:
            logger.warning(
                "Ignoring status regression of staking operation %s from %s to %s",
                self.id,
                self.status,
                fresh.status,
            )
            fresh = fresh.model_copy(update={"status": self.status})
        self._model = fresh
        self._load_transactions_from_model()

    async def sign(self, key: SigningKey) -> None:
        """Sign every unsigned transaction in list order.

        The first signing failure propagates and leaves the earlier signatures in place.
        """

        if self.is_terminal_state():
            return
        for transaction in self._transactions:
            if not transaction.is_signed():
                await transaction.sign(key)

    async def broadcast_transaction(self, index: int) -> None:
        """Submit the locally signed transaction at ``index`` and adopt the returned snapshot."""

        if self.is_terminal_state():
            logger.debug("Staking operation %s is %s; skipping broadcast", self.id, self.status)
            return
        transaction = self._transactions[index]
        signed_payload = transaction.signed_payload
        if not signed_payload:
            raise NotSignedError(f"Transaction {index} of staking operation {self.id} is not signed")
        if signed_payload.startswith("0x"):
            signed_payload = signed_payload[2:]
        updated = await self._path.broadcast(
            self._client,
            self.address_id,
            self.id,
            signed_payload,
            index,
        )
        logger.info("Broadcast transaction %d of staking operation %s", index, self.id)
        self.apply_snapshot(updated)

    async def wait(
        self,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        *,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ) -> "StakingOperation":
        """Poll until the operation reaches a terminal status.

        Only operations of external addresses can be awaited here; wallet
        operations are driven by :class:`~staking_orchestrator.poller.SignBroadcastPoller`.
        Arguments left as ``None`` fall back to the wait options given at construction.
        """

        if self.wallet_id is not None:
            raise ArgumentError("cannot wait on staking operation for wallet address.")
        options = PollOptions(
            interval_seconds=self._wait_options.interval_seconds if interval_seconds is None else interval_seconds,
            timeout_seconds=self._wait_options.timeout_seconds if timeout_seconds is None else timeout_seconds,
        )

        async def _step() -> bool:
            await self.reload()
            return self.is_terminal_state()

        await poll_until_terminal(_step, options, clock=clock, sleep=sleep, operation_id=self.id)
        logger.info("Staking operation %s reached %s", self.id, self.status)
        return self

    def _load_transactions_from_model(self) -> None:
        remote = self._model.transactions
        if not remote:
            return
        known: Dict[str, Transaction] = {tx.unsigned_payload: tx for tx in self._transactions}
        added = 0
        for entry in remote:
            existing = known.get(entry.unsigned_payload)
            if existing is not None:
                existing.refresh(entry)
                continue
            transaction = Transaction(entry)
            self._transactions.append(transaction)
            known[entry.unsigned_payload] = transaction
            added += 1
        logger.debug(
            "Staking operation %s: %d new of %d remote transactions",
            self.id,
            added,
            len(remote),
        )

    def __str__(self) -> str:
        return (
            f"StakingOperation {{ id: {self.id} status: {self.status} "
            f"network_id: {self.network_id} address_id: {self.address_id} }}"
        )
