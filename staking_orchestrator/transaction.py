"""A single signable step of a staking operation."""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Dict, Optional, Protocol

from eth_account import Account
from eth_utils import ValidationError, to_checksum_address

from .errors import AlreadySignedError, ArgumentError, InvalidUnsignedPayloadError, NotSignedError
from .models import TransactionModel, TransactionStatus

logger = logging.getLogger(__name__)

_QUANTITY_FIELDS = {
    "chainId": "chainId",
    "nonce": "nonce",
    "maxPriorityFeePerGas": "maxPriorityFeePerGas",
    "maxFeePerGas": "maxFeePerGas",
    "gas": "gas",
    "gasLimit": "gas",
    "value": "value",
    "type": "type",
}

_TERMINAL_STATUSES = {TransactionStatus.COMPLETE, TransactionStatus.FAILED}


class SigningKey(Protocol):
    """Anything able to sign an EIP-1559 transaction dict (e.g. ``eth_account.LocalAccount``)."""

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:  # pragma: no cover - protocol
        ...


def signing_key_from_hex(private_key: str) -> SigningKey:
    """Load an ``eth_account`` local account from a hex encoded private key."""

    try:
        return Account.from_key(private_key)
    except (TypeError, ValueError, ValidationError) as exc:
        raise ArgumentError("Invalid private key") from exc


def _int_from_quantity(value: Any) -> int:
    if value in (None, ""):
        return 0
    if isinstance(value, bool):
        raise InvalidUnsignedPayloadError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return int(text, 16)
            return int(text)
        except ValueError as exc:
            raise InvalidUnsignedPayloadError(f"Invalid quantity: {value!r}") from exc
    raise InvalidUnsignedPayloadError(f"Invalid quantity: {value!r}")


def _bytes_to_hex(value: Any) -> str:
    return "0x" + bytes(value).hex()


def decode_unsigned_payload(unsigned_payload: str) -> Dict[str, Any]:
    """Decode a hex encoded JSON transaction into a dict accepted by ``sign_transaction``."""

    text = unsigned_payload[2:] if unsigned_payload.startswith("0x") else unsigned_payload
    try:
        raw = json.loads(bytes.fromhex(text).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidUnsignedPayloadError() from exc
    if not isinstance(raw, dict):
        raise InvalidUnsignedPayloadError()

    tx: Dict[str, Any] = {"type": 2}
    for key, target in _QUANTITY_FIELDS.items():
        if key in raw:
            tx[target] = _int_from_quantity(raw[key])
    if raw.get("to"):
        try:
            tx["to"] = to_checksum_address(raw["to"])
        except ValueError as exc:
            raise InvalidUnsignedPayloadError(f"Invalid destination: {raw['to']!r}") from exc
    data = raw.get("data", raw.get("input"))
    tx["data"] = data or "0x"
    if raw.get("accessList"):
        tx["accessList"] = raw["accessList"]
    return tx


class Transaction:
    """Wraps one transaction snapshot and the signature produced locally for it.

    The unsigned payload is the identity of the transaction and never changes.
    A local signature takes precedence over anything the backend reports.
    """

    def __init__(self, model: TransactionModel) -> None:
        if model is None:
            raise ArgumentError("Invalid model type")
        self._model = model
        self._signed_payload: Optional[str] = None
        self._transaction_hash: Optional[str] = None
        self._raw: Optional[Dict[str, Any]] = None

    @property
    def unsigned_payload(self) -> str:
        return self._model.unsigned_payload

    @property
    def signed_payload(self) -> Optional[str]:
        return self._signed_payload or self._model.signed_payload or None

    @property
    def transaction_hash(self) -> Optional[str]:
        return self._transaction_hash or self._model.transaction_hash

    @property
    def transaction_link(self) -> Optional[str]:
        return self._model.transaction_link

    @property
    def from_address_id(self) -> Optional[str]:
        return self._model.from_address_id

    @property
    def to_address_id(self) -> Optional[str]:
        return self._model.to_address_id

    @property
    def network_id(self) -> Optional[str]:
        return self._model.network_id

    @property
    def status(self) -> TransactionStatus:
        try:
            return TransactionStatus(self._model.status)
        except ValueError:
            return TransactionStatus.UNSPECIFIED

    @property
    def raw(self) -> Dict[str, Any]:
        """The transaction dict that was signed locally."""

        if self._raw is None:
            raise NotSignedError()
        return dict(self._raw)

    def refresh(self, model: TransactionModel) -> None:
        """Adopt backend reported fields (status, hash, link) of the same transaction."""

        if model.unsigned_payload != self.unsigned_payload:
            raise ArgumentError("Cannot refresh a transaction with a different unsigned payload")
        self._model = model

    def is_signed(self) -> bool:
        return bool(self.signed_payload)

    def is_terminal_state(self) -> bool:
        return self.status in _TERMINAL_STATUSES

    async def sign(self, key: SigningKey) -> str:
        """Sign the unsigned payload with ``key`` and return the ``0x`` signed payload."""

        if self.is_signed():
            raise AlreadySignedError()
        tx = decode_unsigned_payload(self.unsigned_payload)
        signed = key.sign_transaction(tx)
        if inspect.isawaitable(signed):
            signed = await signed
        self._raw = tx
        self._signed_payload = _bytes_to_hex(signed.raw_transaction)
        self._transaction_hash = _bytes_to_hex(signed.hash)
        logger.debug("Signed transaction %s", self._transaction_hash)
        return self._signed_payload

    def __str__(self) -> str:
        return f"Transaction {{ transactionHash: '{self.transaction_hash}', status: '{self.status.value}' }}"
