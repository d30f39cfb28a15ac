"""Pydantic models for the staking backend payloads."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StakeOptionsMode(str, Enum):
    """Staking mode passed to the backend under the ``mode`` option."""

    DEFAULT = "default"
    PARTIAL = "partial"
    NATIVE = "native"


class StakingAction(str, Enum):
    STAKE = "stake"
    UNSTAKE = "unstake"
    CLAIM_STAKE = "claim_stake"


class StakingOperationStatus(str, Enum):
    """Statuses reported for staking operations; only the last two are terminal."""

    INITIALIZED = "initialized"
    PENDING = "pending"
    UNSPECIFIED = "unspecified"
    COMPLETE = "complete"
    FAILED = "failed"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"
    BROADCAST = "broadcast"
    UNSPECIFIED = "unspecified"
    COMPLETE = "complete"
    FAILED = "failed"


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class AssetModel(_WireModel):
    network_id: str
    asset_id: str
    decimals: Optional[int] = Field(default=None, ge=0)
    contract_address: Optional[str] = None


class BalanceModel(_WireModel):
    """An atomic amount paired with the asset describing its decimals."""

    amount: str
    asset: AssetModel


class StakingContextModel(_WireModel):
    stakeable_balance: BalanceModel
    unstakeable_balance: BalanceModel
    pending_claimable_balance: BalanceModel
    claimable_balance: BalanceModel


class StakingContextResponse(_WireModel):
    context: StakingContextModel


class TransactionModel(_WireModel):
    network_id: Optional[str] = None
    from_address_id: Optional[str] = None
    to_address_id: Optional[str] = None
    unsigned_payload: str
    signed_payload: Optional[str] = None
    transaction_hash: Optional[str] = None
    transaction_link: Optional[str] = None
    status: str = TransactionStatus.PENDING.value


class SignedVoluntaryExitMessageMetadata(_WireModel):
    validator_pub_key: Optional[str] = None
    fork: Optional[str] = None
    signed_voluntary_exit: Optional[str] = None


class StakingOperationModel(_WireModel):
    """Snapshot of a staking operation as returned by build, create, get and broadcast."""

    id: str
    network_id: str
    address_id: str
    status: str
    wallet_id: Optional[str] = None
    transactions: List[TransactionModel] = Field(default_factory=list)
    metadata: Optional[List[SignedVoluntaryExitMessageMetadata]] = None


class BroadcastExternalTransactionResponse(_WireModel):
    transaction_hash: str
    transaction_link: Optional[str] = None
