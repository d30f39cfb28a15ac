"""Staking operation orchestration on top of the staking backend API."""

from .address import Address, ExternalAddress, WalletAddress
from .asset import Asset
from .balances import BalanceGate, StakingBalances
from .client import StakingApiClient
from .config import StakingSettings
from .errors import (
    AlreadySignedError,
    APIError,
    ArgumentError,
    ConfigurationError,
    InsufficientFundsError,
    InvalidUnsignedPayloadError,
    NotSignedError,
    StakingError,
    StakingTimeoutError,
)
from .models import StakeOptionsMode, StakingAction, StakingOperationStatus, TransactionStatus
from .operation import StakingOperation
from .options import ConsensusLayerExitOptionBuilder, ExecutionLayerWithdrawalOptionsBuilder, StakingOptions
from .poller import SignBroadcastPoller
from .request_builder import StakingRequestBuilder
from .transaction import SigningKey, Transaction, signing_key_from_hex

__all__ = [
    "APIError",
    "Address",
    "AlreadySignedError",
    "ArgumentError",
    "Asset",
    "BalanceGate",
    "ConfigurationError",
    "ConsensusLayerExitOptionBuilder",
    "ExecutionLayerWithdrawalOptionsBuilder",
    "ExternalAddress",
    "InsufficientFundsError",
    "InvalidUnsignedPayloadError",
    "NotSignedError",
    "SignBroadcastPoller",
    "SigningKey",
    "StakeOptionsMode",
    "StakingAction",
    "StakingApiClient",
    "StakingBalances",
    "StakingError",
    "StakingOperation",
    "StakingOperationStatus",
    "StakingOptions",
    "StakingRequestBuilder",
    "StakingSettings",
    "StakingTimeoutError",
    "Transaction",
    "TransactionStatus",
    "WalletAddress",
    "signing_key_from_hex",
]
