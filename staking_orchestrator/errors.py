"""Exception hierarchy for staking operation orchestration."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional


class StakingError(RuntimeError):
    """Base class for every error raised by :mod:`staking_orchestrator`."""


class ConfigurationError(StakingError):
    """Raised when required configuration for the backend client is missing."""


class ArgumentError(StakingError, ValueError):
    """Raised when caller supplied input is rejected before any network call."""

    def __init__(self, message: str = "Argument Error") -> None:
        super().__init__(message)


class InsufficientFundsError(ArgumentError):
    """Raised when the requested amount exceeds the relevant staking balance."""

    def __init__(self, action: str, requested: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient funds {requested} requested to {action.replace('_', ' ')}, "
            f"only {available} available."
        )
        self.action = action
        self.requested = requested
        self.available = available


class APIError(StakingError):
    """Raised when the staking backend responds with an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        http_code: Optional[int] = None,
        api_code: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.http_code = http_code
        self.api_code = api_code
        self.api_message = message
        self.correlation_id = correlation_id

    def __str__(self) -> str:
        parts = [f"APIError{{httpCode: {self.http_code}"]
        if self.api_code:
            parts.append(f"apiCode: {self.api_code}")
        parts.append(f"apiMessage: {self.api_message}")
        if self.correlation_id:
            parts.append(f"correlationId: {self.correlation_id}")
        return ", ".join(parts) + "}"


class StakingTimeoutError(StakingError, TimeoutError):
    """Raised when a staking operation stays non-terminal past its deadline."""

    def __init__(
        self,
        message: str = "Staking operation timed out",
        *,
        operation_id: Optional[str] = None,
        elapsed: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.operation_id = operation_id
        self.elapsed = elapsed
        self.timeout = timeout


class AlreadySignedError(StakingError):
    """Raised when a transaction that already carries a signature is signed again."""

    def __init__(self, message: str = "Resource already signed") -> None:
        super().__init__(message)


class NotSignedError(StakingError):
    """Raised when a signature is required but the transaction is unsigned."""

    def __init__(self, message: str = "Resource not signed") -> None:
        super().__init__(message)


class InvalidUnsignedPayloadError(StakingError):
    """Raised when an unsigned payload cannot be decoded into a transaction."""

    def __init__(self, message: str = "Invalid unsigned payload") -> None:
        super().__init__(message)
