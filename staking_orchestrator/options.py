"""Typed staking options and the validator level option builders."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from .asset import ETH, AmountLike, Asset, to_decimal
from .errors import ArgumentError
from .models import StakeOptionsMode, StakingAction

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .client import StakingApiClient

UNSTAKE_TYPE_EXECUTION = "execution"
UNSTAKE_TYPE_CONSENSUS = "consensus"

_UNSTAKE_TYPES = (UNSTAKE_TYPE_EXECUTION, UNSTAKE_TYPE_CONSENSUS)


def _stringify(value: Any) -> str:
    if isinstance(value, StakeOptionsMode):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class StakingOptions:
    """Options forwarded to the backend.

    The recognised keys are attributes; anything else the caller passes lands in
    ``extra`` and is forwarded untouched.
    """

    mode: Optional[str] = None
    amount: Optional[str] = None
    unstake_type: Optional[str] = None
    validator_unstake_amounts: Optional[str] = None
    validator_pub_keys: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def coerce(cls, options: Union["StakingOptions", Mapping[str, Any], None]) -> "StakingOptions":
        if options is None:
            return cls()
        if isinstance(options, StakingOptions):
            return options
        return cls().merged(**dict(options))

    def merged(self, **values: Any) -> "StakingOptions":
        """Return a copy with ``values`` written over the current keys."""

        known = {f.name for f in fields(self)} - {"extra"}
        updates: Dict[str, Optional[str]] = {}
        extra = dict(self.extra)
        for key, value in values.items():
            text = None if value is None else _stringify(value)
            if key in known:
                updates[key] = text
            elif text is None:
                extra.pop(key, None)
            else:
                extra[key] = text
        return replace(self, extra=extra, **updates)

    def has_unstake_type(self) -> bool:
        return self.unstake_type in _UNSTAKE_TYPES

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.to_payload().get(key, default)

    def to_payload(self) -> Dict[str, str]:
        payload = dict(self.extra)
        for item in fields(self):
            if item.name == "extra":
                continue
            value = getattr(self, item.name)
            if value is not None:
                payload[item.name] = value
        return payload


OptionsLike = Union[StakingOptions, Mapping[str, Any], None]


class ExecutionLayerWithdrawalOptionsBuilder:
    """Accumulate per-validator withdrawal amounts for an execution layer unstake."""

    def __init__(self, network_id: str) -> None:
        self.network_id = network_id
        self._validator_amounts: Dict[str, AmountLike] = {}

    def add_validator_withdrawal(self, pub_key: str, amount: AmountLike) -> None:
        self._validator_amounts[pub_key] = amount

    async def build(self, client: "StakingApiClient", options: OptionsLike = None) -> StakingOptions:
        asset = await Asset.fetch(client, self.network_id, ETH)
        return self.build_with_asset(asset, options)

    def build_with_asset(self, asset: Asset, options: OptionsLike = None) -> StakingOptions:
        amounts = {
            pub_key: str(asset.to_atomic_amount(amount))
            for pub_key, amount in self._validator_amounts.items()
        }
        return StakingOptions.coerce(options).merged(
            unstake_type=UNSTAKE_TYPE_EXECUTION,
            validator_unstake_amounts=json.dumps(amounts, separators=(",", ":")),
        )


class ConsensusLayerExitOptionBuilder:
    """Accumulate validator public keys for a consensus layer exit."""

    def __init__(self) -> None:
        self._validator_pub_keys: List[str] = []

    def add_validator(self, pub_key: str) -> None:
        if pub_key not in self._validator_pub_keys:
            self._validator_pub_keys.append(pub_key)

    def build(self, options: OptionsLike = None) -> StakingOptions:
        return StakingOptions.coerce(options).merged(
            unstake_type=UNSTAKE_TYPE_CONSENSUS,
            validator_pub_keys=",".join(self._validator_pub_keys),
        )


ModeLike = Union[StakeOptionsMode, str]
ActionLike = Union[StakingAction, str]


def mode_value(mode: Optional[ModeLike]) -> str:
    if mode is None or mode == "":
        return StakeOptionsMode.DEFAULT.value
    if isinstance(mode, StakeOptionsMode):
        return mode.value
    return str(mode)


def action_value(action: ActionLike) -> str:
    value = action.value if isinstance(action, StakingAction) else str(action)
    try:
        return StakingAction(value).value
    except ValueError as exc:
        raise ArgumentError(f"Unsupported staking action: {action}") from exc


def is_amount_exempt(
    asset_id: str,
    action: ActionLike,
    mode: Optional[ModeLike],
    options: OptionsLike,
) -> bool:
    """Whether the request is a native ETH unstake driven by validator level options.

    Such requests carry no amount; the backend derives it from the validators
    listed in the options and validates it server side.
    """

    return (
        asset_id == ETH
        and action_value(action) == StakingAction.UNSTAKE.value
        and mode_value(mode) == StakeOptionsMode.NATIVE.value
        and StakingOptions.coerce(options).has_unstake_type()
    )


def require_positive_amount(amount: Optional[AmountLike]) -> None:
    if amount is None or to_decimal(amount) <= 0:
        raise ArgumentError("Amount required greater than zero.")
