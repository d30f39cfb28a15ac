"""Asset metadata and whole/atomic amount conversion."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import TYPE_CHECKING, Any, Optional, Union

from .errors import ArgumentError
from .models import AssetModel

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .client import StakingApiClient

ETH = "eth"
GWEI = "gwei"
WEI = "wei"

GWEI_DECIMALS = 9

AmountLike = Union[Decimal, int, float, str]

_SUB_UNIT_DECIMALS = {GWEI: GWEI_DECIMALS, WEI: 0}


def to_decimal(value: AmountLike) -> Decimal:
    """Coerce caller supplied amounts to :class:`Decimal` without binary float artefacts."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ArgumentError(f"Invalid amount: {value!r}")
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ArgumentError(f"Invalid amount: {value!r}") from exc
    else:
        raise ArgumentError(f"Invalid amount: {value!r}")
    if not result.is_finite():
        raise ArgumentError(f"Invalid amount: {value!r}")
    return result


def _precision_for(value: Decimal, decimals: int) -> int:
    return max(28, len(value.as_tuple().digits) + abs(decimals) + 2)


def to_atomic(whole: AmountLike, decimals: int) -> int:
    """Scale ``whole`` by ``10**decimals`` and truncate toward zero."""

    if decimals < 0:
        raise ArgumentError(f"Invalid decimals: {decimals}")
    amount = to_decimal(whole)
    with localcontext() as ctx:
        ctx.prec = _precision_for(amount, decimals)
        scaled = amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
    atomic = int(scaled)
    if atomic < 0:
        raise ArgumentError(f"Atomic amount must be non-negative, got {atomic}")
    return atomic


def from_atomic(atomic: AmountLike, decimals: int) -> Decimal:
    """Divide ``atomic`` by ``10**decimals`` keeping every significant digit."""

    if decimals < 0:
        raise ArgumentError(f"Invalid decimals: {decimals}")
    amount = to_decimal(atomic)
    with localcontext() as ctx:
        ctx.prec = _precision_for(amount, decimals)
        return amount.scaleb(-decimals)


def primary_denomination(asset_id: str) -> str:
    """Return the asset id the backend tracks balances under.

    ``gwei`` and ``wei`` are client side denominations of ``eth``.
    """

    return ETH if asset_id in (GWEI, WEI) else asset_id


@dataclass(frozen=True)
class Asset:
    network_id: str
    asset_id: str
    decimals: int
    contract_address: Optional[str] = None

    def __post_init__(self) -> None:
        if self.decimals < 0:
            raise ArgumentError(f"Invalid decimals for {self.asset_id}: {self.decimals}")

    @classmethod
    def from_model(cls, model: Optional[AssetModel], asset_id: Optional[str] = None) -> "Asset":
        """Build an asset, re-scaling decimals when a sub-unit of ``eth`` was requested."""

        if model is None:
            raise ArgumentError("Invalid asset model")
        decimals = model.decimals or 0
        if asset_id and model.asset_id:
            requested = asset_id.lower()
            returned = model.asset_id.lower()
            if requested != returned:
                if requested in _SUB_UNIT_DECIMALS and returned == ETH:
                    decimals = _SUB_UNIT_DECIMALS[requested]
                elif requested != ETH:
                    raise ArgumentError(f"Invalid asset ID: {asset_id}")
        return cls(
            network_id=model.network_id,
            asset_id=asset_id or model.asset_id,
            decimals=decimals,
            contract_address=model.contract_address,
        )

    @classmethod
    async def fetch(cls, client: "StakingApiClient", network_id: str, asset_id: str) -> "Asset":
        model = await client.get_asset(network_id, primary_denomination(asset_id))
        return cls.from_model(model, asset_id)

    def primary_denomination(self) -> str:
        return primary_denomination(self.asset_id)

    def to_atomic_amount(self, whole: AmountLike) -> int:
        return to_atomic(whole, self.decimals)

    def from_atomic_amount(self, atomic: Any) -> Decimal:
        return from_atomic(atomic, self.decimals)

    def __str__(self) -> str:
        return (
            f"Asset{{ networkId: {self.network_id}, assetId: {self.asset_id}, "
            f"contractAddress: {self.contract_address}, decimals: {self.decimals} }}"
        )
