"""Async HTTP client for the staking backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_HTTP_TIMEOUT, StakingSettings
from .errors import APIError
from .models import (
    AssetModel,
    BroadcastExternalTransactionResponse,
    StakingContextModel,
    StakingContextResponse,
    StakingOperationModel,
)

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _error_from_response(response: httpx.Response) -> APIError:
    message = f"Staking backend responded with HTTP {response.status_code}"
    api_code: Optional[str] = None
    correlation_id: Optional[str] = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = str(body.get("message") or message)
        api_code = body.get("code")
        correlation_id = body.get("correlation_id")
    return APIError(
        message,
        http_code=response.status_code,
        api_code=api_code,
        correlation_id=correlation_id or response.headers.get("x-correlation-id"),
    )


class StakingApiClient:
    """Minimal async client covering the staking endpoints the orchestration consumes.

    Authentication and retries belong to the transport; the client only
    translates failures into :class:`APIError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        if api_key:
            self._headers.setdefault("Authorization", f"Bearer {api_key}")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: StakingSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "StakingApiClient":
        return cls(
            settings.api_url,
            api_key=settings.api_key,
            headers=settings.headers,
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            logger.debug("Staking backend request %s %s", method, path)
            try:
                response = await client.request(method, path, json=json)
            except httpx.HTTPError as exc:
                raise APIError(f"Staking backend request failed: {exc}") from exc
        if response.status_code >= 400:
            raise _error_from_response(response)
        try:
            return response.json()
        except ValueError as exc:
            raise APIError(
                "Staking backend returned a non-JSON payload",
                http_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse(model: Type[_ModelT], payload: Any) -> _ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise APIError(f"Invalid {model.__name__} payload: {exc.error_count()} error(s)") from exc

    async def build_staking_operation(
        self,
        *,
        network_id: str,
        address_id: str,
        asset_id: str,
        action: str,
        options: Dict[str, str],
    ) -> StakingOperationModel:
        payload = {
            "network_id": network_id,
            "asset_id": asset_id,
            "address_id": address_id,
            "action": action,
            "options": options,
        }
        data = await self._request("POST", "/v1/stake/build", json=payload)
        return self._parse(StakingOperationModel, data)

    async def get_external_staking_operation(
        self,
        network_id: str,
        address_id: str,
        operation_id: str,
    ) -> StakingOperationModel:
        path = f"/v1/networks/{network_id}/addresses/{address_id}/staking_operations/{operation_id}"
        return self._parse(StakingOperationModel, await self._request("GET", path))

    async def create_staking_operation(
        self,
        wallet_id: str,
        address_id: str,
        *,
        network_id: str,
        asset_id: str,
        action: str,
        options: Dict[str, str],
    ) -> StakingOperationModel:
        payload = {
            "network_id": network_id,
            "asset_id": asset_id,
            "action": action,
            "options": options,
        }
        path = f"/v1/wallets/{wallet_id}/addresses/{address_id}/staking_operations"
        return self._parse(StakingOperationModel, await self._request("POST", path, json=payload))

    async def get_staking_operation(
        self,
        wallet_id: str,
        address_id: str,
        operation_id: str,
    ) -> StakingOperationModel:
        path = f"/v1/wallets/{wallet_id}/addresses/{address_id}/staking_operations/{operation_id}"
        return self._parse(StakingOperationModel, await self._request("GET", path))

    async def broadcast_staking_operation(
        self,
        wallet_id: str,
        address_id: str,
        operation_id: str,
        *,
        signed_payload: str,
        transaction_index: int,
    ) -> StakingOperationModel:
        payload = {"signed_payload": signed_payload, "transaction_index": transaction_index}
        path = (
            f"/v1/wallets/{wallet_id}/addresses/{address_id}"
            f"/staking_operations/{operation_id}/broadcast"
        )
        return self._parse(StakingOperationModel, await self._request("POST", path, json=payload))

    async def get_staking_context(
        self,
        *,
        network_id: str,
        address_id: str,
        asset_id: str,
        options: Dict[str, str],
    ) -> StakingContextModel:
        payload = {
            "network_id": network_id,
            "asset_id": asset_id,
            "address_id": address_id,
            "options": options,
        }
        data = await self._request("POST", "/v1/stake/context", json=payload)
        return self._parse(StakingContextResponse, data).context

    async def get_asset(self, network_id: str, asset_id: str) -> AssetModel:
        path = f"/v1/networks/{network_id}/assets/{asset_id}"
        return self._parse(AssetModel, await self._request("GET", path))

    async def broadcast_external_transaction(
        self,
        network_id: str,
        address_id: str,
        *,
        signed_payload: str,
    ) -> BroadcastExternalTransactionResponse:
        path = f"/v1/networks/{network_id}/addresses/{address_id}/broadcast"
        data = await self._request("POST", path, json={"signed_payload": signed_payload})
        return self._parse(BroadcastExternalTransactionResponse, data)
