"""Async client for the aggregator gateway functions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from ..config import settings
from ..types.gateway import BridgeStatusResponse, CatalogConfig, ExecutionResponse, QuoteResponse
from .base import CatalogProvider, ExecutionProvider, PreparedExecution, QuoteProvider, StatusProvider

if TYPE_CHECKING:
    from ..core.quote.models import Quote, TransferIntent


class GatewayError(Exception):
    """Error body returned by a gateway function (``{error, message, suggestedAction}``)."""

    unavailable = False

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        suggested_action: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error
        self.suggested_action = suggested_action
        self.details = details


class GatewayUnavailableError(GatewayError):
    """Gateway could not be reached (connection error or timeout)."""

    unavailable = True


def _error_from_response(response: httpx.Response, fallback: str) -> GatewayError:
    body: Any = None
    text = ""
    try:
        text = response.text
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        error_text = error if isinstance(error, str) else None
        message = body.get("message") or error_text or body.get("details") or text or response.reason_phrase
        return GatewayError(
            str(message or fallback),
            status_code=response.status_code,
            error=error_text,
            suggested_action=body.get("suggestedAction"),
            details=body.get("details"),
        )
    return GatewayError(
        text or response.reason_phrase or fallback,
        status_code=response.status_code,
    )


class GatewayProvider(QuoteProvider, ExecutionProvider, StatusProvider, CatalogProvider):
    """Quote, execution, status and catalog calls against the gateway functions.

    Every call is a JSON POST to ``{base_url}/{function}`` carrying the public
    key both as ``apikey`` and as a bearer token.
    """

    name = "gateway"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_s: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = (base_url or settings.gateway_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.gateway_api_key
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._transport = transport
        self._logger = logger or logging.getLogger(__name__)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": "BridgeflowGatewayClient/1.0",
        }
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _invoke(self, function: str, payload: Dict[str, Any], *, fallback: str) -> Any:
        if not self.base_url:
            raise GatewayUnavailableError("Gateway base URL is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.post(f"/{function}", json=payload, headers=self._headers())
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            error = _error_from_response(exc.response, fallback)
            self._logger.warning(
                "Gateway %s returned %s: %s", function, exc.response.status_code, error.message
            )
            raise error from exc
        except httpx.RequestError as exc:
            self._logger.warning("Gateway %s unreachable: %s", function, exc)
            raise GatewayUnavailableError(f"{fallback}: {exc}" if str(exc) else fallback) from exc

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Gateway not configured"}
        try:
            config = await self.catalog_config("chains")
            return {"status": "healthy", "chains": len(config.chains)}
        except GatewayError as exc:
            return {"status": "error", "reason": exc.message}

    async def request_quote(self, intent: "TransferIntent") -> QuoteResponse:
        payload = {
            "token": intent.source_token,
            "tokenOut": intent.destination_token,
            "chain": intent.source_chain,
            "chainOut": intent.destination_chain,
            "amount": intent.amount,
            "mode": "bridgeSwap" if intent.is_bridge_swap else "bridge",
            "tokenConfig": {"chain": intent.source_chain, "originalChain": intent.source_chain},
            "recipientAddress": intent.recipient,
            "depositorAddress": intent.depositor,
        }
        data = await self._invoke(settings.gateway_quote_function, payload, fallback="Failed to get quote")
        if isinstance(data, dict) and data.get("error") and "payAmount" not in data:
            raise GatewayError(
                str(data.get("message") or data["error"]),
                status_code=200,
                error=str(data["error"]),
                suggested_action=data.get("suggestedAction"),
            )
        return QuoteResponse.model_validate(data)

    async def prepare_execution(
        self,
        intent: "TransferIntent",
        quote: "Quote",
        signature: Optional[str] = None,
    ) -> PreparedExecution:
        payload = {
            "quoteId": quote.quote_id,
            "txData": quote.provider_payload or None,
            "userSignature": signature,
            "tokenIn": intent.source_token,
            "tokenOut": intent.destination_token,
            "chainIn": intent.source_chain,
            "chainOut": intent.destination_chain,
            "amount": intent.amount,
            "depositor": intent.depositor,
            "recipient": intent.recipient,
        }
        data = await self._invoke(settings.gateway_execute_function, payload, fallback="Failed to execute bridge")
        response = ExecutionResponse.model_validate(data)
        if not response.success or not response.bridge_data:
            raise GatewayError(response.message or "Failed to execute bridge", status_code=200)

        execution_payload = dict(response.bridge_data)
        execution_payload.setdefault("chainIn", intent.source_chain)
        return PreparedExecution(
            execution_payload=execution_payload,
            provider_api_key=response.provider_api_key,
            message=response.message,
        )

    async def bridge_status(
        self,
        bridge_id: Optional[str],
        transaction_hash: Optional[str] = None,
    ) -> BridgeStatusResponse:
        payload = {"bridgeId": bridge_id, "transactionHash": transaction_hash}
        data = await self._invoke(settings.gateway_status_function, payload, fallback="Failed to get bridge status")
        return BridgeStatusResponse.model_validate(data)

    async def catalog_config(self, scope: str = "all") -> CatalogConfig:
        data = await self._invoke(
            settings.gateway_catalog_function,
            {"type": scope},
            fallback="Failed to get token configuration",
        )
        return CatalogConfig.model_validate(data)
