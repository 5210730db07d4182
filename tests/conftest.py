"""Shared fakes for the transfer orchestration tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from bridgeflow.core.catalog import ChainTokenCatalog
from bridgeflow.core.quote import TransferIntent
from bridgeflow.providers.base import (
    CatalogProvider,
    ExecutionProvider,
    PreparedExecution,
    QuoteProvider,
    StatusProvider,
)
from bridgeflow.types.gateway import BridgeStatusResponse, CatalogConfig, QuoteResponse

DEPOSITOR = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
RECIPIENT = "0x1111111111111111111111111111111111111111"
SPENDER = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ab" * 32

CATALOG_BODY: Dict[str, Any] = {
    "chains": [
        {"id": chain, "name": chain, "displayName": chain.capitalize(), "supported": True}
        for chain in ["ETHEREUM", "ARBITRUM", "BASE", "POLYGON", "GNOSIS", "KAIA", "TRON"]
    ],
    "tokens": {
        "ETHEREUM": ["USDT", "USDC", "ETH"],
        "ARBITRUM": ["USDT", "USDC", "ETH"],
        "BASE": ["USDT", "USDC", "ETH"],
        "POLYGON": ["USDT", "USDC"],
        "GNOSIS": ["USDC", "xDAI"],
        "KAIA": ["USDT"],
        "TRON": ["USDT", "USDC"],
    },
    "chainMapping": {"ARBITRUM": "ARBITRUM_ONE", "POLYGON": "POLYGON_POS"},
    "unsupported": {
        "tokens": ["WBTC", "DAI"],
        "chains": ["SOLANA"],
        "sameChainSwaps": {"BASE": ["USDT", "USDC"]},
    },
}

QUOTE_BODY: Dict[str, Any] = {
    "quoteId": "q-123",
    "direct": False,
    "payAmount": "50",
    "receiveAmount": "49.62",
    "fees": "0.38",
    "platformFee": 0,
    "rhinoData": {"quoteId": "q-123", "mode": "pay"},
    "estimatedDuration": 120,
}


class FakeGateway(QuoteProvider, ExecutionProvider, StatusProvider, CatalogProvider):
    """In-memory stand-in for the gateway; records every call."""

    name = "fake-gateway"

    def __init__(self) -> None:
        self.config = CatalogConfig.model_validate(CATALOG_BODY)
        self.catalog_error: Optional[Exception] = None
        self.catalog_calls: List[str] = []

        self.quote_response = QuoteResponse.model_validate(QUOTE_BODY)
        self.quote_error: Optional[Exception] = None
        self.quote_delay = 0.0
        self.quote_calls: List[TransferIntent] = []

        self.prepared = PreparedExecution(
            execution_payload={"chainIn": "ARBITRUM", "tx": {"to": SPENDER, "data": "0x", "value": "0x0"}},
            provider_api_key="provider-key",
        )
        self.prepare_error: Optional[Exception] = None
        self.prepare_calls: List[Dict[str, Any]] = []

        self.statuses: List[Any] = []
        self.status_calls: List[tuple] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def catalog_config(self, scope: str = "all") -> CatalogConfig:
        self.catalog_calls.append(scope)
        if self.catalog_error is not None:
            raise self.catalog_error
        return self.config

    async def request_quote(self, intent):
        self.quote_calls.append(intent)
        if self.quote_delay:
            await asyncio.sleep(self.quote_delay)
        if self.quote_error is not None:
            raise self.quote_error
        return self.quote_response

    async def prepare_execution(self, intent, quote, signature=None):
        self.prepare_calls.append({"intent": intent, "quote": quote, "signature": signature})
        if self.prepare_error is not None:
            raise self.prepare_error
        return self.prepared

    async def bridge_status(self, bridge_id, transaction_hash=None):
        self.status_calls.append((bridge_id, transaction_hash))
        item = self.statuses.pop(0) if self.statuses else {"status": "pending"}
        if isinstance(item, Exception):
            raise item
        return BridgeStatusResponse.model_validate(item)


class FakeWallet:
    """EIP-1193 style channel answering the methods the executor uses."""

    def __init__(self, network_id: int = 42161) -> None:
        self.network_id = network_id
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.capabilities: Dict[str, Any] = {}

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        self.calls.append((method, params))
        if method in self.failures:
            raise self.failures[method]
        if method == "eth_chainId":
            return hex(self.network_id)
        if method == "eth_accounts":
            return [DEPOSITOR]
        if method == "wallet_switchEthereumChain":
            self.network_id = int(params[0]["chainId"], 16)
            return None
        if method == "personal_sign":
            return "0xsignature"
        if method == "eth_sendTransaction":
            return TX_HASH
        if method == "wallet_getCapabilities":
            return self.capabilities
        if method == "wallet_sendCalls":
            return {"id": "0xoperation"}
        raise AssertionError(f"unexpected wallet method {method}")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def catalog(gateway) -> ChainTokenCatalog:
    return ChainTokenCatalog(gateway)


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def intent() -> TransferIntent:
    return TransferIntent(
        source_token="USDT",
        destination_token="USDC",
        source_chain="ARBITRUM",
        destination_chain="GNOSIS",
        amount="50",
        depositor=DEPOSITOR,
        recipient=RECIPIENT,
    )
