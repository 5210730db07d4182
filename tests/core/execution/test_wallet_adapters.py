"""Tests for the wallet chain adapter, the bridge routine and the smart-account handler."""

import pytest

from bridgeflow.core.errors import ExecutionPreparationError, SigningRejectedError, WrongNetworkError
from bridgeflow.core.execution import (
    EvmChainAdapter,
    ExecutionPathSelector,
    SponsoredSmartAccountPlan,
    StandardWalletPlan,
    WalletBridgeRoutine,
    WalletCallsSmartAccount,
    WalletContext,
    WalletRpcError,
    encode_approve,
)
from bridgeflow.providers.base import PreparedExecution

from conftest import DEPOSITOR, SPENDER, TX_HASH, FakeWallet

USDC_ARBITRUM = "0xaf88d065e77c8cc2239327c5edb3a432268e5831"


class TestEvmChainAdapter:
    @pytest.mark.asyncio
    async def test_active_network_id_parses_hex(self, wallet):
        assert await EvmChainAdapter(wallet).active_network_id() == 42161

    @pytest.mark.asyncio
    async def test_ensure_network_raises_on_mismatch(self):
        adapter = EvmChainAdapter(FakeWallet(network_id=8453))

        with pytest.raises(WrongNetworkError) as exc_info:
            await adapter.ensure_network("ARBITRUM")

        assert exc_info.value.active_network_id == 8453
        assert "WrongNetworkOnChainAdapter" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_rejection_becomes_signing_rejected(self, wallet):
        wallet.failures["personal_sign"] = WalletRpcError(4001, "User rejected the request.")

        with pytest.raises(SigningRejectedError):
            await EvmChainAdapter(wallet).sign_message("hello", DEPOSITOR)

    @pytest.mark.asyncio
    async def test_text_messages_are_hex_encoded(self, wallet):
        await EvmChainAdapter(wallet).sign_message("hi", DEPOSITOR)

        assert wallet.calls[-1] == ("personal_sign", ["0x6869", DEPOSITOR])


class TestWalletBridgeRoutine:
    @pytest.mark.asyncio
    async def test_sends_all_transactions_and_returns_last_hash(self, wallet):
        prepared = PreparedExecution(
            execution_payload={
                "chainIn": "ARBITRUM",
                "transactions": [{"to": USDC_ARBITRUM, "data": "0x01"}, {"to": SPENDER, "data": "0x02"}],
            }
        )

        tx_hash = await WalletBridgeRoutine()(prepared, EvmChainAdapter(wallet))

        assert tx_hash == TX_HASH
        assert wallet.methods == ["eth_chainId", "eth_sendTransaction", "eth_sendTransaction"]

    @pytest.mark.asyncio
    async def test_payload_without_transactions_is_rejected(self, wallet):
        with pytest.raises(ExecutionPreparationError):
            await WalletBridgeRoutine()(PreparedExecution(execution_payload={"chainIn": "ARBITRUM"}), EvmChainAdapter(wallet))


class TestWalletCallsSmartAccount:
    def test_encode_approve(self):
        data = encode_approve(SPENDER, 5_000_000)

        assert data.startswith("0x095ea7b3")
        assert data.endswith(format(5_000_000, "064x"))
        assert len(data) == 2 + 8 + 64 + 64

    @pytest.mark.asyncio
    async def test_builds_approval_when_no_calls(self, wallet):
        handler = WalletCallsSmartAccount(wallet, DEPOSITOR)

        result = await handler(
            {"chainIn": "ARBITRUM", "tokenAddress": USDC_ARBITRUM, "depositContract": SPENDER, "amountWei": "5000000"}
        )

        assert result == "0xoperation"
        request = wallet.calls[-1][1][0]
        assert request["from"] == DEPOSITOR
        assert request["atomicRequired"] is True
        assert request["calls"][0]["data"] == encode_approve(SPENDER, 5_000_000)
        assert "capabilities" not in request

    @pytest.mark.asyncio
    async def test_payload_without_target_is_rejected(self, wallet):
        with pytest.raises(ExecutionPreparationError):
            await WalletCallsSmartAccount(wallet, DEPOSITOR)({"chainIn": "ARBITRUM"})

    @pytest.mark.asyncio
    async def test_detect_requires_atomic_batch_support(self, wallet):
        assert await WalletCallsSmartAccount.detect(wallet, DEPOSITOR, "BASE") is None

        wallet.capabilities = {"0x2105": {"atomicBatch": {"supported": True}}}
        handler = await WalletCallsSmartAccount.detect(wallet, DEPOSITOR, "BASE", paymaster_url="https://pm")

        assert handler is not None
        assert handler.paymaster_url == "https://pm"


class TestExecutionPathSelector:
    def test_sponsored_when_smart_account_and_listed_destination(self, wallet):
        selector = ExecutionPathSelector(object(), sponsored_chains=["base"])
        context = WalletContext(
            address=DEPOSITOR,
            channel=wallet,
            smart_account=WalletCallsSmartAccount(wallet, DEPOSITOR),
            smart_account_address=DEPOSITOR,
        )

        assert isinstance(selector.choose_path(context, "BASE", "ARBITRUM"), SponsoredSmartAccountPlan)
        assert isinstance(selector.choose_path(context, "GNOSIS", "ARBITRUM"), StandardWalletPlan)

    def test_standard_plan_flags_network_switch(self, wallet):
        selector = ExecutionPathSelector(object(), sponsored_chains=["BASE"])

        plan = selector.choose_path(WalletContext(address=DEPOSITOR, channel=wallet, active_network_id=1), "BASE", "ARBITRUM")

        assert isinstance(plan, StandardWalletPlan)
        assert plan.requires_network_switch is True
        assert plan.target_network_id == 42161

    def test_choice_is_total(self):
        selector = ExecutionPathSelector(object(), sponsored_chains=[])

        plan = selector.choose_path(WalletContext(), "UNKNOWNCHAIN")

        assert isinstance(plan, StandardWalletPlan)
        assert plan.channel is None
        assert plan.requires_network_switch is False
