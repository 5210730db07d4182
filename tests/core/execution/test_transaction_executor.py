"""
Tests for the transfer execution state machine.

Covers:
- Transition table enforcement
- Standard wallet flow through Bridging to Complete
- Provider-reported failures and local failures ending at Error
- Network switching and optional/required signatures
- Sponsored smart-account submission
"""

from datetime import timedelta

import pytest

from bridgeflow.core.errors import (
    ErrorKind,
    InvalidTransitionError,
    QuoteExpiredError,
)
from bridgeflow.core.execution import (
    ExecutionPathSelector,
    ExecutionPlanKind,
    StandardWalletPlan,
    TransactionExecutor,
    TransferState,
    WalletCallsSmartAccount,
    WalletContext,
    WalletRpcError,
)
from bridgeflow.core.quote import QuoteEngine, TransferIntent, utc_now
from bridgeflow.core.tracking import CanonicalStatus, StatusTracker
from bridgeflow.providers.base import PreparedExecution
from bridgeflow.providers.gateway import GatewayError
from bridgeflow.types.gateway import QuoteResponse

from conftest import DEPOSITOR, QUOTE_BODY, RECIPIENT, SPENDER, TX_HASH, FakeWallet


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def engine(gateway, catalog):
    return QuoteEngine(gateway, catalog)


@pytest.fixture
def selector(gateway):
    return ExecutionPathSelector(gateway, sponsored_chains=["BASE"])


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def executor(engine, selector, sleep):
    return TransactionExecutor(engine, selector, network_switch_grace_seconds=1.0, sleep=sleep)


@pytest.fixture
def tracker(gateway):
    return StatusTracker(gateway, interval_seconds=0.01)


async def _quoted(catalog, engine, intent):
    await catalog.load()
    return await engine.request_quote(intent)


def _standard_wallet(wallet, network_id=42161):
    return WalletContext(address=DEPOSITOR, channel=wallet, active_network_id=network_id)


# =============================================================================
# State machine
# =============================================================================


class TestTransitions:
    @pytest.mark.asyncio
    async def test_transition_table(self, executor, selector, catalog, engine, wallet, intent):
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))

        assert executor.can_transition(record, TransferState.SIGNING)
        assert executor.can_transition(record, TransferState.COMPLETE)
        assert not executor.can_transition(record, TransferState.BRIDGING)
        with pytest.raises(InvalidTransitionError):
            executor.transition(record, TransferState.BRIDGING)

    @pytest.mark.asyncio
    async def test_terminal_states_have_no_exits(self, executor, selector, catalog, engine, wallet, intent):
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))
        executor.transition(record, TransferState.ERROR, "boom")

        for state in TransferState:
            assert not executor.can_transition(record, state)

    @pytest.mark.asyncio
    async def test_expired_quote_never_enters_state_machine(self, gateway, catalog, selector, wallet, intent):
        clock_state = {"now": utc_now()}
        engine = QuoteEngine(gateway, catalog, ttl_seconds=300, clock=lambda: clock_state["now"])
        quote = await _quoted(catalog, engine, intent)
        clock_state["now"] = clock_state["now"] + timedelta(seconds=301)
        executor = TransactionExecutor(engine, selector, network_switch_grace_seconds=0)

        with pytest.raises(QuoteExpiredError):
            executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))
        assert gateway.prepare_calls == []


# =============================================================================
# Standard wallet flow
# =============================================================================


class TestStandardWalletExecution:
    @pytest.mark.asyncio
    async def test_runs_to_complete(self, executor, selector, gateway, catalog, engine, wallet, tracker, intent):
        gateway.statuses = [{"status": "processing"}, {"status": "completed"}]
        quote = await _quoted(catalog, engine, intent)
        plan = selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM")
        record = executor.begin(intent, quote, plan)
        snapshots = []

        result = await executor.execute(record, tracker, snapshots.append)

        assert result.state == TransferState.COMPLETE
        assert result.progress == 100
        assert result.canonical_status == CanonicalStatus.COMPLETE
        assert result.transaction_hash == TX_HASH
        assert result.bridge_id == "q-123"
        assert [s.state for s in snapshots] == [
            TransferState.SIGNING,
            TransferState.BROADCASTING,
            TransferState.BRIDGING,
            TransferState.BRIDGING,
            TransferState.COMPLETE,
        ]
        assert snapshots[3].progress == 50
        assert snapshots[0].state == TransferState.SIGNING
        assert gateway.status_calls[0] == ("q-123", TX_HASH)
        assert "eth_sendTransaction" in wallet.methods
        assert tracker.stopped is True

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self, executor, selector, gateway, catalog, engine, wallet, tracker, intent):
        gateway.statuses = [{"status": "completed"}]
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))
        seen = []

        async def on_change(snapshot):
            seen.append(snapshot.state)

        await executor.execute(record, tracker, on_change)

        assert seen[-1] == TransferState.COMPLETE

    @pytest.mark.asyncio
    async def test_provider_failure_ends_in_error(self, executor, selector, gateway, catalog, engine, wallet, tracker, intent):
        gateway.statuses = [{"status": "failed", "error": "slippage exceeded"}]
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))

        result = await executor.execute(record, tracker)

        assert result.state == TransferState.ERROR
        assert result.canonical_status == CanonicalStatus.FAILED
        assert "slippage" in result.error.message

    @pytest.mark.asyncio
    async def test_prepare_failure_is_classified(self, executor, selector, gateway, catalog, engine, wallet, tracker, intent):
        gateway.prepare_error = GatewayError(
            "USDT is not supported for bridging",
            status_code=400,
            suggested_action="Bridge USDC instead",
        )
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))

        result = await executor.execute(record, tracker)

        assert result.state == TransferState.ERROR
        assert result.error.kind == ErrorKind.UNSUPPORTED_TOKEN
        assert result.error.remediation == "Bridge USDC instead"
        assert result.history[-1].from_state == TransferState.BROADCASTING
        assert tracker.stopped is True
        assert gateway.status_calls == []

    @pytest.mark.asyncio
    async def test_missing_channel_fails_during_signing(self, executor, selector, catalog, engine, tracker, intent):
        quote = await _quoted(catalog, engine, intent)
        plan = selector.choose_path(WalletContext(), "GNOSIS", "ARBITRUM")
        record = executor.begin(intent, quote, plan)

        result = await executor.execute(record, tracker)

        assert isinstance(plan, StandardWalletPlan)
        assert result.state == TransferState.ERROR
        assert result.error.message == "Wallet not connected"

    @pytest.mark.asyncio
    async def test_execute_requires_confirm_state(self, executor, selector, catalog, engine, wallet, tracker, intent):
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))
        executor.transition(record, TransferState.ERROR)

        with pytest.raises(InvalidTransitionError):
            await executor.execute(record, tracker)


class TestNetworkSwitch:
    @pytest.mark.asyncio
    async def test_switches_and_waits_grace_period(self, executor, selector, gateway, catalog, engine, sleep, tracker, intent):
        wallet = FakeWallet(network_id=1)
        gateway.statuses = [{"status": "completed"}]
        quote = await _quoted(catalog, engine, intent)
        plan = selector.choose_path(_standard_wallet(wallet, network_id=1), "GNOSIS", "ARBITRUM")
        record = executor.begin(intent, quote, plan)

        result = await executor.execute(record, tracker)

        assert plan.requires_network_switch is True
        assert wallet.calls[0] == ("wallet_switchEthereumChain", [{"chainId": "0xa4b1"}])
        assert sleep.calls == [1.0]
        assert result.state == TransferState.COMPLETE

    @pytest.mark.asyncio
    async def test_failed_switch_surfaces_as_network_mismatch(self, executor, selector, catalog, engine, sleep, tracker, intent):
        wallet = FakeWallet(network_id=1)
        wallet.failures["wallet_switchEthereumChain"] = WalletRpcError(4902, "Unrecognized chain ID")
        quote = await _quoted(catalog, engine, intent)
        plan = selector.choose_path(_standard_wallet(wallet, network_id=1), "GNOSIS", "ARBITRUM")
        record = executor.begin(intent, quote, plan)

        result = await executor.execute(record, tracker)

        assert sleep.calls == []
        assert result.state == TransferState.ERROR
        assert result.error.kind == ErrorKind.NETWORK_MISMATCH
        assert result.error.message == "Network mismatch. Please ensure your wallet is on ARBITRUM network."
        assert "eth_sendTransaction" not in wallet.methods


class TestSignature:
    @pytest.fixture
    def signing_engine(self, gateway, engine):
        payload = {"quoteId": "q-123", "requiresSignature": True, "messageToSign": "Authorize transfer q-123"}
        gateway.quote_response = QuoteResponse.model_validate({**QUOTE_BODY, "rhinoData": payload})
        return engine

    @pytest.mark.asyncio
    async def test_signature_is_passed_to_prepare(self, executor, selector, gateway, catalog, signing_engine, wallet, tracker, intent):
        gateway.statuses = [{"status": "completed"}]
        quote = await _quoted(catalog, signing_engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))

        result = await executor.execute(record, tracker)

        assert result.signature == "0xsignature"
        assert gateway.prepare_calls[0]["signature"] == "0xsignature"
        method, params = wallet.calls[0]
        assert method == "personal_sign"
        assert params[1] == DEPOSITOR

    @pytest.mark.asyncio
    async def test_rejected_signature_ends_in_error(self, executor, selector, gateway, catalog, signing_engine, wallet, tracker, intent):
        wallet.failures["personal_sign"] = WalletRpcError(4001, "User rejected the request.")
        quote = await _quoted(catalog, signing_engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))

        result = await executor.execute(record, tracker)

        assert result.state == TransferState.ERROR
        assert result.error.kind == ErrorKind.SIGNING_REJECTED
        assert result.error.retryable is True
        assert gateway.prepare_calls == []

    @pytest.mark.asyncio
    async def test_optional_signature_failure_is_skipped(self, executor, selector, gateway, catalog, engine, wallet, tracker, intent):
        payload = {"requiresSignature": True, "signatureOptional": True, "messageToSign": "0xdeadbeef"}
        gateway.quote_response = QuoteResponse.model_validate({**QUOTE_BODY, "rhinoData": payload})
        gateway.statuses = [{"status": "completed"}]
        wallet.failures["personal_sign"] = WalletRpcError(-32603, "Internal error")
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS", "ARBITRUM"))

        result = await executor.execute(record, tracker)

        assert result.state == TransferState.COMPLETE
        assert result.signature is None
        assert gateway.prepare_calls[0]["signature"] is None


# =============================================================================
# Sponsored and direct
# =============================================================================


class TestSponsoredExecution:
    @pytest.mark.asyncio
    async def test_smart_account_submits_sponsored_batch(self, executor, selector, gateway, catalog, engine, wallet, tracker):
        intent = TransferIntent("USDT", "USDC", "ARBITRUM", "BASE", "50", DEPOSITOR, RECIPIENT)
        gateway.prepared = PreparedExecution(
            execution_payload={"chainIn": "ARBITRUM", "calls": [{"to": SPENDER, "data": "0x1234"}]},
        )
        gateway.statuses = [{"status": "completed"}]
        handler = WalletCallsSmartAccount(wallet, DEPOSITOR, paymaster_url="https://paymaster.example/rpc")
        context = WalletContext(
            address=DEPOSITOR,
            channel=wallet,
            smart_account=handler,
            smart_account_address=DEPOSITOR,
        )
        quote = await _quoted(catalog, engine, intent)
        plan = selector.choose_path(context, "BASE", "ARBITRUM")
        record = executor.begin(intent, quote, plan)

        result = await executor.execute(record, tracker)

        assert record.plan_kind == ExecutionPlanKind.SPONSORED_SMART_ACCOUNT
        assert result.state == TransferState.COMPLETE
        assert result.transaction_hash == "0xoperation"
        method, params = wallet.calls[-1]
        assert method == "wallet_sendCalls"
        assert params[0]["chainId"] == "0xa4b1"
        assert params[0]["capabilities"] == {"paymasterService": {"url": "https://paymaster.example/rpc"}}
        assert "eth_sendTransaction" not in wallet.methods


class TestDirectExecution:
    @pytest.mark.asyncio
    async def test_direct_quote_completes_without_network(self, executor, selector, gateway, catalog, engine, wallet, tracker):
        intent = TransferIntent("USDC", "USDC", "GNOSIS", "GNOSIS", "10", DEPOSITOR, RECIPIENT)
        quote = await _quoted(catalog, engine, intent)
        record = executor.begin(intent, quote, selector.choose_path(_standard_wallet(wallet), "GNOSIS"))

        result = await executor.execute(record, tracker)

        assert result.state == TransferState.COMPLETE
        assert result.progress == 100
        assert len(result.history) == 1
        assert wallet.calls == []
        assert gateway.prepare_calls == []
        assert gateway.status_calls == []
