"""
Wallet adapters.

A ``WalletChannel`` is any EIP-1193 style request channel (the connected
browser/embedded wallet, proxied to us). ``EvmChainAdapter`` is the chain
adapter the execution routine drives; ``WalletCallsSmartAccount`` is the
default smart-account handler, submitting ERC-5792 ``wallet_sendCalls``
batches with a paymaster capability.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from eth_utils import function_signature_to_4byte_selector, is_address, to_checksum_address, to_hex

from ..catalog.constants import chain_for_network_id, network_id_for
from ..errors import ExecutionPreparationError, SigningRejectedError, WrongNetworkError

USER_REJECTED = 4001
APPROVE_SELECTOR = function_signature_to_4byte_selector("approve(address,uint256)")


@runtime_checkable
class WalletChannel(Protocol):
    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        ...


@runtime_checkable
class SmartAccountHandler(Protocol):
    async def __call__(self, payload: Dict[str, Any]) -> str:
        """Submit a normalized execution payload, return the operation hash."""
        ...


class WalletRpcError(Exception):
    """Error returned by a wallet channel (EIP-1193 ``{code, message}``)."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def _hex_chain_id(network_id: int) -> str:
    return hex(network_id)


def _parse_chain_id(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    except ValueError:
        return None


class EvmChainAdapter:
    """Chain adapter over a wallet channel."""

    def __init__(self, channel: WalletChannel, *, logger: Optional[logging.Logger] = None) -> None:
        self.channel = channel
        self._logger = logger or logging.getLogger(__name__)

    async def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        try:
            return await self.channel.request(method, params or [])
        except WalletRpcError as exc:
            if exc.code == USER_REJECTED:
                raise SigningRejectedError(exc.message or f"User rejected {method}") from exc
            raise

    async def accounts(self) -> List[str]:
        result = await self._call("eth_accounts")
        return list(result or [])

    async def active_network_id(self) -> Optional[int]:
        return _parse_chain_id(await self._call("eth_chainId"))

    async def switch_network(self, network_id: int) -> None:
        await self._call("wallet_switchEthereumChain", [{"chainId": _hex_chain_id(network_id)}])

    async def ensure_network(self, chain: str) -> int:
        """Raise ``WrongNetworkError`` unless the wallet is on ``chain``."""
        expected = network_id_for(chain)
        active = await self.active_network_id()
        if expected is not None and active != expected:
            raise WrongNetworkError(chain, active)
        return active if active is not None else expected

    async def sign_message(self, message: str, address: str) -> str:
        encoded = message if message.startswith("0x") else to_hex(text=message)
        return await self._call("personal_sign", [encoded, address])

    async def send_transaction(self, transaction: Dict[str, Any]) -> str:
        tx_hash = await self._call("eth_sendTransaction", [transaction])
        if not tx_hash:
            raise ExecutionPreparationError("Wallet returned no transaction hash")
        return str(tx_hash)


def encode_approve(spender: str, amount: int) -> str:
    """ERC-20 ``approve(spender, amount)`` calldata."""
    spender_bytes = bytes.fromhex(to_checksum_address(spender)[2:])
    data = APPROVE_SELECTOR + spender_bytes.rjust(32, b"\0") + int(amount).to_bytes(32, "big")
    return "0x" + data.hex()


class WalletCallsSmartAccount:
    """Default smart-account handler: one ``wallet_sendCalls`` batch per transfer.

    The payload either carries ready ``calls`` or the pieces of an ERC-20
    approval (``tokenAddress``, ``spender``/``depositContract`` and the amount
    in base units). A paymaster capability is attached when a paymaster URL is
    configured.
    """

    def __init__(
        self,
        channel: WalletChannel,
        smart_account_address: str,
        *,
        paymaster_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.channel = channel
        self.smart_account_address = smart_account_address
        self.paymaster_url = paymaster_url or None
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    async def detect(
        cls,
        channel: WalletChannel,
        address: str,
        chain: str,
        *,
        paymaster_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> Optional["WalletCallsSmartAccount"]:
        """Handler if the wallet reports atomic batch support on ``chain``, else None."""
        network_id = network_id_for(chain)
        if network_id is None:
            return None
        try:
            capabilities = await channel.request("wallet_getCapabilities", [address])
        except Exception as exc:
            (logger or logging.getLogger(__name__)).info("Wallet capabilities unavailable: %s", exc)
            return None

        per_chain = (capabilities or {}).get(_hex_chain_id(network_id)) or {}
        atomic = per_chain.get("atomicBatch") or per_chain.get("atomic") or {}
        supported = atomic.get("supported") if isinstance(atomic, dict) else atomic
        if supported in (True, "supported", "ready"):
            return cls(channel, address, paymaster_url=paymaster_url, logger=logger)
        return None

    def _calls(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        calls = payload.get("calls")
        if calls:
            normalized = []
            for call in calls:
                entry = {"to": call["to"], "data": call.get("data", "0x")}
                value = call.get("value")
                if value:
                    entry["value"] = hex(int(value))
                normalized.append(entry)
            return normalized

        token = payload.get("tokenAddress")
        spender = payload.get("spender") or payload.get("spenderAddress") or payload.get("depositContract")
        amount = payload.get("amountWei") or payload.get("amountBaseUnits")
        if not (token and spender and amount is not None and is_address(token) and is_address(spender)):
            raise ExecutionPreparationError("Smart-account payload has no calls and no approval target")
        return [{"to": to_checksum_address(token), "data": encode_approve(spender, int(amount))}]

    async def __call__(self, payload: Dict[str, Any]) -> str:
        chain = payload.get("chainIn") or payload.get("chain") or ""
        network_id = network_id_for(chain) or _parse_chain_id(payload.get("chainId"))
        if network_id is None:
            raise ExecutionPreparationError(f"Unknown source network for smart-account payload: {chain!r}")

        request: Dict[str, Any] = {
            "version": "1.0",
            "chainId": _hex_chain_id(network_id),
            "from": self.smart_account_address,
            "calls": self._calls(payload),
            "atomicRequired": True,
        }
        if self.paymaster_url:
            request["capabilities"] = {"paymasterService": {"url": self.paymaster_url}}

        self._logger.info(
            "Submitting %d call(s) from smart account %s on %s (sponsored=%s)",
            len(request["calls"]),
            self.smart_account_address,
            chain_for_network_id(network_id) or network_id,
            bool(self.paymaster_url),
        )
        try:
            result = await self.channel.request("wallet_sendCalls", [request])
        except WalletRpcError as exc:
            if exc.code == USER_REJECTED:
                raise SigningRejectedError(exc.message or "User rejected the operation") from exc
            raise

        operation_hash = result.get("id") if isinstance(result, dict) else result
        if not operation_hash:
            raise ExecutionPreparationError("Smart account returned no operation hash")
        return str(operation_hash)
