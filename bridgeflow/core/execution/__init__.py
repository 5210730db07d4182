"""
Transfer Execution

Execution plans, the two execution paths, wallet adapters and the
state machine that drives an attempt from Confirm to Complete or Error.
"""

from .executor import TransactionExecutor
from .models import (
    STATE_PROGRESS,
    ExecutionPlan,
    ExecutionPlanKind,
    SponsoredSmartAccountPlan,
    StandardWalletPlan,
    StateTransition,
    TransferRecord,
    TransferState,
    WalletContext,
)
from .paths import (
    BridgeRoutine,
    ExecutionPath,
    SponsoredSmartAccountPath,
    StandardWalletPath,
    WalletBridgeRoutine,
)
from .selector import ExecutionPathSelector
from .wallet import (
    EvmChainAdapter,
    SmartAccountHandler,
    WalletCallsSmartAccount,
    WalletChannel,
    WalletRpcError,
    encode_approve,
)

__all__ = [
    "TransactionExecutor",
    "ExecutionPathSelector",
    "ExecutionPlan",
    "ExecutionPlanKind",
    "SponsoredSmartAccountPlan",
    "StandardWalletPlan",
    "StateTransition",
    "TransferRecord",
    "TransferState",
    "STATE_PROGRESS",
    "WalletContext",
    "ExecutionPath",
    "BridgeRoutine",
    "WalletBridgeRoutine",
    "SponsoredSmartAccountPath",
    "StandardWalletPath",
    "EvmChainAdapter",
    "SmartAccountHandler",
    "WalletCallsSmartAccount",
    "WalletChannel",
    "WalletRpcError",
    "encode_approve",
]
