from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..types.gateway import BridgeStatusResponse, CatalogConfig, QuoteResponse

if TYPE_CHECKING:
    from ..core.quote.models import Quote, TransferIntent


@dataclass
class PreparedExecution:
    """Execution payload returned by the execution provider for one quote."""

    execution_payload: Dict[str, Any] = field(default_factory=dict)
    provider_api_key: Optional[str] = None
    message: Optional[str] = None


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 30

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class QuoteProvider(Provider):
    """Prices a transfer intent (bridge or bridge-swap)"""

    @abstractmethod
    async def request_quote(self, intent: "TransferIntent") -> QuoteResponse:
        pass


class ExecutionProvider(Provider):
    """Turns an accepted quote into a payload the execution routine understands"""

    @abstractmethod
    async def prepare_execution(
        self,
        intent: "TransferIntent",
        quote: "Quote",
        signature: Optional[str] = None,
    ) -> PreparedExecution:
        pass


class StatusProvider(Provider):
    """Reports the raw aggregator status of a submitted transfer"""

    @abstractmethod
    async def bridge_status(
        self,
        bridge_id: Optional[str],
        transaction_hash: Optional[str] = None,
    ) -> BridgeStatusResponse:
        pass


class CatalogProvider(Provider):
    """Supplies the chain/token matrix and unsupported-combination rules"""

    @abstractmethod
    async def catalog_config(self, scope: str = "all") -> CatalogConfig:
        pass
