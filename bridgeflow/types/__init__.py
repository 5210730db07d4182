from .gateway import (
    BridgeStatusResponse,
    CatalogChain,
    CatalogConfig,
    ExecutionResponse,
    QuoteResponse,
    UnsupportedConfig,
)

__all__ = [
    "BridgeStatusResponse",
    "CatalogChain",
    "CatalogConfig",
    "ExecutionResponse",
    "QuoteResponse",
    "UnsupportedConfig",
]
