"""
Chain/Token Catalog

Loads the supported chain/token matrix and the unsupported-combination rules,
and answers the selection questions asked before any quote is requested.
"""

from .catalog import ChainTokenCatalog
from .constants import (
    CHAIN_METADATA,
    TOKEN_NAMES,
    ChainMetadata,
    aggregator_chain_id,
    chain_for_network_id,
    explorer_url,
    network_id_for,
    token_display_name,
)
from .models import CatalogSnapshot, ChainEntry, TokenEntry

__all__ = [
    "ChainTokenCatalog",
    "CatalogSnapshot",
    "ChainEntry",
    "TokenEntry",
    "ChainMetadata",
    "CHAIN_METADATA",
    "TOKEN_NAMES",
    "aggregator_chain_id",
    "chain_for_network_id",
    "explorer_url",
    "network_id_for",
    "token_display_name",
]
