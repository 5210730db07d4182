"""Static chain and token metadata used alongside the loaded catalog matrix."""

from typing import Dict, NamedTuple, Optional


class ChainMetadata(NamedTuple):
    network_id: Optional[int]
    aggregator_id: str
    explorer_tx_url: Optional[str]


CHAIN_METADATA: Dict[str, ChainMetadata] = {
    "ETHEREUM": ChainMetadata(1, "ETHEREUM", "https://etherscan.io/tx/"),
    "OPTIMISM": ChainMetadata(10, "OPTIMISM", "https://optimistic.etherscan.io/tx/"),
    "BSC": ChainMetadata(56, "BINANCE", "https://bscscan.com/tx/"),
    "GNOSIS": ChainMetadata(100, "GNOSIS", "https://gnosisscan.io/tx/"),
    "POLYGON": ChainMetadata(137, "POLYGON_POS", "https://polygonscan.com/tx/"),
    "MANTLE": ChainMetadata(5000, "MANTLE", "https://explorer.mantle.xyz/tx/"),
    "KAIA": ChainMetadata(8217, "KAIA", "https://kaiascan.io/tx/"),
    "BASE": ChainMetadata(8453, "BASE", "https://basescan.org/tx/"),
    "ARBITRUM": ChainMetadata(42161, "ARBITRUM_ONE", "https://arbiscan.io/tx/"),
    "AVALANCHE": ChainMetadata(43114, "AVALANCHE_C_CHAIN", "https://snowtrace.io/tx/"),
    "LINEA": ChainMetadata(59144, "LINEA", "https://lineascan.build/tx/"),
    "BLAST": ChainMetadata(81457, "BLAST", "https://blastscan.io/tx/"),
    "SCROLL": ChainMetadata(534352, "SCROLL", "https://scrollscan.com/tx/"),
    "TRON": ChainMetadata(None, "TRON", "https://tronscan.org/#/transaction/"),
}

TOKEN_NAMES: Dict[str, str] = {
    "USDT": "Tether USD",
    "USDC": "USD Coin",
    "ETH": "Ethereum",
    "WETH": "Wrapped Ethereum",
    "xDAI": "xDAI Stable Token",
    "DAI": "Dai Stablecoin",
    "WBTC": "Wrapped Bitcoin",
    "MATIC": "Polygon",
    "BNB": "BNB",
    "AVAX": "Avalanche",
    "TRX": "TRON",
}

# Chains whose addresses are not EVM hex addresses.
NON_EVM_CHAINS = frozenset({"TRON"})


def chain_metadata(chain: str) -> Optional[ChainMetadata]:
    return CHAIN_METADATA.get((chain or "").upper())


def network_id_for(chain: str) -> Optional[int]:
    meta = chain_metadata(chain)
    return meta.network_id if meta else None


def chain_for_network_id(network_id: int) -> Optional[str]:
    for chain, meta in CHAIN_METADATA.items():
        if meta.network_id == network_id:
            return chain
    return None


def aggregator_chain_id(chain: str) -> str:
    """Chain identifier understood by the aggregator (e.g. ARBITRUM -> ARBITRUM_ONE)."""
    meta = chain_metadata(chain)
    return meta.aggregator_id if meta else chain


def explorer_url(chain: str, transaction_hash: str) -> Optional[str]:
    meta = chain_metadata(chain)
    if not meta or not meta.explorer_tx_url or not transaction_hash:
        return None
    return f"{meta.explorer_tx_url}{transaction_hash}"


def token_display_name(token: str) -> str:
    return TOKEN_NAMES.get(token, token)
