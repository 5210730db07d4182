"""Chain/token matrix loaded from the catalog provider."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ...providers.base import CatalogProvider
from ...types.gateway import CatalogConfig
from ..errors import (
    CatalogUnavailableError,
    NetworkLimitationError,
    UnsupportedChainError,
    UnsupportedTokenError,
)
from .constants import CHAIN_METADATA, TOKEN_NAMES, aggregator_chain_id, network_id_for, token_display_name
from .models import CatalogSnapshot, ChainEntry, TokenEntry

NOT_LOADED_REASON = "Chain and token configuration is not loaded"
SAME_CHAIN_REASON = "Same-chain swaps not supported"


def _chain_key(chain: Optional[str]) -> str:
    return (chain or "").strip().upper()


def _entry_sort_key(compatible: bool, supported: bool, display_name: str, entry_id: str) -> Tuple[Any, ...]:
    return (not compatible, not supported, display_name.casefold(), entry_id)


class ChainTokenCatalog:
    """Supported chain/token matrix plus unsupported-combination rules.

    The matrix is loaded once per session and stays immutable until
    ``reload()`` is called. Without a loaded matrix nothing is selectable:
    filters still return entries, all marked unsupported, and every check
    raises ``CatalogUnavailableError``.

    Usage:
        catalog = ChainTokenCatalog(provider)
        await catalog.load()

        catalog.filter_tokens_for_chain("BASE")   # supported entries first
        catalog.check_selection("USDT", "KAIA")
    """

    def __init__(
        self,
        provider: CatalogProvider,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._logger = logger or logging.getLogger(__name__)
        self._snapshot: Optional[CatalogSnapshot] = None

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    async def load(self, scope: str = "all") -> CatalogSnapshot:
        """Load the matrix if it has not been loaded for this session yet."""
        if self._snapshot is not None:
            return self._snapshot
        return await self.reload(scope)

    async def reload(self, scope: str = "all") -> CatalogSnapshot:
        """Fetch the matrix again. On failure the previous snapshot is kept and the error propagates."""
        try:
            config = await self._provider.catalog_config(scope)
        except Exception as exc:
            self._logger.warning("Failed to load chain/token catalog: %s", exc)
            raise CatalogUnavailableError() from exc

        snapshot = self._process_config(config)
        self._snapshot = snapshot
        self._logger.info(
            "Catalog loaded: %d chains, %d tokens, %d unsupported tokens",
            len(snapshot.chains),
            len(snapshot.all_tokens()),
            len(snapshot.unsupported_tokens),
        )
        return snapshot

    def _process_config(self, config: CatalogConfig) -> CatalogSnapshot:
        unsupported_tokens = frozenset(config.unsupported.tokens)
        unsupported_chains = frozenset(_chain_key(chain) for chain in config.unsupported.chains)
        tokens_by_chain: Dict[str, Tuple[str, ...]] = {
            _chain_key(chain): tuple(tokens) for chain, tokens in config.tokens.items()
        }

        declared = list(config.chains)
        chains: Dict[str, ChainEntry] = {}
        for chain in declared:
            chain_id = _chain_key(chain.id)
            if not chain_id:
                continue
            offered = tokens_by_chain.get(chain_id, ())
            blocked = chain_id in unsupported_chains
            chains[chain_id] = ChainEntry(
                id=chain_id,
                display_name=chain.display_name or chain.name or chain_id.title(),
                supported_counterparts=tuple(t for t in offered if t not in unsupported_tokens),
                is_supported=chain.supported and not blocked,
                has_restriction=blocked,
                restriction_reason=f"{chain_id} is not supported for bridging" if blocked else None,
                network_id=network_id_for(chain_id),
            )

        # Chains that only appear in the token matrix are still selectable.
        for chain_id, offered in tokens_by_chain.items():
            if chain_id in chains:
                continue
            blocked = chain_id in unsupported_chains
            chains[chain_id] = ChainEntry(
                id=chain_id,
                display_name=chain_id.title(),
                supported_counterparts=tuple(t for t in offered if t not in unsupported_tokens),
                is_supported=not blocked,
                has_restriction=blocked,
                restriction_reason=f"{chain_id} is not supported for bridging" if blocked else None,
                network_id=network_id_for(chain_id),
            )

        # Unsupported chains are listed (and marked) so the UI can explain why.
        for chain_id in sorted(unsupported_chains):
            if chain_id in chains:
                continue
            chains[chain_id] = ChainEntry(
                id=chain_id,
                display_name=chain_id.title(),
                is_supported=False,
                has_restriction=True,
                restriction_reason=f"{chain_id} is not supported for bridging",
                network_id=network_id_for(chain_id),
            )

        restrictions = {
            _chain_key(chain): frozenset(tokens)
            for chain, tokens in config.unsupported.same_chain_swaps.items()
            if tokens
        }

        return CatalogSnapshot(
            chains=chains,
            tokens_by_chain=tokens_by_chain,
            unsupported_tokens=unsupported_tokens,
            unsupported_chains=unsupported_chains,
            same_chain_restrictions=restrictions,
            chain_mapping={_chain_key(k): v for k, v in config.chain_mapping.items()},
            loaded_at=datetime.now(timezone.utc),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Filters (pure over the loaded matrix)
    # ─────────────────────────────────────────────────────────────────────────

    def filter_tokens_for_chain(self, chain: Optional[str] = None) -> List[TokenEntry]:
        """All known tokens, supported-and-compatible first, then by display name."""
        snapshot = self._snapshot
        if snapshot is None:
            return sorted(
                (
                    TokenEntry(
                        id=token,
                        display_name=name,
                        is_supported=False,
                        has_restriction=True,
                        restriction_reason=NOT_LOADED_REASON,
                    )
                    for token, name in TOKEN_NAMES.items()
                ),
                key=lambda entry: _entry_sort_key(False, False, entry.display_name, entry.id),
            )

        chain_id = _chain_key(chain) if chain else None
        offered = snapshot.tokens_by_chain.get(chain_id, ()) if chain_id else snapshot.all_tokens()
        candidates = list(snapshot.all_tokens())
        candidates.extend(t for t in sorted(snapshot.unsupported_tokens) if t not in candidates)

        entries: List[Tuple[Tuple[Any, ...], TokenEntry]] = []
        for token in candidates:
            supported = token not in snapshot.unsupported_tokens
            compatible = token in offered
            reason = None
            if not supported:
                reason = f"{token} is not supported for bridging"
            elif not compatible:
                reason = f"{token} is not available on {chain_id}"
            entry = TokenEntry(
                id=token,
                display_name=token_display_name(token),
                supported_counterparts=snapshot.chains_offering(token),
                is_supported=supported,
                has_restriction=not compatible,
                restriction_reason=reason,
            )
            entries.append((_entry_sort_key(compatible, supported, entry.display_name, token), entry))

        return [entry for _, entry in sorted(entries, key=lambda pair: pair[0])]

    def filter_chains_for_token(self, token: Optional[str] = None) -> List[ChainEntry]:
        """All known chains, those offering ``token`` and supported first, then by display name."""
        snapshot = self._snapshot
        if snapshot is None:
            return sorted(
                (
                    ChainEntry(
                        id=chain_id,
                        display_name=chain_id.title(),
                        is_supported=False,
                        has_restriction=True,
                        restriction_reason=NOT_LOADED_REASON,
                        network_id=meta.network_id,
                    )
                    for chain_id, meta in CHAIN_METADATA.items()
                ),
                key=lambda entry: _entry_sort_key(False, False, entry.display_name, entry.id),
            )

        entries: List[Tuple[Tuple[Any, ...], ChainEntry]] = []
        for chain in snapshot.chains.values():
            has_token = token is None or token in snapshot.tokens_by_chain.get(chain.id, ())
            reason = None
            advisory = False
            if chain.is_supported and not has_token:
                reason = f"{token} is not available on {chain.display_name}"
            elif chain.is_supported and token in snapshot.same_chain_restrictions.get(chain.id, ()):
                reason = SAME_CHAIN_REASON
                advisory = True
            entry = chain
            if reason is not None:
                entry = ChainEntry(
                    id=chain.id,
                    display_name=chain.display_name,
                    supported_counterparts=chain.supported_counterparts,
                    is_supported=True,
                    has_restriction=True,
                    restriction_reason=reason,
                    network_id=chain.network_id,
                    advisory=advisory,
                )
            entries.append((_entry_sort_key(has_token, chain.is_supported, chain.display_name, chain.id), entry))

        return [entry for _, entry in sorted(entries, key=lambda pair: pair[0])]

    # ─────────────────────────────────────────────────────────────────────────
    # Checks (raise before any quote call)
    # ─────────────────────────────────────────────────────────────────────────

    def _require_snapshot(self) -> CatalogSnapshot:
        if self._snapshot is None:
            raise CatalogUnavailableError()
        return self._snapshot

    def has_chain(self, chain: Optional[str]) -> bool:
        snapshot = self._snapshot
        return snapshot is not None and _chain_key(chain) in snapshot.chains

    def check_chain(self, chain: str) -> ChainEntry:
        snapshot = self._require_snapshot()
        chain_id = _chain_key(chain)
        entry = snapshot.chains.get(chain_id)
        if entry is None or not entry.is_supported:
            raise UnsupportedChainError(
                f"{chain} is not a supported network",
                chain=chain_id or chain,
            )
        return entry

    def check_token(self, token: str) -> None:
        """Reject a token on the global unsupported list or offered on no chain."""
        snapshot = self._require_snapshot()
        if token in snapshot.unsupported_tokens or not snapshot.chains_offering(token):
            raise UnsupportedTokenError(f"{token} is not currently supported for bridging", token=token)

    def check_selection(self, token: str, chain: str) -> None:
        """Reject a token that is unsupported globally or not offered on ``chain``."""
        snapshot = self._require_snapshot()
        self.check_chain(chain)
        chain_id = _chain_key(chain)
        if token in snapshot.unsupported_tokens:
            raise UnsupportedTokenError(
                f"{token} is not currently supported for bridging",
                token=token,
                chain=chain_id,
            )
        if token not in snapshot.tokens_by_chain.get(chain_id, ()):
            raise UnsupportedTokenError(
                f"{token} is not supported on {chain_id}",
                token=token,
                chain=chain_id,
            )

    def check_route(self, intent: Any) -> None:
        """Fail fast on combinations the catalog disallows, before any network call."""
        snapshot = self._require_snapshot()
        self.check_selection(intent.source_token, intent.source_chain)
        self.check_selection(intent.destination_token, intent.destination_chain)

        source_chain = _chain_key(intent.source_chain)
        if source_chain != _chain_key(intent.destination_chain):
            return
        if intent.source_token == intent.destination_token:
            return
        restricted = snapshot.same_chain_restrictions.get(source_chain, frozenset())
        if intent.source_token in restricted or intent.destination_token in restricted:
            raise NetworkLimitationError(
                f"Swapping {intent.source_token} to {intent.destination_token} on {source_chain} is not supported",
                token=intent.source_token,
                chain=source_chain,
            )

    def aggregator_chain(self, chain: str) -> str:
        chain_id = _chain_key(chain)
        snapshot = self._snapshot
        if snapshot is not None and chain_id in snapshot.chain_mapping:
            return snapshot.chain_mapping[chain_id]
        return aggregator_chain_id(chain_id)
