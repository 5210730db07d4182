"""Typed models used by the chain/token catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class ChainEntry:
    """A selectable chain, marked rather than removed when unsupported."""

    id: str
    display_name: str
    supported_counterparts: Tuple[str, ...] = ()
    is_supported: bool = True
    has_restriction: bool = False
    restriction_reason: Optional[str] = None
    network_id: Optional[int] = None
    # Restriction is a warning only; the chain can still be picked.
    advisory: bool = False

    @property
    def selectable(self) -> bool:
        return self.is_supported and (not self.has_restriction or self.advisory)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "supportedCounterparts": list(self.supported_counterparts),
            "isSupported": self.is_supported,
            "hasRestriction": self.has_restriction,
            "restrictionReason": self.restriction_reason,
            "networkId": self.network_id,
            "advisory": self.advisory,
        }


@dataclass(frozen=True)
class TokenEntry:
    """A selectable token; counterparts are the chains it is offered on."""

    id: str
    display_name: str
    supported_counterparts: Tuple[str, ...] = ()
    is_supported: bool = True
    has_restriction: bool = False
    restriction_reason: Optional[str] = None

    @property
    def selectable(self) -> bool:
        return self.is_supported and not self.has_restriction

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "supportedCounterparts": list(self.supported_counterparts),
            "isSupported": self.is_supported,
            "hasRestriction": self.has_restriction,
            "restrictionReason": self.restriction_reason,
        }


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the loaded chain/token matrix."""

    chains: Dict[str, ChainEntry]
    tokens_by_chain: Dict[str, Tuple[str, ...]]
    unsupported_tokens: FrozenSet[str] = frozenset()
    unsupported_chains: FrozenSet[str] = frozenset()
    same_chain_restrictions: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    chain_mapping: Dict[str, str] = field(default_factory=dict)
    loaded_at: Optional[datetime] = None

    def all_tokens(self) -> Tuple[str, ...]:
        seen = []
        for tokens in self.tokens_by_chain.values():
            for token in tokens:
                if token not in seen:
                    seen.append(token)
        return tuple(seen)

    def chains_offering(self, token: str) -> Tuple[str, ...]:
        return tuple(chain for chain, tokens in self.tokens_by_chain.items() if token in tokens)
