"""Wire models for the aggregator gateway functions."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


class QuoteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    quote_id: Optional[str] = Field(default=None, alias="quoteId", description="Aggregator quote identifier")
    direct: bool = Field(default=False, description="No cross-chain movement needed")
    pay_amount: str = Field(alias="payAmount", description="Amount debited in source-token units")
    receive_amount: str = Field(alias="receiveAmount", description="Amount credited in destination-token units")
    fees: Decimal = Field(default=Decimal("0"), description="Aggregator fee")
    platform_fee: Decimal = Field(default=Decimal("0"), alias="platformFee", description="Platform fee")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt", description="Absolute quote expiry")
    provider_data: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("rhinoData", "txData", "providerData", "provider_data"),
        serialization_alias="providerData",
        description="Opaque payload handed back to the execution provider",
    )
    estimated_duration: Optional[int] = Field(
        default=None, alias="estimatedDuration", description="Estimated transfer time in seconds"
    )
    message: Optional[str] = Field(default=None)

    @field_validator("pay_amount", "receive_amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("fees", "platform_fee", mode="before")
    @classmethod
    def _fee_default(cls, value: Any) -> Any:
        return Decimal("0") if value is None else value


class ExecutionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = Field(default=False)
    bridge_data: Optional[Dict[str, Any]] = Field(default=None, alias="bridgeData")
    provider_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("rhinoApiKey", "providerApiKey", "provider_api_key"),
        serialization_alias="providerApiKey",
    )
    message: Optional[str] = Field(default=None)


class BridgeStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str = Field(default="unknown", description="Raw aggregator status")
    progress: Optional[float] = Field(default=None, description="Numeric progress 0-100 when supplied")
    source_transaction_hash: Optional[str] = Field(default=None, alias="sourceTransactionHash")
    destination_transaction_hash: Optional[str] = Field(default=None, alias="destinationTransactionHash")
    estimated_duration: Optional[int] = Field(default=None, alias="estimatedDuration")
    actual_duration: Optional[int] = Field(default=None, alias="actualDuration")
    message: Optional[str] = Field(default=None)
    error: Optional[str] = Field(default=None)
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @field_validator("status", mode="before")
    @classmethod
    def _status_text(cls, value: Any) -> Any:
        return "unknown" if value is None else str(value)

    @field_validator("error", mode="before")
    @classmethod
    def _error_text(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("message") or value.get("error") or str(value)
        return _as_text(value)


class CatalogChain(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    supported: bool = True


class UnsupportedConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tokens: List[str] = Field(default_factory=list)
    chains: List[str] = Field(default_factory=list)
    same_chain_swaps: Dict[str, List[str]] = Field(default_factory=dict, alias="sameChainSwaps")


class CatalogConfig(BaseModel):
    """Chain/token matrix as returned by the catalog function."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    chains: List[CatalogChain] = Field(default_factory=list)
    tokens: Dict[str, List[str]] = Field(default_factory=dict, description="Tokens offered per chain")
    chain_mapping: Dict[str, str] = Field(default_factory=dict, alias="chainMapping")
    unsupported: UnsupportedConfig = Field(default_factory=UnsupportedConfig)
