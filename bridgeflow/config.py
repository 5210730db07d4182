import os

from decimal import Decimal
from pathlib import Path
from typing import Any, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the legacy Supabase variable names for the gateway."""

        super().model_post_init(__context)

        if not self.gateway_base_url:
            legacy_url = os.getenv("SUPABASE_URL")
            if legacy_url:
                object.__setattr__(self, "gateway_base_url", f"{legacy_url.rstrip('/')}/functions/v1")
        if not self.gateway_api_key:
            fallback = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_PUBLISHABLE_KEY")
            if fallback:
                object.__setattr__(self, "gateway_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log rendering: json, console or auto")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], description="Origins allowed by CORS")

    # Aggregator Gateway
    gateway_base_url: str = Field(
        default="",
        description="Base URL of the aggregator gateway functions (e.g. https://<project>.supabase.co/functions/v1)",
    )
    gateway_api_key: str = Field(
        default="",
        description="Public key sent as apikey/bearer to the gateway",
        validation_alias=AliasChoices("gateway_api_key", "GATEWAY_API_KEY", "BRIDGE_GATEWAY_KEY"),
    )
    gateway_quote_function: str = Field(default="api-quote-sdk", description="Quote function name")
    gateway_execute_function: str = Field(default="api-bridge-execute", description="Execution preparation function name")
    gateway_status_function: str = Field(default="api-bridge-status", description="Bridge status function name")
    gateway_catalog_function: str = Field(default="api-token-configs", description="Chain/token matrix function name")
    request_timeout_seconds: int = Field(default=30, ge=1, description="Request timeout")

    # Quoting
    min_transfer_amount: Decimal = Field(
        default=Decimal("0.1"),
        description="Smallest amount (source-token units) accepted for a transfer",
    )
    quote_ttl_seconds: int = Field(
        default=300,
        ge=1,
        description="Lifetime applied to quotes when the provider does not send expiresAt",
    )
    quote_debounce_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Quiet period before an amount edit triggers a quote request",
    )

    # Execution
    network_switch_grace_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Time given to the wallet to settle after a network switch request",
    )
    status_poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Interval between bridge status polls",
    )
    sponsored_chains: List[str] = Field(
        default_factory=lambda: ["BASE"],
        description="Destination chains where smart-account operations are fee sponsored",
    )
    paymaster_url: str = Field(
        default="",
        description="Paymaster service URL attached to sponsored wallet_sendCalls requests",
    )

    # Destination defaults
    default_destination_chain: str = Field(default="GNOSIS", description="Destination chain preselected for transfers")
    default_destination_token: str = Field(default="USDC", description="Destination token preselected for transfers")
    skip_destination_selection: bool = Field(
        default=True,
        description="Whether the selection wizard skips the destination steps",
    )

    @property
    def has_gateway(self) -> bool:
        return bool(self.gateway_base_url)

    @property
    def has_paymaster(self) -> bool:
        return bool(self.paymaster_url)

    def sponsored_chain_set(self) -> frozenset:
        return frozenset(chain.strip().upper() for chain in self.sponsored_chains if chain.strip())


# Global settings instance
settings = Settings()
