from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(default="json", description="Log renderer")

    # LLM Provider Settings
    llm_provider: str = Field(default="groq", description="Completion service used for intent extraction")
    groq_api_key: str = Field(default="", description="Groq API key")
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Base URL of the OpenAI-compatible Groq API",
    )
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    llm_model: str = Field(default="llama-3.3-70b-versatile", description="Default LLM model")
    llm_timeout_seconds: float = Field(default=30.0, gt=0, description="Completion request timeout")

    # LLM Configuration
    intent_temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Temperature for intent extraction")
    intent_max_tokens: int = Field(default=150, ge=16, description="Token cap for intent extraction")
    analysis_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Temperature for prose answers")
    analysis_max_tokens: int = Field(default=1000, ge=16, description="Token cap for prose answers")
    intent_market_context: bool = Field(
        default=False,
        description="Prepend a market snapshot system message when extracting intents",
    )

    # Network
    rpc_url: str = Field(default="https://rpc.sepolia.mantle.xyz", description="JSON-RPC endpoint")
    chain_id: int = Field(default=5003, description="Chain id of the single supported network")
    native_symbol: str = Field(default="MNT", description="Native coin symbol")
    block_explorer_url: str = Field(default="https://sepolia.mantlescan.xyz", description="Block explorer")

    # Contracts
    factory_address: str = Field(
        default="0x8A74c5E686D33C5Fe5F98c361f6e24e35e899EF6",
        description="V3 factory contract",
    )
    swap_router_address: str = Field(
        default="0x9425F9c882b947Ef7be4ABFdbd08A68837fa6307",
        description="V3 swap router (exactInputSingle + multicall)",
    )
    wrapped_native_address: str = Field(
        default="0xc0eeCFA24E391E4259B7EF17be54Be5139DA1AC7",
        description="Wrapped native token contract",
    )
    pool_fee_tier: int = Field(default=3000, description="The one supported pool fee tier (hundredths of a bip)")
    token_addresses: Dict[str, str] = Field(
        default_factory=lambda: {
            "WMNT": "0xc0eeCFA24E391E4259B7EF17be54Be5139DA1AC7",
            "USDC": "0xeA911b76c5681Fd2A46Cf951B320C7e39186f3F0",
            "MUSDC": "0xeA911b76c5681Fd2A46Cf951B320C7e39186f3F0",
            "USDT": "0xa9b72cCC9968aFeC98A96239B5AA48d828e8D827",
            "MUSDT": "0xa9b72cCC9968aFeC98A96239B5AA48d828e8D827",
            "DAI": "0xc92747b1e4Bd5F89BBB66bAE657268a5F4c4850C",
        },
        description="Symbol to contract address registry",
    )

    # Execution
    swap_deadline_seconds: int = Field(default=1800, ge=1, description="Swap deadline window")
    default_slippage_bps: int = Field(default=50, ge=0, le=10_000, description="Default slippage tolerance")
    gas_buffer_percent: int = Field(default=20, ge=0, le=500, description="Safety buffer added to gas estimates")
    swap_gas_limit: Optional[int] = Field(
        default=None,
        gt=21_000,
        description="Fixed swap gas limit; estimated with buffer when unset",
    )
    max_gas_limit: int = Field(default=3_000_000, gt=21_000, description="Ceiling for buffered gas estimates")
    receipt_timeout_seconds: float = Field(default=120.0, gt=0, description="Wait for one confirmation")
    price_limit_policy: Literal["extreme", "pool"] = Field(
        default="extreme",
        description="'extreme' uses the protocol bound; 'pool' derives a bound from the current tick",
    )

    # Fallbacks
    pool_swap_fallback: bool = Field(default=False, description="Retry reverted router swaps against the pool")
    simulated_swap_fallback: bool = Field(default=False, description="Fall back to a simulated swap")
    mock_trade_delay_seconds: float = Field(default=1.0, ge=0, description="Simulated swap latency")

    # Market data
    subgraph_url: str = Field(default="", description="Subgraph GraphQL endpoint")
    market_cache_ttl_seconds: int = Field(default=30, ge=1, description="TTL for live market data")
    historical_cache_ttl_seconds: int = Field(default=300, ge=1, description="TTL for day-bucketed data")
    max_cache_size: int = Field(default=1000, ge=1, description="Maximum cache size")
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Subgraph request timeout")

    # Agent wallet
    agent_private_key: str = Field(default="", description="Hex private key for the agent wallet")
    keystore_dir: Path = Field(default=BASE_DIR / ".keystore", description="Encrypted agent key storage")
    keystore_passphrase: str = Field(default="", description="Passphrase for keystore documents")

    @property
    def has_groq_key(self) -> bool:
        return bool(self.groq_api_key)

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_llm_key(self) -> bool:
        """Check if we have an API key for the configured LLM provider"""
        if self.llm_provider.lower() in ["anthropic", "claude"]:
            return self.has_anthropic_key
        elif self.llm_provider.lower() == "groq":
            return self.has_groq_key
        return False

    @property
    def native_alias(self) -> str:
        return self.native_symbol.upper()


# Global settings instance
settings = Settings()
