"""
LOBSTR Facilitator Configuration Management
Uses pydantic-settings for type-safe environment variable loading
"""

from dataclasses import dataclass
from typing import Literal, Optional
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class ContractAddresses:
    """Deployed LOBSTR contracts the facilitator reads from or writes to"""
    staking_manager: str
    reputation_system: str
    escrow_engine: str
    x402_escrow_bridge: str
    x402_credit_facility: str
    usdc: str
    skill_registry: str = ZERO_ADDRESS


@dataclass(frozen=True)
class NetworkProfile:
    """Static chain parameters for a supported network"""
    chain_id: int
    legacy_name: str  # x402 v1 network name
    default_rpc_url: str
    contracts: ContractAddresses

    @property
    def caip2(self) -> str:
        return f"eip155:{self.chain_id}"


NETWORKS: dict[str, NetworkProfile] = {
    "base-mainnet": NetworkProfile(
        chain_id=8453,
        legacy_name="base",
        default_rpc_url="https://mainnet.base.org",
        contracts=ContractAddresses(
            staking_manager="0x7fd4cb4b4ed7446bfd319d80f5bb6b8aeed6e408",
            reputation_system="0x21e96019dd46e07b694ee28999b758e3c156b7c2",
            escrow_engine="0xada65391bb0e1c7db6e0114b3961989f3f3221a1",
            x402_escrow_bridge="0x62baf62c541fa1c1d11c4a9dad733db47485ca12",
            x402_credit_facility="0x124dd81b5d0e903704e5854a6fbc2dc8f954e6ca",
            usdc="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            # SkillRegistry is deployed standalone, set SKILL_REGISTRY_ADDRESS
        ),
    ),
    "base-sepolia": NetworkProfile(
        chain_id=84532,
        legacy_name="base-sepolia",
        default_rpc_url="https://sepolia.base.org",
        contracts=ContractAddresses(
            staking_manager="0x0c8390c6ef1a7Dd07Cc2bE9C0C06D49FC5439c58",
            reputation_system="0xbbBd9c388b6bdCA4772bC5297f4E72d76d5fE21C",
            escrow_engine="0x072EdB0526027A48f6A2aC5CeE3A5375142Bedc0",
            # Bridge and credit facility are not deployed on testnet yet
            x402_escrow_bridge=ZERO_ADDRESS,
            x402_credit_facility=ZERO_ADDRESS,
            usdc="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        ),
    ),
}


class FacilitatorConfig(BaseSettings):
    """Configuration for the x402 settlement facilitator"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Configuration
    facilitator_host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    facilitator_port: int = Field(default=3402, description="Port to bind the server to")

    # Network Configuration
    network: Literal["base-mainnet", "base-sepolia"] = Field(default="base-mainnet")
    rpc_url: str = Field(default="", description="RPC endpoint, network default when empty")

    # Signing identity for every settlement transaction
    facilitator_private_key: str = Field(default="", description="Operator private key")

    # Admission Control
    min_reputation_score: int = Field(default=0, ge=0)
    require_active_stake: bool = Field(
        default=True,
        validation_alias=AliasChoices("require_active_stake", "require_stake"),
    )

    # Receipts
    receipt_timeout_seconds: float = Field(default=120.0, gt=0, description="Max wait for a mined receipt")

    # Contract overrides (empty means use the network default)
    staking_manager_address: str = Field(default="")
    reputation_system_address: str = Field(default="")
    escrow_engine_address: str = Field(default="")
    x402_escrow_bridge_address: str = Field(default="")
    x402_credit_facility_address: str = Field(default="")
    usdc_address: str = Field(default="")
    skill_registry_address: str = Field(default="")

    # CORS Configuration
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    @field_validator("facilitator_private_key")
    @classmethod
    def validate_private_key(cls, v):
        if v and not v.startswith("0x"):
            return f"0x{v}"
        return v

    @property
    def profile(self) -> NetworkProfile:
        return NETWORKS[self.network]

    @property
    def chain_id(self) -> int:
        return self.profile.chain_id

    @property
    def caip2_network(self) -> str:
        return self.profile.caip2

    @property
    def resolved_rpc_url(self) -> str:
        return self.rpc_url or self.profile.default_rpc_url

    @property
    def contracts(self) -> ContractAddresses:
        """Network address book with any configured overrides applied"""
        defaults = self.profile.contracts
        return ContractAddresses(
            staking_manager=self.staking_manager_address or defaults.staking_manager,
            reputation_system=self.reputation_system_address or defaults.reputation_system,
            escrow_engine=self.escrow_engine_address or defaults.escrow_engine,
            x402_escrow_bridge=self.x402_escrow_bridge_address or defaults.x402_escrow_bridge,
            x402_credit_facility=self.x402_credit_facility_address or defaults.x402_credit_facility,
            usdc=self.usdc_address or defaults.usdc,
            skill_registry=self.skill_registry_address or defaults.skill_registry,
        )


# Singleton instance
_facilitator_config: Optional[FacilitatorConfig] = None


def get_facilitator_config() -> FacilitatorConfig:
    """Get or create facilitator configuration singleton"""
    global _facilitator_config
    if _facilitator_config is None:
        _facilitator_config = FacilitatorConfig()
    return _facilitator_config
