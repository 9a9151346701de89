"""
Configuration schema and loading for the arbitrage monitor.

The YAML file describes the token universe, the base asset and the search
and profitability parameters. Secrets (RPC URL, private key) are read from
the environment, optionally populated from a .env file.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .costs import GasCostModel
from .exceptions import ConfigurationError
from .tokens import TokenRegistry
from .types import Asset


class TokenConfig(BaseModel):
    """One asset of the token universe."""

    symbol: str = Field(min_length=1)
    address: str = Field(min_length=3)
    decimals: int = Field(ge=0, le=36)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if not v.startswith("0x"):
            raise ValueError(f"Token address must be 0x-prefixed: {v}")
        return v


class GasConfig(BaseModel):
    """Flat transaction cost heuristic parameters."""

    base_gas: int = Field(ge=0, default=100_000)
    gas_per_extra_hop: int = Field(ge=0, default=65_000)
    native_to_base_rate: Decimal = Field(
        gt=0,
        default=Decimal(1),
        description="Base-asset base units per wei of the native coin",
    )
    max_gas_price_gwei: Optional[float] = Field(gt=0, default=None)

    def cost_model(self) -> GasCostModel:
        return GasCostModel(
            base_gas=self.base_gas,
            gas_per_extra_hop=self.gas_per_extra_hop,
            native_to_base_rate=self.native_to_base_rate,
        )


class TickConfig(BaseModel):
    """Where monitoring ticks come from."""

    source: Literal["block", "interval"] = "block"
    poll_sec: float = Field(gt=0, le=3600, default=2.0)


class ExecutionSettings(BaseModel):
    """Optional on-chain execution of opportunities."""

    enabled: bool = False
    dry_run: bool = True
    private_key_env: str = "PRIVATE_KEY"
    max_gas_price_gwei: float = Field(gt=0, default=50.0)
    gas_limit: int = Field(gt=21_000, default=500_000)
    deadline_sec: int = Field(ge=10, le=3600, default=300)
    min_net_profit: Decimal = Field(
        ge=0, default=Decimal(0), description="Base asset human units"
    )
    receipt_timeout_sec: int = Field(ge=1, default=120)


class MonitorConfig(BaseModel):
    """Validated monitor configuration."""

    network: str = "ethereum"
    chain_id: int = Field(ge=1, default=1)
    rpc_url: Optional[str] = None
    rpc_url_env: str = "RPC_URL"
    factory_address: Optional[str] = None
    router_address: Optional[str] = None

    base_asset: str = Field(min_length=1)
    tokens: List[TokenConfig] = Field(default_factory=list)
    pairs: Optional[List[List[str]]] = Field(
        default=None, description="Pairs to watch; default is every combination"
    )

    trade_amount: Decimal = Field(gt=0, description="Input size in whole base tokens")
    min_profit_threshold: Decimal = Field(
        ge=0, default=Decimal(0), description="Base asset human units"
    )
    max_hops: int = Field(ge=1, le=6, default=3)
    max_slippage_pct: Decimal = Field(ge=0, le=50, default=Decimal("0.5"))
    fee_bps: int = Field(ge=0, lt=10_000, default=30)

    max_concurrency: int = Field(ge=1, le=256, default=8)
    tick_queue_size: int = Field(ge=1, le=10_000, default=16)

    tick: TickConfig = Field(default_factory=TickConfig)
    gas: GasConfig = Field(default_factory=GasConfig)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    metrics_port: Optional[int] = Field(ge=1, le=65535, default=None)

    @field_validator("tokens", mode="before")
    @classmethod
    def normalize_tokens(cls, v):
        # Accept the {SYMBOL: {address, decimals}} mapping form as well
        if isinstance(v, dict):
            return [{"symbol": symbol, **(info or {})} for symbol, info in v.items()]
        return v

    @field_validator("pairs")
    @classmethod
    def validate_pairs(cls, v):
        if v is None:
            return v
        for pair in v:
            if len(pair) != 2 or pair[0] == pair[1]:
                raise ValueError(f"Pair must name two different symbols: {pair}")
        return v

    @model_validator(mode="after")
    def validate_universe(self):
        symbols = [t.symbol for t in self.tokens]
        if len(symbols) != len(set(symbols)):
            raise ValueError("Duplicate token symbols in tokens")
        addresses = [t.address.lower() for t in self.tokens]
        if len(addresses) != len(set(addresses)):
            raise ValueError("Duplicate token addresses in tokens")
        if self.tokens and self.base_asset not in symbols:
            raise ValueError(f"base_asset '{self.base_asset}' not found in tokens")
        for pair in self.pairs or []:
            for symbol in pair:
                if symbol not in symbols:
                    raise ValueError(f"Pair references unknown token '{symbol}'")
        return self

    @property
    def pair_fee(self) -> Decimal:
        return Decimal(self.fee_bps) / Decimal(10_000)

    @property
    def slippage_tolerance(self) -> Decimal:
        return self.max_slippage_pct / Decimal(100)

    def registry(self) -> TokenRegistry:
        return TokenRegistry(Asset.from_config(t) for t in self.tokens)

    def base(self) -> Asset:
        return self.registry().require(self.base_asset)

    def trade_amount_units(self) -> int:
        return self.base().to_units(self.trade_amount)

    def min_profit_units(self) -> int:
        return self.base().to_units(self.min_profit_threshold)

    def resolve_rpc_url(self) -> Optional[str]:
        return os.environ.get(self.rpc_url_env) or self.rpc_url


def parse_config(config_dict: Dict) -> MonitorConfig:
    """Validate a config dictionary, raising ConfigurationError on failure."""
    if not isinstance(config_dict, dict):
        raise ConfigurationError("Config must be a dictionary")
    try:
        return MonitorConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid monitor configuration: {e}", {"errors": e.errors()}
        ) from e


def load_config(
    config_path: Union[str, Path], env_file: Optional[Union[str, Path]] = None
) -> MonitorConfig:
    """
    Load and validate config from a YAML file.

    Args:
        config_path: Path to config YAML file
        env_file: Optional .env file loaded before environment lookups

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    load_dotenv(env_file)

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")

    return parse_config(config_dict)
