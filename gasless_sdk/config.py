"""
Configuration for the Gasless Transfer SDK.

Chain presets ship with the package in ``networks.json``; deployment
specific values (RPC endpoint, relayer key, token address, backend URL)
come from the environment.
"""
import importlib.resources
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from web3 import Web3

from .account import DEFAULT_PROTOCOL_VERSION, ChainConfiguration
from .exceptions import ConfigurationError
from .utils import validate_url

logger = logging.getLogger(__name__)

DEFAULT_RELAYER_URL = "https://network.biconomy.io"
DEFAULT_NETWORK = "polygon"
TOKEN_DECIMALS = 18


class NetworkConfig:
    """Lookup of the chain presets bundled with the SDK."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network presets, reading the bundled file only once.

        Returns:
            Mapping of network name to preset
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("gasless_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get the preset for a network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_protocol_version(cls, network: str) -> str:
        return cls.get_network(network).get("protocolVersion", DEFAULT_PROTOCOL_VERSION)

    @classmethod
    def get_explorer_tx_url(cls, network: str, tx_hash: str) -> Optional[str]:
        """Block explorer link for a transaction, if the network has an explorer."""
        explorer = cls.get_network(network).get("explorer")
        if not explorer or not tx_hash:
            return None
        return f"{explorer.rstrip('/')}/tx/{tx_hash}"


def _require(environ: Mapping[str, str], name: str) -> str:
    value = (environ.get(name) or "").strip()
    if not value:
        raise ConfigurationError(f"{name} environment variable is required")
    return value


def _float_setting(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class TransferSettings:
    """
    Settings for one deployment of the gasless transfer flow.

    Attributes:
        rpc_url: Chain RPC endpoint used to negotiate the smart account
        token_address: ERC-20 token contract moved by transfers
        relayer_api_key: API key sent to the relayer with every request
        relayer_url: Base URL of the relayer network
        api_base_url: Backend that records completed transfers (optional)
        wc_project_id: WalletConnect project id for wallet front-ends
        network: Name of a bundled network preset
        poll_interval: Seconds between settlement polls
        settlement_timeout: Seconds to wait for settlement before giving up
        http_timeout: Per-request HTTP timeout in seconds
    """
    rpc_url: str
    token_address: str
    relayer_api_key: str = field(repr=False)
    relayer_url: str = DEFAULT_RELAYER_URL
    api_base_url: Optional[str] = None
    wc_project_id: str = ""
    network: str = DEFAULT_NETWORK
    poll_interval: float = 1.0
    settlement_timeout: float = 120.0
    http_timeout: float = 30.0
    token_decimals: int = TOKEN_DECIMALS

    def __post_init__(self):
        try:
            validate_url("rpc_url", self.rpc_url)
            validate_url("relayer_url", self.relayer_url)
            if self.api_base_url:
                validate_url("api_base_url", self.api_base_url)
            NetworkConfig.get_network(self.network)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if not Web3.is_address(self.token_address):
            raise ConfigurationError(f"token_address is not a valid address: {self.token_address!r}")
        if not self.relayer_api_key:
            raise ConfigurationError("relayer_api_key must be set")

    @property
    def chain_id(self) -> int:
        return NetworkConfig.get_chain_id(self.network)

    @property
    def checksum_token_address(self) -> str:
        return Web3.to_checksum_address(self.token_address)

    def chain_configuration(self) -> ChainConfiguration:
        """Chain configuration for initializing the smart account."""
        return ChainConfiguration(
            chain_id=self.chain_id,
            rpc_url=self.rpc_url,
            version=NetworkConfig.get_protocol_version(self.network),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TransferSettings":
        """
        Build settings from environment variables.

        Required: GASLESS_RPC_URL, GASLESS_TOKEN_ADDRESS, GASLESS_RELAYER_API_KEY.
        Optional: GASLESS_RELAYER_URL, GASLESS_API_BASE_URL, GASLESS_WC_PROJECT_ID,
        GASLESS_NETWORK, GASLESS_POLL_INTERVAL, GASLESS_SETTLEMENT_TIMEOUT,
        GASLESS_HTTP_TIMEOUT.

        Raises:
            ConfigurationError: If a required value is missing or any value is invalid
        """
        env = os.environ if environ is None else environ

        api_base_url = (env.get("GASLESS_API_BASE_URL") or "").strip() or None
        if api_base_url is None:
            logger.warning("GASLESS_API_BASE_URL not set - completed transfers will not be recorded")

        return cls(
            rpc_url=_require(env, "GASLESS_RPC_URL"),
            token_address=_require(env, "GASLESS_TOKEN_ADDRESS"),
            relayer_api_key=_require(env, "GASLESS_RELAYER_API_KEY"),
            relayer_url=(env.get("GASLESS_RELAYER_URL") or "").strip() or DEFAULT_RELAYER_URL,
            api_base_url=api_base_url,
            wc_project_id=env.get("GASLESS_WC_PROJECT_ID", ""),
            network=(env.get("GASLESS_NETWORK") or "").strip() or DEFAULT_NETWORK,
            poll_interval=_float_setting(env, "GASLESS_POLL_INTERVAL", 1.0),
            settlement_timeout=_float_setting(env, "GASLESS_SETTLEMENT_TIMEOUT", 120.0),
            http_timeout=_float_setting(env, "GASLESS_HTTP_TIMEOUT", 30.0),
        )
