"""
AccountOrchestrator - smart account setup and instruction building.

A smart account wraps the user's signer together with the chains it may
act on. Instructions are ABI-encoded contract calls the relayer can
compose into a single sponsored operation.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError
from pydantic import BaseModel, ConfigDict, field_validator
from web3 import Web3

from .exceptions import InitializationError, InstructionBuildError
from .models import ChainInstruction
from .signer import Signer
from .utils import validate_url

DEFAULT_PROTOCOL_VERSION = "2.1.0"


class ChainConfiguration(BaseModel):
    """RPC endpoint and protocol version for one chain"""
    model_config = ConfigDict(frozen=True)

    chain_id: int
    rpc_url: str
    version: str = DEFAULT_PROTOCOL_VERSION

    @field_validator("rpc_url")
    @classmethod
    def _check_rpc_url(cls, value: str) -> str:
        return validate_url("rpc_url", value)


@dataclass
class SmartAccount:
    """
    Multichain account controlled by a single signer.

    Attributes:
        signer: Signing capability of the account owner
        chains: Chain configurations keyed by chain id
        clients: Web3 clients keyed by chain id
    """
    signer: Signer
    chains: Dict[int, ChainConfiguration]
    clients: Dict[int, Any] = field(default_factory=dict, repr=False)

    @property
    def address(self) -> str:
        """Address of the account owner"""
        return self.signer.address

    def chain(self, chain_id: int) -> ChainConfiguration:
        """
        Get the configuration for a chain.

        Raises:
            InstructionBuildError: If the account is not configured for the chain
        """
        if chain_id not in self.chains:
            configured = ", ".join(str(c) for c in sorted(self.chains)) or "none"
            raise InstructionBuildError(
                f"Account is not configured for chain {chain_id} (configured: {configured})"
            )
        return self.chains[chain_id]


class AccountOrchestrator:
    """
    Builds smart accounts and the instructions they execute.
    """

    # Subset of the ERC-20 ABI the orchestrator can encode calls for
    ERC20_ABI = [
        {
            "inputs": [
                {"internalType": "address", "name": "to", "type": "address"},
                {"internalType": "uint256", "name": "value", "type": "uint256"}
            ],
            "name": "transfer",
            "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
            "stateMutability": "nonpayable",
            "type": "function"
        }
    ]

    def __init__(self, timeout: int = 30, logger: Optional[logging.Logger] = None):
        """
        Initialize the orchestrator

        Args:
            timeout: Timeout for RPC requests in seconds
            logger: Optional logger instance to use for debug/info logging
        """
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def initialize(
        self,
        signer: Signer,
        chain_config: Union[ChainConfiguration, Sequence[ChainConfiguration]]
    ) -> SmartAccount:
        """
        Create a smart account for a signer.

        Each configured chain is contacted once and must report the chain id
        it is configured with.

        Args:
            signer: Signing capability of the account owner
            chain_config: One chain configuration or several

        Returns:
            Ready-to-use smart account

        Raises:
            InitializationError: If the signer is unusable or a chain cannot be reached
        """
        if signer is None or not getattr(signer, "address", None):
            raise InitializationError("A signer with an address is required")

        configs: List[ChainConfiguration] = (
            [chain_config] if isinstance(chain_config, ChainConfiguration) else list(chain_config)
        )
        if not configs:
            raise InitializationError("At least one chain configuration is required")

        chains: Dict[int, ChainConfiguration] = {}
        clients: Dict[int, Any] = {}
        for config in configs:
            try:
                w3 = Web3(Web3.HTTPProvider(config.rpc_url, request_kwargs={"timeout": self.timeout}))
                reported_chain_id = w3.eth.chain_id
            except Exception as e:
                self.logger.error(f"Failed to reach RPC for chain {config.chain_id}: {e}")
                raise InitializationError(f"Failed to reach RPC for chain {config.chain_id}: {str(e)}") from e

            if reported_chain_id != config.chain_id:
                raise InitializationError(
                    f"RPC endpoint reports chain {reported_chain_id}, expected {config.chain_id}"
                )

            chains[config.chain_id] = config
            clients[config.chain_id] = w3

        self.logger.info(f"Smart account initialized for {signer.address} on chains {sorted(chains)}")
        return SmartAccount(signer=signer, chains=chains, clients=clients)

    def build_instruction(
        self,
        account: SmartAccount,
        token_address: str,
        chain_id: int,
        function_name: str = "transfer",
        args: Sequence[Any] = ()
    ) -> ChainInstruction:
        """
        Encode a token contract call as a chain instruction.

        Pure with respect to chain state: identical inputs always produce an
        identical instruction.

        Args:
            account: Smart account that will execute the call
            token_address: Token contract address
            chain_id: Chain the call executes on
            function_name: ERC-20 function to call
            args: Function arguments, e.g. (recipient, amount_base_units)

        Returns:
            Encoded instruction

        Raises:
            InstructionBuildError: If the call cannot be encoded
        """
        if account is None:
            raise InstructionBuildError("Smart account is not initialized")
        account.chain(chain_id)

        if not Web3.is_address(token_address):
            raise InstructionBuildError(f"Invalid token address: {token_address!r}")

        abi_entry = self._function_abi(function_name)
        types = [param["type"] for param in abi_entry["inputs"]]
        if len(args) != len(types):
            raise InstructionBuildError(
                f"{function_name} expects {len(types)} arguments, got {len(args)}"
            )

        values = [self._normalize_arg(function_name, abi_type, value) for abi_type, value in zip(types, args)]
        selector = Web3.keccak(text=f"{function_name}({','.join(types)})")[:4]
        try:
            encoded = abi_encode(types, values)
        except (EncodingError, ValueError, TypeError) as e:
            raise InstructionBuildError(f"Failed to encode {function_name} arguments: {str(e)}") from e

        instruction = ChainInstruction(
            chain_id=chain_id,
            to=Web3.to_checksum_address(token_address),
            data=Web3.to_hex(bytes(selector) + encoded),
            function_name=function_name,
            args=tuple(values),
        )
        self.logger.debug(f"Built {function_name} instruction for {instruction.to} on chain {chain_id}")
        return instruction

    def _function_abi(self, function_name: str) -> Dict[str, Any]:
        for entry in self.ERC20_ABI:
            if entry["type"] == "function" and entry["name"] == function_name:
                return entry
        raise InstructionBuildError(f"Unsupported token function: {function_name}")

    @staticmethod
    def _normalize_arg(function_name: str, abi_type: str, value: Any) -> Any:
        if abi_type == "address":
            if not isinstance(value, str) or not Web3.is_address(value):
                raise InstructionBuildError(f"Invalid address argument for {function_name}: {value!r}")
            return Web3.to_checksum_address(value)
        if abi_type.startswith("uint"):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InstructionBuildError(f"Invalid integer argument for {function_name}: {value!r}")
            if value < 0:
                raise InstructionBuildError(f"Negative amount for {function_name}: {value}")
            return value
        return value
