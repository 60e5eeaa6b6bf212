"""
Data models for the Gasless Transfer SDK.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ErrorKind(str, Enum):
    """Programmatic classification of a failed transfer."""
    PRECONDITION = "PreconditionError"
    INITIALIZATION = "InitializationError"
    INSTRUCTION_BUILD = "InstructionBuildError"
    QUOTE = "QuoteError"
    EXECUTION = "ExecutionError"
    SETTLEMENT = "SettlementError"
    SETTLEMENT_TIMEOUT = "SettlementTimeoutError"
    PERSISTENCE = "PersistenceError"


class PayerClassification(str, Enum):
    """Who ended up paying gas for a settled operation."""
    SPONSORED = "SPONSORED"
    USER_PAID = "USER_PAID"
    UNKNOWN = "UNKNOWN"


class SettlementStatus(str, Enum):
    """Status reported by the relayer explorer for an operation."""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    MINED_SUCCESS = "MINED_SUCCESS"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"

    @property
    def is_terminal(self) -> bool:
        return self in (SettlementStatus.SUCCESS, SettlementStatus.MINED_SUCCESS, SettlementStatus.FAILED)

    @property
    def is_success(self) -> bool:
        return self in (SettlementStatus.SUCCESS, SettlementStatus.MINED_SUCCESS)


# Spellings used by different relayer versions
_STATUS_ALIASES = {
    "MINING": SettlementStatus.PENDING,
    "SUBMITTED": SettlementStatus.PENDING,
    "MINED_FAIL": SettlementStatus.FAILED,
    "FAIL": SettlementStatus.FAILED,
}


class WorkflowStatus(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TransferIntent(BaseModel):
    """A user's request to send ``amount`` tokens to ``recipient``."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    recipient: str
    amount: str
    token_address: str = Field(..., alias="tokenAddress")
    chain_id: int = Field(..., alias="chainId")


class ChainInstruction(BaseModel):
    """
    A relayer-composable contract call.

    Only ``AccountOrchestrator.build_instruction`` should create these.
    """
    model_config = ConfigDict(frozen=True)

    chain_id: int
    to: str
    data: str
    value: int = 0
    function_name: str
    args: Tuple[Any, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        """Relayer JSON representation of the call."""
        return {
            "chainId": self.chain_id,
            "to": self.to,
            "data": self.data,
            "value": str(self.value),
        }


class Trigger(BaseModel):
    """Funding trigger attached to a quote request."""
    model_config = ConfigDict(frozen=True)

    chain_id: int
    token_address: str
    amount: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "tokenAddress": self.token_address,
            "amount": str(self.amount),
        }


class OperationHandle(BaseModel):
    """Opaque identifier of a submitted relayer operation."""
    model_config = ConfigDict(frozen=True)

    operation_hash: str


class MinedTransaction(BaseModel):
    """One on-chain transaction that resulted from an operation."""
    transaction_hash: Optional[str] = Field(
        None, validation_alias=AliasChoices("transactionHash", "transaction_hash", "hash")
    )
    from_address: Optional[str] = Field(
        None, validation_alias=AliasChoices("from", "fromAddress", "from_address")
    )

    @field_validator("transaction_hash", "from_address", mode="before")
    @classmethod
    def _string_or_none(cls, value: Any) -> Optional[str]:
        # Malformed values read as missing
        return value if isinstance(value, str) else None


class SettlementReceipt(BaseModel):
    """Explorer view of an operation: status plus the mined transactions."""
    status: SettlementStatus = Field(
        SettlementStatus.UNKNOWN,
        validation_alias=AliasChoices("transactionStatus", "status"),
    )
    mined_transactions: List[MinedTransaction] = Field(
        default_factory=list,
        validation_alias=AliasChoices("receipts", "minedTransactions", "mined_transactions"),
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> SettlementStatus:
        if isinstance(value, SettlementStatus):
            return value
        if not isinstance(value, str):
            return SettlementStatus.UNKNOWN
        key = value.strip().upper()
        if key in _STATUS_ALIASES:
            return _STATUS_ALIASES[key]
        try:
            return SettlementStatus(key)
        except ValueError:
            return SettlementStatus.UNKNOWN

    @field_validator("mined_transactions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [item if isinstance(item, (dict, MinedTransaction)) else {} for item in value]
        return value

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def first_transaction(self) -> Optional[MinedTransaction]:
        return self.mined_transactions[0] if self.mined_transactions else None


class WorkflowOutcome(BaseModel):
    """Terminal result of one transfer submission."""
    model_config = ConfigDict(populate_by_name=True)

    status: WorkflowStatus
    payer_classification: PayerClassification = Field(
        PayerClassification.UNKNOWN, alias="payerClassification"
    )
    transaction_hash: Optional[str] = Field(None, alias="transactionHash")
    operation_hash: Optional[str] = Field(None, alias="operationHash")
    sponsorship_granted: Optional[bool] = Field(None, alias="sponsorshipGranted")
    error_kind: Optional[ErrorKind] = Field(None, alias="errorKind")
    error_message: Optional[str] = Field(None, alias="errorMessage")

    @property
    def succeeded(self) -> bool:
        return self.status == WorkflowStatus.COMPLETED


class TransactionRecord(BaseModel):
    """Body posted to the backend after a transfer settles."""
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: Optional[str] = Field(None, alias="txHash")
    user_op_hash: str = Field(..., alias="userOpHash")
    from_address: str = Field(..., alias="from")
    to_address: str = Field(..., alias="to")
    amount: float
    type: str = "send"
