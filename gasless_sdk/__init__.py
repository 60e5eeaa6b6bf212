"""
Gasless Transfer SDK.

Send ERC-20 tokens through a sponsoring relayer so the user does not pay gas.
"""
from .version import __version__
from .models import (
    ChainInstruction,
    ErrorKind,
    OperationHandle,
    PayerClassification,
    SettlementReceipt,
    SettlementStatus,
    TransactionRecord,
    TransferIntent,
    Trigger,
    WorkflowOutcome,
    WorkflowStatus,
)
from .exceptions import (
    ConfigurationError,
    ExecutionError,
    GaslessError,
    InitializationError,
    InstructionBuildError,
    PersistenceError,
    PreconditionError,
    QuoteError,
    SettlementError,
    SettlementTimeoutError,
)
from .signer import LocalSigner, Signer
from .account import AccountOrchestrator, ChainConfiguration, SmartAccount
from .relay import RelayClient, SponsoredQuote, detect_sponsorship
from .persistence import TransactionStore
from .notify import LoggingNotifier, NotificationLevel, Notifier
from .workflow import TransferWorkflow, WorkflowState, classify_payer, describe_failure
from .config import NetworkConfig, TransferSettings
from .session import TransferSession

__all__ = [
    "__version__",
    "TransferSession",
    "TransferSettings",
    "NetworkConfig",
    "TransferWorkflow",
    "WorkflowState",
    "classify_payer",
    "describe_failure",
    "AccountOrchestrator",
    "ChainConfiguration",
    "SmartAccount",
    "RelayClient",
    "SponsoredQuote",
    "detect_sponsorship",
    "TransactionStore",
    "LoggingNotifier",
    "NotificationLevel",
    "Notifier",
    "Signer",
    "LocalSigner",
    "ChainInstruction",
    "ErrorKind",
    "OperationHandle",
    "PayerClassification",
    "SettlementReceipt",
    "SettlementStatus",
    "TransactionRecord",
    "TransferIntent",
    "Trigger",
    "WorkflowOutcome",
    "WorkflowStatus",
    "GaslessError",
    "ConfigurationError",
    "PreconditionError",
    "InitializationError",
    "InstructionBuildError",
    "QuoteError",
    "ExecutionError",
    "SettlementError",
    "SettlementTimeoutError",
    "PersistenceError",
]
