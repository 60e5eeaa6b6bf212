"""
TransferWorkflow - the gasless transfer state machine.

One workflow instance handles one submission:

    IDLE -> BUILDING -> QUOTING -> EXECUTING -> AWAITING_SETTLEMENT
         -> RECONCILING -> COMPLETED

with any step before reconciliation able to end in FAILED. Every run ends
in exactly one terminal outcome; errors never escape ``run()``.
"""
import logging
from concurrent.futures import Executor
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Protocol

from .account import AccountOrchestrator, SmartAccount
from .exceptions import GaslessError, PreconditionError, SettlementError
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
from .notify import NotificationLevel, Notifier
from .persistence import TransactionStore
from .relay import RelayClient, SponsoredQuote
from .utils import addresses_equal, parse_units, short_hash

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    IDLE = "IDLE"
    BUILDING = "BUILDING"
    QUOTING = "QUOTING"
    EXECUTING = "EXECUTING"
    AWAITING_SETTLEMENT = "AWAITING_SETTLEMENT"
    RECONCILING = "RECONCILING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TRANSITIONS: Dict[WorkflowState, FrozenSet[WorkflowState]] = {
    WorkflowState.IDLE: frozenset({WorkflowState.BUILDING, WorkflowState.FAILED}),
    WorkflowState.BUILDING: frozenset({WorkflowState.QUOTING, WorkflowState.FAILED}),
    WorkflowState.QUOTING: frozenset({WorkflowState.EXECUTING, WorkflowState.FAILED}),
    WorkflowState.EXECUTING: frozenset({WorkflowState.AWAITING_SETTLEMENT, WorkflowState.FAILED}),
    WorkflowState.AWAITING_SETTLEMENT: frozenset({WorkflowState.RECONCILING, WorkflowState.FAILED}),
    WorkflowState.RECONCILING: frozenset({WorkflowState.COMPLETED}),
    WorkflowState.COMPLETED: frozenset(),
    WorkflowState.FAILED: frozenset(),
}

# Error kind for failures a step did not classify itself
_STEP_ERROR_KINDS = {
    WorkflowState.IDLE: ErrorKind.PRECONDITION,
    WorkflowState.BUILDING: ErrorKind.INSTRUCTION_BUILD,
    WorkflowState.QUOTING: ErrorKind.QUOTE,
    WorkflowState.EXECUTING: ErrorKind.EXECUTION,
    WorkflowState.AWAITING_SETTLEMENT: ErrorKind.SETTLEMENT,
}

SUCCESS_MESSAGES = {
    PayerClassification.SPONSORED: "Transaction executed gaslessly! Paymaster covered the gas.",
    PayerClassification.USER_PAID: "Transaction executed, but gas was paid by user (not sponsored).",
    PayerClassification.UNKNOWN: "Transaction executed. Could not determine who paid the gas.",
}

SPONSORSHIP_ADVISORY = "Sponsorship unavailable. The transaction will proceed but may use gas."

_FAILURE_HINTS = (
    (("insufficient funds", "insufficient balance", "exceeds balance"),
     "Insufficient funds to complete the transfer."),
    (("sponsorship", "paymaster"),
     "The relayer could not sponsor this transaction."),
    (("user rejected", "user denied", "rejected the request"),
     "The signature request was rejected."),
)


class TransferContext(Protocol):
    """Session-scoped collaborators shared by every workflow of a session"""
    account: Optional[SmartAccount]
    orchestrator: AccountOrchestrator
    relay: Optional[RelayClient]
    persistence: Optional[TransactionStore]
    notifier: Notifier
    executor: Optional[Executor]
    decimals: int
    poll_interval: float
    settlement_timeout: float

    @property
    def address(self) -> Optional[str]:
        ...


def classify_payer(receipt: Optional[SettlementReceipt], user_address: Optional[str]) -> PayerClassification:
    """
    Determine who paid gas for a settled operation.

    The first mined transaction's sender is compared with the user's
    address, ignoring case.

    Args:
        receipt: Settlement receipt
        user_address: Address of the submitting user

    Returns:
        USER_PAID if the user sent the transaction, SPONSORED if someone
        else did, UNKNOWN if the receipt does not say
    """
    try:
        first = receipt.first_transaction if receipt is not None else None
        sender = first.from_address if first is not None else None
        if not sender or not user_address:
            logger.warning("Cannot determine gas payer: receipt has no sender for the first mined transaction")
            return PayerClassification.UNKNOWN
        if addresses_equal(sender, user_address):
            return PayerClassification.USER_PAID
        return PayerClassification.SPONSORED
    except (AttributeError, TypeError) as e:
        logger.warning(f"Cannot determine gas payer from malformed receipt: {e}")
        return PayerClassification.UNKNOWN


def describe_failure(kind: ErrorKind, message: str) -> str:
    """
    Turn a failure into a message for the user.

    Only the wording is refined; the error kind is left alone.
    """
    if kind == ErrorKind.PRECONDITION:
        return message
    if kind == ErrorKind.SETTLEMENT_TIMEOUT:
        return f"Transaction was submitted but did not settle in time; it may still complete. ({message})"

    lowered = message.lower()
    for needles, hint in _FAILURE_HINTS:
        if any(needle in lowered for needle in needles):
            return f"{hint} ({message})"
    return f"Transaction failed: {message}"


class TransferWorkflow:
    """
    Runs one gasless transfer from intent to outcome.

    The workflow borrows the session's account and relay client; it never
    creates or closes them. Instances are single use.
    """

    def __init__(
        self,
        context: TransferContext,
        intent: TransferIntent,
        logger: Optional[logging.Logger] = None
    ):
        self.context = context
        self.intent = intent
        self.logger = logger or logging.getLogger(__name__)

        self.state = WorkflowState.IDLE
        self.history: List[WorkflowState] = [WorkflowState.IDLE]
        self.outcome: Optional[WorkflowOutcome] = None

        # Session collaborators captured when the run starts
        self.account: Optional[SmartAccount] = None
        self.relay: Optional[RelayClient] = None
        self.user_address: Optional[str] = None

        self.amount_base_units: Optional[int] = None
        self.instruction: Optional[ChainInstruction] = None
        self.quote: Optional[SponsoredQuote] = None
        self.handle: Optional[OperationHandle] = None
        self.receipt: Optional[SettlementReceipt] = None
        self.payer = PayerClassification.UNKNOWN

    def run(self) -> WorkflowOutcome:
        """
        Execute the workflow.

        Returns:
            Terminal outcome, COMPLETED or FAILED
        """
        if self.outcome is not None:
            return self.outcome
        if self.state != WorkflowState.IDLE:
            raise RuntimeError(f"Workflow is already running (state: {self.state.value})")

        try:
            self.check_preconditions()
            self._transition(WorkflowState.BUILDING)
            self.build()
            self._transition(WorkflowState.QUOTING)
            self.request_quote()
            self._transition(WorkflowState.EXECUTING)
            self.execute()
            self._transition(WorkflowState.AWAITING_SETTLEMENT)
            self.await_settlement()
            self._transition(WorkflowState.RECONCILING)
        except Exception as e:
            return self._fail(e)

        self.reconcile()
        return self._complete()

    def check_preconditions(self) -> None:
        """
        Reject the submission locally if it cannot succeed.

        Raises:
            PreconditionError: If the account, address or amount is unusable
        """
        account, relay = self.context.account, self.context.relay
        if account is None or relay is None:
            raise PreconditionError("Please connect wallet and ensure the smart account is initialized")
        address = account.address
        if not address:
            raise PreconditionError("No connected wallet address")

        try:
            amount = parse_units(self.intent.amount, self.context.decimals)
        except ValueError as e:
            raise PreconditionError(f"Invalid amount: {str(e)}") from e
        if amount <= 0:
            raise PreconditionError("Amount must be greater than zero")

        self.amount_base_units = amount
        self.account, self.relay, self.user_address = account, relay, address

    def build(self) -> ChainInstruction:
        self.instruction = self.context.orchestrator.build_instruction(
            self.account,
            self.intent.token_address,
            self.intent.chain_id,
            function_name="transfer",
            args=(self.intent.recipient, self.amount_base_units),
        )
        self.logger.info(
            f"Transfer instruction built: {self.intent.amount} of {self.instruction.to} "
            f"to {self.intent.recipient}"
        )
        return self.instruction

    def request_quote(self) -> SponsoredQuote:
        """Request a sponsored quote; an unsponsored quote is still executed."""
        trigger = Trigger(
            chain_id=self.intent.chain_id,
            token_address=self.instruction.to,
            amount=self.amount_base_units,
        )
        self.quote = self.relay.request_quote(
            self.account,
            [self.instruction],
            trigger,
            sponsorship_requested=True,
        )

        if not self.quote.sponsorship_granted:
            self.logger.warning("Sponsorship unavailable - will proceed but user may pay gas")
            self._notify(NotificationLevel.ADVISORY, SPONSORSHIP_ADVISORY)
        return self.quote

    def execute(self) -> OperationHandle:
        self.handle = self.relay.execute(self.quote)
        return self.handle

    def await_settlement(self) -> SettlementReceipt:
        """
        Wait for a terminal receipt with at least one mined transaction.

        Raises:
            SettlementError: If the operation failed or produced no transactions
            SettlementTimeoutError: If the relayer never reports a terminal status
        """
        receipt = self.relay.await_settlement(
            self.handle,
            poll_interval=self.context.poll_interval,
            timeout=self.context.settlement_timeout,
        )
        if receipt.status == SettlementStatus.FAILED:
            raise SettlementError(f"Transaction failed: {receipt.status.value}")
        if not receipt.status.is_success:
            raise SettlementError(f"Unexpected settlement status: {receipt.status.value}")
        if not receipt.mined_transactions:
            raise SettlementError("Settlement reported no mined transactions")

        self.receipt = receipt
        return receipt

    def reconcile(self) -> PayerClassification:
        self.payer = classify_payer(self.receipt, self.user_address)
        self.logger.info(f"Gas payer for {short_hash(self.handle.operation_hash)}: {self.payer.value}")
        return self.payer

    def _transition(self, new_state: WorkflowState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal workflow transition {self.state.value} -> {new_state.value}")
        self.logger.debug(f"Workflow {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _fail(self, error: Exception) -> WorkflowOutcome:
        failed_in = self.state
        kind = getattr(error, "kind", None) or _STEP_ERROR_KINDS.get(failed_in, ErrorKind.SETTLEMENT)
        if isinstance(error, GaslessError):
            self.logger.error(f"Transfer failed in {failed_in.value}: {error}")
        else:
            self.logger.exception(f"Unexpected error in {failed_in.value}")

        self._transition(WorkflowState.FAILED)
        message = describe_failure(kind, str(error) or type(error).__name__)
        self.outcome = WorkflowOutcome(
            status=WorkflowStatus.FAILED,
            payer_classification=PayerClassification.UNKNOWN,
            operation_hash=self.handle.operation_hash if self.handle else None,
            sponsorship_granted=self.quote.sponsorship_granted if self.quote else None,
            error_kind=kind,
            error_message=message,
        )
        self._notify(NotificationLevel.ERROR, message)
        return self.outcome

    def _complete(self) -> WorkflowOutcome:
        self._transition(WorkflowState.COMPLETED)
        tx_hash = self.receipt.first_transaction.transaction_hash
        self.outcome = WorkflowOutcome(
            status=WorkflowStatus.COMPLETED,
            payer_classification=self.payer,
            transaction_hash=tx_hash,
            operation_hash=self.handle.operation_hash,
            sponsorship_granted=self.quote.sponsorship_granted,
        )
        self._notify(NotificationLevel.SUCCESS, SUCCESS_MESSAGES[self.payer])
        self._dispatch_persistence()
        return self.outcome

    def _dispatch_persistence(self) -> None:
        # Runs after the outcome is final; failures are only logged
        persistence = self.context.persistence
        if persistence is None:
            self.logger.debug("No persistence backend configured; skipping transaction record")
            return

        try:
            record = TransactionRecord(
                tx_hash=self.outcome.transaction_hash,
                user_op_hash=self.handle.operation_hash,
                from_address=self.user_address,
                to_address=self.intent.recipient,
                amount=float(self.intent.amount),
            )
            executor = self.context.executor
            if executor is None:
                self._persist(persistence, record)
            else:
                executor.submit(self._persist, persistence, record)
        except Exception as e:
            self.logger.warning(f"Could not record transaction {short_hash(self.outcome.transaction_hash)}: {e}")

    def _persist(self, persistence: TransactionStore, record: TransactionRecord) -> None:
        try:
            persistence.record(record)
        except Exception as e:
            self.logger.error(f"Failed to save tx {short_hash(record.tx_hash)}: {e}")

    def _notify(self, level: NotificationLevel, message: str) -> None:
        try:
            self.context.notifier.notify(level, message)
        except Exception as e:
            self.logger.warning(f"Notifier failed for {level.value} message: {e}")
