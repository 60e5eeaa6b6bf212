"""
TransferSession - lifecycle of a connected wallet.

A session is created once a signer is available and torn down when the
wallet disconnects. It owns the smart account, relay client and
persistence sink, and hands them by reference to each transfer workflow.
"""
import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from .account import AccountOrchestrator, SmartAccount
from .config import NetworkConfig, TransferSettings
from .models import (
    ErrorKind,
    PayerClassification,
    TransferIntent,
    WorkflowOutcome,
    WorkflowStatus,
)
from .notify import LoggingNotifier, NotificationLevel, Notifier
from .persistence import TransactionStore
from .relay import RelayClient
from .signer import Signer
from .workflow import TransferWorkflow

logger = logging.getLogger(__name__)


class TransferSession:
    """
    Session-scoped context for gasless transfers.

    Submissions are serialised: while one transfer is in flight any other
    submission is rejected without touching the relayer.
    """

    def __init__(
        self,
        account: Optional[SmartAccount],
        relay: Optional[RelayClient],
        orchestrator: Optional[AccountOrchestrator] = None,
        persistence: Optional[TransactionStore] = None,
        notifier: Optional[Notifier] = None,
        executor: Optional[Executor] = None,
        settings: Optional[TransferSettings] = None,
        decimals: int = 18,
        poll_interval: float = 1.0,
        settlement_timeout: float = 120.0,
        logger: Optional[logging.Logger] = None
    ):
        self.account = account
        self.relay = relay
        self.orchestrator = orchestrator or AccountOrchestrator()
        self.persistence = persistence
        self.notifier = notifier or LoggingNotifier()
        self.executor = executor
        self.settings = settings
        self.decimals = decimals
        self.poll_interval = poll_interval
        self.settlement_timeout = settlement_timeout
        self.logger = logger or logging.getLogger(__name__)
        self._submit_lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        signer: Signer,
        settings: TransferSettings,
        notifier: Optional[Notifier] = None,
        background_persistence: bool = True,
        logger: Optional[logging.Logger] = None
    ) -> "TransferSession":
        """
        Initialize a session for a connected signer.

        Args:
            signer: Signing capability of the connected wallet
            settings: Deployment settings
            notifier: Receiver of user-facing messages (defaults to logging)
            background_persistence: Record transfers on a worker thread
            logger: Optional logger instance

        Returns:
            Connected session

        Raises:
            InitializationError: If the smart account cannot be initialized
        """
        orchestrator = AccountOrchestrator(timeout=settings.http_timeout, logger=logger)
        account = orchestrator.initialize(signer, settings.chain_configuration())

        relay = RelayClient(
            settings.relayer_url,
            settings.relayer_api_key,
            timeout=settings.http_timeout,
            logger=logger,
        )

        persistence = None
        executor = None
        if settings.api_base_url:
            persistence = TransactionStore(settings.api_base_url, timeout=settings.http_timeout, logger=logger)
            if background_persistence:
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gasless-persist")

        return cls(
            account=account,
            relay=relay,
            orchestrator=orchestrator,
            persistence=persistence,
            notifier=notifier,
            executor=executor,
            settings=settings,
            decimals=settings.token_decimals,
            poll_interval=settings.poll_interval,
            settlement_timeout=settings.settlement_timeout,
            logger=logger,
        )

    @property
    def address(self) -> Optional[str]:
        """Address of the connected wallet, if any"""
        return self.account.address if self.account is not None else None

    @property
    def is_connected(self) -> bool:
        return self.account is not None and self.relay is not None

    @property
    def in_flight(self) -> bool:
        return self._submit_lock.locked()

    def submit_transfer(self, intent: TransferIntent) -> WorkflowOutcome:
        """
        Run one transfer to completion.

        Args:
            intent: What to send and to whom

        Returns:
            Terminal outcome; failures are reported in the outcome, not raised
        """
        if not self._submit_lock.acquire(blocking=False):
            return self._reject("A transfer is already in flight; wait for it to finish before sending another")

        try:
            outcome = TransferWorkflow(self, intent, logger=self.logger).run()
        finally:
            self._submit_lock.release()

        if outcome.transaction_hash and self.settings is not None:
            link = NetworkConfig.get_explorer_tx_url(self.settings.network, outcome.transaction_hash)
            if link:
                self.logger.info(f"View transaction: {link}")
        return outcome

    def send(self, recipient: str, amount: str) -> WorkflowOutcome:
        """
        Send the configured token on the configured chain.

        Raises:
            ValueError: If the session was created without settings
        """
        if self.settings is None:
            raise ValueError("send() requires a session created with settings; use submit_transfer()")
        intent = TransferIntent(
            recipient=recipient,
            amount=amount,
            token_address=self.settings.checksum_token_address,
            chain_id=self.settings.chain_id,
        )
        return self.submit_transfer(intent)

    def disconnect(self) -> None:
        """
        Tear the session down.

        An operation already handed to the relayer is not cancelled; only
        local observation stops.
        """
        self.account = None
        relay, self.relay = self.relay, None
        if relay is not None:
            relay.close()

        executor, self.executor = self.executor, None
        if executor is not None:
            executor.shutdown(wait=True)

        persistence, self.persistence = self.persistence, None
        if persistence is not None:
            persistence.close()
        self.logger.debug("Transfer session disconnected")

    def _reject(self, message: str) -> WorkflowOutcome:
        self.logger.warning(message)
        try:
            self.notifier.notify(NotificationLevel.ERROR, message)
        except Exception as e:
            self.logger.warning(f"Notifier failed for rejection message: {e}")
        return WorkflowOutcome(
            status=WorkflowStatus.FAILED,
            payer_classification=PayerClassification.UNKNOWN,
            error_kind=ErrorKind.PRECONDITION,
            error_message=message,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
