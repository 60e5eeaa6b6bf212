"""
Utility functions for building test sessions with mocked collaborators.
"""
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

from gasless_sdk.account import AccountOrchestrator, ChainConfiguration, SmartAccount
from gasless_sdk.models import OperationHandle, SettlementReceipt, Trigger
from gasless_sdk.notify import NotificationLevel
from gasless_sdk.persistence import TransactionStore
from gasless_sdk.relay import RelayClient, SponsoredQuote
from gasless_sdk.relay.sponsorship import detect_sponsorship
from gasless_sdk.session import TransferSession
from gasless_sdk.signer import LocalSigner

# Test constants used throughout tests
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_RPC_URL = "https://rpc.example.com"
TEST_RELAYER_URL = "https://relayer.example.com"
TEST_API_KEY = "mee_test_key_123"
TEST_API_BASE_URL = "https://api.example.com"
TEST_TOKEN = "0x1234567890123456789012345678901234567890"
TEST_RECIPIENT = "0x" + "aa" * 20
RELAYER_ADDRESS = "0x" + "bb" * 20
TEST_CHAIN_ID = 137
TEST_OPERATION_HASH = "0x" + "0f" * 32


class RecordingNotifier:
    """Notifier that keeps every message for assertions."""

    def __init__(self):
        self.messages: List[Tuple[NotificationLevel, str]] = []

    def notify(self, level: NotificationLevel, message: str) -> None:
        self.messages.append((level, message))

    def levels(self) -> List[NotificationLevel]:
        return [level for level, _ in self.messages]


def make_account(signer: Optional[LocalSigner] = None) -> SmartAccount:
    signer = signer or LocalSigner(TEST_PRIV_KEY)
    config = ChainConfiguration(chain_id=TEST_CHAIN_ID, rpc_url=TEST_RPC_URL)
    return SmartAccount(signer=signer, chains={TEST_CHAIN_ID: config})


def make_quote(account: SmartAccount, response: Optional[Dict[str, Any]] = None) -> SponsoredQuote:
    """Build a quote the way RelayClient.request_quote would from a response."""
    response = response if response is not None else {"hash": "0x" + "11" * 32, "sponsor": {"name": "paymaster"}}
    source = detect_sponsorship(response)
    return SponsoredQuote(
        quote_hash=response.get("hash", "0x" + "11" * 32),
        instructions=(),
        trigger=Trigger(chain_id=TEST_CHAIN_ID, token_address=TEST_TOKEN, amount=1),
        sponsorship_requested=True,
        sponsorship_granted=source is not None,
        sponsorship_source=source,
        raw=response,
        account=account,
    )


def make_receipt(status: str = "SUCCESS", sender: Optional[str] = RELAYER_ADDRESS,
                 tx_hash: str = "0x1") -> SettlementReceipt:
    receipts = [] if sender is None else [{"from": sender, "transactionHash": tx_hash}]
    return SettlementReceipt.model_validate({"transactionStatus": status, "receipts": receipts})


def create_test_session(
    account: Optional[SmartAccount] = None,
    relay: Any = None,
    persistence: Any = None,
    quote_response: Optional[Dict[str, Any]] = None,
    receipt: Optional[SettlementReceipt] = None,
    with_account: bool = True,
    **kwargs
) -> TransferSession:
    """
    Create a session whose relayer and backend are mocks.

    By default the relayer grants sponsorship, executes, and settles with a
    transaction sent by RELAYER_ADDRESS.
    """
    if account is None and with_account:
        account = make_account()

    if relay is None:
        relay = MagicMock(spec=RelayClient)
        if account is not None:
            relay.request_quote.return_value = make_quote(account, quote_response)
        relay.execute.return_value = OperationHandle(operation_hash=TEST_OPERATION_HASH)
        relay.await_settlement.return_value = receipt or make_receipt()

    if persistence is None:
        persistence = MagicMock(spec=TransactionStore)

    kwargs.setdefault("notifier", RecordingNotifier())
    return TransferSession(
        account=account,
        relay=relay,
        orchestrator=AccountOrchestrator(),
        persistence=persistence,
        **kwargs
    )
