"""
Tests for gas payer classification and failure wording.
"""
import pytest
from hypothesis import given, settings, strategies as st

from gasless_sdk.models import ErrorKind, PayerClassification, SettlementReceipt
from gasless_sdk.workflow import classify_payer, describe_failure
from tests.test_helpers import RELAYER_ADDRESS, make_receipt

USER = "0x14791697260E4c9A71f18484C9f997B308e59325"

address_strategy = st.binary(min_size=20, max_size=20).map(lambda b: "0x" + b.hex())


def test_relayer_sender_is_sponsored():
    assert classify_payer(make_receipt(sender=RELAYER_ADDRESS), USER) == PayerClassification.SPONSORED


def test_user_sender_is_user_paid():
    assert classify_payer(make_receipt(sender=USER.lower()), USER) == PayerClassification.USER_PAID


@pytest.mark.parametrize("receipt", [
    None,
    make_receipt(sender=None),
    SettlementReceipt.model_validate({"status": "SUCCESS", "receipts": [{"transactionHash": "0x1"}]}),
])
def test_missing_sender_is_unknown(receipt):
    assert classify_payer(receipt, USER) == PayerClassification.UNKNOWN


def test_missing_user_address_is_unknown():
    assert classify_payer(make_receipt(), None) == PayerClassification.UNKNOWN


def test_only_first_transaction_counts():
    receipt = SettlementReceipt.model_validate({
        "status": "SUCCESS",
        "receipts": [{"from": RELAYER_ADDRESS}, {"from": USER}],
    })
    assert classify_payer(receipt, USER) == PayerClassification.SPONSORED


@settings(max_examples=50)
@given(address=address_strategy, flips=st.lists(st.booleans(), min_size=42, max_size=42))
def test_comparison_ignores_case(address, flips):
    """Any mix of upper and lower case hex still matches the user"""
    mixed = "".join(c.upper() if flip else c for c, flip in zip(address, flips))
    mixed = "0x" + mixed[2:]
    assert classify_payer(make_receipt(sender=mixed), address) == PayerClassification.USER_PAID


@settings(max_examples=50)
@given(sender=address_strategy, user=address_strategy)
def test_different_addresses_are_sponsored(sender, user):
    expected = PayerClassification.USER_PAID if sender == user else PayerClassification.SPONSORED
    assert classify_payer(make_receipt(sender=sender), user) == expected


class TestDescribeFailure:

    def test_precondition_message_unchanged(self):
        assert describe_failure(ErrorKind.PRECONDITION, "Amount must be greater than zero") == \
            "Amount must be greater than zero"

    def test_timeout(self):
        message = describe_failure(ErrorKind.SETTLEMENT_TIMEOUT, "did not settle within 120s")
        assert "may still complete" in message

    @pytest.mark.parametrize("raw,prefix", [
        ("execution reverted: transfer amount exceeds balance", "Insufficient funds"),
        ("Paymaster deposit too low", "The relayer could not sponsor"),
        ("User rejected the request", "The signature request was rejected"),
    ])
    def test_known_failures(self, raw, prefix):
        message = describe_failure(ErrorKind.EXECUTION, raw)
        assert message.startswith(prefix)
        assert raw in message

    def test_generic_failure(self):
        assert describe_failure(ErrorKind.QUOTE, "boom") == "Transaction failed: boom"
