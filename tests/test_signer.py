"""
Tests for the local private-key signer.
"""
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from gasless_sdk.signer import LocalSigner, Signer
from tests.test_helpers import TEST_PRIV_KEY


def test_address_matches_key(signer):
    assert signer.address == Account.from_key(TEST_PRIV_KEY).address


def test_satisfies_signer_protocol(signer):
    assert isinstance(signer, Signer)


def test_sign_hex_payload_as_bytes(signer):
    quote_hash = "0x" + "ab" * 32

    signature = signer.sign(quote_hash)

    assert signature.startswith("0x")
    assert len(signature) == 132
    recovered = Account.recover_message(encode_defunct(hexstr=quote_hash), signature=signature)
    assert recovered == signer.address


def test_sign_text_and_bytes(signer):
    text_sig = signer.sign("hello")
    bytes_sig = signer.sign(b"hello")

    assert text_sig == bytes_sig
    assert Account.recover_message(encode_defunct(text="hello"), signature=text_sig) == signer.address


def test_rejects_unsupported_payload(signer):
    with pytest.raises(TypeError, match="int"):
        signer.sign(42)


def test_requires_key():
    with pytest.raises(ValueError, match="priv_key"):
        LocalSigner("")


def test_repr_hides_key(signer):
    assert TEST_PRIV_KEY[2:] not in repr(signer)
    assert signer.address in repr(signer)
