"""
Local private-key signer backed by eth_account.
"""
from typing import Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import Web3


class LocalSigner:
    """
    Signer holding a private key in process memory.

    Payloads are signed as EIP-191 personal messages, which is what the
    relayer expects for quote hashes. A 0x-prefixed hex payload is signed
    as raw bytes, anything else as UTF-8 text.
    """

    def __init__(self, priv_key: str):
        if not priv_key:
            raise ValueError("priv_key must be provided")
        self._account: LocalAccount = Account.from_key(priv_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, payload: Union[str, bytes]) -> str:
        if isinstance(payload, bytes):
            message = encode_defunct(primitive=payload)
        elif isinstance(payload, str) and payload.startswith("0x"):
            message = encode_defunct(hexstr=payload)
        elif isinstance(payload, str):
            message = encode_defunct(text=payload)
        else:
            raise TypeError(f"Cannot sign payload of type {type(payload).__name__}")

        signed = self._account.sign_message(message)
        return Web3.to_hex(signed.signature)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"
