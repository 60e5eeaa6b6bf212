"""
Signing capabilities for the Gasless Transfer SDK.

The transfer workflow never touches key material; it only needs something
that knows its address and can sign a payload.
"""
from typing import Protocol, Union, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    """Protocol for signing capabilities"""
    address: str

    def sign(self, payload: Union[str, bytes]) -> str:
        """Sign payload and return the signature as a 0x-prefixed hex string"""
        ...


from .local import LocalSigner  # noqa: E402

__all__ = ["Signer", "LocalSigner"]
