"""
Input signers: the objects that turn a signing context into an unlocking script.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from coincurve import PrivateKey

from scripttx.errors import SigningError
from scripttx.models import P2PKHCoin
from scripttx.script import hash160
from scripttx.sighash import SigningContext


class InputSigner(ABC):
    """Produces the unlocking script for one input once outputs are final."""

    @abstractmethod
    def unlock(self, ctx: SigningContext) -> bytes:
        """Return the finished unlocking script for ctx.coin"""


class P2PKHSigner(InputSigner):
    """Signs a P2PKH coin with a single key: pushes <sig> <pubKey>."""

    def __init__(self, private_key: PrivateKey):
        self.private_key = private_key
        self.public_key = private_key.public_key.format(compressed=True)

    def unlock(self, ctx: SigningContext) -> bytes:
        coin = ctx.coin
        if not isinstance(coin, P2PKHCoin):
            raise SigningError(f"P2PKH signer can't spend {type(coin).__name__}")
        if hash160(self.public_key) != coin.pubkey_hash:
            raise SigningError(f"Key does not match public key hash of {coin.outpoint}")

        return ctx.unlock({"sig": ctx.sign(self.private_key), "pubKey": self.public_key})


class CallbackSigner(InputSigner):
    """Adapts a plain function of the signing context."""

    def __init__(self, callback: Callable[[SigningContext], bytes]):
        self.callback = callback

    def unlock(self, ctx: SigningContext) -> bytes:
        return self.callback(ctx)


def sign_with(private_key: PrivateKey) -> P2PKHSigner:
    return P2PKHSigner(private_key)
