"""
Signature digests and signing.

The preimage layout (BIP143 algorithm with the FORKID bit set):
    version | hashPrevouts | hashSequence | outpoint | scriptCode |
    amount | sequence | hashOutputs | locktime | sighash type

Any divergence here doesn't raise, it produces an unlocking script that fails
verification downstream, so the layout must be reproduced byte for byte.
"""

from __future__ import annotations

import struct
from collections.abc import Mapping
from enum import IntFlag

from coincurve import PrivateKey
from coincurve._libsecp256k1 import ffi
from loguru import logger

from scripttx.codec import (
    Transaction,
    hash256,
    serialize_outpoint,
    serialize_output,
    sha256,
    varbytes,
)
from scripttx.constants import DER_SIGNATURE_SIZE
from scripttx.errors import SigningError
from scripttx.models import Coin
from scripttx.resolver import ParamValue, build_unlocking_script

ZERO_HASH = bytes(32)

# Bound on nonce grinding; each attempt succeeds with probability ~1/2
MAX_GRIND_ATTEMPTS = 256


class SigHash(IntFlag):
    ALL = 0x01
    NONE = 0x02
    SINGLE = 0x03
    FORKID = 0x40
    ANYONECANPAY = 0x80


def compute_preimage(
    tx: Transaction,
    input_index: int,
    script_code: bytes,
    value: int,
    sighash_type: int,
) -> bytes:
    """
    Build the signature-hash preimage for one input.

    Args:
        tx: Transaction whose outputs are final
        input_index: Index of the input being signed
        script_code: The spent coin's locking script (without length prefix)
        value: The spent coin's amount
        sighash_type: Full sighash type, encoded as 4 bytes at the end

    Returns:
        The preimage bytes (hash256 of this is the signature digest)
    """
    if not 0 <= input_index < len(tx.inputs):
        raise SigningError(f"Input index {input_index} out of range ({len(tx.inputs)} inputs)")

    base_type = sighash_type & 0x1F
    anyone_can_pay = bool(sighash_type & SigHash.ANYONECANPAY)

    if anyone_can_pay:
        hash_prevouts = ZERO_HASH
    else:
        hash_prevouts = hash256(
            b"".join(serialize_outpoint(inp.txid, inp.vout) for inp in tx.inputs)
        )

    if anyone_can_pay or base_type in (SigHash.SINGLE, SigHash.NONE):
        hash_sequence = ZERO_HASH
    else:
        hash_sequence = hash256(b"".join(struct.pack("<I", inp.sequence) for inp in tx.inputs))

    if base_type not in (SigHash.SINGLE, SigHash.NONE):
        hash_outputs = hash256(b"".join(serialize_output(out) for out in tx.outputs))
    elif base_type == SigHash.SINGLE and input_index < len(tx.outputs):
        hash_outputs = hash256(serialize_output(tx.outputs[input_index]))
    else:
        hash_outputs = ZERO_HASH

    target_input = tx.inputs[input_index]

    return (
        struct.pack("<I", tx.version)
        + hash_prevouts
        + hash_sequence
        + serialize_outpoint(target_input.txid, target_input.vout)
        + varbytes(script_code)
        + struct.pack("<Q", value)
        + struct.pack("<I", target_input.sequence)
        + hash_outputs
        + struct.pack("<I", tx.locktime)
        + struct.pack("<I", sighash_type)
    )


def sign_digest(private_key: PrivateKey, digest: bytes) -> bytes:
    """
    Deterministic ECDSA signature over a 32-byte digest, DER encoded.

    The RFC6979 nonce is re-derived with an incrementing extra-entropy counter
    until R and S both encode to 32 bytes, so every signature is exactly
    DER_SIGNATURE_SIZE bytes long. The first attempt uses no extra entropy.
    """
    if len(digest) != 32:
        raise SigningError(f"Digest must be 32 bytes, got {len(digest)}")

    signature = private_key.sign(digest, hasher=None)
    counter = 0
    while len(signature) != DER_SIGNATURE_SIZE:
        counter += 1
        if counter > MAX_GRIND_ATTEMPTS:
            raise SigningError("Could not produce a fixed-length signature")
        extra_entropy = ffi.new("unsigned char[32]", list(counter.to_bytes(32, "little")))
        signature = private_key.sign(digest, hasher=None, custom_nonce=(ffi.NULL, extra_entropy))

    return signature


class SigningContext:
    """
    Signing capabilities for one input of a transaction with final outputs.

    Handed to each input's signer during the finalize phase; bound to the
    input's index and the coin it spends.
    """

    def __init__(self, tx: Transaction, input_index: int, coin: Coin):
        self.tx = tx
        self.input_index = input_index
        self.coin = coin

    def preimage(self, sighash: int = SigHash.ALL) -> bytes:
        """Preimage for this input; the FORKID bit is always set."""
        return compute_preimage(
            self.tx,
            self.input_index,
            self.coin.locking_script,
            self.coin.amount,
            sighash | SigHash.FORKID,
        )

    def sign(self, private_key: PrivateKey, sighash: int = SigHash.ALL) -> bytes:
        """Transaction signature: DER signature with the sighash byte appended."""
        flag = sighash | SigHash.FORKID
        digest = hash256(self.preimage(flag))
        signature = sign_digest(private_key, digest)
        logger.debug(f"Input {self.input_index}: signed with sighash {int(flag):#04x}")
        return signature + bytes([flag])

    def sign_data(self, private_key: PrivateKey, message: bytes) -> bytes:
        """Data signature over sha256(message), without a sighash byte."""
        return sign_digest(private_key, sha256(message))

    def unlock(self, params: Mapping[str, ParamValue]) -> bytes:
        """Unlocking script for this input's coin from named parameters."""
        return build_unlocking_script(self.coin, params)
