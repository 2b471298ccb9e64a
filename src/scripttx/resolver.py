"""
Unlocking-script templates.

Every coin declares an ordered list of challenges (named parameter slots).
P2PKH coins always declare (sig, pubKey); contract coins declare whatever the
compiler produced. The unlocking script is the declared values pushed in
order and nothing else.
"""

from __future__ import annotations

from collections.abc import Mapping

from scripttx.constants import (
    COMPRESSED_PUBKEY_SIZE,
    DATA_SIGNATURE_SIZE,
    MAX_SCRIPT_ELEMENT_SIZE,
    MAX_SCRIPT_NUM_SIZE,
    TX_SIGNATURE_SIZE,
)
from scripttx.errors import MalformedParameterError, MissingParameterError, UnknownParameterError
from scripttx.models import Challenge, ChallengeType, Coin
from scripttx.script import encode_script_num, push_data, push_int

ParamValue = bytes | int | bool

# (min, max) lengths of byte-valued slots. Signatures must come from the
# fixed-length signer so the size estimate holds.
BYTE_SLOT_SIZES: dict[ChallengeType, tuple[int, int]] = {
    ChallengeType.SIG: (TX_SIGNATURE_SIZE, TX_SIGNATURE_SIZE),
    ChallengeType.DATASIG: (DATA_SIGNATURE_SIZE, DATA_SIGNATURE_SIZE),
    ChallengeType.PUBKEY: (COMPRESSED_PUBKEY_SIZE, COMPRESSED_PUBKEY_SIZE),
    ChallengeType.RIPEMD160: (20, 20),
    ChallengeType.SHA1: (20, 20),
    ChallengeType.SHA256: (32, 32),
}


def encode_param(challenge: Challenge, value: ParamValue) -> bytes:
    """Validate value against its slot and return the push encoding."""
    name = challenge.name

    if challenge.type == ChallengeType.BOOL:
        if not isinstance(value, bool):
            raise MalformedParameterError(name, f"expected bool, got {type(value).__name__}")
        return push_int(1 if value else 0)

    if challenge.type == ChallengeType.INT:
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedParameterError(name, f"expected int, got {type(value).__name__}")
        if len(encode_script_num(value)) > MAX_SCRIPT_NUM_SIZE:
            raise MalformedParameterError(
                name, f"{value} exceeds {MAX_SCRIPT_NUM_SIZE}-byte script number range"
            )
        return push_int(value)

    if not isinstance(value, bytes | bytearray):
        raise MalformedParameterError(name, f"expected bytes, got {type(value).__name__}")
    value = bytes(value)

    if challenge.type == ChallengeType.BYTES:
        limit = challenge.max_size if challenge.max_size is not None else MAX_SCRIPT_ELEMENT_SIZE
        if len(value) > limit:
            raise MalformedParameterError(name, f"{len(value)} bytes exceeds maximum of {limit}")
        return push_data(value)

    min_size, max_size = BYTE_SLOT_SIZES[challenge.type]
    if not min_size <= len(value) <= max_size:
        expected = str(min_size) if min_size == max_size else f"{min_size}..{max_size}"
        raise MalformedParameterError(
            name, f"{challenge.type.value} must be {expected} bytes, got {len(value)}"
        )
    if challenge.type == ChallengeType.PUBKEY and value[0] not in (0x02, 0x03):
        raise MalformedParameterError(name, "public key must be compressed")

    return push_data(value)


def build_unlocking_script(coin: Coin, params: Mapping[str, ParamValue]) -> bytes:
    """
    Push the coin's declared challenge values in declared order.

    Raises:
        MissingParameterError: A declared challenge has no value
        UnknownParameterError: A value was supplied for an undeclared name
        MalformedParameterError: A value doesn't fit its slot
    """
    challenges = coin.challenges
    declared = {c.name for c in challenges}

    for name in params:
        if name not in declared:
            raise UnknownParameterError(name)

    script = b""
    for challenge in challenges:
        if challenge.name not in params:
            raise MissingParameterError(challenge.name)
        script += encode_param(challenge, params[challenge.name])
    return script


def placeholder_value(challenge: Challenge) -> ParamValue:
    """A value whose push is as long as the longest value the slot is expected to hold."""
    if challenge.type == ChallengeType.SIG:
        return bytes(TX_SIGNATURE_SIZE)
    if challenge.type == ChallengeType.DATASIG:
        return bytes(DATA_SIGNATURE_SIZE)
    if challenge.type == ChallengeType.PUBKEY:
        return b"\x02" + bytes(COMPRESSED_PUBKEY_SIZE - 1)
    if challenge.type == ChallengeType.BYTES:
        size = challenge.max_size if challenge.max_size is not None else MAX_SCRIPT_ELEMENT_SIZE
        # 0xff avoids the single-byte small-integer opcodes
        return b"\xff" * size
    if challenge.type == ChallengeType.INT:
        return -(2**31 - 1)
    if challenge.type == ChallengeType.BOOL:
        return True
    return bytes(BYTE_SLOT_SIZES[challenge.type][1])


def placeholder_unlocking_script(coin: Coin) -> bytes:
    """Unlocking script used only to size the transaction before signing."""
    return build_unlocking_script(coin, {c.name: placeholder_value(c) for c in coin.challenges})
