"""
Script primitives: opcodes, data pushes and the P2PKH template.
"""

from __future__ import annotations

import hashlib
import struct
from enum import IntEnum


class OpCode(IntEnum):
    OP_0 = 0x00
    OP_PUSHDATA1 = 0x4C
    OP_PUSHDATA2 = 0x4D
    OP_PUSHDATA4 = 0x4E
    OP_1NEGATE = 0x4F
    OP_1 = 0x51
    OP_16 = 0x60
    OP_DUP = 0x76
    OP_EQUAL = 0x87
    OP_EQUALVERIFY = 0x88
    OP_SHA256 = 0xA8
    OP_HASH160 = 0xA9
    OP_CHECKSIG = 0xAC
    OP_CHECKDATASIG = 0xBA


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def push_data(data: bytes) -> bytes:
    """Encode a data push using the smallest push opcode."""
    length = len(data)
    if length == 0:
        return bytes([OpCode.OP_0])
    if length == 1 and 1 <= data[0] <= 16:
        return bytes([OpCode.OP_1 + data[0] - 1])
    if length == 1 and data[0] == 0x81:
        return bytes([OpCode.OP_1NEGATE])
    if length < OpCode.OP_PUSHDATA1:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OpCode.OP_PUSHDATA1, length]) + data
    if length <= 0xFFFF:
        return bytes([OpCode.OP_PUSHDATA2]) + struct.pack("<H", length) + data
    return bytes([OpCode.OP_PUSHDATA4]) + struct.pack("<I", length) + data


def encode_script_num(value: int) -> bytes:
    """Minimal little-endian sign-magnitude encoding used by script numbers."""
    if value == 0:
        return b""

    negative = value < 0
    magnitude = abs(value)
    result = bytearray()
    while magnitude:
        result.append(magnitude & 0xFF)
        magnitude >>= 8

    # The top bit carries the sign, so add a byte if it's already taken
    if result[-1] & 0x80:
        result.append(0x80 if negative else 0x00)
    elif negative:
        result[-1] |= 0x80

    return bytes(result)


def push_int(value: int) -> bytes:
    return push_data(encode_script_num(value))


def p2pkh_script(pubkey_hash: bytes) -> bytes:
    """OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG"""
    if len(pubkey_hash) != 20:
        raise ValueError(f"Public key hash must be 20 bytes, got {len(pubkey_hash)}")
    return b"\x76\xa9\x14" + pubkey_hash + b"\x88\xac"


def p2sh_script(script_hash: bytes) -> bytes:
    """OP_HASH160 <20-byte-scripthash> OP_EQUAL"""
    if len(script_hash) != 20:
        raise ValueError(f"Script hash must be 20 bytes, got {len(script_hash)}")
    return b"\xa9\x14" + script_hash + b"\x87"


def is_p2pkh(script: bytes) -> bool:
    return (
        len(script) == 25
        and script[:3] == b"\x76\xa9\x14"
        and script[23:] == b"\x88\xac"
    )


def is_p2sh(script: bytes) -> bool:
    return len(script) == 23 and script[:2] == b"\xa9\x14" and script[22] == 0x87


def p2pkh_pubkey_hash(script: bytes) -> bytes:
    if not is_p2pkh(script):
        raise ValueError(f"Not a P2PKH script: {script.hex()}")
    return script[3:23]
