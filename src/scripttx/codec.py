"""
Transaction serialization.

Canonical (non-witness) wire format:
- version (4 bytes LE)
- varint input count, then per input: outpoint (32-byte txid LE + 4-byte vout),
  varint-prefixed unlocking script, 4-byte sequence
- varint output count, then per output: 8-byte amount, varint-prefixed script
- locktime (4 bytes LE)
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field

from scripttx.constants import DEFAULT_LOCKTIME, DEFAULT_SEQUENCE, DEFAULT_TX_VERSION
from scripttx.errors import DecodeError
from scripttx.models import NetworkType


@dataclass
class TxInput:
    """Transaction input."""

    txid: str
    vout: int
    script_sig: bytes = b""
    sequence: int = DEFAULT_SEQUENCE


@dataclass
class TxOutput:
    """Transaction output."""

    value: int
    script: bytes


@dataclass
class Transaction:
    """A transaction, either a size-estimation skeleton or final and signed."""

    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    version: int = DEFAULT_TX_VERSION
    locktime: int = DEFAULT_LOCKTIME
    network: NetworkType = field(default=NetworkType.MAINNET, compare=False)

    def serialize(self) -> bytes:
        return serialize_transaction(self)

    def hex(self) -> str:
        return self.serialize().hex()

    def size(self) -> int:
        return transaction_size(self)

    def id(self) -> str:
        return transaction_id(self)

    @classmethod
    def from_bytes(cls, data: bytes, network: NetworkType = NetworkType.MAINNET) -> Transaction:
        tx = deserialize_transaction(data)
        tx.network = network
        return tx

    @classmethod
    def from_hex(cls, tx_hex: str, network: NetworkType = NetworkType.MAINNET) -> Transaction:
        try:
            data = bytes.fromhex(tx_hex)
        except ValueError as e:
            raise DecodeError(f"Invalid transaction hex: {e}") from e
        return cls.from_bytes(data, network)


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def encode_varint(value: int) -> bytes:
    """Encode integer as Bitcoin varint."""
    if value < 0:
        raise ValueError(f"varint must be non-negative: {value}")
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Read varint at offset, returns (value, new_offset)."""
    first = data[offset]
    offset += 1

    if first < 0xFD:
        return first, offset
    if first == 0xFD:
        return struct.unpack("<H", data[offset : offset + 2])[0], offset + 2
    if first == 0xFE:
        return struct.unpack("<I", data[offset : offset + 4])[0], offset + 4
    return struct.unpack("<Q", data[offset : offset + 8])[0], offset + 8


def varbytes(data: bytes) -> bytes:
    return encode_varint(len(data)) + data


def serialize_outpoint(txid: str, vout: int) -> bytes:
    """Serialize outpoint (txid:vout)."""
    # txid is in RPC format (big-endian), need to reverse for raw tx
    return bytes.fromhex(txid)[::-1] + struct.pack("<I", vout)


def serialize_input(inp: TxInput) -> bytes:
    return (
        serialize_outpoint(inp.txid, inp.vout)
        + varbytes(inp.script_sig)
        + struct.pack("<I", inp.sequence)
    )


def serialize_output(out: TxOutput) -> bytes:
    return struct.pack("<Q", out.value) + varbytes(out.script)


def serialize_transaction(tx: Transaction) -> bytes:
    """Serialize transaction to bytes."""
    parts = [struct.pack("<I", tx.version), encode_varint(len(tx.inputs))]
    parts.extend(serialize_input(inp) for inp in tx.inputs)
    parts.append(encode_varint(len(tx.outputs)))
    parts.extend(serialize_output(out) for out in tx.outputs)
    parts.append(struct.pack("<I", tx.locktime))
    return b"".join(parts)


def transaction_size(tx: Transaction) -> int:
    return len(serialize_transaction(tx))


def transaction_id(tx: Transaction) -> str:
    """Double SHA256 of the serialized transaction, in RPC byte order."""
    return hash256(serialize_transaction(tx))[::-1].hex()


def deserialize_transaction(tx_bytes: bytes) -> Transaction:
    try:
        offset = 0
        version = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
        offset += 4

        input_count, offset = read_varint(tx_bytes, offset)
        inputs: list[TxInput] = []

        for _ in range(input_count):
            txid = tx_bytes[offset : offset + 32][::-1].hex()
            offset += 32
            vout = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
            offset += 4

            script_len, offset = read_varint(tx_bytes, offset)
            script_sig = tx_bytes[offset : offset + script_len]
            if len(script_sig) != script_len:
                raise ValueError("truncated unlocking script")
            offset += script_len

            sequence = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
            offset += 4
            inputs.append(TxInput(txid, vout, script_sig, sequence))

        output_count, offset = read_varint(tx_bytes, offset)
        outputs: list[TxOutput] = []

        for _ in range(output_count):
            value = struct.unpack("<Q", tx_bytes[offset : offset + 8])[0]
            offset += 8

            script_len, offset = read_varint(tx_bytes, offset)
            script = tx_bytes[offset : offset + script_len]
            if len(script) != script_len:
                raise ValueError("truncated locking script")
            offset += script_len
            outputs.append(TxOutput(value, script))

        locktime = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
        offset += 4

        if offset != len(tx_bytes):
            raise ValueError(f"{len(tx_bytes) - offset} trailing bytes")

        return Transaction(inputs=inputs, outputs=outputs, version=version, locktime=locktime)

    except (IndexError, ValueError, struct.error) as e:
        raise DecodeError(f"Failed to parse transaction: {e}") from e
