"""
Shared fixtures: fixed keys, their testnet addresses and coins locked to them.
"""

from __future__ import annotations

import hashlib

import pytest
from coincurve import PrivateKey

from scripttx.address import pubkey_to_address
from scripttx.models import (
    Challenge,
    ChallengeType,
    ContractCoin,
    ContractInstance,
    NetworkType,
    Outpoint,
    P2PKHCoin,
)
from scripttx.script import OpCode, push_data

FUNDING_TXID = "ad70c931d742d6903271d1d3047701fb25b6859c440aeacf774d242f74f10738"
CONTRACT_FUNDING_TXID = "6b5c8d90e8ac791d00c1d70bcc7a52fb4fd9077bf07387b0db9240a919cdabdf"

# Test keys only (not for production use!)
KEY_SECRETS = [
    "bbc27228ddcb9209d7fd6f36b02f7dfa6252af40bb2f1cbc7a557da8027ff866",
    "619c335025c7f4012e556c2a58b2506e30b8511b53ade95ea316fd8c3286feb9",
    "eb696a065ef48a2192da5b28b694f87544b30fae8327c4510137a922f32c6dcf",
]


def pubkey_bytes(key: PrivateKey) -> bytes:
    return key.public_key.format(compressed=True)


def sha256_pubkey_hash_contract(pubkey: bytes) -> ContractInstance:
    """
    Compiled pay-to-public-key-hash contract using SHA256 as the key hash:
    OP_DUP OP_SHA256 <sha256(pubKey)> OP_EQUALVERIFY OP_CHECKSIG
    """
    locking_script = (
        bytes([OpCode.OP_DUP, OpCode.OP_SHA256])
        + push_data(hashlib.sha256(pubkey).digest())
        + bytes([OpCode.OP_EQUALVERIFY, OpCode.OP_CHECKSIG])
    )
    return ContractInstance(
        name="PayToPublicKeyHash",
        locking_script=locking_script,
        challenges=(
            Challenge(name="sig", type=ChallengeType.SIG),
            Challenge(name="pubKey", type=ChallengeType.PUBKEY),
        ),
    )


@pytest.fixture
def keys() -> list[PrivateKey]:
    return [PrivateKey(bytes.fromhex(secret)) for secret in KEY_SECRETS]


@pytest.fixture
def addresses(keys: list[PrivateKey]) -> list[str]:
    """Testnet P2PKH addresses of the fixed keys."""
    return [pubkey_to_address(pubkey_bytes(key), NetworkType.TESTNET) for key in keys]


@pytest.fixture
def coins(keys: list[PrivateKey]) -> list[P2PKHCoin]:
    """Three 100000-sat coins, one per key."""
    return [
        P2PKHCoin.from_public_key(
            Outpoint(txid=FUNDING_TXID, vout=index),
            100_000,
            pubkey_bytes(key),
            height=12345,
            confirmations=30,
        )
        for index, key in enumerate(keys)
    ]


@pytest.fixture
def contract_coin(keys: list[PrivateKey]) -> ContractCoin:
    return ContractCoin.from_instance(
        Outpoint(txid=CONTRACT_FUNDING_TXID, vout=0),
        5_000_000,
        sha256_pubkey_hash_contract(pubkey_bytes(keys[1])),
        height=100,
        confirmations=10,
    )


@pytest.fixture
def contract_instance(keys: list[PrivateKey]) -> ContractInstance:
    return sha256_pubkey_hash_contract(pubkey_bytes(keys[1]))
