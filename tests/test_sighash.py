"""
Tests for signature digests and signing.
"""

from __future__ import annotations

import hashlib

import pytest

from scripttx.codec import Transaction, TxInput, TxOutput, deserialize_transaction, hash256
from scripttx.constants import DER_SIGNATURE_SIZE, TX_SIGNATURE_SIZE
from scripttx.errors import SigningError
from scripttx.script import p2pkh_script
from scripttx.sighash import SigHash, SigningContext, compute_preimage, sign_digest

# https://github.com/bitcoin/bips/blob/master/bip-0143.mediawiki#native-p2wpkh
BIP143_UNSIGNED_TX = bytes.fromhex(
    "0100000002fff7f7881a8099afa6940d42d1e7f6362bec38171ea3edf433541db4e4ad969f0000000000eeffffff"
    "ef51e1b804cc89d182d279655c3aa89e815b1b309fe287d9b2b55d57b90ec68a0100000000ffffffff02202cb206"
    "000000001976a9148280b37df378db99f66f85c95a783a76ac7a6d5988ac9093510d000000001976a9143bde42db"
    "ee7e4dbe6a21b2d50ce2f0167faa815988ac11000000"
)
BIP143_PREIMAGE = bytes.fromhex(
    "0100000096b827c8483d4e9b96712b6713a7b68d6e8003a781feba36c31143470b4efd3752b0a642eea2fb7ae638"
    "c36f6252b6750293dbe574a806984b8e4d8548339a3bef51e1b804cc89d182d279655c3aa89e815b1b309fe287d9"
    "b2b55d57b90ec68a010000001976a9141d0f172a0ecb48aee1be1f2687d2963ae33f71a188ac0046c32300000000"
    "ffffffff863ef3e1a92afbfdb97f31ad0fc7683ee943e9abcf2501590ff8f6551f47e5e51100000001000000"
)
BIP143_SIGHASH = "c37af31116d1b27caf68aae9e3ac82f1477929014d5b917657d0eb49478cb670"
BIP143_SCRIPT_CODE = p2pkh_script(bytes.fromhex("1d0f172a0ecb48aee1be1f2687d2963ae33f71a1"))


def hash_outputs_of(preimage: bytes) -> bytes:
    # hashOutputs is followed by locktime and the sighash type
    return preimage[-40:-8]


@pytest.fixture
def unsigned_tx(coins) -> Transaction:
    return Transaction(
        inputs=[
            TxInput(txid=coin.outpoint.txid, vout=coin.outpoint.vout) for coin in coins[:2]
        ],
        outputs=[
            TxOutput(value=150_000, script=coins[2].locking_script),
            TxOutput(value=49_000, script=coins[0].locking_script),
        ],
    )


class TestComputePreimage:
    def test_bip143_vector(self) -> None:
        tx = deserialize_transaction(BIP143_UNSIGNED_TX)
        preimage = compute_preimage(tx, 1, BIP143_SCRIPT_CODE, 600_000_000, SigHash.ALL)

        assert preimage == BIP143_PREIMAGE
        assert hash256(preimage).hex() == BIP143_SIGHASH

    def test_input_index_out_of_range(self) -> None:
        tx = deserialize_transaction(BIP143_UNSIGNED_TX)
        with pytest.raises(SigningError, match="out of range"):
            compute_preimage(tx, 2, BIP143_SCRIPT_CODE, 1, SigHash.ALL)

    def test_anyonecanpay_zeroes_prevouts_and_sequences(self) -> None:
        tx = deserialize_transaction(BIP143_UNSIGNED_TX)
        flag = SigHash.ALL | SigHash.ANYONECANPAY | SigHash.FORKID
        preimage = compute_preimage(tx, 1, BIP143_SCRIPT_CODE, 600_000_000, flag)

        assert preimage[4:36] == bytes(32)
        assert preimage[36:68] == bytes(32)
        assert hash_outputs_of(preimage) == BIP143_PREIMAGE[-40:-8]
        assert preimage[-4:] == bytes([0xC1, 0, 0, 0])

    def test_none_zeroes_sequences_and_outputs(self) -> None:
        tx = deserialize_transaction(BIP143_UNSIGNED_TX)
        preimage = compute_preimage(tx, 1, BIP143_SCRIPT_CODE, 600_000_000, SigHash.NONE)

        assert preimage[4:36] == BIP143_PREIMAGE[4:36]
        assert preimage[36:68] == bytes(32)
        assert hash_outputs_of(preimage) == bytes(32)

    def test_single_covers_matching_output(self) -> None:
        tx = deserialize_transaction(BIP143_UNSIGNED_TX)
        preimage = compute_preimage(tx, 1, BIP143_SCRIPT_CODE, 600_000_000, SigHash.SINGLE)

        expected = hash256(
            tx.outputs[1].value.to_bytes(8, "little") + b"\x19" + tx.outputs[1].script
        )
        assert hash_outputs_of(preimage) == expected
        assert preimage[36:68] == bytes(32)

    def test_single_without_matching_output(self) -> None:
        tx = deserialize_transaction(BIP143_UNSIGNED_TX)
        tx.outputs = tx.outputs[:1]
        preimage = compute_preimage(tx, 1, BIP143_SCRIPT_CODE, 600_000_000, SigHash.SINGLE)
        assert hash_outputs_of(preimage) == bytes(32)


class TestSignDigest:
    def test_fixed_length(self, keys) -> None:
        for i in range(64):
            digest = hashlib.sha256(i.to_bytes(4, "little")).digest()
            assert len(sign_digest(keys[i % 3], digest)) == DER_SIGNATURE_SIZE

    def test_deterministic(self, keys) -> None:
        digest = hashlib.sha256(b"scripttx").digest()
        assert sign_digest(keys[0], digest) == sign_digest(keys[0], digest)

    def test_verifies(self, keys) -> None:
        for i in range(16):
            digest = hashlib.sha256(bytes([i])).digest()
            signature = sign_digest(keys[1], digest)
            assert keys[1].public_key.verify(signature, digest, hasher=None)

    def test_rejects_wrong_digest_length(self, keys) -> None:
        with pytest.raises(SigningError):
            sign_digest(keys[0], bytes(31))


class TestSigningContext:
    def test_preimage_sets_forkid(self, unsigned_tx, coins) -> None:
        ctx = SigningContext(unsigned_tx, 0, coins[0])
        preimage = ctx.preimage(SigHash.ALL)

        assert preimage[-4:] == bytes([0x41, 0, 0, 0])
        assert preimage == ctx.preimage(SigHash.ALL | SigHash.FORKID)

    def test_preimage_uses_coin_script_and_amount(self, unsigned_tx, coins) -> None:
        ctx = SigningContext(unsigned_tx, 1, coins[1])
        preimage = ctx.preimage()

        script_code = b"\x19" + coins[1].locking_script
        amount = coins[1].amount.to_bytes(8, "little")
        assert script_code + amount in preimage

    def test_sign_appends_flag(self, unsigned_tx, coins, keys) -> None:
        ctx = SigningContext(unsigned_tx, 0, coins[0])
        signature = ctx.sign(keys[0])

        assert len(signature) == TX_SIGNATURE_SIZE
        assert signature[-1] == SigHash.ALL | SigHash.FORKID
        assert keys[0].public_key.verify(signature[:-1], hash256(ctx.preimage()), hasher=None)

    def test_sign_with_other_flags(self, unsigned_tx, coins, keys) -> None:
        ctx = SigningContext(unsigned_tx, 1, coins[1])
        signature = ctx.sign(keys[1], SigHash.SINGLE | SigHash.ANYONECANPAY)

        assert signature[-1] == 0xC3
        digest = hash256(ctx.preimage(SigHash.SINGLE | SigHash.ANYONECANPAY))
        assert keys[1].public_key.verify(signature[:-1], digest, hasher=None)

    def test_checksig_and_checkdatasig_signatures_match(self, unsigned_tx, coins, keys) -> None:
        ctx = SigningContext(unsigned_tx, 0, coins[0])
        flag = bytes([SigHash.ALL | SigHash.FORKID])

        sig = ctx.sign(keys[0])
        datasig = ctx.sign_data(keys[0], hashlib.sha256(ctx.preimage(SigHash.ALL)).digest())

        assert sig.hex() == (datasig + flag).hex()

    def test_sign_data_covers_sha256_of_message(self, unsigned_tx, coins, keys) -> None:
        ctx = SigningContext(unsigned_tx, 0, coins[0])
        message = b"arbitrary oracle message"
        datasig = ctx.sign_data(keys[2], message)

        assert len(datasig) == DER_SIGNATURE_SIZE
        assert keys[2].public_key.verify(datasig, message)

    def test_signature_depends_on_outputs(self, unsigned_tx, coins, keys) -> None:
        before = SigningContext(unsigned_tx, 0, coins[0]).sign(keys[0])
        unsigned_tx.outputs[1].value -= 1
        after = SigningContext(unsigned_tx, 0, coins[0]).sign(keys[0])
        assert before != after

    def test_unlock_builds_template(self, unsigned_tx, coins, keys) -> None:
        ctx = SigningContext(unsigned_tx, 0, coins[0])
        pubkey = keys[0].public_key.format(compressed=True)
        sig = ctx.sign(keys[0])

        script = ctx.unlock({"sig": sig, "pubKey": pubkey})
        assert script == bytes([len(sig)]) + sig + bytes([len(pubkey)]) + pubkey
